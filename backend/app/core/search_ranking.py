"""Search Ranking — BM25 relevance and great-circle distance for experience search.

Invariants:
    - relevance_scores returns one score per document, each in [0.0, 1.0]
    - Scores are normalized by the best match; no match at all → every score 0.0
    - Tokenization is case- and accent-insensitive ("Fès" matches "fes")
    - haversine_km is symmetric and 0 for identical points

Design Decisions:
    - BM25Plus with delta=0 over BM25Okapi: Okapi's IDF goes negative when a term
      appears in most documents, which happens constantly in a ~20-item catalog
      (ADR: rank_bm25, same library as the RAG keyword retriever)
    - Normalizing by the max makes thresholds (0.3, 0.15) meaningful regardless
      of corpus size
"""

import math
import re
import unicodedata
from collections.abc import Sequence

from rank_bm25 import BM25Plus

EARTH_RADIUS_KM = 6371.0

_WORD = re.compile(r"\b\w+\b")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def tokenize(text: str | None) -> list[str]:
    if not text:
        return []
    return _WORD.findall(_fold(text))


def relevance_scores(query: str | None, documents: Sequence[str]) -> list[float]:
    """BM25 score of query against every document, normalized to [0, 1]."""
    if not documents:
        return []
    query_tokens = tokenize(query)
    corpus = [tokenize(d) for d in documents]
    if not query_tokens or not any(corpus):
        return [0.0] * len(documents)

    bm25 = BM25Plus(corpus, delta=0)
    raw = [float(s) for s in bm25.get_scores(query_tokens)]
    best = max(raw)
    if best <= 0:
        return [0.0] * len(documents)
    return [max(0.0, s) / best for s in raw]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))
