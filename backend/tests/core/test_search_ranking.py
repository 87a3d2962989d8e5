"""Search Ranking tests — BM25 relevance normalization and haversine distance."""

import pytest

from app.core.search_ranking import haversine_km, relevance_scores, tokenize


def test_tokenize_folds_case_and_accents():
    assert tokenize("Riad à FÈS!") == ["riad", "a", "fes"]
    assert tokenize(None) == []


def test_scores_normalized_to_best_match():
    docs = [
        "riad traditionnel avec piscine à Marrakech",
        "randonnée dans l'Atlas",
        "riad riad hammam",
    ]
    scores = relevance_scores("riad hammam", docs)
    assert len(scores) == 3
    assert max(scores) == pytest.approx(1.0)
    assert scores[1] == 0.0
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_no_query_or_no_match_gives_zeros():
    docs = ["surf à Taghazout", "désert de Merzouga"]
    assert relevance_scores("", docs) == [0.0, 0.0]
    assert relevance_scores("ski", docs) == [0.0, 0.0]
    assert relevance_scores("ski", []) == []


def test_accent_insensitive_match():
    scores = relevance_scores("fes", ["Médina de Fès", "Plage d'Agadir"])
    assert scores[0] == pytest.approx(1.0)
    assert scores[1] == 0.0


def test_haversine_symmetric_and_zero():
    marrakech = (31.6295, -7.9811)
    casablanca = (33.5731, -7.5898)
    d1 = haversine_km(*marrakech, *casablanca)
    d2 = haversine_km(*casablanca, *marrakech)
    assert d1 == pytest.approx(d2)
    assert 200 < d1 < 230
    assert haversine_km(*marrakech, *marrakech) == 0.0
