"""Mock Chat — canned French reply streamed word by word as plain text.

Invariants:
    - Body needs at least one message (schema → 400 otherwise)
    - Reply quotes the last message's content verbatim
    - Chunks are `word + " "` split on single spaces, MOCK_STREAM_DELAY_MS apart
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.config import Settings, get_settings
from app.schemas.chat import MockChatRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["mock-chat"])


def mock_reply(content: str) -> str:
    return (
        f"Je suis l'assistant Okeyo. Vous avez dit : \"{content}\". \n  \n"
        "Je peux vous aider à trouver des expériences de voyage, des hébergements "
        "ou des activités. Dites-moi simplement ce que vous recherchez !\n  \n"
        "Par exemple : \"Je cherche un séjour romantique à Bali\" ou "
        "\"Quelles sont les activités à faire à Tokyo ?\""
    )


async def stream_words(text: str, delay_seconds: float) -> AsyncIterator[str]:
    try:
        for word in text.split(" "):
            yield word + " "
            await asyncio.sleep(delay_seconds)
    except asyncio.CancelledError:
        logger.info("Mock chat stream cancelled by client")
        return


@router.post("/chat")
async def mock_chat(
    body: MockChatRequest,
    settings: Settings = Depends(get_settings),
):
    reply = mock_reply(body.messages[-1].content)
    return StreamingResponse(
        stream_words(reply, settings.mock_stream_delay_ms / 1000),
        media_type="text/plain; charset=utf-8",
    )
