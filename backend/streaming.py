"""
Server side of the suggestion push channel.

Every request runs Started -> Analyzing -> Completed | Failed and writes
Server-Sent-Events frames (`data: <json>\\n\\n`):
- one advisory `status` frame first,
- then exactly one terminal frame, `complete` or `error`, after which the stream ends.
"""
import logging
from typing import Any, AsyncIterator, Optional, Sequence

from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from llm_modules.suggestion_kinds import SuggestionKind
from llm_modules.suggestions import get_suggestions
from schemas import CompleteEvent, ErrorEvent, StatusEvent

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def encode_event(event: BaseModel) -> str:
    return f"data: {event.model_dump_json()}\n\n"


async def suggestion_events(
    kind: SuggestionKind,
    inventory: Sequence[Any],
    sales_history: Sequence[Any],
    model_name: Optional[str] = None,
) -> AsyncIterator[str]:
    yield encode_event(StatusEvent(message=kind.status_message))

    try:
        suggestions = await get_suggestions(kind, inventory, sales_history, model_name=model_name)
    except Exception as e:
        # Every pipeline failure ends the stream with a single error frame
        logger.exception("[Stream] Error in %s suggestions", kind.slug)
        yield encode_event(ErrorEvent(error=str(e) or kind.error_fallback))
        return

    yield encode_event(CompleteEvent(data=suggestions))


def suggestion_stream_response(
    kind: SuggestionKind,
    inventory: Sequence[Any],
    sales_history: Sequence[Any],
    model_name: Optional[str] = None,
) -> StreamingResponse:
    return StreamingResponse(
        suggestion_events(kind, inventory, sales_history, model_name=model_name),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
