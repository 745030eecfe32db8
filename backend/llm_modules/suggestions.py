import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from errors import ShapeError
from llm import generate, PartialTextCallback
from llm_modules.llm_utils import extract_json
from llm_modules.prompts import build_prompt
from llm_modules.suggestion_kinds import SuggestionKind, RESTOCK, PRICE, TRENDING

logger = logging.getLogger(__name__)


def validate_suggestions(kind: SuggestionKind, data: Any) -> List[Dict[str, Any]]:
    """
    Check extracted JSON against the kind's record schema.
    Raises ShapeError if it is not an array or any record is malformed.
    """
    if not isinstance(data, list):
        raise ShapeError("Invalid response format: expected array")

    records = []
    for index, item in enumerate(data):
        try:
            record = kind.record_model.model_validate(item)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors())
            raise ShapeError(f"Invalid {kind.slug} suggestion at index {index}: bad field(s) {fields}") from e
        records.append(record.model_dump())
    return records


async def get_suggestions(
    kind: SuggestionKind,
    inventory: Sequence[Any],
    sales_history: Sequence[Any],
    model_name: Optional[str] = None,
    on_partial_text: Optional[PartialTextCallback] = None,
) -> List[Dict[str, Any]]:
    """
    Suggestion pipeline shared by all kinds:
    prompt -> LLM (streamed, fully buffered) -> JSON extraction -> validation.
    UpstreamError, ExtractionError and ShapeError propagate to the caller.
    """
    prompt = build_prompt(kind, inventory, sales_history)
    raw = await generate(prompt, on_partial_text=on_partial_text, model_name=model_name)
    data = extract_json(raw)
    records = validate_suggestions(kind, data)
    logger.info("[Suggestions] %s: %d record(s)", kind.slug, len(records))
    return records


async def get_restock_suggestions(inventory, sales_history, model_name: Optional[str] = None):
    return await get_suggestions(RESTOCK, inventory, sales_history, model_name=model_name)


async def get_price_optimizations(inventory, sales_history, model_name: Optional[str] = None):
    return await get_suggestions(PRICE, inventory, sales_history, model_name=model_name)


async def get_trending_products(inventory, sales_history, model_name: Optional[str] = None):
    return await get_suggestions(TRENDING, inventory, sales_history, model_name=model_name)
