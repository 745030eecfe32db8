import json
from typing import Any, Dict, List, Sequence

from pydantic import BaseModel

from llm_modules.suggestion_kinds import SuggestionKind

SYSTEM_PROMPT = "You are a helpful assistant. Always respond with valid JSON when requested."


def _as_plain(records: Sequence[Any]) -> List[Dict[str, Any]]:
    # Datasets may arrive as pydantic records or already-plain dicts.
    return [r.model_dump() if isinstance(r, BaseModel) else dict(r) for r in records]


def build_prompt(kind: SuggestionKind, inventory: Sequence[Any], sales_history: Sequence[Any]) -> str:
    """
    Build the user prompt for one suggestion kind.
    Embeds the full inventory and sales history as JSON, the kind's analysis
    instructions and a strict JSON-array output contract. No I/O.
    """
    inventory_json = json.dumps(_as_plain(inventory), indent=2)
    sales_json = json.dumps(_as_plain(sales_history), indent=2)

    return f"""
{kind.role}

Inventory Data:
{inventory_json}

Sales History:
{sales_json}

Instructions:
{kind.instructions.strip()}

Return ONLY a valid JSON array with the following structure:
{kind.output_example}

{kind.limit_text} Return JSON only, no other text.
"""


def build_messages(prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]
