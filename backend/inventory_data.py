import os
import json
import logging
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from dotenv import load_dotenv
from pydantic import BaseModel, TypeAdapter, ValidationError

from errors import DatasetError
from schemas import Product, SalesHistory

load_dotenv()

logger = logging.getLogger(__name__)

# --- PATH CONFIGURATION ---
# Bundled datasets live next to this file; DATA_DIR overrides for deployments.
DEFAULT_DATA_DIR = Path(__file__).parent / "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
INVENTORY_FILE = "inventory.json"
SALES_HISTORY_FILE = "sales-history.json"
# --------------------------

_cached_inventory: Optional[List[Product]] = None
_cached_sales_history: Optional[List[SalesHistory]] = None

T = TypeVar("T", bound=BaseModel)


def load_records(path: Path, model: Type[T]) -> List[T]:
    """Read a JSON array file and validate every entry against model."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DatasetError(f"Dataset not found at {path}") from e
    except json.JSONDecodeError as e:
        raise DatasetError(f"Dataset {path} is not valid JSON: {e}") from e

    try:
        return TypeAdapter(List[model]).validate_python(raw)
    except ValidationError as e:
        raise DatasetError(f"Dataset {path} failed validation: {e}") from e


def get_inventory() -> List[Product]:
    global _cached_inventory
    if _cached_inventory is None:
        path = DATA_DIR / INVENTORY_FILE
        _cached_inventory = load_records(path, Product)
        ids = [p.product_id for p in _cached_inventory]
        if len(ids) != len(set(ids)):
            _cached_inventory = None
            raise DatasetError(f"Dataset {path} contains duplicate product_id values")
        logger.info("[Datasets] Loaded %d products from %s", len(ids), path)
    return _cached_inventory


def get_sales_history() -> List[SalesHistory]:
    global _cached_sales_history
    if _cached_sales_history is None:
        path = DATA_DIR / SALES_HISTORY_FILE
        _cached_sales_history = load_records(path, SalesHistory)
        logger.info("[Datasets] Loaded %d sales histories from %s", len(_cached_sales_history), path)
    return _cached_sales_history


def reset_cache() -> None:
    global _cached_inventory, _cached_sales_history
    _cached_inventory = None
    _cached_sales_history = None
