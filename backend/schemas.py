"""
Pydantic models shared by the datasets, the suggestion pipeline and the SSE protocol.
"""
from typing import Any, List, Literal

from pydantic import BaseModel, Field

# Stock thresholds used by the restock prompt and the dashboard badge
HIGH_URGENCY_STOCK = 30
MEDIUM_URGENCY_STOCK = 50

Level = Literal["high", "medium", "low"]


# --------- Datasets ---------
class Product(BaseModel):
    product_id: str
    name: str
    category: str
    current_stock: int = Field(ge=0)
    price: float = Field(ge=0)
    monthly_sales: int = Field(ge=0)


class SalesHistory(BaseModel):
    product_id: str
    monthly_sales: List[int]
    growth_rate: float


def stock_badge(stock: int) -> str:
    if stock < HIGH_URGENCY_STOCK:
        return "LOW"
    if stock < MEDIUM_URGENCY_STOCK:
        return "MEDIUM"
    return "OK"


# --------- Suggestions ---------
class RestockSuggestion(BaseModel):
    product_id: str
    name: str
    urgency: Level
    reason: str
    suggested_quantity: int = Field(gt=0)


class PriceOptimization(BaseModel):
    product_id: str
    name: str
    current_price: float
    suggested_price: float
    change_percentage: float
    reasoning: str


class TrendingProduct(BaseModel):
    product_id: str
    name: str
    category: str
    growth_potential: Level
    trend_analysis: str
    projected_sales_increase: float


# --------- Stream events ---------
class StatusEvent(BaseModel):
    type: Literal["status"] = "status"
    message: str


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    data: List[Any]


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str
