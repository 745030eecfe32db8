from dataclasses import dataclass
from typing import Dict, Type

from pydantic import BaseModel

from schemas import (
    HIGH_URGENCY_STOCK,
    MEDIUM_URGENCY_STOCK,
    PriceOptimization,
    RestockSuggestion,
    TrendingProduct,
)


@dataclass(frozen=True)
class SuggestionKind:
    """
    One suggestion category. Carries everything that differs between kinds:
    prompt text, the record schema and the user-facing messages.
    """
    slug: str
    title: str
    record_model: Type[BaseModel]
    status_message: str
    error_fallback: str
    client_fallback: str
    role: str
    instructions: str
    output_example: str
    limit_text: str

    @property
    def route(self) -> str:
        return f"/api/ai/{self.slug}"


RESTOCK = SuggestionKind(
    slug="restock",
    title="Restock Suggestions",
    record_model=RestockSuggestion,
    status_message="Analyzing inventory levels...",
    error_fallback="Failed to get restock suggestions",
    client_fallback="Failed to fetch restock suggestions",
    role=(
        "You are an inventory management AI assistant. Analyze the following "
        "inventory data and suggest products that need restocking."
    ),
    instructions=f"""
1. Identify products with low stock relative to their monthly sales velocity
2. Consider products with stock < {HIGH_URGENCY_STOCK} units as high urgency
3. Consider products with stock < {MEDIUM_URGENCY_STOCK} units as medium urgency
4. Consider sales trends and growth rates
5. Suggest appropriate restock quantities
""",
    output_example="""[
  {
    "product_id": "PRD001",
    "name": "Product Name",
    "urgency": "high" | "medium" | "low",
    "reason": "Brief explanation",
    "suggested_quantity": number
  }
]""",
    limit_text="Limit to top 5 most urgent items.",
)

PRICE = SuggestionKind(
    slug="price",
    title="Price Optimization",
    record_model=PriceOptimization,
    status_message="Analyzing pricing trends...",
    error_fallback="Failed to get price optimization suggestions",
    client_fallback="Failed to fetch price optimizations",
    role=(
        "You are a pricing strategy AI assistant. Analyze the following inventory "
        "and sales data to suggest optimal price adjustments."
    ),
    instructions="""
1. Analyze demand trends (growth rate, sales pattern)
2. Consider stock availability (low stock may justify price increase)
3. Suggest price adjustments based on market dynamics
4. Keep changes reasonable (typically +/-15%)
5. Provide clear reasoning for each suggestion
""",
    output_example="""[
  {
    "product_id": "PRD001",
    "name": "Product Name",
    "current_price": number,
    "suggested_price": number,
    "change_percentage": number,
    "reasoning": "Brief explanation of why this price makes sense"
  }
]""",
    limit_text="Limit to top 5 recommendations.",
)

TRENDING = SuggestionKind(
    slug="trending",
    title="Trending Products",
    record_model=TrendingProduct,
    status_message="Analyzing sales trends...",
    error_fallback="Failed to get trending product suggestions",
    client_fallback="Failed to fetch trending products",
    role=(
        "You are a trend analysis AI assistant. Identify products with high sales "
        "potential based on inventory and sales data."
    ),
    instructions="""
1. Analyze growth rates and sales trends
2. Look for products with consistent upward momentum
3. Consider both absolute sales and growth percentage
4. Identify products likely to see increased demand
5. Provide trend analysis and projected sales increase
""",
    output_example="""[
  {
    "product_id": "PRD001",
    "name": "Product Name",
    "category": "Category",
    "growth_potential": "high" | "medium" | "low",
    "trend_analysis": "Brief analysis of why this product is trending",
    "projected_sales_increase": number (percentage)
  }
]""",
    limit_text="Limit to top 5 trending products.",
)

SUGGESTION_KINDS: Dict[str, SuggestionKind] = {
    kind.slug: kind for kind in (RESTOCK, PRICE, TRENDING)
}


def get_kind(slug: str) -> SuggestionKind:
    try:
        return SUGGESTION_KINDS[slug]
    except KeyError:
        raise ValueError(
            f"Suggestion kind '{slug}' not available. Choose from: {list(SUGGESTION_KINDS.keys())}"
        ) from None
