"""
Terminal dashboard: prints the inventory, then fetches restock, price and
trending suggestions concurrently and prints one card per kind.

    python dashboard.py --base-url http://localhost:8000 [--model gemini] [--only price]
"""
import argparse
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from llm_modules.suggestion_kinds import SUGGESTION_KINDS, PRICE, RESTOCK, TRENDING
from schemas import stock_badge
from stream_client import DEFAULT_TIMEOUT_SECONDS, FeedState, SuggestionFeed


def render_inventory(inventory: List[Dict[str, Any]]) -> str:
    header = f"{'Product ID':<10}  {'Name':<30}  {'Category':<12}  {'Stock':>5}  {'':<6}  {'Price':>9}  {'Monthly Sales':>13}"
    lines = ["Current Inventory", header, "-" * len(header)]
    for p in inventory:
        lines.append(
            f"{p['product_id']:<10}  {p['name'][:30]:<30}  {p['category'][:12]:<12}  "
            f"{p['current_stock']:>5}  {stock_badge(p['current_stock']):<6}  "
            f"${p['price']:>8.2f}  {p['monthly_sales']:>13}"
        )
    return "\n".join(lines)


def _format_record(slug: str, item: Dict[str, Any]) -> str:
    if slug == RESTOCK.slug:
        return (
            f"[{item['urgency'].upper()}] {item['name']} ({item['product_id']}): "
            f"order {item['suggested_quantity']} - {item['reason']}"
        )
    if slug == PRICE.slug:
        return (
            f"{item['name']} ({item['product_id']}): ${item['current_price']:.2f} -> "
            f"${item['suggested_price']:.2f} ({item['change_percentage']:+.1f}%) - {item['reasoning']}"
        )
    if slug == TRENDING.slug:
        return (
            f"[{item['growth_potential'].upper()}] {item['name']} ({item['category']}): "
            f"{item['projected_sales_increase']:+.0f}% projected - {item['trend_analysis']}"
        )
    return str(item)


def render_card(feed: SuggestionFeed) -> str:
    lines = [f"== {feed.kind.title} =="]
    if feed.state is FeedState.LOADING:
        lines.append(feed.status_message or "Loading...")
    elif feed.state is FeedState.ERROR:
        lines.append(f"Error: {feed.error}")
    elif not feed.data:
        lines.append("No suggestions.")
    else:
        lines.extend(f"- {_format_record(feed.kind.slug, item)}" for item in feed.data)
    return "\n".join(lines)


async def run_dashboard(
    base_url: str,
    model_name: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    only: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[SuggestionFeed]:
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=None)
    try:
        inv = await client.get(f"{base_url.rstrip('/')}/api/inventory")
        inv.raise_for_status()
        print(render_inventory(inv.json()))
        print()

        kinds = [SUGGESTION_KINDS[only]] if only else list(SUGGESTION_KINDS.values())
        feeds = [
            SuggestionFeed(kind, base_url=base_url, client=client, timeout=timeout, model_name=model_name)
            for kind in kinds
        ]
        # All cards refresh on first display, in no particular order
        await asyncio.gather(*(feed.refresh() for feed in feeds))
    finally:
        if owns_client:
            await client.aclose()

    for feed in feeds:
        print(render_card(feed))
        print()
    return feeds


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="AI inventory insights in the terminal")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--model", default=None, help="LLM provider override (groq, openai, gemini)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_SECONDS)
    parser.add_argument("--only", choices=sorted(SUGGESTION_KINDS.keys()), default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        feeds = asyncio.run(run_dashboard(args.base_url, args.model, args.timeout, args.only))
    except httpx.HTTPError as e:
        print(f"Failed to load inventory from {args.base_url}: {e}")
        return 1
    return 0 if all(feed.state is FeedState.SUCCESS for feed in feeds) else 1


if __name__ == "__main__":
    raise SystemExit(main())
