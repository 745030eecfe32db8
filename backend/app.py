import os
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from inventory_data import get_inventory, get_sales_history
from errors import DatasetError
from llm import AVAILABLE_MODELS, DEFAULT_MODEL, resolve_model
from llm_modules.suggestion_kinds import SUGGESTION_KINDS, get_kind
from streaming import suggestion_stream_response

load_dotenv()

APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Inventory Insights Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --------- Routes ---------
@app.on_event("startup")
async def on_startup():
    # Warm the dataset cache; a broken dataset is reported on the data routes too
    try:
        get_inventory()
        get_sales_history()
        logger.info("[Startup] Datasets loaded, default LLM provider: %s", DEFAULT_MODEL)
    except DatasetError as e:
        logger.error("[Startup] Failed to load datasets: %s", e)


@app.get("/")
async def root():
    """Service information"""
    return {
        "service": "Inventory Insights Backend",
        "status": "online",
        "endpoints": {
            "health": "/health",
            "inventory": "/api/inventory",
            "sales_history": "/api/sales-history",
            "kinds": "/api/ai/kinds",
            **{f"ai_{slug}": kind.route + " (POST, text/event-stream)" for slug, kind in SUGGESTION_KINDS.items()},
        },
    }


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/inventory")
async def api_inventory():
    try:
        return get_inventory()
    except DatasetError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/sales-history")
async def api_sales_history():
    try:
        return get_sales_history()
    except DatasetError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/ai/kinds")
async def api_kinds():
    return {
        "default_model": DEFAULT_MODEL,
        "models": list(AVAILABLE_MODELS.keys()),
        "kinds": [
            {"kind": kind.slug, "title": kind.title, "route": kind.route, "status_message": kind.status_message}
            for kind in SUGGESTION_KINDS.values()
        ],
    }


@app.post("/api/ai/{kind}")
async def api_ai_suggestions(kind: str, model: Optional[str] = Query(None, description="LLM provider override")):
    """
    Stream AI suggestions for one kind (restock / price / trending) as Server-Sent Events.
    No request body is needed; the static datasets are sent to the model.
    """
    try:
        suggestion_kind = get_kind(kind)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        model_name = resolve_model(model)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        inventory = get_inventory()
        sales_history = get_sales_history()
    except DatasetError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return suggestion_stream_response(suggestion_kind, inventory, sales_history, model_name=model_name)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host=APP_HOST, port=APP_PORT)
