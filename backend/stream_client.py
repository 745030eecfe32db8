"""
Client side of the suggestion push channel.

SuggestionFeed drives one card's state machine, Idle -> Loading -> Success | Error,
by POSTing to the kind's route and reading the SSE body incrementally.

Unlike a bare EventSource reader, a feed never stays in Loading forever:
a stream that closes without a terminal event, or a refresh that exceeds
its timeout, ends in Error.
"""
import json
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from llm_modules.suggestion_kinds import SuggestionKind

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DEFAULT_TIMEOUT_SECONDS = 180.0


class FeedState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class SSEDecoder:
    """
    Incremental `data: ` line parser. Chunks may split lines anywhere;
    the unfinished tail is kept until the next feed() or flush().
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, chunk: str) -> List[Dict[str, Any]]:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return [event for event in map(self._parse_line, lines) if event is not None]

    def flush(self) -> List[Dict[str, Any]]:
        tail, self._buffer = self._buffer, ""
        event = self._parse_line(tail)
        return [event] if event is not None else []

    @staticmethod
    def _parse_line(line: str) -> Optional[Dict[str, Any]]:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):]
        if not data.strip():
            return None
        try:
            event = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error("[StreamClient] Error parsing SSE data: %s", e)
            return None
        if not isinstance(event, dict) or "type" not in event:
            logger.error("[StreamClient] Ignoring SSE frame without a type: %r", data)
            return None
        return event


class SuggestionFeed:
    def __init__(
        self,
        kind: SuggestionKind,
        base_url: str = "http://localhost:8000",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        model_name: Optional[str] = None,
        on_change: Optional[Callable[["SuggestionFeed"], None]] = None,
    ):
        self.kind = kind
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout
        self.model_name = model_name
        self.on_change = on_change

        self.state = FeedState.IDLE
        self.data: List[Dict[str, Any]] = []
        self.error = ""
        self.status_message = ""

    @property
    def loading(self) -> bool:
        return self.state is FeedState.LOADING

    def _set(self, state: FeedState, data: Optional[List[Dict[str, Any]]] = None, error: str = "") -> None:
        self.state = state
        if data is not None:
            self.data = data
        self.error = error
        if self.on_change:
            self.on_change(self)

    async def refresh(self) -> FeedState:
        """Fetch suggestions again; returns the terminal state reached."""
        self.status_message = ""
        self._set(FeedState.LOADING, data=[])

        try:
            await asyncio.wait_for(self._read_stream(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[StreamClient] %s timed out after %.0fs", self.kind.slug, self.timeout)
            self._set(FeedState.ERROR, error=f"Timed out waiting for {self.kind.title.lower()}")
        except httpx.HTTPError as e:
            logger.error("[StreamClient] %s request failed: %s", self.kind.slug, e)
            self._set(FeedState.ERROR, error=self.kind.client_fallback)

        if self.state is FeedState.LOADING:
            self._set(FeedState.ERROR, error="Stream closed before a result was delivered")
        return self.state

    async def _read_stream(self) -> None:
        url = f"{self.base_url}{self.kind.route}"
        params = {"model": self.model_name} if self.model_name else None

        owns_client = self.client is None
        client = self.client or httpx.AsyncClient(timeout=None)
        try:
            async with client.stream("POST", url, params=params) as response:
                if response.status_code >= 400:
                    logger.error("[StreamClient] Failed to fetch from %s: HTTP %d", url, response.status_code)
                    self._set(FeedState.ERROR, error=self.kind.client_fallback)
                    return

                decoder = SSEDecoder()
                async for chunk in response.aiter_text():
                    for event in decoder.feed(chunk):
                        if self._dispatch(event):
                            return
                for event in decoder.flush():
                    if self._dispatch(event):
                        return
        finally:
            if owns_client:
                await client.aclose()

    def _dispatch(self, event: Dict[str, Any]) -> bool:
        """Apply one event; returns True once a terminal event was handled."""
        event_type = event.get("type")
        if event_type == "status":
            self.status_message = event.get("message") or ""
            logger.info("[StreamClient] Status: %s", self.status_message)
            return False
        if event_type == "complete":
            data = event.get("data")
            if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
                logger.error("[StreamClient] Ignoring complete frame without a list of records: %r", data)
                return False
            self._set(FeedState.SUCCESS, data=data)
            return True
        if event_type == "error":
            self._set(FeedState.ERROR, error=event.get("error") or "Unknown error occurred")
            return True
        logger.warning("[StreamClient] Ignoring event of type %r", event_type)
        return False
