import asyncio

import httpx
import pytest

from app import app
from llm_modules.suggestion_kinds import PRICE, RESTOCK
from stream_client import FeedState, SSEDecoder, SuggestionFeed

from mocks import RESTOCK_JSON

COMPLETE_FRAME = 'data: {"type":"complete","data":[{"product_id":"P1"}]}\n\n'


def test_decoder_buffers_lines_split_across_chunks():
    decoder = SSEDecoder()
    assert decoder.feed('data: {"type":"sta') == []
    assert decoder.feed('tus","message":"Analyzing..."}\n') == [{"type": "status", "message": "Analyzing..."}]
    assert decoder.feed("\ndata: ") == []
    assert decoder.feed('{"type":"error","error":"x"}\n\n') == [{"type": "error", "error": "x"}]


def test_decoder_skips_malformed_and_foreign_lines():
    decoder = SSEDecoder()
    events = decoder.feed('data: {not json}\n: comment\nevent: ping\ndata: [1]\ndata: \n' + COMPLETE_FRAME)
    assert events == [{"type": "complete", "data": [{"product_id": "P1"}]}]


def test_decoder_flush_parses_unterminated_tail():
    decoder = SSEDecoder()
    assert decoder.feed('data: {"type":"error","error":"late"}') == []
    assert decoder.flush() == [{"type": "error", "error": "late"}]
    assert decoder.flush() == []


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _chunks(*parts: str, hang: bool = False):
    for part in parts:
        yield part.encode()
    if hang:
        await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_feed_reaches_success_over_chunked_stream():
    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/api/ai/restock"
        return httpx.Response(200, content=_chunks('data: {"type":"status","message":"Analyz', 'ing..."}\n\nda', COMPLETE_FRAME[2:]))

    states = []
    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client, on_change=lambda f: states.append(f.state))
        assert feed.state is FeedState.IDLE
        assert await feed.refresh() is FeedState.SUCCESS

    assert states == [FeedState.LOADING, FeedState.SUCCESS]
    assert feed.data == [{"product_id": "P1"}]
    assert feed.status_message == "Analyzing..."
    assert feed.error == ""


@pytest.mark.asyncio
async def test_feed_error_event():
    def handler(request):
        return httpx.Response(200, content=b'data: {"type":"error","error":"groq request timed out"}\n\n')

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(PRICE, base_url="http://test", client=client)
        assert await feed.refresh() is FeedState.ERROR
    assert feed.error == "groq request timed out"
    assert feed.data == []


@pytest.mark.asyncio
async def test_feed_error_event_without_message():
    def handler(request):
        return httpx.Response(200, content=b'data: {"type":"error"}\n\n')

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(PRICE, base_url="http://test", client=client)
        await feed.refresh()
    assert feed.error == "Unknown error occurred"


@pytest.mark.asyncio
async def test_http_failure_uses_kind_fallback():
    def handler(request):
        return httpx.Response(500, text="Internal Server Error")

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(PRICE, base_url="http://test", client=client)
        await feed.refresh()
    assert feed.state is FeedState.ERROR
    assert feed.error == "Failed to fetch price optimizations"


@pytest.mark.asyncio
async def test_connection_error_uses_kind_fallback():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client)
        await feed.refresh()
    assert feed.error == "Failed to fetch restock suggestions"


@pytest.mark.asyncio
async def test_stream_closed_without_terminal_event_is_error():
    def handler(request):
        return httpx.Response(200, content=b'data: {"type":"status","message":"Analyzing..."}\n\n')

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client)
        assert await feed.refresh() is FeedState.ERROR
    assert feed.error == "Stream closed before a result was delivered"


@pytest.mark.asyncio
async def test_stalled_stream_times_out():
    def handler(request):
        return httpx.Response(200, content=_chunks('data: {"type":"status","message":"..."}\n\n', hang=True))

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client, timeout=0.05)
        assert await feed.refresh() is FeedState.ERROR
    assert feed.error == "Timed out waiting for restock suggestions"


@pytest.mark.asyncio
async def test_refresh_clears_previous_result():
    bodies = [COMPLETE_FRAME.encode(), b'data: {"type":"error","error":"down"}\n\n']

    def handler(request):
        return httpx.Response(200, content=bodies.pop(0))

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client)
        await feed.refresh()
        assert feed.data
        await feed.refresh()
    assert feed.state is FeedState.ERROR
    assert feed.data == []


@pytest.mark.asyncio
async def test_feed_against_app(fake_llm):
    calls = fake_llm(RESTOCK_JSON)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://testserver", client=client, model_name="openai")
        assert await feed.refresh() is FeedState.SUCCESS

    assert feed.data[0]["suggested_quantity"] == 150
    assert calls[0]["model_name"] == "openai"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["5", '"abc"', "null", "[1, 2]"])
async def test_complete_frame_without_records_is_skipped(payload):
    body = (
        'data: {"type":"complete","data":' + payload + '}\n\n'
        'data: {"type":"error","error":"x"}\n\n'
    ).encode()

    def handler(request):
        return httpx.Response(200, content=body)

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client)
        assert await feed.refresh() is FeedState.ERROR
    assert feed.error == "x"
    assert feed.data == []


@pytest.mark.asyncio
async def test_complete_frame_without_records_then_stream_end():
    def handler(request):
        return httpx.Response(200, content=b'data: {"type":"complete","data":5}\n\n')

    async with _mock_client(handler) as client:
        feed = SuggestionFeed(RESTOCK, base_url="http://test", client=client)
        assert await feed.refresh() is FeedState.ERROR
    assert feed.error == "Stream closed before a result was delivered"
