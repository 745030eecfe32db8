import pytest

import inventory_data
from errors import UpstreamError
from llm_modules import suggestions


@pytest.fixture
def fake_llm(monkeypatch):
    """
    Replace the provider call used by the suggestion pipeline.
    Call the returned function with the raw text to return or an exception to raise.
    """
    calls = []

    def install(result):
        async def fake_generate(prompt, on_partial_text=None, model_name=None, client=None):
            calls.append({"prompt": prompt, "model_name": model_name})
            if isinstance(result, BaseException):
                raise result
            if on_partial_text:
                on_partial_text(result)
            return result

        monkeypatch.setattr(suggestions, "generate", fake_generate)
        return calls

    return install


@pytest.fixture
def upstream_timeout():
    return UpstreamError("groq request timed out")


@pytest.fixture(autouse=True)
def fresh_datasets():
    inventory_data.reset_cache()
    yield
    inventory_data.reset_cache()
