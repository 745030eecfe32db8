import os
import json
import logging
from typing import Callable, Dict, List, Optional

import httpx
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from dotenv import load_dotenv

from errors import UpstreamError
from llm_modules.prompts import SYSTEM_PROMPT, build_messages

load_dotenv()

logger = logging.getLogger(__name__)

# Supported models
AVAILABLE_MODELS = {
    "groq": {
        "api_base": "https://api.groq.com/openai/v1",
        "model": os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
        "api_key": os.getenv("GROQ_API_KEY", "").strip(),
        "key_name": "GROQ_API_KEY",
    },
    "openai": {
        "api_base": "https://api.openai.com/v1",
        "model": os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        "api_key": os.getenv("OPENAI_API_KEY", "").strip(),
        "key_name": "OPENAI_API_KEY",
    },
    "gemini": {
        "api_key": os.getenv("GEMINI_API_KEY", "").strip(),
        "model": os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        "key_name": "GEMINI_API_KEY",
    },
}

# Configure Gemini SDK if key provided
if AVAILABLE_MODELS["gemini"]["api_key"]:
    genai.configure(api_key=AVAILABLE_MODELS["gemini"]["api_key"])

# Default model
DEFAULT_MODEL = os.getenv("LLM_MODEL", "groq").strip().lower()
TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))
LOG_PROMPTS = os.getenv("LLM_LOG_PROMPTS", "false").strip().lower() == "true"

PartialTextCallback = Callable[[str], None]


def resolve_model(model_name: Optional[str] = None) -> str:
    """Return the provider name to use, raising ValueError for unknown names."""
    name = (model_name or DEFAULT_MODEL).strip().lower()
    if name not in AVAILABLE_MODELS:
        raise ValueError(f"Model '{name}' not available. Choose from: {list(AVAILABLE_MODELS.keys())}")
    return name


async def generate(
    prompt: str,
    on_partial_text: Optional[PartialTextCallback] = None,
    model_name: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Send one streaming chat completion and return the full response text.

    Each text delta is appended to the result and handed to on_partial_text
    as it arrives. Any provider failure surfaces as UpstreamError; nothing is retried.
    """
    provider = resolve_model(model_name)
    config = AVAILABLE_MODELS[provider]

    if not config["api_key"]:
        raise UpstreamError(f"{config['key_name']} is not configured")

    if LOG_PROMPTS:
        logger.info("[LLM] provider=%s model=%s prompt=%s", provider, config["model"], prompt)

    chunks: List[str] = []

    def collect(text: str) -> None:
        chunks.append(text)
        if on_partial_text:
            on_partial_text(text)

    if provider == "gemini":
        await _stream_gemini(config, prompt, collect)
    else:
        await _stream_openai_compatible(provider, config, build_messages(prompt), collect, client)

    full_response = "".join(chunks)
    logger.debug("[LLM] Full response from %s: %s", provider, full_response)
    return full_response


async def _stream_openai_compatible(
    provider: str,
    config: Dict[str, str],
    messages: List[Dict[str, str]],
    collect: PartialTextCallback,
    client: Optional[httpx.AsyncClient] = None,
) -> None:
    # Groq and OpenAI both speak the OpenAI chat completions SSE format
    url = f"{config['api_base']}/chat/completions"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config['api_key']}",
    }
    payload = {
        "model": config["model"],
        "messages": messages,
        "temperature": TEMPERATURE,
        "stream": True,
    }

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=TIMEOUT_SECONDS)

    try:
        async with client.stream("POST", url, headers=headers, json=payload) as r:
            if r.status_code >= 400:
                body = (await r.aread()).decode("utf-8", errors="replace")
                raise UpstreamError(f"{provider} request failed with HTTP {r.status_code}: {body}")

            async for line in r.aiter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                if data == "[DONE]":
                    break
                if not data:
                    continue
                chunk = json.loads(data)
                if "error" in chunk:
                    raise UpstreamError(f"{provider} stream error: {chunk['error']}")
                choices = chunk.get("choices") or []
                content = (choices[0].get("delta") or {}).get("content") if choices else None
                if content:
                    collect(content)
    except httpx.TimeoutException as e:
        raise UpstreamError(f"{provider} request timed out: {e}" if str(e) else f"{provider} request timed out") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"{provider} request failed: {e}") from e
    except json.JSONDecodeError as e:
        raise UpstreamError(f"{provider} sent an unreadable stream chunk: {e}") from e
    finally:
        if owns_client:
            await client.aclose()


async def _stream_gemini(config: Dict[str, str], prompt: str, collect: PartialTextCallback) -> None:
    # Google Generative AI SDK (official)
    model = genai.GenerativeModel(config["model"], system_instruction=SYSTEM_PROMPT)

    try:
        response = await model.generate_content_async(
            [{"role": "user", "parts": [{"text": prompt}]}],
            generation_config=genai.types.GenerationConfig(temperature=TEMPERATURE),
            stream=True,
            request_options={"timeout": TIMEOUT_SECONDS},
        )
        async for chunk in response:
            # Blocked chunks raise on .text
            try:
                text = chunk.text
            except ValueError:
                logger.warning("[LLM] Gemini chunk was filtered by safety policies")
                continue
            if text:
                collect(text)
    except google_exceptions.GoogleAPICallError as e:
        raise UpstreamError(f"gemini request failed: {e.message or e}") from e
    except google_exceptions.RetryError as e:
        raise UpstreamError(f"gemini request failed: {e}") from e
