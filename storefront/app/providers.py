#!/usr/bin/env python3
"""
Outbound calls to AI providers.

Each provider function takes the endpoint being used and an ``AIRequest`` and
returns an ``AIResponse``. Network failures, non-2xx statuses and unusable
bodies all surface as ``ProviderError`` so the orchestrator can count them
against the endpoint's circuit breaker.
"""

import time
from typing import Any, Callable, Dict
from urllib.parse import quote

import requests

from .config import Config
from .errors import ProviderError
from ..schemas.ai_models import AIRequest, AIResponse
from ..utils.logger import get_logger
from ..utils.security import anonymize_text, restore_text

logger = get_logger("ai")

CRYSTAL_EXPERT_PROMPT = (
    "You are a knowledgeable crystal jewelry expert at Troves & Coves in Winnipeg. "
    "Provide helpful, accurate information about crystals, jewelry care, and product "
    "recommendations. Keep responses informative yet conversational."
)

IMAGE_STYLE_SUFFIX = (
    ", professional photography, high quality, clean background, no watermarks, no logos, "
    "commercial use, premium jewelry photography --style photorealistic --quality high --enhance --private"
)


def _estimate_tokens(text: str) -> int:
    return len(text) // 4


def _post(provider: str, url: str, **kwargs) -> requests.Response:
    try:
        response = requests.post(url, timeout=Config.AI_TIMEOUT_SECONDS, **kwargs)
    except requests.RequestException as e:
        raise ProviderError(provider, str(e)) from e
    if not response.ok:
        logger.warning(f"[AI] {provider} returned HTTP {response.status_code}")
        raise ProviderError(provider, f"HTTP {response.status_code}")
    return response


def _verify_media(provider: str, url: str) -> None:
    try:
        response = requests.head(url, timeout=Config.AI_TIMEOUT_SECONDS, allow_redirects=True)
    except requests.RequestException as e:
        raise ProviderError(provider, str(e)) from e
    if not response.ok:
        raise ProviderError(provider, f"HTTP {response.status_code}")


def _json(provider: str, response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(provider, "response body is not JSON") from e


def _chat_messages(prompt: str):
    return [
        {"role": "system", "content": CRYSTAL_EXPERT_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _openai_content(provider: str, data: Dict[str, Any]) -> str:
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ProviderError(provider, "unexpected response body") from e


def pollinations_text(endpoint, request: AIRequest) -> AIResponse:
    """
    Text completion through Pollinations' OpenAI-compatible endpoint.

    The service answers either with a chat-completion JSON document or with
    the bare completion text, depending on the model.
    """
    model = request.model or "openai"
    response = _post(endpoint.name, endpoint.base_url, json={
        "messages": _chat_messages(request.prompt),
        "model": model,
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
    })

    if "application/json" in response.headers.get("content-type", ""):
        content = _openai_content(endpoint.name, _json(endpoint.name, response))
    else:
        content = response.text

    content = (content or "").strip()
    if not content:
        raise ProviderError(endpoint.name, "empty completion")
    return AIResponse(content=content, model=model, provider=endpoint.name, tokens_used=_estimate_tokens(content))


def pollinations_image(endpoint, request: AIRequest) -> AIResponse:
    prompt = quote(request.prompt + IMAGE_STYLE_SUFFIX, safe="")
    seed = int(time.time() * 1000)
    url = (
        f"{endpoint.base_url.rstrip('/')}/{prompt}"
        f"?width=1024&height=1024&seed={seed}&nologo=true&enhance=true&private=true&model=flux"
    )
    _verify_media(endpoint.name, url)
    return AIResponse(
        content="Generated professional crystal jewelry image with watermark removal",
        model="flux",
        provider=endpoint.name,
        tokens_used=50,
        media_url=url,
    )


def pollinations_audio(endpoint, request: AIRequest) -> AIResponse:
    url = (
        f"{endpoint.base_url.rstrip('/')}/bark?text={quote(request.prompt, safe='')}"
        "&voice=professional_female&speed=1.0&enhance=true&private=true"
    )
    _verify_media(endpoint.name, url)
    return AIResponse(
        content="Generated professional audio narration for crystal jewelry consultation",
        model="bark",
        provider=endpoint.name,
        tokens_used=25,
        media_url=url,
    )


def huggingface(endpoint, request: AIRequest) -> AIResponse:
    prompt, mapping = anonymize_text(request.prompt)
    headers = {"Authorization": f"Bearer {Config.HF_API_KEY}"} if Config.HF_API_KEY else {}
    response = _post(endpoint.name, Config.HF_INFERENCE_URL, headers=headers, json={
        "inputs": prompt,
        "parameters": {"max_length": request.max_tokens, "temperature": request.temperature},
    })

    data = _json(endpoint.name, response)
    if isinstance(data, list):
        data = data[0] if data else {}
    content = (data.get("generated_text") if isinstance(data, dict) else None) or ""
    content = content.strip()
    if not content:
        raise ProviderError(endpoint.name, "no generated_text in response")

    content = restore_text(content, mapping)
    return AIResponse(content=content, model="DialoGPT-medium", provider=endpoint.name,
                      tokens_used=_estimate_tokens(content))


def local_llm(endpoint, request: AIRequest) -> AIResponse:
    prompt, mapping = anonymize_text(request.prompt)
    model = request.model or Config.LOCAL_LLM_MODEL
    response = _post(endpoint.name, f"{endpoint.base_url.rstrip('/')}/v1/chat/completions", json={
        "messages": _chat_messages(prompt),
        "model": model,
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
        "stream": False,
    })

    data = _json(endpoint.name, response)
    content = restore_text(_openai_content(endpoint.name, data).strip(), mapping)
    tokens = (data.get("usage") or {}).get("total_tokens") or _estimate_tokens(content)
    return AIResponse(content=content, model=model, provider=endpoint.name, tokens_used=tokens)


def anthropic(endpoint, request: AIRequest) -> AIResponse:
    prompt, mapping = anonymize_text(request.prompt)
    model = request.model or Config.ANTHROPIC_MODEL
    response = _post(
        endpoint.name,
        Config.ANTHROPIC_URL,
        headers={
            "x-api-key": Config.ANTHROPIC_API_KEY,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        },
        json={
            "model": model,
            "max_tokens": request.max_tokens,
            "temperature": min(request.temperature, 1.0),
            "system": CRYSTAL_EXPERT_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
        },
    )

    data = _json(endpoint.name, response)
    try:
        content = data["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise ProviderError(endpoint.name, "unexpected response body") from e

    usage = data.get("usage") or {}
    tokens = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)
    content = restore_text(content.strip(), mapping)
    return AIResponse(content=content, model=model, provider=endpoint.name,
                      tokens_used=tokens or _estimate_tokens(content))


# Endpoint name -> provider call
PROVIDERS: Dict[str, Callable[[Any, AIRequest], AIResponse]] = {
    "Pollinations AI": pollinations_text,
    "Pollinations Image": pollinations_image,
    "Pollinations Audio": pollinations_audio,
    "Hugging Face Free": huggingface,
    "Local LLM Proxy": local_llm,
    "Anthropic": anthropic,
}
