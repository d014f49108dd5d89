#!/usr/bin/env python3
"""
AI orchestrator: endpoint discovery, health checks and a fallback chain.

Requests go to the best available free endpoint for their type. Failures are
counted per endpoint by a circuit breaker; when every provider fails the
caller still gets an answer, either a cached response for the same prompt or
a canned local one.
"""

import random
import threading
import time
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests

from .config import Config
from .errors import NoProviderAvailableError, ProviderError
from .providers import PROVIDERS
from ..schemas.ai_models import MAX_PROMPT_CHARS, AIRequest, AIResponse
from ..utils.logger import get_logger

logger = get_logger("ai")

HEALTH_CHECK_TIMEOUT_SECONDS = 5
FALLBACK_CACHE_SIZE = 200

LOCAL_RESPONSES = [
    "I understand you're looking for assistance with crystal jewelry. Based on your inquiry, I'd recommend exploring our lepidolite collection for emotional balance and stress relief.",
    "Our handcrafted pieces combine authentic crystals with premium materials. Each item is energetically cleansed and comes with care instructions.",
    "For healing properties, consider rose quartz for love and self-care, or clear quartz for amplification and clarity. Would you like specific recommendations?",
    "Our wire-wrapped designs are perfect for showcasing the natural beauty of crystals while providing a secure setting. They're available in gold-filled and sterling silver.",
    "I can help you learn about crystal properties, find the right piece for your needs, or provide care instructions for your jewelry.",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clip_prompt(prompt: str, limit: int = MAX_PROMPT_CHARS) -> str:
    """Shorten an assembled prompt to ``limit`` chars, keeping its head and its tail."""
    if len(prompt) <= limit:
        return prompt
    marker = "\n...\n"
    head = (limit - len(marker)) // 2
    tail = limit - len(marker) - head
    return prompt[:head] + marker + prompt[-tail:]


@dataclass
class APIEndpoint:
    name: str
    base_url: str
    models: List[str]
    priority: int
    cost: int
    features: List[str]
    is_available: bool = True
    last_checked: datetime = field(default_factory=_utcnow)
    rate_limit_remaining: Optional[int] = None

    def serves(self, request_type: str) -> bool:
        return request_type in self.features


class CircuitBreaker:
    """Opens after ``threshold`` consecutive failures; allows a trial call once ``reset_seconds`` pass."""

    def __init__(self, threshold: int = Config.CIRCUIT_FAILURE_THRESHOLD,
                 reset_seconds: float = Config.CIRCUIT_RESET_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.threshold = threshold
        self.reset_seconds = reset_seconds
        self._clock = clock
        self.failures = 0
        self.is_open = False
        self.last_failure: Optional[datetime] = None
        self._opened_at = 0.0

    def allow(self) -> bool:
        if not self.is_open:
            return True
        return self._clock() - self._opened_at >= self.reset_seconds

    def record_success(self) -> None:
        self.failures = 0
        self.is_open = False

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure = _utcnow()
        if self.failures >= self.threshold:
            self.is_open = True
            self._opened_at = self._clock()


def default_endpoints() -> List[APIEndpoint]:
    endpoints = [
        APIEndpoint("Pollinations AI", Config.POLLINATIONS_TEXT_URL, ["openai", "mistral", "llama", "claude"],
                    priority=2, cost=0, features=["text", "fast", "free", "privacy-friendly"],
                    rate_limit_remaining=1000),
        APIEndpoint("Pollinations Image", Config.POLLINATIONS_IMAGE_URL, ["flux", "turbo"],
                    priority=2, cost=0, features=["image", "watermark-removal", "high-quality", "free"],
                    rate_limit_remaining=1000),
        APIEndpoint("Pollinations Audio", Config.POLLINATIONS_AUDIO_URL, ["bark", "musicgen"],
                    priority=2, cost=0, features=["audio", "voice-synthesis", "free"],
                    rate_limit_remaining=1000),
        APIEndpoint("Hugging Face Free", Config.HF_INFERENCE_URL,
                    ["microsoft/DialoGPT-medium", "gpt2", "facebook/blenderbot-400M-distill"],
                    priority=3, cost=0, features=["text", "conversational", "open-source", "free"]),
    ]
    if Config.LOCAL_LLM_URL:
        endpoints.insert(0, APIEndpoint("Local LLM Proxy", Config.LOCAL_LLM_URL, [Config.LOCAL_LLM_MODEL],
                                        priority=0, cost=0, features=["text", "privacy", "free"]))
    if Config.ANTHROPIC_API_KEY:
        endpoints.append(APIEndpoint("Anthropic", Config.ANTHROPIC_URL, [Config.ANTHROPIC_MODEL],
                                     priority=5, cost=1, features=["text", "paid"]))
    return endpoints


class EndpointRegistry:
    """Tracks endpoint availability and circuit breakers and picks where requests go."""

    def __init__(self, endpoints: Optional[List[APIEndpoint]] = None,
                 breaker_factory: Callable[[], CircuitBreaker] = CircuitBreaker):
        self.endpoints: List[APIEndpoint] = default_endpoints() if endpoints is None else list(endpoints)
        self._breaker_factory = breaker_factory
        self.breakers: Dict[str, CircuitBreaker] = {ep.name: breaker_factory() for ep in self.endpoints}
        self._listeners: List[Callable[[List[APIEndpoint]], None]] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def breaker(self, name: str) -> CircuitBreaker:
        with self._lock:
            if name not in self.breakers:
                self.breakers[name] = self._breaker_factory()
            return self.breakers[name]

    def add_listener(self, callback: Callable[[List[APIEndpoint]], None]) -> None:
        self._listeners.append(callback)

    def register(self, endpoint: APIEndpoint) -> bool:
        """Add a discovered endpoint; returns False when one with that name already exists."""
        with self._lock:
            if any(ep.name == endpoint.name for ep in self.endpoints):
                return False
            self.endpoints.append(endpoint)
        logger.info(f"[AI] registered endpoint {endpoint.name}")
        return True

    def check_endpoint(self, endpoint: APIEndpoint) -> bool:
        # Pollinations has no cheap health URL and is treated as always up
        if "Pollinations" in endpoint.name:
            endpoint.is_available = True
        else:
            try:
                response = requests.head(endpoint.base_url, timeout=HEALTH_CHECK_TIMEOUT_SECONDS)
                endpoint.is_available = response.status_code < 400
            except requests.RequestException as e:
                logger.warning(f"[AI] health check failed for {endpoint.name}: {e}")
                endpoint.is_available = False
        endpoint.last_checked = _utcnow()
        return endpoint.is_available

    def check_all(self) -> None:
        endpoints = list(self.endpoints)
        with ThreadPoolExecutor(max_workers=max(1, len(endpoints))) as pool:
            list(pool.map(self.check_endpoint, endpoints))
        for listener in self._listeners:
            listener(endpoints)

    def start_periodic_checks(self, interval: float = Config.AI_HEALTH_CHECK_INTERVAL) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()

        def _loop():
            while not self._stop.wait(interval):
                try:
                    self.check_all()
                except Exception:
                    logger.exception("[AI] periodic health check failed")

        self._thread = threading.Thread(target=_loop, name="ai-health-checks", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=1)
            self._thread = None

    def get_available(self) -> List[APIEndpoint]:
        return [ep for ep in self.endpoints if ep.is_available]

    def get_best(self, priority: str = "medium", request_type: str = "text") -> Optional[APIEndpoint]:
        """
        Pick an endpoint for a request.

        Free endpoints always win over paid ones; among equals the lowest
        priority number wins. ``priority`` is accepted for API symmetry and
        does not change the choice.
        """
        candidates = [
            ep for ep in self.get_available()
            if ep.serves(request_type) and self.breaker(ep.name).allow()
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda ep: (ep.cost > 0, ep.priority))


class AIOrchestrator:
    def __init__(self, registry: Optional[EndpointRegistry] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 rng: Optional[random.Random] = None, cache_size: int = FALLBACK_CACHE_SIZE):
        self.registry = registry or EndpointRegistry()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.cache_size = cache_size
        # Least recently used first
        self.fallback_cache: "OrderedDict[str, AIResponse]" = OrderedDict()
        self._cache_lock = threading.Lock()
        self._started = time.monotonic()

    @staticmethod
    def cache_key(request: AIRequest) -> str:
        return f"{request.prompt[:50]}_{request.model or 'default'}_{request.temperature}"

    def complete(self, request: AIRequest) -> AIResponse:
        """Send the request to the best endpoint, without any fallback."""
        endpoint = self.registry.get_best(request.priority, request.type)
        if endpoint is None:
            raise NoProviderAvailableError(request.type)

        call = PROVIDERS.get(endpoint.name)
        if call is None:
            # Discovered endpoints have no client yet
            return self.local_response(request)

        breaker = self.registry.breaker(endpoint.name)
        try:
            response = call(endpoint, request)
        except ProviderError:
            breaker.record_failure()
            raise
        breaker.record_success()
        logger.info(f"[AI] {endpoint.name} served {request.type} request ({response.tokens_used} tokens)")
        return response

    def process_request(self, request: AIRequest) -> AIResponse:
        key = self.cache_key(request)
        try:
            response = self.complete(request)
        except (ProviderError, NoProviderAvailableError) as e:
            logger.warning(f"[AI] request failed: {e.message}")
            with self._cache_lock:
                cached = self.fallback_cache.get(key)
                if cached:
                    self.fallback_cache.move_to_end(key)
            if cached:
                return cached.model_copy(update={"content": f"[Fallback] {cached.content}", "timestamp": _utcnow()})
            return self.local_response(request)

        self.remember(key, response)
        return response

    def remember(self, key: str, response: AIResponse) -> None:
        with self._cache_lock:
            self.fallback_cache[key] = response
            self.fallback_cache.move_to_end(key)
            while len(self.fallback_cache) > self.cache_size:
                self.fallback_cache.popitem(last=False)

    def process_with_retries(self, request: AIRequest, max_retries: int = Config.AI_RETRY_ATTEMPTS) -> AIResponse:
        for attempt in range(max_retries):
            try:
                return self.complete(request)
            except (ProviderError, NoProviderAvailableError) as e:
                logger.warning(f"[AI] attempt {attempt + 1} failed: {e.message}")
                if attempt < max_retries - 1:
                    self._sleep(2 ** attempt)

        logger.error("[AI] all endpoints failed, using local fallback")
        return self.local_response(request)

    def local_response(self, request: Optional[AIRequest] = None) -> AIResponse:
        return AIResponse(
            content=self._rng.choice(LOCAL_RESPONSES),
            model="local-fallback",
            provider="Local Fallback",
            tokens_used=75,
        )

    def get_system_status(self) -> dict:
        endpoints = self.registry.endpoints
        return {
            "totalEndpoints": len(endpoints),
            "availableEndpoints": len(self.registry.get_available()),
            "cacheSize": len(self.fallback_cache),
            "endpoints": [
                {
                    "name": ep.name,
                    "isAvailable": ep.is_available,
                    "lastChecked": ep.last_checked.isoformat(),
                    "rateLimitRemaining": ep.rate_limit_remaining,
                }
                for ep in endpoints
            ],
        }

    def get_ha_status(self) -> dict:
        endpoints = self.registry.endpoints
        return {
            "totalEndpoints": len(endpoints),
            "availableEndpoints": len(self.registry.get_available()),
            "freeEndpoints": sum(1 for ep in endpoints if ep.cost == 0),
            "circuitBreakers": [
                {
                    "name": name,
                    "isOpen": breaker.is_open,
                    "failures": breaker.failures,
                    "lastFailure": breaker.last_failure.isoformat() if breaker.last_failure else None,
                }
                for name, breaker in self.registry.breakers.items()
            ],
            "serviceTypes": {
                t: sum(1 for ep in endpoints if ep.serves(t)) for t in ("text", "image", "audio")
            },
            "healthCheck": {
                "timestamp": _utcnow().isoformat(),
                "uptime": round(time.monotonic() - self._started, 3),
            },
        }

    def shutdown(self) -> None:
        self.registry.stop()
