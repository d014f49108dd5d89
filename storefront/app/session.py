#!/usr/bin/env python3
"""
Key-value storage and session identity for the storefront.

Counters and analytics events go to Redis when it is reachable; otherwise
they land in an in-memory dict with the same TTL semantics.
"""

import json
import random
import string
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

import redis

from .config import Config
from ..utils.logger import get_logger

logger = get_logger("session")

_BASE36 = string.digits + string.ascii_lowercase


class KVStore:
    """Small KV facade: JSON values, integer counters and per-key TTLs."""

    def __init__(self, use_redis: Optional[bool] = None, client: Optional[redis.Redis] = None):
        """
        Initialize the store with a Redis connection or fall back to in-memory.

        Args:
            use_redis: Override ``Config.USE_REDIS``
            client: Pre-built Redis client (tests pass a fake here)
        """
        self.use_redis = Config.USE_REDIS if use_redis is None else use_redis
        self.redis_client = client
        self._memory: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

        if self.use_redis and self.redis_client is None:
            try:
                self.redis_client = redis.Redis(
                    host=Config.REDIS_HOST,
                    port=Config.REDIS_PORT,
                    db=Config.REDIS_DB,
                    decode_responses=True,
                )
                self.redis_client.ping()
                logger.info("Using Redis for key-value storage")
            except redis.RedisError as e:
                logger.warning(f"Redis not available ({e}), using in-memory key-value storage")
                self.use_redis = False
                self.redis_client = None
        elif not self.use_redis:
            self.redis_client = None

    @property
    def backend(self) -> str:
        return "redis" if self.use_redis else "memory"

    # --- in-memory helpers ---

    def _expired(self, key: str) -> bool:
        entry = self._memory.get(key)
        if entry is None:
            return True
        expires_at = entry[1]
        if expires_at is not None and expires_at <= time.time():
            del self._memory[key]
            return True
        return False

    @staticmethod
    def _deadline(ttl: Optional[int]) -> Optional[float]:
        return time.time() + ttl if ttl else None

    def _drop_redis(self, op: str, error: Exception) -> None:
        logger.warning(f"Redis {op} failed ({error}), switching to in-memory key-value storage")
        self.use_redis = False
        self.redis_client = None

    # --- public API ---

    def get(self, key: str) -> Optional[Any]:
        """Return the decoded JSON value for ``key`` or None."""
        if self.use_redis:
            try:
                raw = self.redis_client.get(key)
                return json.loads(raw) if raw is not None else None
            except redis.RedisError as e:
                self._drop_redis("get", e)
        with self._lock:
            if self._expired(key):
                return None
            return self._memory[key][0]

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store ``value`` as JSON, expiring after ``ttl`` seconds when given."""
        if self.use_redis:
            try:
                self.redis_client.set(key, json.dumps(value), ex=ttl)
                return
            except redis.RedisError as e:
                self._drop_redis("put", e)
        with self._lock:
            self._memory[key] = (value, self._deadline(ttl))

    def incr(self, key: str, ttl: Optional[int] = None) -> int:
        """Increment a counter and refresh its TTL; returns the new value."""
        if self.use_redis:
            try:
                pipe = self.redis_client.pipeline()
                pipe.incr(key)
                if ttl:
                    pipe.expire(key, ttl)
                return int(pipe.execute()[0])
            except redis.RedisError as e:
                self._drop_redis("incr", e)
        with self._lock:
            current = 0 if self._expired(key) else int(self._memory[key][0])
            current += 1
            self._memory[key] = (current, self._deadline(ttl))
            return current

    def delete(self, key: str) -> bool:
        if self.use_redis:
            try:
                return bool(self.redis_client.delete(key))
            except redis.RedisError as e:
                self._drop_redis("delete", e)
        with self._lock:
            return self._memory.pop(key, None) is not None

    def keys(self, prefix: str = "") -> List[str]:
        if self.use_redis:
            try:
                return sorted(self.redis_client.scan_iter(match=f"{prefix}*"))
            except redis.RedisError as e:
                self._drop_redis("keys", e)
        with self._lock:
            live = [k for k in list(self._memory) if k.startswith(prefix) and not self._expired(k)]
        return sorted(live)


def new_session_id() -> str:
    """Build an id like ``session_1718000000000_k3j9x0a1b``."""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def resolve_session_id(headers) -> str:
    """
    Resolve the cart session for a request.

    Args:
        headers: Request headers (case-insensitive mapping)

    Returns:
        The ``X-Session-ID`` header, else the bearer token, else a new id
    """
    session_id = (headers.get("x-session-id") or "").strip()
    if session_id:
        return session_id
    auth = (headers.get("authorization") or "").strip()
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token
    return new_session_id()
