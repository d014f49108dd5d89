import json
import time
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .session import resolve_session_id
from ..utils.logger import get_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON access-log line per request."""

    def __init__(self, app, logger=None):
        super().__init__(app)
        self.logger = logger or get_logger("access")

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        ip = (request.client.host if request.client else None) or ""
        status = 500
        try:
            response: Response = await call_next(request)
            status = response.status_code
        finally:
            log: Dict[str, Any] = {
                "ts": int(time.time() * 1000),
                "ip": ip,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": int((time.time() - start) * 1000),
            }
            self.logger.info(json.dumps(log))
        return response


class SessionIdMiddleware(BaseHTTPMiddleware):
    """Resolves the cart session id onto ``request.state`` and echoes it back in ``X-Session-ID``."""

    async def dispatch(self, request: Request, call_next):
        session_id = resolve_session_id(request.headers)
        request.state.session_id = session_id
        response = await call_next(request)
        response.headers["X-Session-ID"] = session_id
        return response
