import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from ..config import Config
from ...schemas.io_models import AnalyticsEventIn
from ...utils.logger import get_logger

logger = get_logger("analytics")

router = APIRouter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("cf-connecting-ip") or request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.post("/analytics/track")
def track(body: AnalyticsEventIn, request: Request):
    timestamp = datetime.now(timezone.utc).isoformat()
    key = f"analytics:{timestamp}:{uuid.uuid4()}"
    request.app.state.kv_store.put(key, {
        "event": body.event,
        "data": body.data,
        "timestamp": timestamp,
        "userAgent": request.headers.get("user-agent"),
        "ip": client_ip(request),
        "country": request.headers.get("cf-ipcountry", "Unknown"),
    }, ttl=Config.ANALYTICS_TTL_SECONDS)
    logger.debug(f"[ANALYTICS] stored {body.event} as {key}")
    return {"success": True}
