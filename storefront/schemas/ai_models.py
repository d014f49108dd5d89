"""Pydantic models for orchestrator requests and responses."""
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.security import contains_harmful_content

MAX_PROMPT_CHARS = 2000


class AIRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=MAX_PROMPT_CHARS)
    max_tokens: int = Field(500, ge=1, le=2000)
    temperature: float = Field(0.7, ge=0, le=2)
    model: Optional[str] = None
    priority: Literal["low", "medium", "high"] = "medium"
    type: Literal["text", "image", "audio"] = "text"

    @field_validator("prompt")
    @classmethod
    def _no_prohibited_content(cls, v: str) -> str:
        if contains_harmful_content(v):
            raise ValueError("Content violates safety guidelines")
        return v


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AIResponse(BaseModel):
    content: str
    model: str
    provider: str
    tokens_used: int = 0
    timestamp: datetime = Field(default_factory=_utcnow)
    media_url: Optional[str] = None
