"""Security helpers: PII masking, prompt anonymization and input sanitizing."""
import re
import secrets
from typing import Any, Dict, Tuple

PII_PATTERNS = [
    ("email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
    ("card", re.compile(r"\b\d{4}\s?\d{4}\s?\d{4}\s?\d{4}\b")),
    ("phone", re.compile(r"\b\d{3}-\d{3}-\d{4}\b")),
    ("postal", re.compile(r"\b[A-Z]\d[A-Z] \d[A-Z]\d\b")),
    ("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b")),
]

HARMFUL_PATTERNS = [
    re.compile(r"\b(hate|violence|discrimination)\b", re.I),
    re.compile(r"\b(personal\s+information|private\s+data)\b", re.I),
    re.compile(r"\b(medical\s+advice|legal\s+advice)\b", re.I),
    re.compile(r"\b(illegal\s+activities|harmful\s+instructions)\b", re.I),
]

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I)


def mask_pii(text: str) -> str:
    """Replace PII with ``[REDACTED]`` for logs."""
    if not text:
        return text
    for _, pattern in PII_PATTERNS:
        text = pattern.sub("[REDACTED]", text)
    return text


def anonymize_text(text: str) -> Tuple[str, Dict[str, str]]:
    """
    Swap PII for unique placeholders before text leaves the process.

    Returns:
        The anonymized text and a placeholder -> original mapping for ``restore_text``
    """
    mapping: Dict[str, str] = {}
    for index, (_, pattern) in enumerate(PII_PATTERNS):
        def _swap(match, index=index):
            placeholder = f"[REDACTED_{index}_{secrets.token_hex(4)}]"
            mapping[placeholder] = match.group(0)
            return placeholder
        text = pattern.sub(_swap, text)
    return text, mapping


def restore_text(text: str, mapping: Dict[str, str]) -> str:
    for placeholder, original in mapping.items():
        text = text.replace(placeholder, original)
    return text


def contains_harmful_content(text: str) -> bool:
    return any(p.search(text or "") for p in HARMFUL_PATTERNS)


def sanitize_input(value: Any) -> Any:
    """Strip whitespace and ``<script>`` blocks from strings, recursing into lists and dicts."""
    if isinstance(value, str):
        return _SCRIPT_RE.sub("", value.strip())
    if isinstance(value, list):
        return [sanitize_input(v) for v in value]
    if isinstance(value, dict):
        return {k: sanitize_input(v) for k, v in value.items()}
    return value
