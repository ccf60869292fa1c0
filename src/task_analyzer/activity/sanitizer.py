"""Reduce raw interaction events to privacy-safe activity events."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

import dateutil.parser

from task_analyzer.activity.models import ActivityEvent
from task_analyzer.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Browser-internal and extension-privileged pages are never recorded.
INTERNAL_SCHEMES = frozenset({
    "chrome",
    "chrome-extension",
    "edge",
    "about",
    "moz-extension",
    "safari-extension",
    "devtools",
    "view-source",
})

# Order matters: the first match names the redacted page.
SENSITIVE_KEYWORDS = ("password", "login", "signin", "auth", "token", "key", "secret")

# Free-text fields that may carry personal data.
DROPPED_FIELDS = ("title", "label")

# Values above this are treated as epoch milliseconds.
_MILLIS_THRESHOLD = 10_000_000_000


def sanitize_url(url: str) -> str | None:
    """Return the reduced URL, or None when the URL must not be recorded."""
    try:
        return _reduce_url(url)
    except ValidationError as e:
        logger.debug("Discarding URL: %s", e)
        return None


def _reduce_url(url: Any) -> str | None:
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is empty or not a string")
    try:
        parsed = urlsplit(url.strip())
        hostname = parsed.hostname
        parsed.port  # raises on a non-numeric or out-of-range port
    except ValueError as e:
        raise ValidationError(f"Malformed URL: {e}") from e

    scheme = parsed.scheme.lower()
    if not scheme:
        raise ValidationError("URL has no scheme")
    if scheme in INTERNAL_SCHEMES:
        return None
    if not hostname:
        raise ValidationError("URL has no hostname")

    path = parsed.path or ""
    lower_host = hostname.lower()
    # IPv6 literals keep their brackets so the result still parses.
    host = f"[{hostname}]" if ":" in hostname else hostname
    lower_path = path.lower()
    for keyword in SENSITIVE_KEYWORDS:
        if keyword in lower_host or keyword in lower_path:
            return f"{scheme}://{host}/[{keyword} page]"

    return f"{scheme}://{host}{path}"


def sanitize_event(raw: Any, now: datetime | None = None) -> ActivityEvent | None:
    """Normalize one raw capture record; returns None for filtered/invalid input.

    Accepts the host's record shape: ``kind`` (or ``type``), ``timestamp``,
    optional ``url`` and ``payload`` (or ``data``). Title and label fields are
    dropped unconditionally.
    """
    try:
        return _build_event(raw, now)
    except ValidationError as e:
        logger.debug("Discarding event: %s", e)
        return None


def _build_event(raw: Any, now: datetime | None) -> ActivityEvent | None:
    if not isinstance(raw, dict):
        raise ValidationError(f"Event must be a mapping, got {type(raw).__name__}")

    kind = raw.get("kind", raw.get("type"))
    if not isinstance(kind, str) or not kind.strip():
        raise ValidationError("Event has no kind")

    timestamp = _parse_timestamp(raw.get("timestamp"), now)

    url = None
    raw_url = raw.get("url")
    if raw_url is not None:
        url = _reduce_url(raw_url)
        if url is None:
            logger.debug("Dropping event on internal page")
            return None

    payload = _clean_payload(raw.get("payload", raw.get("data")))

    return ActivityEvent(kind=kind.strip(), timestamp=timestamp, url=url, payload=payload)


def _parse_timestamp(value: Any, now: datetime | None) -> datetime:
    if value is None:
        return now or datetime.now().astimezone()
    if isinstance(value, bool):
        raise ValidationError("Boolean is not a timestamp")
    if isinstance(value, datetime):
        return _as_local_aware(value)
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone()
        except (ValueError, OSError, OverflowError) as e:
            raise ValidationError(f"Timestamp out of range: {value}") from e
    if isinstance(value, str):
        try:
            return _as_local_aware(dateutil.parser.isoparse(value))
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Unparsable timestamp: {value!r}") from e
    raise ValidationError(f"Unsupported timestamp type: {type(value).__name__}")


def _as_local_aware(value: datetime) -> datetime:
    # Naive values are local wall-clock time.
    return value.astimezone()


def _clean_payload(value: Any) -> dict | None:
    if not isinstance(value, dict):
        return None
    cleaned = {k: v for k, v in value.items() if k not in DROPPED_FIELDS}
    try:
        # Keep only what survives storage unchanged.
        return json.loads(json.dumps(cleaned))
    except (TypeError, ValueError):
        logger.debug("Dropping non-JSON payload")
        return None
