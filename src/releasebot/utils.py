from __future__ import annotations

# Shared helper utilities for releasebot modules.
from datetime import datetime, timezone
from typing import TYPE_CHECKING

SHORT_SHA_LENGTH = 7
ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

if TYPE_CHECKING:  # pragma: no cover - typing shim for Typer runtime compatibility
    OptionalStr = str | None
else:  # pragma: no cover - Typer inspects runtime annotations
    OptionalStr = str


def first_line(message: str) -> str:
    """Return the first line of a commit message."""

    return message.split("\n", 1)[0]


def short_sha(sha: str) -> str:
    return sha[:SHORT_SHA_LENGTH]


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp.

    Naive date-only values are read as UTC midnight; naive values with a time
    part are read in the local timezone, the way git reads them.

    Returns ``None`` for anything ``datetime.fromisoformat`` rejects, such as
    git's relative dates ("2 weeks ago").
    """

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        if len(text) > 10:
            return parsed.astimezone()
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_utc(moment: datetime) -> str:
    """Render ``moment`` as a second-precision UTC ISO string."""

    return moment.astimezone(timezone.utc).strftime(ISO_UTC_FORMAT)


def normalize_date(value: str) -> str:
    """Normalise ISO dates to UTC; keep git-parsable free text verbatim."""

    parsed = parse_timestamp(value)
    if parsed is None:
        return value.strip()
    return format_utc(parsed)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def mask_secret(value: str, *, visible: int = 4) -> str:
    """Mask all but the last ``visible`` characters of a secret."""

    if not value:
        return "(not set)"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * 8 + value[-visible:]


__all__ = [
    "ISO_UTC_FORMAT",
    "OptionalStr",
    "SHORT_SHA_LENGTH",
    "first_line",
    "format_utc",
    "mask_secret",
    "normalize_date",
    "parse_timestamp",
    "short_sha",
    "utc_now",
]
