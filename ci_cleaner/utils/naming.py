"""Name pattern matching and time arithmetic shared by the cleanup policies."""

from __future__ import annotations
import datetime
from dataclasses import dataclass


@dataclass(frozen=True)
class NamePattern:
    """Permissive name pattern: every given part must match.

    Empty parts are ignored, so ``NamePattern(prefix="ci-")`` only checks
    the prefix. Matching is case-sensitive.
    """

    prefix: str = ""
    contains: str = ""
    suffix: str = ""

    def matches(self, name: str) -> bool:
        if self.prefix and not name.startswith(self.prefix):
            return False
        if self.contains and self.contains not in name:
            return False
        if self.suffix:
            # prefix and suffix must not overlap
            if not name.endswith(self.suffix):
                return False
            if len(name) < len(self.prefix) + len(self.suffix):
                return False
        return True


def prefixes(*values: str) -> tuple[NamePattern, ...]:
    return tuple(NamePattern(prefix=v) for v in values)


def substrings(*values: str) -> tuple[NamePattern, ...]:
    return tuple(NamePattern(contains=v) for v in values)


def matches_any(name: str, patterns: tuple[NamePattern, ...]) -> bool:
    return any(p.matches(name) for p in patterns)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def age(created: datetime.datetime, now: datetime.datetime) -> datetime.timedelta:
    return as_utc(now) - as_utc(created)


def parse_epoch_creation_time(tags: dict[str, str] | None) -> datetime.datetime | None:
    """Parse tags['creation-time'] (epoch seconds) into an aware UTC datetime."""
    raw = (tags or {}).get("creation-time")
    if not raw:
        return None
    try:
        return datetime.datetime.fromtimestamp(float(raw), tz=datetime.timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
