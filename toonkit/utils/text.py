"""Text helpers shared by the platform adapters.

Covers three concerns that both the HTML and JSON adapters run into:

1. **Whitespace collapsing** -- server-rendered titles carry newlines and
   runs of indentation from the template.
2. **Count parsing** -- view and subscriber counts are abbreviated
   ("1.2M", "3B", "12,345") and must become integers.
3. **Season extraction** -- neither platform exposes the season
   structurally, so it is pattern-matched out of the episode title.
"""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_COUNT_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMB]?)$", re.IGNORECASE)
_JSONP_RE = re.compile(r"^[^(]*\((.*)\)\s*;?\s*$", re.DOTALL)

_COUNT_MULTIPLIERS = {"": 1, "K": 1_000, "M": 1_000_000, "B": 1_000_000_000}

# webtoons.com titles: "Ep. 1 [Season 2]", "[S2] Ep. 1", "(S2) Ep. 1", "(Season 2)"
WEBTOONS_SEASON_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\[Season (\d+)\]", re.IGNORECASE),
    re.compile(r"\[S(\d+)\]"),
    re.compile(r"\(S(\d+)\)"),
    re.compile(r"\(Season (\d+)\)", re.IGNORECASE),
)

# comic.naver.com titles: "2부 1화"
NAVER_SEASON_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(\d+)부\s"),
)


def collapse_whitespace(text: str) -> str:
    """Collapse every run of whitespace to a single space and strip the ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_count(text: str | None) -> int | None:
    """Parse an abbreviated count such as ``"1.2M"`` or ``"12,345"``.

    Returns ``None`` when *text* is empty or not a recognisable count, so
    callers can treat counts as optional fields.

    >>> parse_count("1.2M")
    1200000
    >>> parse_count("12,345")
    12345
    """
    if not text:
        return None
    cleaned = text.replace(",", "").strip()
    match = _COUNT_RE.match(cleaned)
    if not match:
        return None
    number, suffix = match.groups()
    return round(float(number) * _COUNT_MULTIPLIERS[suffix.upper()])


def extract_season(title: str, patterns: tuple[re.Pattern[str], ...]) -> int | None:
    """Return the season number embedded in *title*, or ``None``.

    Patterns are tried in order; the first match wins.
    """
    for pattern in patterns:
        match = pattern.search(title)
        if match:
            return int(match.group(1))
    return None


def strip_jsonp(text: str) -> str | None:
    """Unwrap a JSONP body like ``_callback({...});`` to its JSON payload.

    Returns ``None`` when *text* is not JSONP-wrapped.
    """
    match = _JSONP_RE.match(text.strip())
    if not match:
        return None
    return match.group(1)
