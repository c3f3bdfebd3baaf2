# ABOUTME: Heuristic series and volume-number recovery from title strings.
# ABOUTME: Used by adapters whose payload carries no structured series field.

import re
from dataclasses import dataclass

# "Title (Series, Band 3)", "Title (Series #3)", "Title (Series Book 3)"
_PARENTHESIZED_RE = re.compile(
    r"(.+?)\s*\(([^()]+?)[,\s]+(?:Book|Band|#)\s*(\d+(?:\.\d+)?)\)",
    re.IGNORECASE,
)

# "Series: Title" or "Series - Title"; a bare hyphen inside a word is not a separator.
_PREFIX_RE = re.compile(r"^(.+?)(?:\s*:\s*|\s+[-–]\s+)(.+)$")

_SERIES_KEYWORD_RE = re.compile(r"reihe|serie", re.IGNORECASE)
_TRAILING_NUMBER_RE = re.compile(r"\s+(\d+(?:\.\d+)?)$")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


@dataclass(frozen=True)
class SeriesInfo:
    """A recovered series name and optional volume number."""

    series: str
    number: str | None = None


def _from_parenthesized(title: str) -> SeriesInfo | None:
    match = _PARENTHESIZED_RE.search(title)
    if not match:
        return None
    series = match.group(2).strip()
    if not series:
        return None
    return SeriesInfo(series=series, number=match.group(3))


def _from_prefix(title: str) -> SeriesInfo | None:
    match = _PREFIX_RE.match(title)
    if not match:
        return None
    prefix = match.group(1).strip()
    trailing = _TRAILING_NUMBER_RE.search(prefix)
    if not (_SERIES_KEYWORD_RE.search(prefix) or trailing):
        return None

    if trailing:
        number: str | None = trailing.group(1)
        series = prefix[: trailing.start()].strip()
    else:
        first = _NUMBER_RE.search(prefix)
        number = first.group(0) if first else None
        series = prefix
    if not series:
        return None
    return SeriesInfo(series=series, number=number)


def extract_series(title: str | None) -> SeriesInfo | None:
    """Recover series information from a title.

    Patterns are tried in order and the first match wins:

    1. A parenthesized suffix such as "(Zamonien, Band 3)".
    2. A "Series: Title" or "Series - Title" prefix, accepted only when
       the prefix mentions "Reihe"/"Serie" or ends in a number.

    Returns None when no pattern applies.
    """
    if not title or not title.strip():
        return None
    title = title.strip()
    return _from_parenthesized(title) or _from_prefix(title)
