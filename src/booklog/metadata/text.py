# ABOUTME: Text normalization helpers for titles, authors, and ISBNs.
# ABOUTME: Unicode composition, comparison keys, sort titles, and article relocation.

import re
import unicodedata

_ISBN_STRIP_RE = re.compile(r"[\s-]")
_ISBN_KEY_RE = re.compile(r"[^0-9X]")
_WHITESPACE_RE = re.compile(r"\s+")

_LEADING_PUNCTUATION = "¿¡\"'«»“”‘’„‚‹›"
_TRAILING_PUNCTUATION = "?!\"'«»“”‘’„‚‹›"

# Leading articles dropped when building a sort title, keyed by ISO 639-1 code.
_SORT_ARTICLES: dict[str, tuple[str, ...]] = {
    "de": ("Der ", "Die ", "Das ", "Ein ", "Eine ", "Einer ", "Eines ", "Einem ", "Einen "),
    "en": ("The ", "A ", "An "),
    "es": ("El ", "La ", "Los ", "Las ", "Un ", "Una ", "Unos ", "Unas "),
    "fr": ("Le ", "La ", "Les ", "L'", "Un ", "Une ", "Des "),
    "it": ("Il ", "Lo ", "La ", "I ", "Gli ", "Le ", "Un ", "Una ", "Uno "),
    "pt": ("O ", "A ", "Os ", "As ", "Um ", "Uma ", "Uns ", "Umas "),
    "nl": ("De ", "Het ", "Een "),
}

# Articles moved to the end of a display title ("Der Schwarm" -> "Schwarm, Der").
_MOVABLE_ARTICLES = ("Der ", "Die ", "Das ", "The ", "Le ", "La ", "Les ", "L'")

_TRAILING_ARTICLE_RE = re.compile(r",\s+(Der|Die|Das|Ein|Eine|The|Les|Le|La|L')$", re.IGNORECASE)

_QUOTE_PAIRS = (
    ('"', '"'),
    ("“", "”"),
    ("„", "”"),
    ("„", "“"),
    ("«", "»"),
    ("‹", "›"),
)
_ROMAN_SUFFIX = ": roman"


def nfc(text: str) -> str:
    """Normalize text to Unicode composed form (NFC)."""
    return unicodedata.normalize("NFC", text)


def clean_isbn(isbn: str) -> str:
    """Strip whitespace and hyphens from an ISBN."""
    return _ISBN_STRIP_RE.sub("", isbn or "")


def isbn_key(isbn: str) -> str:
    """Comparison key for an ISBN: digits and X only, upper-cased."""
    return _ISBN_KEY_RE.sub("", (isbn or "").upper())


def comparison_key(text: str | None) -> str:
    """Case-insensitive, whitespace-collapsed key for equality checks."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", nfc(text)).strip().casefold()


def _strip_prefix(text: str, prefixes: tuple[str, ...]) -> tuple[str, str] | None:
    lowered = text.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix.lower()):
            return text[: len(prefix)].strip(), text[len(prefix):].strip()
    return None


def sort_title(title: str, language: str | None = None) -> str:
    """Build a locale-aware sort key from a title.

    Strips leading and trailing quotation marks and punctuation, then drops
    one leading article for the book's language (English when the language
    is unknown or unsupported).
    """
    normalized = title.strip().lstrip(_LEADING_PUNCTUATION)
    normalized = normalized.rstrip(_TRAILING_PUNCTUATION).strip()

    code = (language or "").lower()[:2]
    articles = _SORT_ARTICLES.get(code, _SORT_ARTICLES["en"])
    split = _strip_prefix(normalized, articles)
    if split is not None:
        normalized = split[1]
    return normalized


def article_to_end(title: str) -> str:
    """Move a leading German, English, or French article to the end.

    "Der kleine Prinz" becomes "kleine Prinz, Der". Titles without a
    leading article, or consisting of only the article, come back trimmed.
    """
    trimmed = title.strip()
    split = _strip_prefix(trimmed, _MOVABLE_ARTICLES)
    if split is None or not split[1]:
        return trimmed
    article, rest = split
    return f"{rest}, {article}"


def article_to_front(title: str) -> str:
    """Move a trailing article back to the front, undoing `article_to_end`.

    "Schwarm, Der" becomes "Der Schwarm" and "Étranger, L'" becomes "L'Étranger".
    """
    trimmed = title.strip()
    match = _TRAILING_ARTICLE_RE.search(trimmed)
    if not match:
        return trimmed
    rest = trimmed[: match.start()].strip()
    article = match.group(1)
    if not rest:
        return article
    separator = "" if article.endswith("'") else " "
    return f"{article}{separator}{rest}"


def _normalize_single_author(author: str) -> str:
    trimmed = author.strip()
    if ", " in trimmed:
        return trimmed
    parts = trimmed.split()
    if len(parts) < 2:
        return trimmed
    return f"{parts[-1]}, {' '.join(parts[:-1])}"


def normalize_author(author: str) -> str:
    """Rewrite "First Last" names as "Last, First", keeping "; " lists."""
    return "; ".join(_normalize_single_author(name) for name in author.strip().split("; "))


def cleanup_manual_title(title: str) -> str:
    """Remove quotes wrapping the whole title and a trailing ": Roman"."""
    cleaned = title.strip()
    for opening, closing in _QUOTE_PAIRS:
        if len(cleaned) > 2 and cleaned.startswith(opening) and cleaned.endswith(closing):
            cleaned = cleaned[1:-1].strip()
            break
    if cleaned.lower().endswith(_ROMAN_SUFFIX):
        cleaned = cleaned[: -len(_ROMAN_SUFFIX)].strip()
    return cleaned
