# ABOUTME: Audiobook detection for provider results.
# ABOUTME: Matches multilingual tokens in titles, descriptions, categories, and material types.

from collections.abc import Iterable

from booklog.metadata.text import nfc
from booklog.metadata.types import BookSearchResult

# Case-insensitive tokens that mark a non-text edition in a title or description.
AUDIOBOOK_TEXT_TOKENS = (
    "audiobook",
    "hörbuch",
    "audio cd",
    "audio-cd",
    "ungekürzt",
    "gelesen von",
    "narrated by",
)

# Tokens matched against provider subject/category taxonomies.
AUDIOBOOK_CATEGORY_TOKENS = ("audio", "audiobook", "hörbuch", "sound recording")

# Tokens matched against library material-type designations.
AUDIOBOOK_MATERIAL_TOKENS = ("hörbuch", "tonträger", "audiobook", "cd", "audio")


def _contains_any(text: str | None, tokens: Iterable[str]) -> bool:
    if not text:
        return False
    lowered = nfc(text).casefold()
    return any(token in lowered for token in tokens)


def is_audiobook_text(title: str | None, description: str | None = None) -> bool:
    """Whether a title or description mentions an audio edition."""
    return _contains_any(title, AUDIOBOOK_TEXT_TOKENS) or _contains_any(
        description, AUDIOBOOK_TEXT_TOKENS
    )


def is_audiobook_category(categories: Iterable[str] | None) -> bool:
    """Whether any category label denotes an audio edition."""
    return any(_contains_any(category, AUDIOBOOK_CATEGORY_TOKENS) for category in categories or ())


def is_audiobook_material(material_types: Iterable[str] | None) -> bool:
    """Whether any library material type denotes a sound recording."""
    return any(
        _contains_any(material, AUDIOBOOK_MATERIAL_TOKENS) for material in material_types or ()
    )


def is_audiobook(result: BookSearchResult) -> bool:
    """Whether a normalized result looks like an audiobook."""
    return is_audiobook_text(result.title, result.description)


def drop_audiobooks(results: Iterable[BookSearchResult]) -> list[BookSearchResult]:
    """Return the results that are not audiobooks, preserving order."""
    return [result for result in results if not is_audiobook(result)]
