# ABOUTME: Text-level rewriting of EPUB package documents for PocketBook readers.
# ABOUTME: Works on the raw OPF string so untouched bytes survive exactly as written.

import logging
import re
from dataclasses import dataclass
from xml.sax.saxutils import escape

from booklog.metadata.text import article_to_front

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "2.0"
DEFAULT_TITLE_ID = "opf_title"

# Prefixes an EPUB 3 <metadata> element must declare, in insertion order.
REQUIRED_NAMESPACES: dict[str, str] = {
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
    "calibre": "http://calibre.kovidgoyal.net/2009/metadata",
}

_UNTOUCHED_PROPERTY_PREFIXES = ("dcterms:", "calibre:")

_VERSION_RE = re.compile(r"""<package\b[^>]*?\sversion\s*=\s*["']([^"']+)["']""")
_METADATA_OPEN_RE = re.compile(r"<metadata(?=[\s/>])([^>]*?)(/?)>")
_METADATA_CLOSE_RE = re.compile(r"</metadata\s*>")
_CALIBRE_NS_RE = re.compile(r"""\s*xmlns:calibre\s*=\s*(?:"[^"]*"|'[^']*')""")

# Any <meta>/<opf:meta> opening, self-closing, or closing tag.
_META_TOKEN_RE = re.compile(r"<(/?)(opf:meta|meta)(?=[\s/>])([^>]*)>")

# A complete bare <meta> element: self-closing, or with text content.
_META_ELEMENT_RE = re.compile(r"<meta(?=[\s/>])([^>]*?)/>|<meta(?=[\s>])([^>]*)>([^<]*)</meta\s*>")

_CONTENT_BEFORE_NAME_RE = re.compile(
    r'<meta(\s+)content="([^"]*)"(\s+)name="([^"]*)"([^>]*)>'
)

_DC_TITLE_RE = re.compile(r"(<dc:title\b([^>]*)>)([^<]*)(</dc:title\s*>)")

# A <meta> or <opf:meta> element with text content.
_TEXT_META_RE = re.compile(r"<(opf:meta|meta)(?=[\s>])([^>]*)>([^<]*)</\1\s*>")


@dataclass(frozen=True)
class _Span:
    start: int
    end: int
    attrs: str


def attribute(attrs: str, name: str) -> str | None:
    """Value of ``name`` in an attribute string, or None if absent."""
    match = re.search(
        rf"""(?:^|\s){re.escape(name)}\s*=\s*(?:"([^"]*)"|'([^']*)')""", attrs
    )
    if not match:
        return None
    return match.group(1) if match.group(1) is not None else match.group(2)


def _escape_attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def detect_version(opf: str) -> str:
    """The ``version`` attribute of <package>, defaulting to 2.0."""
    match = _VERSION_RE.search(opf)
    return match.group(1) if match else DEFAULT_VERSION


def is_epub2(version: str) -> bool:
    return version.startswith("2")


def _line_indent(text: str, position: int) -> str:
    """Whitespace between the start of the line and ``position``, if only whitespace."""
    line_start = text.rfind("\n", 0, position) + 1
    prefix = text[line_start:position]
    return prefix if not prefix.strip() else ""


def _leading_whitespace_start(text: str, position: int) -> int:
    """Start of the whitespace run, including one line break, before ``position``."""
    start = position
    while start > 0 and text[start - 1] in " \t":
        start -= 1
    if start > 0 and text[start - 1] == "\n":
        start -= 1
        if start > 0 and text[start - 1] == "\r":
            start -= 1
    return start


# --- EPUB 2 -----------------------------------------------------------------


def remove_calibre_namespace(opf: str) -> str:
    """Drop an ``xmlns:calibre`` declaration from the <metadata> element."""
    match = _METADATA_OPEN_RE.search(opf)
    if not match:
        return opf
    attrs = _CALIBRE_NS_RE.sub("", match.group(1))
    if attrs == match.group(1):
        return opf
    return f"{opf[:match.start()]}<metadata{attrs}{match.group(2)}>{opf[match.end():]}"


def _named_meta_elements(opf: str, name: str) -> list[_Span]:
    spans = []
    for match in _META_ELEMENT_RE.finditer(opf):
        attrs = match.group(1) if match.group(1) is not None else match.group(2)
        if attribute(attrs, "name") == name:
            spans.append(_Span(match.start(), match.end(), attrs))
    return spans


def fix_series_order(opf: str) -> str:
    """Place ``calibre:series`` before ``calibre:series_index``.

    Only the first pair is considered; further series tags pass through.
    Both elements are removed and reinserted at the earlier position.
    """
    series = _named_meta_elements(opf, "calibre:series")
    index = _named_meta_elements(opf, "calibre:series_index")
    if not series or not index:
        return opf
    series_el, index_el = series[0], index[0]
    if index_el.start > series_el.start:
        return opf

    series_text = opf[series_el.start:series_el.end]
    index_text = opf[index_el.start:index_el.end]
    separator = "\n" + _line_indent(opf, index_el.start)
    removal_start = max(_leading_whitespace_start(opf, series_el.start), index_el.end)
    return (
        opf[:index_el.start]
        + series_text
        + separator
        + index_text
        + opf[index_el.end:removal_start]
        + opf[series_el.end:]
    )


def fix_meta_attribute_order(opf: str) -> str:
    """Rewrite ``<meta content=".." name="..">`` so ``name`` comes first."""
    return _CONTENT_BEFORE_NAME_RE.sub(
        lambda m: (
            f'<meta{m.group(1)}name="{m.group(4)}"{m.group(3)}'
            f'content="{m.group(2)}"{m.group(5)}>'
        ),
        opf,
    )


def patch_epub2(opf: str) -> str:
    patched = remove_calibre_namespace(opf)
    patched = fix_series_order(patched)
    return fix_meta_attribute_order(patched)


# --- EPUB 3 -----------------------------------------------------------------


def ensure_namespaces(opf: str) -> str:
    """Declare any missing required prefixes on the <metadata> element."""
    match = _METADATA_OPEN_RE.search(opf)
    if not match:
        return opf
    attrs = match.group(1)
    missing = [
        f'xmlns:{prefix}="{uri}"'
        for prefix, uri in REQUIRED_NAMESPACES.items()
        if not re.search(rf"(?:^|\s)xmlns:{prefix}\s*=", attrs)
    ]
    if not missing:
        return opf
    joined = " ".join(missing)
    new_attrs = f"{attrs.rstrip()} {joined}" if attrs.strip() else f" {joined}"
    return f"{opf[:match.start()]}<metadata{new_attrs}{match.group(2)}>{opf[match.end():]}"


def needs_opf_prefix(attrs: str) -> bool:
    """Whether a bare <meta> with these attributes must become <opf:meta>."""
    prop = attribute(attrs, "property")
    refines = attribute(attrs, "refines")
    if prop is None and refines is None:
        return False
    if attribute(attrs, "name") is not None:
        return False
    return not (prop and prop.startswith(_UNTOUCHED_PROPERTY_PREFIXES))


def add_opf_prefixes(opf: str) -> str:
    """Retag qualifying <meta> elements as <opf:meta>.

    Each converted opening tag gets its own closing tag converted, found by
    tracking element nesting, so unconverted elements keep ``</meta>``.
    """
    pieces: list[str] = []
    stack: list[bool] = []
    last = 0
    for match in _META_TOKEN_RE.finditer(opf):
        closing, tag, attrs = match.group(1), match.group(2), match.group(3)
        replacement = match.group(0)
        if closing:
            converted = stack.pop() if stack else False
            if converted and tag == "meta":
                replacement = "</opf:meta>"
        else:
            self_closing = attrs.rstrip().endswith("/")
            converted = tag == "meta" and needs_opf_prefix(attrs)
            if converted:
                replacement = f"<opf:meta{attrs}>"
            if not self_closing:
                stack.append(converted)
        pieces.append(opf[last:match.start()])
        pieces.append(replacement)
        last = match.end()
    pieces.append(opf[last:])
    return "".join(pieces)


def patch_epub3(opf: str) -> str:
    return add_opf_prefixes(ensure_namespaces(opf))


# --- Title cleaning ---------------------------------------------------------


def _title_sort_tag(cleaned_title: str) -> str:
    return f'<meta name="calibre:title_sort" content="{_escape_attr(cleaned_title)}"/>'


def _series_index_end(opf: str) -> int | None:
    """End offset of the first calibre:series_index element, in either form."""
    for match in _META_ELEMENT_RE.finditer(opf):
        attrs = match.group(1) if match.group(1) is not None else match.group(2)
        if "calibre:series_index" in (attribute(attrs, "name"), attribute(attrs, "property")):
            return match.end()
    return None


def upsert_title_sort(opf: str, cleaned_title: str) -> str:
    """Set ``calibre:title_sort`` to the cleaned title, adding the tag if needed."""
    for match in _META_ELEMENT_RE.finditer(opf):
        attrs = match.group(1) if match.group(1) is not None else match.group(2)
        if attribute(attrs, "name") == "calibre:title_sort":
            return opf[:match.start()] + _title_sort_tag(cleaned_title) + opf[match.end():]
        if attribute(attrs, "property") == "calibre:title_sort" and match.group(3) is not None:
            text_start = match.start(3)
            text_end = match.end(3)
            return opf[:text_start] + escape(cleaned_title) + opf[text_end:]

    tag = _title_sort_tag(cleaned_title)
    insert_at = _series_index_end(opf)
    if insert_at is not None:
        line_start = opf.rfind("\n", 0, insert_at) + 1
        indent = re.match(r"[ \t]*", opf[line_start:]).group(0)
        return f"{opf[:insert_at]}\n{indent}{tag}{opf[insert_at:]}"

    close = _METADATA_CLOSE_RE.search(opf)
    if close is None:
        return opf
    indent = _line_indent(opf, close.start())
    return f"{opf[:close.start()]}  {tag}\n{indent}{opf[close.start():]}"


def clean_title(opf: str, cleaned_title: str) -> str:
    """Apply a cleaned sort title to the package metadata.

    ``cleaned_title`` carries its article at the end ("letzte Fähre, Die").
    The first <dc:title> gets the display form with the article in front,
    ``calibre:title_sort`` and the title's ``file-as`` refinement get the
    cleaned form.
    """
    display = article_to_front(cleaned_title)
    title_id = DEFAULT_TITLE_ID

    match = _DC_TITLE_RE.search(opf)
    if match:
        title_id = attribute(match.group(2), "id") or DEFAULT_TITLE_ID
        opf = f"{opf[:match.start(3)]}{escape(display)}{opf[match.end(3):]}"

    opf = upsert_title_sort(opf, cleaned_title)

    pieces: list[str] = []
    last = 0
    for element in _TEXT_META_RE.finditer(opf):
        attrs = element.group(2)
        if (
            attribute(attrs, "refines") == f"#{title_id}"
            and attribute(attrs, "property") == "file-as"
        ):
            pieces.append(opf[last:element.start(3)])
            pieces.append(escape(cleaned_title))
            last = element.end(3)
    pieces.append(opf[last:])
    return "".join(pieces)


def series_info(opf: str) -> tuple[str | None, str | None]:
    """Series name and position declared in a package document.

    Reads calibre's ``calibre:series`` metas first, then the EPUB 3
    ``belongs-to-collection`` refinement.
    """
    names = _named_meta_elements(opf, "calibre:series")
    if names:
        indexes = _named_meta_elements(opf, "calibre:series_index")
        series = attribute(names[0].attrs, "content")
        index = attribute(indexes[0].attrs, "content") if indexes else None
        return (series or None), (index or None)

    collection_id = None
    series = None
    for element in _TEXT_META_RE.finditer(opf):
        if attribute(element.group(2), "property") == "belongs-to-collection":
            series = element.group(3).strip() or None
            collection_id = attribute(element.group(2), "id")
            break
    if series is None or collection_id is None:
        return series, None
    for element in _TEXT_META_RE.finditer(opf):
        attrs = element.group(2)
        if (
            attribute(attrs, "refines") == f"#{collection_id}"
            and attribute(attrs, "property") == "group-position"
        ):
            return series, element.group(3).strip() or None
    return series, None


def patch_opf_content(opf: str, cleaned_title: str | None = None) -> str:
    """Rewrite a package document for the target reader.

    EPUB 2 documents lose the calibre namespace declaration, get their
    series tags ordered, and get ``name`` before ``content``. EPUB 3
    documents gain the required namespace declarations and ``opf:``
    prefixes on refinement metas. A cleaned title, when given, is applied
    afterwards in both cases.
    """
    version = detect_version(opf)
    logger.debug("Package document version %s", version)
    patched = patch_epub2(opf) if is_epub2(version) else patch_epub3(opf)
    if cleaned_title is not None and cleaned_title.strip():
        patched = clean_title(patched, cleaned_title.strip())
    if patched != opf:
        logger.debug("Package document rewritten (%d -> %d chars)", len(opf), len(patched))
    return patched
