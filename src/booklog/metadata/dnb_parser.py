# ABOUTME: Parsing functions for national library SRU responses in MARC21-xml.
# ABOUTME: Extracts bibliographic fields, series statements, and linked resources with lxml.

import re
from dataclasses import dataclass, field

from lxml import etree, html

from booklog.metadata.filters import is_audiobook_material
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import BookSearchResult, BookSource, join_authors

NS = {
    "marc21": "http://www.loc.gov/MARC21/slim",
    "zs": "http://www.loc.gov/zing/srw/",
}

COVER_URL_TEMPLATE = "https://portal.dnb.de/opac/mvb/cover?isbn={isbn}"

_MIN_SUMMARY_LENGTH = 20
_MIN_FETCHED_DESCRIPTION_LENGTH = 50
_GERMAN_CODES = ("ger", "de", "deu", "german")

_VOLUME_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_YEAR_RE = re.compile(r"\d{4}")
_LINKED_ID_RE = re.compile(r"\(DE-101\)(\d+)")
_WHITESPACE_RE = re.compile(r"\s+")

# Non-sorting markers, subfield delimiters, and separators that leak into MARC text.
_MARC_NOISE = str.maketrans(
    "", "", "\u0098\u009c\u0088\u0089‡†\u001f\u001e\u001d\u001c$@|"
)


@dataclass
class MarcRecord:
    """Fields pulled from one MARC21 record before conversion to a result."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    publisher: str | None = None
    publish_date: str | None = None
    isbn: str | None = None
    language: str | None = None
    description: str | None = None
    material_type: str | None = None
    cover_url: str | None = None
    content_url: str | None = None
    series: str | None = None
    series_number: str | None = None
    linked_online_id: str | None = None


def clean_marc_text(text: str | None) -> str | None:
    """Strip MARC control characters and collapse whitespace."""
    if text is None:
        return None
    cleaned = _WHITESPACE_RE.sub(" ", text.translate(_MARC_NOISE)).strip()
    return cleaned or None


def clean_publish_date(date: str | None) -> str | None:
    """Reduce a MARC publication date such as "[2025]" or "c2019" to its year."""
    if date is None:
        return None
    match = _YEAR_RE.search(date)
    if match:
        return match.group(0)
    cleaned = date.strip().strip("[]").rstrip(".").strip()
    return cleaned or None


def volume_number(volume: str | None) -> str | None:
    """First integer or decimal number in a $v volume designation."""
    if not volume:
        return None
    match = _VOLUME_NUMBER_RE.search(volume)
    return match.group(0) if match else None


def _subfield(datafield: etree._Element, code: str) -> str | None:
    values = datafield.xpath(f"./marc21:subfield[@code='{code}']", namespaces=NS)
    if not values:
        return None
    return clean_marc_text("".join(values[0].itertext()))


def _series_from_fields(datafields: list[etree._Element]) -> tuple[str | None, str | None]:
    """Pick the series statement by priority: 800, then 830, then 490 with ind1=0.

    830 entries whose $7 ends in "s" are publisher series and are skipped.
    """
    by_tag: dict[str, tuple[str, str | None]] = {}
    for datafield in datafields:
        tag = datafield.get("tag")
        if tag == "800":
            name = _subfield(datafield, "t")
        elif tag == "830":
            control = _subfield(datafield, "7") or ""
            name = None if control.endswith("s") else _subfield(datafield, "a")
        elif tag == "490" and datafield.get("ind1") == "0":
            name = _subfield(datafield, "a")
        else:
            continue
        if name:
            by_tag[tag] = (name, volume_number(_subfield(datafield, "v")))

    for tag in ("800", "830", "490"):
        if tag in by_tag:
            return by_tag[tag]
    return None, None


def _looks_like_image(url: str) -> bool:
    lowered = url.lower()
    return "cover" in lowered or lowered.endswith((".jpg", ".jpeg", ".png"))


def parse_record(record: etree._Element) -> MarcRecord:
    """Extract the fields used for book results from a marc21:record element."""
    parsed = MarcRecord()
    datafields = record.xpath("./marc21:datafield", namespaces=NS)

    for datafield in datafields:
        tag = datafield.get("tag")
        if tag == "245":
            parsed.title = _subfield(datafield, "a")
        elif tag in ("100", "700"):
            name = _subfield(datafield, "a")
            relator = _subfield(datafield, "4")
            if name and (tag == "100" or relator is None or relator == "aut"):
                if name not in parsed.authors:
                    parsed.authors.append(name)
        elif tag in ("260", "264"):
            parsed.publisher = parsed.publisher or _subfield(datafield, "b")
            parsed.publish_date = parsed.publish_date or clean_publish_date(
                _subfield(datafield, "c")
            )
        elif tag == "020":
            parsed.isbn = parsed.isbn or _subfield(datafield, "a")
        elif tag == "041":
            parsed.language = parsed.language or _subfield(datafield, "a")
        elif tag == "520":
            summary = _subfield(datafield, "a")
            if summary and len(summary) > _MIN_SUMMARY_LENGTH:
                parsed.description = summary
        elif tag == "655":
            parsed.material_type = _subfield(datafield, "a")
        elif tag == "776":
            relation = _subfield(datafield, "n") or ""
            link = _subfield(datafield, "w") or ""
            match = _LINKED_ID_RE.search(link)
            if "online" in relation.lower() and match:
                parsed.linked_online_id = match.group(1)
        elif tag == "856":
            url = _subfield(datafield, "u")
            label = (_subfield(datafield, "3") or "").lower()
            if not url:
                continue
            if "inhaltstext" in label or "inhaltsangabe" in label:
                parsed.content_url = parsed.content_url or url
            elif parsed.cover_url is None and _looks_like_image(url):
                parsed.cover_url = url

    parsed.series, parsed.series_number = _series_from_fields(datafields)
    return parsed


def parse_records(xml: bytes) -> list[MarcRecord]:
    """Parse every MARC21 record in an SRU searchRetrieve response.

    Raises:
        lxml.etree.XMLSyntaxError: If the payload is not well-formed XML.
    """
    root = etree.fromstring(xml)
    return [parse_record(record) for record in root.xpath("//marc21:record", namespaces=NS)]


def parse_series_info(xml: bytes) -> tuple[str | None, str | None]:
    """Series name and number from the first record of a response."""
    root = etree.fromstring(xml)
    records = root.xpath("//marc21:record", namespaces=NS)
    if not records:
        return None, None
    return _series_from_fields(records[0].xpath("./marc21:datafield", namespaces=NS))


def is_german(language: str | None) -> bool:
    """Unknown languages count as German."""
    code = (language or "").strip().lower()
    return not code or code in _GERMAN_CODES or code.startswith(("ger", "de"))


def is_acceptable(record: MarcRecord, german_only: bool = True) -> bool:
    """Whether a record should become a result at all."""
    if not record.title:
        return False
    if is_audiobook_material([record.material_type] if record.material_type else None):
        return False
    return not german_only or is_german(record.language)


def to_result(record: MarcRecord) -> BookSearchResult:
    """Convert a parsed record into a BookSearchResult."""
    cover_url = record.cover_url
    if not cover_url and record.isbn:
        cover_url = COVER_URL_TEMPLATE.format(isbn=clean_isbn(record.isbn))
    return BookSearchResult(
        title=record.title or "",
        author=join_authors(record.authors),
        source=BookSource.NATIONAL_LIBRARY,
        description=record.description,
        publisher=record.publisher,
        publish_date=record.publish_date,
        language=record.language,
        series=record.series,
        series_number=record.series_number,
        isbn=record.isbn,
        cover_url=cover_url,
    )


def merge_same_isbn(results: list[BookSearchResult]) -> list[BookSearchResult]:
    """Collapse records that describe the same ISBN.

    Print and online records of one edition often share an ISBN; the merged
    result keeps the shortest title, a series with a number when available,
    every ISBN, and the first non-blank value of the other fields.
    """
    groups: dict[str, list[BookSearchResult]] = {}
    for result in results:
        key = result.isbn or f"{result.title}|{result.author}"
        groups.setdefault(key, []).append(result)

    merged: list[BookSearchResult] = []
    for group in groups.values():
        if len(group) == 1:
            merged.append(group[0])
            continue
        numbered = next((r for r in group if r.series and r.series_number), None)
        unnumbered = next((r for r in group if r.series), None)
        series_source = numbered or unnumbered
        isbns = [isbn for r in group for isbn in r.all_isbns]

        def first(attr: str) -> str | None:
            return next((getattr(r, attr) for r in group if getattr(r, attr)), None)

        merged.append(
            BookSearchResult(
                title=min(group, key=lambda r: len(r.title)).title,
                author=group[0].author,
                source=group[0].source,
                description=first("description"),
                publisher=first("publisher"),
                publish_date=first("publish_date"),
                language=first("language"),
                series=series_source.series if series_source else None,
                series_number=numbered.series_number if numbered else None,
                isbn=isbns[0] if isbns else None,
                all_isbns=isbns,
                cover_url=first("cover_url"),
            )
        )
    return merged


def description_from_html(page: str) -> str | None:
    """Plain-text body of a content-description page, or None if too short."""
    document = html.fromstring(page)
    for element in document.xpath("//script|//style"):
        element.drop_tree()
    body = document.find("body")
    text = (body if body is not None else document).text_content()
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text if len(text) > _MIN_FETCHED_DESCRIPTION_LENGTH else None
