# ABOUTME: Unit tests for parsing national library MARC21 SRU responses.
# ABOUTME: Covers field extraction, series priority, filtering, merging, and content pages.

import pytest
from lxml import etree

from booklog.metadata.dnb_parser import (
    clean_marc_text,
    clean_publish_date,
    description_from_html,
    is_acceptable,
    is_german,
    merge_same_isbn,
    parse_records,
    parse_series_info,
    to_result,
    volume_number,
)
from booklog.metadata.types import BookSearchResult, BookSource
from tests.fixtures.dnb_responses import (
    AUDIOBOOK_RECORD,
    CONTENT_LINK_RECORD,
    CONTENT_PAGE,
    EMPTY_RESPONSE,
    ENGLISH_RECORD,
    LINKED_SERIES_ONLINE,
    LINKED_SERIES_PRINT,
    RUMO_SERIES,
    SCHWARM_ONLINE,
    SCHWARM_PRINT,
    SCHWARM_SUMMARY,
    SERIES_490_TRACED,
    SERIES_800,
    UNTITLED_RECORD,
    sru_response,
)


def _parse_one(record: str):
    return parse_records(sru_response(record).encode("utf-8"))[0]


class TestTextHelpers:
    def test_clean_marc_text_strips_markers(self) -> None:
        assert clean_marc_text("\u0098Der\u009c  Schwarm ") == "Der Schwarm"
        assert clean_marc_text("  ") is None
        assert clean_marc_text(None) is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("[2004]", "2004"), ("c2019", "2019"), ("2021.", "2021"), ("[s.a.]", "s.a"), (None, None)],
    )
    def test_clean_publish_date(self, raw: str | None, expected: str | None) -> None:
        assert clean_publish_date(raw) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("Band 3", "3"), ("4", "4"), ("Bd. 2.5", "2.5"), ("ohne", None), (None, None)],
    )
    def test_volume_number(self, raw: str | None, expected: str | None) -> None:
        assert volume_number(raw) == expected

    def test_is_german(self) -> None:
        assert is_german("ger")
        assert is_german("de")
        assert is_german(None)
        assert not is_german("eng")


class TestParseRecord:
    """Tests for field extraction from one record."""

    def test_core_fields(self) -> None:
        record = _parse_one(SCHWARM_PRINT)
        assert record.title == "Der Schwarm"
        assert record.isbn == "9783462033748"
        assert record.language == "ger"
        assert record.publisher == "Kiepenheuer & Witsch"
        assert record.publish_date == "2004"
        assert record.material_type == "Roman"

    def test_only_authors_are_kept(self) -> None:
        """Contributors with a non-author relator code are left out."""
        assert _parse_one(SCHWARM_PRINT).authors == ["Schätzing, Frank"]

    def test_summary(self) -> None:
        assert _parse_one(SCHWARM_ONLINE).description == SCHWARM_SUMMARY

    def test_series_from_490(self) -> None:
        """Publisher series in 830 are skipped in favor of 490."""
        record = _parse_one(RUMO_SERIES)
        assert (record.series, record.series_number) == ("Zamonien", "3")

    def test_series_800_has_priority(self) -> None:
        record = _parse_one(SERIES_800)
        assert (record.series, record.series_number) == ("Zamonien", "4")

    def test_traced_490_is_ignored(self) -> None:
        record = _parse_one(SERIES_490_TRACED)
        assert record.series is None

    def test_linked_online_record(self) -> None:
        record = _parse_one(LINKED_SERIES_PRINT)
        assert record.series == "Zamonien"
        assert record.series_number is None
        assert record.linked_online_id == "1019876543"

    def test_content_and_cover_links(self) -> None:
        record = _parse_one(CONTENT_LINK_RECORD)
        assert record.content_url == "http://d-nb.info/1190000001/04"
        assert record.cover_url == "https://portal.dnb.de/cover/9783596296408.jpg"

    def test_parse_records_counts(self) -> None:
        body = sru_response(SCHWARM_PRINT, RUMO_SERIES).encode("utf-8")
        assert [record.title for record in parse_records(body)] == [
            "Der Schwarm",
            "Rumo & die Wunder im Dunkeln",
        ]

    def test_empty_response(self) -> None:
        assert parse_records(EMPTY_RESPONSE.encode("utf-8")) == []

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(etree.XMLSyntaxError):
            parse_records(b"<searchRetrieveResponse><records>")

    def test_parse_series_info(self) -> None:
        body = sru_response(LINKED_SERIES_ONLINE).encode("utf-8")
        assert parse_series_info(body) == ("Zamonien", "6")
        assert parse_series_info(EMPTY_RESPONSE.encode("utf-8")) == (None, None)


class TestAcceptance:
    def test_untitled_rejected(self) -> None:
        assert not is_acceptable(_parse_one(UNTITLED_RECORD))

    def test_audiobook_rejected(self) -> None:
        assert not is_acceptable(_parse_one(AUDIOBOOK_RECORD))

    def test_foreign_language_depends_on_setting(self) -> None:
        record = _parse_one(ENGLISH_RECORD)
        assert not is_acceptable(record)
        assert is_acceptable(record, german_only=False)


class TestToResult:
    def test_cover_from_isbn(self) -> None:
        result = to_result(_parse_one(SCHWARM_PRINT))
        assert result.source is BookSource.NATIONAL_LIBRARY
        assert result.cover_url == "https://portal.dnb.de/opac/mvb/cover?isbn=9783462033748"

    def test_record_cover_kept(self) -> None:
        result = to_result(_parse_one(CONTENT_LINK_RECORD))
        assert result.cover_url == "https://portal.dnb.de/cover/9783596296408.jpg"


class TestMergeSameIsbn:
    """Print and online records for one ISBN collapse into one result."""

    def test_merges_print_and_online(self) -> None:
        results = [to_result(_parse_one(SCHWARM_PRINT)), to_result(_parse_one(SCHWARM_ONLINE))]
        merged = merge_same_isbn(results)

        assert len(merged) == 1
        book = merged[0]
        assert book.title == "Der Schwarm"
        assert book.description == SCHWARM_SUMMARY
        assert book.publisher == "Kiepenheuer & Witsch"
        assert book.all_isbns == ["9783462033748"]

    def test_numbered_series_preferred(self) -> None:
        def _result(series: str | None, number: str | None) -> BookSearchResult:
            return BookSearchResult(
                title="Rumo",
                author="Moers, Walter",
                source=BookSource.NATIONAL_LIBRARY,
                isbn="9783492045506",
                series=series,
                series_number=number,
            )

        merged = merge_same_isbn([_result("Zamonien", None), _result("Zamonien", "3")])
        assert (merged[0].series, merged[0].series_number) == ("Zamonien", "3")

    def test_distinct_isbns_untouched(self) -> None:
        results = [to_result(_parse_one(SCHWARM_PRINT)), to_result(_parse_one(RUMO_SERIES))]
        assert merge_same_isbn(results) == results


class TestDescriptionFromHtml:
    def test_body_text(self) -> None:
        text = description_from_html(CONTENT_PAGE)
        assert text is not None
        assert text.startswith("Eine Fähre verlässt die Insel")
        assert "var x" not in text

    def test_too_short(self) -> None:
        assert description_from_html("<html><body><p>Kurz.</p></body></html>") is None
