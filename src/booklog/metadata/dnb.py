# ABOUTME: National library (Deutsche Nationalbibliothek) metadata provider.
# ABOUTME: Queries the SRU endpoint for MARC21 records and enriches series and descriptions.

import logging

from lxml import etree

from booklog.metadata.dnb_parser import (
    MarcRecord,
    description_from_html,
    is_acceptable,
    merge_same_isbn,
    parse_records,
    parse_series_info,
    to_result,
)
from booklog.metadata.filters import drop_audiobooks
from booklog.metadata.http import HttpClient, MetadataFetchError
from booklog.metadata.provider import ProviderResult, clean_terms
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import BookSearchResult, BookSource, secure_url

logger = logging.getLogger(__name__)

_SRU_URL = "https://services.dnb.de/sru/dnb"
_BOOKS_CLAUSE = "(mat=books or mat=book or mat=Bücher)"
_ISBN_MAX_RECORDS = 50
_TITLE_MAX_RECORDS = 50
_SERIES_MAX_RECORDS = 999

_PARSE_ERRORS = (etree.LxmlError, AttributeError, KeyError, TypeError, ValueError)


class DnbProvider:
    """Metadata provider backed by the national library SRU interface.

    Records are filtered to German-language print books by default. Lookups
    may issue follow-up requests: the linked online record for a missing
    series number, the content-description page for a missing summary, and
    one title/author search when an ISBN lookup yields no description.
    Follow-up failures are logged and never fail the lookup.
    """

    def __init__(self, http_client: HttpClient, german_only: bool = True) -> None:
        self._http = http_client
        self._german_only = german_only

    @property
    def name(self) -> str:
        return "national_library"

    @property
    def source(self) -> BookSource:
        return BookSource.NATIONAL_LIBRARY

    def search_by_isbn(self, isbn: str) -> ProviderResult:
        """Look up records by ISBN, restricted to book material."""
        clean = clean_isbn(isbn)
        if not clean:
            return ProviderResult.success(self.source)

        outcome = self._query(f"isbn={clean} and {_BOOKS_CLAUSE}", _ISBN_MAX_RECORDS)
        if outcome.ok and outcome.results:
            self._fill_missing_description(outcome.results)
        return outcome

    def search_by_title_author(
        self,
        title: str | None = None,
        author: str | None = None,
        series: str | None = None,
    ) -> ProviderResult:
        """Search by title and person; a series without a title is searched as title."""
        title, author, series = clean_terms(title, author, series)
        clauses: list[str] = []
        if title:
            clauses.append(f'tit="{title}"')
        if author:
            clauses.append(f'per="{author}"')
        if series and not title:
            clauses.append(f'tit="{series}"')
        if not clauses:
            return ProviderResult.success(self.source)

        clauses.append(_BOOKS_CLAUSE)
        max_records = _SERIES_MAX_RECORDS if series else _TITLE_MAX_RECORDS
        return self._query(" and ".join(clauses), max_records)

    def _params(self, query: str, max_records: int) -> dict[str, str]:
        return {
            "version": "1.1",
            "operation": "searchRetrieve",
            "query": query,
            "recordSchema": "MARC21-xml",
            "maximumRecords": str(max_records),
        }

    def _query(self, query: str, max_records: int) -> ProviderResult:
        try:
            body = self._http.get_text(_SRU_URL, params=self._params(query, max_records))
            records = parse_records(body.encode("utf-8"))
        except MetadataFetchError as exc:
            logger.warning("National library query failed for %s: %s", query, exc)
            return ProviderResult.failure(self.source, f"National library request failed: {exc}")
        except _PARSE_ERRORS as exc:
            logger.warning("Malformed national library response for %s: %s", query, exc)
            return ProviderResult.failure(
                self.source, f"Malformed national library response: {exc}"
            )

        results: list[BookSearchResult] = []
        for record in records:
            if not is_acceptable(record, german_only=self._german_only):
                logger.debug("Skipping national library record %r", record.title)
                continue
            self._enrich(record)
            results.append(to_result(record))
        return ProviderResult.success(self.source, drop_audiobooks(merge_same_isbn(results)))

    def _enrich(self, record: MarcRecord) -> None:
        """Fill series number and description from linked resources.

        MUTATES record in place.
        """
        if record.series and not record.series_number and record.linked_online_id:
            series, number = self._linked_series(record.linked_online_id)
            if series or number:
                record.series = series or record.series
                record.series_number = number

        if record.content_url and not record.description:
            record.description = self._fetch_description(record.content_url)

    def _linked_series(self, record_id: str) -> tuple[str | None, str | None]:
        try:
            body = self._http.get_text(_SRU_URL, params=self._params(f"num={record_id}", 1))
            return parse_series_info(body.encode("utf-8"))
        except MetadataFetchError as exc:
            logger.warning("Linked record %s lookup failed: %s", record_id, exc)
        except _PARSE_ERRORS as exc:
            logger.warning("Linked record %s unreadable: %s", record_id, exc)
        return None, None

    def _fetch_description(self, url: str) -> str | None:
        try:
            return description_from_html(self._http.get_text(secure_url(url) or url))
        except MetadataFetchError as exc:
            logger.warning("Description fetch failed for %s: %s", url, exc)
        except _PARSE_ERRORS as exc:
            logger.warning("Description page unreadable at %s: %s", url, exc)
        return None

    def _fill_missing_description(self, results: list[BookSearchResult]) -> None:
        """Borrow a description from a title/author search when none was found.

        MUTATES the first result in place.
        """
        if any(result.description for result in results):
            return
        first = results[0]
        fallback = self.search_by_title_author(title=first.title, author=first.author)
        if not fallback.ok:
            return
        description = next((r.description for r in fallback.results if r.description), None)
        if description:
            first.description = description
