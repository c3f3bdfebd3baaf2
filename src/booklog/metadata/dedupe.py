# ABOUTME: Duplicate detection, merging, and deterministic ranking of provider results.
# ABOUTME: Groups by shared ISBNs or matching title+author, then ranks by provider priority.

from dataclasses import replace

from booklog.metadata.text import comparison_key, isbn_key
from booklog.metadata.types import BookSearchResult

_FILLABLE_FIELDS = (
    "description",
    "publisher",
    "publish_date",
    "language",
    "original_language",
    "cover_url",
)


def _identity_keys(result: BookSearchResult) -> set[str]:
    keys = {isbn_key(isbn) for isbn in result.all_isbns}
    keys.discard("")
    if keys:
        return {f"isbn:{key}" for key in keys}
    return {f"text:{comparison_key(result.title)}|{comparison_key(result.author)}"}


class _DisjointSet:
    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, item: int) -> int:
        while self._parent[item] != item:
            self._parent[item] = self._parent[self._parent[item]]
            item = self._parent[item]
        return item

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            # Keep the earliest index as root so group order is stable.
            self._parent[max(root_a, root_b)] = min(root_a, root_b)


def group_duplicates(results: list[BookSearchResult]) -> list[list[int]]:
    """Partition result indices into duplicate groups.

    Results sharing any normalized ISBN are duplicates, transitively.
    Results without ISBNs are duplicates when their normalized title and
    author match. Groups are ordered by their earliest member.
    """
    groups = _DisjointSet(len(results))
    first_owner: dict[str, int] = {}
    for index, result in enumerate(results):
        for key in _identity_keys(result):
            if key in first_owner:
                groups.union(first_owner[key], index)
            else:
                first_owner[key] = index

    by_root: dict[int, list[int]] = {}
    for index in range(len(results)):
        by_root.setdefault(groups.find(index), []).append(index)
    return [members for _, members in sorted(by_root.items())]


def _primary_key(result: BookSearchResult, position: int) -> tuple[int, int, int]:
    return (-result.populated_field_count(), result.source.priority, position)


def merge_group(members: list[tuple[int, BookSearchResult]]) -> BookSearchResult:
    """Merge duplicates into one result.

    The primary is the member with the most populated fields, then the
    higher-priority provider, then the earlier position. Its empty fields
    are filled from the other members, ISBNs are unioned, and a series
    carrying a number is preferred over one without.
    """
    by_rank = sorted(members, key=lambda m: _primary_key(m[1], m[0]))
    ordered = [result for _, result in by_rank]
    primary = ordered[0]
    if len(ordered) == 1:
        return primary

    changes: dict[str, object] = {}
    for name in _FILLABLE_FIELDS:
        if not getattr(primary, name):
            value = next((getattr(r, name) for r in ordered[1:] if getattr(r, name)), None)
            if value:
                changes[name] = value

    numbered = next((r for r in ordered if r.series and r.series_number), None)
    named = next((r for r in ordered if r.series), None)
    series_source = numbered or named
    if series_source is not None:
        changes["series"] = series_source.series
        changes["series_number"] = series_source.series_number

    isbns: list[str] = []
    seen: set[str] = set()
    for result in ordered:
        for isbn in result.all_isbns:
            key = isbn_key(isbn)
            if key and key not in seen:
                seen.add(key)
                isbns.append(isbn)
    changes["all_isbns"] = isbns
    if not primary.isbn and isbns:
        changes["isbn"] = isbns[0]

    return replace(primary, **changes)


def deduplicate(results: list[BookSearchResult]) -> list[BookSearchResult]:
    """Merge duplicates and rank the survivors.

    The input must be in provider-priority order with each provider's own
    ordering preserved. The output is ranked by the best provider priority
    within each group, then by the earliest position, so it never depends
    on the order in which providers responded.
    """
    ranked: list[tuple[tuple[int, int], BookSearchResult]] = []
    for group in group_duplicates(results):
        members = [(index, results[index]) for index in group]
        best_priority = min(result.source.priority for _, result in members)
        rank = (best_priority, group[0])
        ranked.append((rank, merge_group(members)))
    ranked.sort(key=lambda item: item[0])
    return [result for _, result in ranked]
