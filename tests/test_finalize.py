"""Tests for dedupe, ordering and truncation."""
from datetime import datetime, timedelta, timezone

from sheetfeed.finalize import dedupe_items, finalize, sort_items
from sheetfeed.models import CanonicalItem

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def item(n, days=0, guid=None):
    link = f'https://x.test/{n}'
    return CanonicalItem(
        title=f'item {n}',
        link=link,
        guid=guid or link,
        pub_date=BASE + timedelta(days=days),
        row_index=n,
        record={'Title': f'item {n}'},
    )


def test_first_occurrence_wins_and_duplicates_reported():
    items = [item(0, guid='https://x.test/Same'), item(1), item(2, guid='https://x.test/same')]
    skipped = []

    unique = dedupe_items(items, on_skip=lambda r, reason: skipped.append((r, reason)))

    assert [it.row_index for it in unique] == [0, 1]
    assert skipped == [({'Title': 'item 2'}, 'duplicate guid')]


def test_sort_newest_first_ties_by_row_order():
    items = [item(0, days=1), item(1, days=3), item(2, days=1), item(3, days=2)]

    ordered = sort_items(items)

    assert [it.row_index for it in ordered] == [1, 3, 0, 2]


def test_sort_handles_mixed_offsets():
    later = CanonicalItem('b', 'https://x.test/b', 'https://x.test/b',
                          datetime(2024, 1, 1, 9, tzinfo=timezone(timedelta(hours=-5))), row_index=1)
    earlier = CanonicalItem('a', 'https://x.test/a', 'https://x.test/a',
                            datetime(2024, 1, 1, 12, tzinfo=timezone.utc), row_index=0)

    assert sort_items([earlier, later]) == [later, earlier]


def test_limit_keeps_most_recent():
    items = [item(n, days=n) for n in range(5)]

    assert [it.row_index for it in finalize(items, limit=2)] == [4, 3]


def test_non_positive_limit_is_unbounded():
    items = [item(n, days=n) for n in range(5)]

    assert len(finalize(items, limit=0)) == 5
    assert len(finalize(items, limit=-1)) == 5


def test_finalize_dedupes_before_limit():
    items = [item(0, days=5), item(1, days=4, guid='https://x.test/0'), item(2, days=3)]
    skipped = []

    out = finalize(items, limit=2, on_skip=lambda r, reason: skipped.append(reason))

    assert [it.row_index for it in out] == [0, 2]
    assert skipped == ['duplicate guid']
