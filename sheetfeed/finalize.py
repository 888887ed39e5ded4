# sheetfeed/finalize.py
import logging

log = logging.getLogger(__name__)


def dedupe_items(items, on_skip=None):
    """Drop items whose guid (case-insensitive) was already seen; first wins."""
    seen = set()
    unique = []
    for item in items:
        key = item.dedup_key
        if key in seen:
            if on_skip is not None:
                on_skip(item.record, 'duplicate guid')
            else:
                log.warning('Skipping row: duplicate guid %s', item.guid)
            continue
        seen.add(key)
        unique.append(item)
    return unique


def sort_items(items):
    """Newest first; equal dates keep sheet order."""
    return sorted(items, key=lambda it: (-it.pub_date.timestamp(), it.row_index))


def finalize(items, limit=0, on_skip=None):
    unique = dedupe_items(items, on_skip)
    ordered = sort_items(unique)
    if limit and limit > 0:
        ordered = ordered[:limit]
    log.info('After dedupe/sort returning %s items (from %s, limit=%s)', len(ordered), len(items), limit or 'none')
    return ordered
