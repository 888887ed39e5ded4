# sheetfeed/models.py
"""Data models shared by the pipeline stages."""
import logging
from dataclasses import dataclass, field
from datetime import datetime

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanonicalItem:
    """A validated feed entry."""

    title: str
    link: str
    guid: str
    pub_date: datetime
    description: str = ''
    source: str = ''
    image: str = ''
    # position in the parsed sheet, only used to break pub_date ties
    row_index: int = field(default=0, repr=False)
    record: dict | None = field(default=None, repr=False, compare=False)

    @property
    def dedup_key(self):
        return self.guid.lower()


@dataclass(frozen=True)
class ChannelMetadata:
    """Feed-level settings; empty values are left out of the output."""

    title: str = ''
    link: str = ''
    self_link: str = ''
    description: str = ''
    language: str = ''
    ttl: int | None = None


class SkipLog:
    """Collects records dropped by the pipeline and logs each one."""

    def __init__(self):
        self.entries = []

    def __call__(self, record, reason):
        self.entries.append((record, reason))
        log.warning('Skipping row: %s (%s)', reason, _describe(record))

    def __len__(self):
        return len(self.entries)

    def reasons(self):
        return [reason for _, reason in self.entries]


def _describe(record):
    if not record:
        return 'empty row'
    title = record.first(('title',)) if hasattr(record, 'first') else ''
    if title:
        return f'title={title!r}'
    return ', '.join(f'{k}={v!r}' for k, v in list(record.items())[:3])
