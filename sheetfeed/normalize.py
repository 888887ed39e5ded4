# sheetfeed/normalize.py
"""
Map raw sheet rows onto CanonicalItem.

Header names differ between sheets, so every canonical field has an ordered
list of candidate columns; the first non-blank match (case-insensitive) wins.
"""

import ipaddress
import logging
import re
import warnings
from datetime import datetime, timezone
from urllib.parse import urlparse

from dateutil import parser as dateparser
from dateutil import tz as date_tz

from .errors import ValidationError
from .models import CanonicalItem

log = logging.getLogger(__name__)

warnings.filterwarnings('ignore', category=dateparser.UnknownTimezoneWarning)

FIELD_CANDIDATES = {
    'title': ('title',),
    'link': ('link', 'url'),
    'guid': ('guid', 'id'),
    'date': ('pubdate', 'date', 'publication date', 'published', 'timestamp'),
    'description': ('summary', 'description', 'article summary'),
    'source': ('source', 'publisher'),
    'image': ('image', 'image url', 'thumbnail'),
}

DEFAULT_TZINFOS = {'ET': date_tz.gettz('America/New_York')}

_scheme_re = re.compile(r'^https?://', re.I)
_whitespace_re = re.compile(r'\s+')
_epoch_re = re.compile(r'^\d{10}(\d{3})?$')
_label = r'[A-Za-z0-9_](?:[A-Za-z0-9_-]*[A-Za-z0-9_])?'
_host_re = re.compile(rf'^{_label}(?:\.{_label})*\.?$')

# two defaults that differ in year and month; day 1 is valid in every month
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 1)


def sanitize_url(value):
    if not value:
        return ''
    return _whitespace_re.sub('', value)


def valid_host(host):
    """Hostname check: DNS-style labels (IDNA for non-ASCII) or an IP literal."""
    if not host:
        return False
    if ':' in host:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True
    if not host.isascii():
        try:
            host = host.encode('idna').decode('ascii')
        except UnicodeError:
            return False
    return bool(_host_re.match(host))


def is_absolute_url(value):
    if not value or not _scheme_re.match(value):
        return False
    try:
        parsed = urlparse(value)
        parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return False
    return valid_host(parsed.hostname)


def parse_date(text):
    """
    Parse a sheet date cell into an aware datetime.

    Accepts anything dateutil understands (ISO 8601, RFC 822, 2024/1/2,
    1/2/2024, ...) plus unix timestamps in seconds or milliseconds. Values
    without a zone are taken as UTC. Text that does not name both a year and
    a month (e.g. "-1" or "10:00") is rejected rather than completed from
    today's date. Raises ValidationError otherwise.
    """
    text = text.strip()
    if _epoch_re.match(text):
        seconds = int(text) / 1000 if len(text) == 13 else int(text)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    try:
        dt = dateparser.parse(text, default=_DEFAULT_A, tzinfos=DEFAULT_TZINFOS)
        other = dateparser.parse(text, default=_DEFAULT_B, tzinfos=DEFAULT_TZINFOS)
    except (ValueError, OverflowError):
        raise ValidationError(f'bad pubDate: {text!r}') from None
    # a component taken from the default differs between the two parses
    if (dt.year, dt.month) != (other.year, other.month):
        raise ValidationError(f'bad pubDate: {text!r}')
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize(record, row_index=0, now=None):
    """Build a CanonicalItem from a RawRecord or raise ValidationError."""
    title = record.first(FIELD_CANDIDATES['title'])
    if not title:
        raise ValidationError('missing title')

    link = sanitize_url(record.first(FIELD_CANDIDATES['link']))
    if not is_absolute_url(link):
        raise ValidationError('invalid link')

    guid = sanitize_url(record.first(FIELD_CANDIDATES['guid']))
    if not is_absolute_url(guid):
        guid = link
    if not is_absolute_url(guid):
        raise ValidationError('invalid guid')

    # a missing date means "now"; a date that is present but unreadable rejects the row
    date_text = record.first(FIELD_CANDIDATES['date'])
    if date_text:
        pub_date = parse_date(date_text)
    else:
        pub_date = now or datetime.now(timezone.utc)

    image = sanitize_url(record.first(FIELD_CANDIDATES['image']))
    if image and not is_absolute_url(image):
        log.debug('row %s: ignoring image %r', row_index, image)
        image = ''

    return CanonicalItem(
        title=title,
        link=link,
        guid=guid,
        pub_date=pub_date,
        description=record.first(FIELD_CANDIDATES['description']),
        source=record.first(FIELD_CANDIDATES['source']),
        image=image,
        row_index=row_index,
        record=record,
    )


def _log_skip(record, reason):
    log.warning('Skipping row: %s', reason)


def normalize_records(records, on_skip=None, now=None):
    """Normalize every record, reporting rejects through on_skip(record, reason)."""
    on_skip = on_skip or _log_skip
    now = now or datetime.now(timezone.utc)
    items = []
    seen = 0
    for idx, record in enumerate(records):
        seen += 1
        try:
            items.append(normalize(record, idx, now=now))
        except ValidationError as e:
            on_skip(record, e.reason)
    log.debug('normalized %s rows into %s items', seen, len(items))
    return items
