# sheetfeed/fetch.py
"""
CSV acquisition: local file, stdin ("-") or http(s) URL.

Published Google Sheets links are rewritten to their CSV export form. HTTP
goes through a Session with a urllib3 Retry adapter so transient 429/5xx
responses are retried with backoff.
"""

import logging
import re
import sys
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import FetchError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20
DEFAULT_RETRIES = 5

HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36',
    'Accept': 'text/csv,text/plain;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
}

SHEETS_HOSTS = ('docs.google.com',)

_edit_path_re = re.compile(r'^(/spreadsheets/d/[^/]+)/(edit|view)\b.*$')


def is_url(source):
    return bool(re.match(r'^https?://', source or '', re.I))


def csv_export_url(url):
    """Make a Google Sheets link return CSV; other URLs are returned unchanged."""
    p = urlparse(url)
    host = (p.hostname or '').lower()
    if host not in SHEETS_HOSTS or not p.path.startswith('/spreadsheets/'):
        return url
    qs = parse_qsl(p.query, keep_blank_values=True)
    m = _edit_path_re.match(p.path)
    if m:
        # /d/<id>/edit#gid=N -> /d/<id>/export?format=csv&gid=N
        gid = dict(parse_qsl(p.fragment)).get('gid') or dict(qs).get('gid')
        query = [('format', 'csv')] + ([('gid', gid)] if gid else [])
        return urlunparse((p.scheme, p.netloc, m.group(1) + '/export', '', urlencode(query), ''))
    keys = {k.lower() for k, _ in qs}
    if p.path.endswith('/pub') and 'output' not in keys:
        qs.append(('output', 'csv'))
        return urlunparse(p._replace(query=urlencode(qs)))
    return url


def make_session(retries=DEFAULT_RETRIES):
    session = requests.Session()
    retry_strategy = Retry(
        total=retries,
        backoff_factor=1.0,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(['GET', 'HEAD', 'OPTIONS']),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount('https://', adapter)
    session.mount('http://', adapter)
    return session


def decode_body(content, fallback_encoding=None):
    try:
        return content.decode('utf-8-sig')
    except UnicodeDecodeError:
        encoding = fallback_encoding or 'latin-1'
        log.info('CSV body is not UTF-8, decoding as %s', encoding)
        try:
            return content.decode(encoding, errors='replace')
        except LookupError:
            return content.decode('latin-1')


def fetch_url(url, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES, session=None):
    target = csv_export_url(url)
    if target != url:
        log.info('Using CSV export URL %s', target)
    own_session = session is None
    session = session or make_session(retries)
    try:
        r = session.get(target, headers=HEADERS, timeout=timeout)
        r.raise_for_status()
        return decode_body(r.content, r.apparent_encoding)
    except requests.RequestException as e:
        raise FetchError(f'failed to fetch {target}: {e}') from e
    finally:
        if own_session:
            session.close()


def read_file(path):
    try:
        with open(path, 'rb') as fh:
            return decode_body(fh.read())
    except OSError as e:
        raise FetchError(f'failed to read {path}: {e}') from e


def read_source(source, timeout=DEFAULT_TIMEOUT, retries=DEFAULT_RETRIES):
    """Return CSV text for a path, "-" (stdin) or URL. Raises FetchError."""
    if not source:
        raise FetchError('no CSV source given')
    if source == '-':
        return sys.stdin.read()
    if is_url(source):
        log.info('Fetching %s', source)
        return fetch_url(source, timeout=timeout, retries=retries)
    log.info('Reading %s', source)
    return read_file(source)
