# sheetfeed/xml_check.py
"""
Advisory checks on a rendered RSS document.

check_xml() answers "is this well-formed, single-channel RSS?" using the
stdlib parser so a failure can point at a line and column. check_feed_reader()
runs the document through feedparser, the way a feed reader would see it.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass

import feedparser

from .errors import MalformedFeedError

log = logging.getLogger(__name__)

VALIDATE_MODES = ('off', 'warn', 'strict')


@dataclass
class XmlCheckResult:
    ok: bool
    message: str = ''
    line: int | None = None
    column: int | None = None

    def __bool__(self):
        return self.ok


def check_xml(xml_text):
    try:
        root = ET.fromstring(xml_text.encode('utf-8'))
    except ET.ParseError as e:
        line, column = e.position
        return XmlCheckResult(False, f'not well-formed: {e}', line, column)
    if root.tag != 'rss':
        return XmlCheckResult(False, f'unexpected root element <{root.tag}>', 1)
    channels = root.findall('channel')
    if len(channels) != 1:
        return XmlCheckResult(False, f'expected exactly one <channel>, found {len(channels)}')
    return XmlCheckResult(True)


def check_feed_reader(xml_text, expected_items=None):
    """Return a list of warnings from parsing the document with feedparser."""
    warnings = []
    d = feedparser.parse(xml_text)
    if d.bozo:
        warnings.append(f'feed reader reported a problem: {getattr(d, "bozo_exception", "unknown")}')
    if expected_items is not None and len(d.entries) != expected_items:
        warnings.append(f'feed reader sees {len(d.entries)} entries, expected {expected_items}')
    return warnings


def enforce(xml_text, mode='warn', expected_items=None):
    """
    Run the checks according to mode.

    off    - nothing is checked
    warn   - problems are logged
    strict - a structural problem raises MalformedFeedError
    """
    if mode == 'off':
        return None
    result = check_xml(xml_text)
    if not result.ok:
        where = f' (line {result.line}, column {result.column})' if result.line else ''
        if mode == 'strict':
            raise MalformedFeedError(result)
        log.warning('Rendered feed failed XML check: %s%s', result.message, where)
        return result
    for msg in check_feed_reader(xml_text, expected_items):
        log.warning(msg)
    return result
