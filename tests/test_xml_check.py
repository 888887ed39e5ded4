"""Tests for the advisory XML check."""
import logging
from datetime import datetime, timezone

import pytest

from sheetfeed.errors import MalformedFeedError
from sheetfeed.models import CanonicalItem, ChannelMetadata
from sheetfeed.render import render_rss
from sheetfeed.xml_check import check_feed_reader, check_xml, enforce

BAD_AMP = '<?xml version="1.0"?>\n<rss version="2.0">\n<channel><title>A & B</title></channel>\n</rss>\n'


def rendered(n=2):
    items = [
        CanonicalItem(f'Item {i} & co', f'https://x.test/{i}', f'https://x.test/{i}',
                      datetime(2024, 1, i, tzinfo=timezone.utc), description='<b>x</b>', row_index=i)
        for i in range(1, n + 1)
    ]
    return render_rss(items, ChannelMetadata(title='T', link='https://x.test/'),
                      now=datetime(2024, 6, 1, tzinfo=timezone.utc))


def test_rendered_feed_passes():
    result = check_xml(rendered())

    assert result.ok
    assert bool(result) is True


def test_bare_ampersand_reports_position():
    result = check_xml(BAD_AMP)

    assert not result.ok
    assert result.line == 3
    assert result.column is not None
    assert 'not well-formed' in result.message


def test_wrong_root_and_channel_count():
    assert 'root' in check_xml('<feed/>').message
    two = check_xml('<rss version="2.0"><channel/><channel/></rss>')
    assert not two.ok
    assert 'found 2' in two.message
    assert not check_xml('<rss version="2.0"></rss>').ok


def test_feed_reader_counts_entries():
    doc = rendered(3)

    assert any('expected 5' in w for w in check_feed_reader(doc, expected_items=5))


def test_enforce_modes(caplog):
    assert enforce(BAD_AMP, 'off') is None

    with caplog.at_level(logging.WARNING, logger='sheetfeed.xml_check'):
        result = enforce(BAD_AMP, 'warn')
    assert not result.ok
    assert 'failed XML check' in caplog.text

    with pytest.raises(MalformedFeedError) as exc:
        enforce(BAD_AMP, 'strict')
    assert exc.value.result.line == 3

    assert enforce(rendered(), 'strict').ok
