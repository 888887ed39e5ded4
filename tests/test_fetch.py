"""Tests for CSV acquisition."""
from unittest.mock import MagicMock, patch

import pytest
import requests

from sheetfeed.errors import FetchError
from sheetfeed.fetch import csv_export_url, decode_body, fetch_url, make_session, read_source

PUB = 'https://docs.google.com/spreadsheets/d/e/2PACX-abc/pub?gid=477208386&single=true'


def test_published_sheet_gets_output_csv():
    assert csv_export_url(PUB) == PUB + '&output=csv'


def test_existing_output_parameter_kept():
    url = PUB + '&output=csv'

    assert csv_export_url(url) == url


def test_edit_link_rewritten_to_export():
    url = 'https://docs.google.com/spreadsheets/d/ABC123/edit#gid=42'

    assert csv_export_url(url) == 'https://docs.google.com/spreadsheets/d/ABC123/export?format=csv&gid=42'


def test_other_hosts_untouched():
    url = 'https://example.com/data/pub?gid=1'

    assert csv_export_url(url) == url


def test_decode_body():
    assert decode_body(b'\xef\xbb\xbfTitle') == 'Title'
    assert decode_body(b'caf\xe9', 'latin-1') == 'café'
    assert decode_body(b'caf\xe9') == 'café'


def test_make_session_mounts_retry_adapter():
    session = make_session(retries=3)

    retry = session.get_adapter('https://x.test/').max_retries
    assert retry.total == 3
    assert 503 in retry.status_forcelist


def test_fetch_url_uses_export_url_and_decodes():
    session = MagicMock()
    session.get.return_value = MagicMock(content=b'Title,URL\nA,https://x.test/1\n', apparent_encoding='utf-8')

    text = fetch_url(PUB, session=session)

    assert text.startswith('Title,URL')
    called_url = session.get.call_args[0][0]
    assert called_url.endswith('&output=csv')
    session.close.assert_not_called()


def test_fetch_url_wraps_request_errors():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError('boom')

    with pytest.raises(FetchError) as exc:
        fetch_url('https://x.test/data.csv', session=session)
    assert 'boom' in str(exc.value)


def test_fetch_url_http_error_is_fatal():
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError('404 Client Error')
    session = MagicMock()
    session.get.return_value = response

    with pytest.raises(FetchError):
        fetch_url('https://x.test/missing.csv', session=session)


def test_read_source_file(tmp_path):
    path = tmp_path / 'data.csv'
    path.write_bytes('Title\nCafé\n'.encode('utf-8'))

    assert read_source(str(path)) == 'Title\nCafé\n'


def test_read_source_missing_file(tmp_path):
    with pytest.raises(FetchError):
        read_source(str(tmp_path / 'nope.csv'))


def test_read_source_requires_source():
    with pytest.raises(FetchError):
        read_source('')


def test_read_source_url_goes_through_fetch_url():
    with patch('sheetfeed.fetch.fetch_url', return_value='a\n1\n') as mock_fetch:
        assert read_source('https://x.test/a.csv', timeout=5, retries=1) == 'a\n1\n'
    mock_fetch.assert_called_once_with('https://x.test/a.csv', timeout=5, retries=1)
