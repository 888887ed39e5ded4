# sheetfeed/csv_parse.py
"""
Small tolerant CSV reader for spreadsheet exports.

Only quoted fields (with "" escapes) and embedded newlines are handled; the
goal is that one broken row never takes the rest of the sheet down with it,
so malformed quoting degrades to a best-effort field boundary instead of an
exception.
"""

import logging

log = logging.getLogger(__name__)


class RawRecord(dict):
    """One data row keyed by header name, with a case-insensitive index."""

    def __init__(self, values=()):
        super().__init__(values)
        self._lower = {}
        for key, value in self.items():
            self._lower.setdefault(key.lower(), value)

    def first(self, candidates):
        """Return the first non-blank value among candidate header names."""
        for name in candidates:
            value = self._lower.get(name.lower())
            if value is not None and value.strip():
                return value.strip()
        return ''


def normalize_newlines(text):
    return text.replace('\r\n', '\n').replace('\r', '\n')


def detect_delimiter(text):
    first_line = text.split('\n', 1)[0]
    if '\t' in first_line and ',' not in first_line:
        return '\t'
    return ','


def iter_rows(text, delimiter=','):
    """Yield each physical record as a list of field strings."""
    row = []
    field = []
    in_quotes = False
    quoted = False
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if in_quotes:
            if c == '"':
                if i + 1 < n and text[i + 1] == '"':
                    field.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(c)
        elif c == '"' and not field and not quoted:
            in_quotes = True
            quoted = True
        elif c == delimiter:
            row.append(''.join(field))
            field = []
            quoted = False
        elif c == '\n':
            row.append(''.join(field))
            yield row
            row, field, quoted = [], [], False
        else:
            # stray quotes and text after a closing quote are kept literally
            field.append(c)
        i += 1
    if in_quotes:
        log.debug('unterminated quoted field at end of input; keeping remainder')
    if field or row or quoted:
        row.append(''.join(field))
        yield row


def _is_blank(row):
    return len(row) == 1 and not row[0].strip()


def iter_records(raw_text):
    """
    Yield RawRecord objects for every data row of raw_text.

    The first non-blank line supplies the headers. Short rows are padded with
    empty strings and surplus columns are dropped.
    """
    if not raw_text:
        return
    text = normalize_newlines(raw_text)
    if text.startswith('\ufeff'):
        text = text[1:]
    delimiter = detect_delimiter(text)

    headers = None
    for row in iter_rows(text, delimiter):
        if _is_blank(row):
            continue
        if headers is None:
            headers = [h.strip() for h in row]
            continue
        if len(row) < len(headers):
            row = row + [''] * (len(headers) - len(row))
        values = {}
        for name, value in zip(headers, row):
            if name:
                values.setdefault(name, value)
        yield RawRecord(values)


def parse(raw_text):
    return list(iter_records(raw_text))
