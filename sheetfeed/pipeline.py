# sheetfeed/pipeline.py
"""
CSV text -> items -> document, plus the run() entry point used by the CLI.

Everything between reading the source and writing the output is a pure
transformation; per-row problems go to the skip callback and never abort.
"""

import logging
import os
import stat
import sys
import tempfile
from datetime import datetime, timezone

from .csv_parse import parse
from .fetch import read_source
from .finalize import finalize
from .html_page import render_html
from .models import SkipLog
from .normalize import normalize_records
from .render import render_rss
from .xml_check import enforce

log = logging.getLogger(__name__)

RENDERERS = {'rss': render_rss, 'html': render_html}


def build_items(csv_text, limit=0, on_skip=None, now=None):
    records = parse(csv_text)
    items = normalize_records(records, on_skip=on_skip, now=now)
    return finalize(items, limit=limit, on_skip=on_skip)


def build_document(csv_text, channel, fmt='rss', limit=0, on_skip=None, now=None, validate='warn'):
    """Return (document, items) for csv_text in the requested format."""
    now = now or datetime.now(timezone.utc)
    items = build_items(csv_text, limit=limit, on_skip=on_skip, now=now)
    document = RENDERERS[fmt](items, channel, now=now)
    if fmt == 'rss':
        enforce(document, validate, expected_items=len(items))
    return document, items


def output_mode(path):
    """Keep an existing file's mode, otherwise use what open() would give."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_output(text, path):
    """Write text to path atomically, or to stdout for "-"."""
    if path == '-':
        sys.stdout.write(text)
        return
    out_dir = os.path.dirname(os.path.abspath(path))
    os.makedirs(out_dir, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=out_dir, prefix='.sheetfeed-', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as fh:
            fh.write(text)
        os.chmod(tmp, output_mode(path))
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def run(config, now=None):
    """Fetch, build and write one feed. Returns the SkipLog for the run."""
    skipped = SkipLog()
    csv_text = read_source(config.source, timeout=config.timeout, retries=config.retries)
    document, items = build_document(
        csv_text,
        config.channel,
        fmt=config.format,
        limit=config.max_items,
        on_skip=skipped,
        now=now,
        validate=config.validate,
    )
    write_output(document, config.output_path)
    log.info('Wrote %s items to %s (%s rows skipped)', len(items), config.output_path, len(skipped))
    return skipped
