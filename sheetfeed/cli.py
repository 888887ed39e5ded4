# sheetfeed/cli.py
"""
Command line entry point.

    sheetfeed https://docs.google.com/.../pub?gid=0 --out feed.xml --title "Headlines"
    sheetfeed stories.csv --format html --out site/index.html
"""

import argparse
import logging
import os

from . import __version__
from .config import CONFIG_FILE_DEFAULT, FORMATS, build_config, load_config_file
from .errors import ConfigError, FetchError, MalformedFeedError
from .pipeline import run
from .xml_check import VALIDATE_MODES

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_MALFORMED = 2


def setup_logging(verbose=False):
    level_name = 'DEBUG' if verbose else os.environ.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(level=getattr(logging, level_name.upper(), logging.INFO),
                        format='%(asctime)s %(levelname)s %(message)s')


def build_parser():
    parser = argparse.ArgumentParser(prog='sheetfeed', description='Render a CSV sheet as an RSS feed or HTML page')
    parser.add_argument('source', nargs='?', help='CSV path, URL or "-" for stdin')
    parser.add_argument('--config', default=CONFIG_FILE_DEFAULT, help='JSON config file (default: %(default)s)')
    parser.add_argument('--out', dest='output', help='output path, "-" for stdout')
    parser.add_argument('--format', choices=FORMATS)
    parser.add_argument('--limit', dest='max_items', type=int, help='keep only the N most recent items (0 = all)')
    parser.add_argument('--validate', choices=VALIDATE_MODES, help='XML check mode for RSS output')
    parser.add_argument('--timeout', type=float, help='HTTP timeout in seconds')
    parser.add_argument('--retries', type=int, help='HTTP retry attempts')

    channel = parser.add_argument_group('channel')
    channel.add_argument('--title')
    channel.add_argument('--link', help='site URL')
    channel.add_argument('--self-link', help='public URL of the feed itself')
    channel.add_argument('--description')
    channel.add_argument('--language')
    channel.add_argument('--ttl', type=int)

    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    overrides = {k: getattr(args, k) for k in ('source', 'output', 'format', 'max_items', 'validate', 'timeout', 'retries')}
    overrides['channel'] = {
        'title': args.title,
        'link': args.link,
        'self_link': args.self_link,
        'description': args.description,
        'language': args.language,
        'ttl': args.ttl,
    }
    try:
        config = build_config(load_config_file(args.config), overrides=overrides)
        skipped = run(config)
    except (ConfigError, FetchError, OSError) as e:
        log.error('%s', e)
        return EXIT_FAILED
    except MalformedFeedError as e:
        r = e.result
        log.error('Rendered feed is malformed, nothing written: %s (line %s, column %s)', r.message, r.line, r.column)
        return EXIT_MALFORMED
    if skipped:
        log.info('Skipped rows: %s', len(skipped))
    return EXIT_OK

