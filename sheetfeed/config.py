# sheetfeed/config.py
"""
Run configuration: defaults < JSON config file < environment < CLI flags.

Example feed-config.json:

    {
      "source": "https://docs.google.com/spreadsheets/d/e/.../pub?gid=0&single=true",
      "output": "feed.xml",
      "format": "rss",
      "max_items": 50,
      "validate": "warn",
      "channel": {
        "title": "LatAm Headlines",
        "link": "https://example.github.io/feed/",
        "self_link": "https://example.github.io/feed/feed.xml",
        "description": "Latest news summaries",
        "language": "en-us",
        "ttl": 60
      }
    }
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field

from .errors import ConfigError
from .fetch import DEFAULT_RETRIES, DEFAULT_TIMEOUT
from .models import ChannelMetadata
from .xml_check import VALIDATE_MODES

log = logging.getLogger(__name__)

CONFIG_FILE_DEFAULT = 'feed-config.json'
FORMATS = ('rss', 'html')
DEFAULT_OUTPUT = {'rss': 'feed.xml', 'html': 'index.html'}

ENV_VARS = {
    'source': 'SHEETFEED_SOURCE',
    'output': 'SHEETFEED_OUTPUT',
    'timeout': 'FETCH_TIMEOUT',
    'retries': 'FETCH_RETRIES',
}


@dataclass(frozen=True)
class FeedConfig:
    source: str = ''
    output: str = ''
    format: str = 'rss'
    max_items: int = 0
    validate: str = 'warn'
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    channel: ChannelMetadata = field(default_factory=ChannelMetadata)

    @property
    def output_path(self):
        return self.output or DEFAULT_OUTPUT[self.format]


def load_config_file(path):
    """Read a JSON config file; a missing default file is not an error."""
    if not path:
        return {}
    if not os.path.exists(path):
        if path != CONFIG_FILE_DEFAULT:
            raise ConfigError(f'config file not found: {path}')
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            cfg = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f'failed to parse {path}: {e}') from e
    if not isinstance(cfg, dict):
        raise ConfigError(f'{path}: top level must be an object')
    log.debug('Loaded config from %s', path)
    return cfg


def _int(name, value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f'{name} must be an integer, got {value!r}') from None


def _float(name, value):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f'{name} must be a number, got {value!r}') from None


def channel_from_dict(data):
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError('channel must be an object')
    unknown = set(data) - {'title', 'link', 'self_link', 'description', 'language', 'ttl'}
    if unknown:
        log.warning('Ignoring unknown channel keys: %s', ', '.join(sorted(unknown)))
    ttl = data.get('ttl')
    if ttl not in (None, ''):
        ttl = _int('channel.ttl', ttl)
        if ttl <= 0:
            raise ConfigError('channel.ttl must be positive')
    else:
        ttl = None
    return ChannelMetadata(
        title=str(data.get('title') or ''),
        link=str(data.get('link') or ''),
        self_link=str(data.get('self_link') or ''),
        description=str(data.get('description') or ''),
        language=str(data.get('language') or ''),
        ttl=ttl,
    )


def build_config(file_values=None, env=None, overrides=None):
    """
    Merge the configuration layers into a FeedConfig.

    overrides holds CLI values; None means "not given". Channel overrides use
    the keys of ChannelMetadata.
    """
    file_values = dict(file_values or {})
    env = os.environ if env is None else env
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    values = {k: file_values[k] for k in ('source', 'output', 'format', 'max_items', 'validate', 'timeout', 'retries')
              if file_values.get(k) is not None}
    for key, var in ENV_VARS.items():
        if env.get(var):
            values[key] = env[var]

    channel_overrides = overrides.pop('channel', {}) or {}
    values.update(overrides)

    fmt = str(values.get('format') or 'rss').lower()
    if fmt not in FORMATS:
        raise ConfigError(f'format must be one of {", ".join(FORMATS)}, got {fmt!r}')
    validate = str(values.get('validate') or 'warn').lower()
    if validate not in VALIDATE_MODES:
        raise ConfigError(f'validate must be one of {", ".join(VALIDATE_MODES)}, got {validate!r}')

    channel = channel_from_dict(file_values.get('channel'))
    channel_overrides = {k: v for k, v in channel_overrides.items() if v is not None}
    if channel_overrides:
        channel = channel_from_dict({**asdict(channel), **channel_overrides})

    return FeedConfig(
        source=str(values.get('source') or ''),
        output=str(values.get('output') or ''),
        format=fmt,
        max_items=_int('max_items', values.get('max_items') or 0),
        validate=validate,
        timeout=_float('timeout', values.get('timeout') or DEFAULT_TIMEOUT),
        retries=_int('retries', values.get('retries') if values.get('retries') is not None else DEFAULT_RETRIES),
        channel=channel,
    )
