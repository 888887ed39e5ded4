# sheetfeed/render.py
"""RSS 2.0 serialization with explicit escaping and CDATA handling."""

import re
from datetime import datetime, timezone
from email.utils import format_datetime

from . import __version__
from .normalize import is_absolute_url

ATOM_NS = 'http://www.w3.org/2005/Atom'
GENERATOR = f'sheetfeed {__version__}'

# characters XML 1.0 does not allow (apart from \t \n \r), plus lone surrogates and U+FFFE/U+FFFF
_control_re = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F\uD800-\uDFFF\uFFFE\uFFFF]')
_bare_amp_re = re.compile(r'&(?!(?:amp|lt|gt|quot|apos|#[0-9]+|#[xX][0-9A-Fa-f]+);)')


def strip_control(s):
    return _control_re.sub('', s or '')


def escape_text(s):
    # & must go first or the later substitutions would be escaped twice
    s = strip_control(s)
    return s.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;')


def escape_attr(s):
    return escape_text(s).replace('"', '&quot;')


def escape_url(s, attr=False):
    """Escape a URL body without re-escaping entity references already in it."""
    s = strip_control(s).replace('\r', '').replace('\n', '')
    s = _bare_amp_re.sub('&amp;', s)
    s = s.replace('<', '&lt;').replace('>', '&gt;')
    if attr:
        s = s.replace('"', '&quot;')
    return s


def cdata(s):
    s = strip_control(s).replace(']]>', ']]]]><![CDATA[>')
    return f'<![CDATA[{s}]]>'


def rfc822(dt):
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def item_description(item):
    """Summary markup with the optional image before it and source line after it."""
    parts = []
    if item.image:
        parts.append(f'<p><img src="{escape_url(item.image, attr=True)}" alt="" /></p>')
    if item.description:
        parts.append(item.description)
    if item.source:
        parts.append(f'<p><em>Source: {escape_text(item.source)}</em></p>')
    return '\n'.join(parts)


def _element(tag, body, indent):
    return f'{indent}<{tag}>{body}</{tag}>'


def render_item(item, indent='    '):
    inner = indent + '  '
    permalink = 'true' if is_absolute_url(item.guid) else 'false'
    lines = [f'{indent}<item>']
    lines.append(_element('title', escape_text(item.title), inner))
    lines.append(_element('link', escape_url(item.link), inner))
    lines.append(f'{inner}<guid isPermaLink="{permalink}">{escape_url(item.guid)}</guid>')
    lines.append(_element('pubDate', rfc822(item.pub_date), inner))
    description = item_description(item)
    if description:
        lines.append(_element('description', cdata(description), inner))
    lines.append(f'{indent}</item>')
    return '\n'.join(lines)


def render_channel_head(channel, now, indent='    '):
    lines = []
    if channel.title:
        lines.append(_element('title', escape_text(channel.title), indent))
    if channel.link:
        lines.append(_element('link', escape_url(channel.link), indent))
    if channel.self_link:
        lines.append(
            f'{indent}<atom:link href="{escape_url(channel.self_link, attr=True)}" '
            f'rel="self" type="application/rss+xml" />'
        )
    if channel.description:
        lines.append(_element('description', escape_text(channel.description), indent))
    if channel.language:
        lines.append(_element('language', escape_text(channel.language), indent))
    if channel.ttl:
        lines.append(_element('ttl', str(int(channel.ttl)), indent))
    lines.append(_element('lastBuildDate', rfc822(now), indent))
    lines.append(_element('generator', escape_text(GENERATOR), indent))
    return lines


def render_rss(items, channel, now=None):
    """Serialize finalized items into one RSS 2.0 document."""
    now = now or datetime.now(timezone.utc)
    ns = f' xmlns:atom="{ATOM_NS}"' if channel.self_link else ''
    out = ['<?xml version="1.0" encoding="UTF-8"?>', f'<rss version="2.0"{ns}>', '  <channel>']
    out.extend(render_channel_head(channel, now))
    for item in items:
        out.append(render_item(item))
    out.append('  </channel>')
    out.append('</rss>')
    return '\n'.join(out) + '\n'
