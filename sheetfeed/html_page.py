# sheetfeed/html_page.py
"""Static HTML page variant: one card per feed item."""

import re
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from .render import escape_attr, escape_text, escape_url, strip_control

STYLE = """
    body {
      font-family: system-ui, sans-serif;
      background-color: #f9f9f9;
      margin: 0 auto;
      padding: 2rem;
      max-width: 800px;
    }
    h1 { font-size: 2rem; margin-bottom: 2rem; color: #333; }
    .story {
      background: #fff;
      padding: 1rem 1.25rem;
      border-left: 4px solid #007acc;
      margin-bottom: 1.5rem;
      box-shadow: 0 1px 3px rgba(0,0,0,0.05);
    }
    .story h2 { margin: 0 0 0.4rem 0; font-size: 1.2rem; line-height: 1.4; }
    .story h2 a { text-decoration: none; color: #007acc; }
    .story h2 a:hover { text-decoration: underline; }
    .story img { max-width: 100%; height: auto; }
    .meta { font-size: 0.85rem; color: #666; margin-bottom: 0.5rem; }
    .summary { font-size: 0.95rem; color: #333; }
    footer { font-size: 0.8rem; color: #999; }
"""

_unsafe_tags = ['script', 'style', 'iframe', 'object', 'embed', 'form', 'meta', 'base', 'link']
_url_attrs = ('href', 'src', 'action', 'formaction', 'xlink:href', 'poster', 'background')
_unsafe_schemes = ('javascript:', 'vbscript:', 'data:')
# browsers ignore ASCII whitespace and control characters inside a scheme
_scheme_noise_re = re.compile(r'[\x00-\x20\x7f]+')


def unsafe_url(value):
    compact = _scheme_noise_re.sub('', str(value)).lower()
    return compact.startswith(_unsafe_schemes)


def clean_markup(markup):
    """Drop active content from description HTML, keep the rest as-is."""
    if not markup:
        return ''
    soup = BeautifulSoup(strip_control(markup), 'html.parser')
    for tag in soup(_unsafe_tags):
        tag.decompose()
    for tag in soup.find_all(True):
        for name in list(tag.attrs):
            value = tag.attrs[name]
            if name.lower().startswith('on'):
                del tag.attrs[name]
            elif name.lower() in _url_attrs and unsafe_url(value):
                del tag.attrs[name]
    return str(soup).strip()


def display_date(dt):
    return dt.astimezone(timezone.utc).strftime('%b %d, %Y')


def render_card(item):
    meta = [escape_text(item.source)] if item.source else []
    meta.append(f'<time datetime="{item.pub_date.isoformat()}">{display_date(item.pub_date)}</time>')
    lines = ['    <article class="story">']
    lines.append(f'      <h2><a href="{escape_url(item.link, attr=True)}">{escape_text(item.title)}</a></h2>')
    lines.append(f'      <div class="meta">{" &bull; ".join(meta)}</div>')
    if item.image:
        lines.append(f'      <img src="{escape_url(item.image, attr=True)}" alt="" />')
    summary = clean_markup(item.description)
    if summary:
        lines.append(f'      <div class="summary">{summary}</div>')
    lines.append('    </article>')
    return '\n'.join(lines)


def render_html(items, channel, now=None):
    """Render finalized items as a self-contained HTML document."""
    now = now or datetime.now(timezone.utc)
    title = escape_text(channel.title or 'Feed')
    lang = escape_attr((channel.language or 'en').split('-')[0])
    head = [
        '<!DOCTYPE html>',
        f'<html lang="{lang}">',
        '<head>',
        '  <meta charset="UTF-8" />',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0" />',
        f'  <title>{title}</title>',
    ]
    if channel.description:
        head.append(f'  <meta name="description" content="{escape_attr(channel.description)}" />')
    if channel.self_link:
        head.append(
            f'  <link rel="alternate" type="application/rss+xml" title="{title}" '
            f'href="{escape_url(channel.self_link, attr=True)}" />'
        )
    head.append(f'  <style>{STYLE}  </style>')
    head.append('</head>')

    body = ['<body>', '  <main>', f'    <h1>{title}</h1>']
    body.extend(render_card(item) for item in items)
    body.append('  </main>')
    body.append(f'  <footer>Updated {now.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")}</footer>')
    body.append('</body>')
    body.append('</html>')
    return '\n'.join(head + body) + '\n'
