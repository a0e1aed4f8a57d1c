"""HTML escaping for server-rendered pages"""

import html

import bleach


def escape_html(text: str) -> str:
    """Escape HTML entities in text interpolated into a page body"""
    return bleach.clean(text, tags=[], attributes={}, strip=False)


def escape_attribute(text: str) -> str:
    """
    Escape text for a double-quoted attribute value such as iframe srcdoc.

    The browser decodes the attribute back to exactly the original text.
    """
    return html.escape(text, quote=True)
