"""Standalone document assembly for generated code"""

import re
from typing import Optional

_SCRIPT_CLOSE = re.compile(r"</(script)", re.IGNORECASE)


def compose_document(html: str, css: Optional[str] = None, js: Optional[str] = None) -> str:
    """
    Combine generated html, css and js into one self-contained document.

    The js runs inside a try/catch wrapper; any `</script` in it is escaped so
    it cannot end the inline script early.
    """
    safe_js = _SCRIPT_CLOSE.sub(r"<\\/\1", js or "")
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\" />\n"
        "<meta name=\"viewport\" content=\"width=device-width,initial-scale=1\" />\n"
        f"<style>{css or ''}</style></head><body>{html or ''}\n"
        f"<script>(function(){{try{{{safe_js}}}catch(e){{console.error(e)}}}})()</script>\n"
        "</body></html>"
    )
