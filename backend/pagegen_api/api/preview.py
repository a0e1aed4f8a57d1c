"""GET /preview/{page_id} endpoint"""

import logging
from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from pagegen_api.core.page_store import page_store
from pagegen_api.utils.sanitization import escape_attribute, escape_html

router = APIRouter()
logger = logging.getLogger(__name__)

PREVIEW_HEADERS = {
    "Cache-Control": "no-store",
    "X-Content-Type-Options": "nosniff",
}

# allow-scripts without allow-same-origin: the page runs in an opaque origin
# and cannot reach this host's cookies or storage.
SANDBOXED_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width,initial-scale=1">
<title>{title}</title>
<style>html,body{{margin:0;height:100%}}iframe{{position:fixed;inset:0;width:100vw;height:100vh;border:0}}</style>
</head>
<body>
<iframe sandbox="allow-scripts" srcdoc="{srcdoc}" title="{title}"></iframe>
</body>
</html>
"""

NOT_AVAILABLE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Preview not available</title>
</head>
<body style="font-family:system-ui,sans-serif;display:grid;place-items:center;min-height:100vh;margin:0">
<main style="max-width:36rem;text-align:center;padding:2rem">
<h1>Preview not available</h1>
<p>{title} has no generated HTML yet. Try regenerating from the home page.</p>
<a href="/">Go home</a>
</main>
</body>
</html>
"""

NOT_FOUND_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Page not found</title>
</head>
<body style="font-family:system-ui,sans-serif;display:grid;place-items:center;min-height:100vh;margin:0">
<main style="max-width:36rem;text-align:center;padding:2rem">
<h1>Page not found</h1>
<p>This preview does not exist or the server has restarted since it was generated.</p>
<a href="/">Go home</a>
</main>
</body>
</html>
"""


@router.get("/preview/{page_id}", response_class=HTMLResponse)
async def get_preview(page_id: str) -> HTMLResponse:
    """
    Render a generated page.

    Pages with HTML are shown in a script-enabled, origin-less sandbox; pages
    without HTML get a fallback notice; unknown ids get a 404 page.
    """
    page = page_store.get(page_id)
    if page is None:
        logger.info(f"Preview requested for unknown page {page_id}")
        return HTMLResponse(content=NOT_FOUND_TEMPLATE, status_code=404, headers=PREVIEW_HEADERS)

    title = escape_html(page.title)
    if page.html and page.html.strip():
        content = SANDBOXED_TEMPLATE.format(title=title, srcdoc=escape_attribute(page.html))
    else:
        content = NOT_AVAILABLE_TEMPLATE.format(title=title)
    return HTMLResponse(content=content, headers=PREVIEW_HEADERS)
