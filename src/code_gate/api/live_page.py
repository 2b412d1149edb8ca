"""
Minimal live review page. It polls the status endpoint and renders the
completed items as plain text; visual layout is intentionally bare.
"""
import html
from typing import List, Optional

from ..models.review import ReviewItem, ReviewRunInfo

POLL_INTERVAL_MS = 1500

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; margin: 2rem; }}
pre {{ background: #f6f8fa; padding: 1rem; overflow-x: auto; white-space: pre-wrap; }}
.meta {{ color: #555; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p class="meta">{meta}</p>
<p id="state">Reviewing...</p>
<div id="items">{items}</div>
<script>
const statusUrl = window.location.pathname.replace(/\\/$/, "") + "/status";

function render(files) {{
  const root = document.getElementById("items");
  root.innerHTML = "";
  for (const item of files) {{
    const section = document.createElement("section");
    const h = document.createElement("h2");
    h.textContent = item.file;
    const review = document.createElement("pre");
    review.textContent = item.review;
    const diff = document.createElement("pre");
    diff.textContent = item.diff;
    section.append(h, review, diff);
    root.appendChild(section);
  }}
}}

async function poll() {{
  try {{
    const res = await fetch(statusUrl, {{ cache: "no-store" }});
    if (!res.ok) return;
    const status = await res.json();
    render(status.files);
    if (status.done) {{
      document.getElementById("state").textContent = "Review complete.";
      return;
    }}
  }} catch (e) {{
    document.getElementById("state").textContent = "Live server unavailable.";
    return;
  }}
  setTimeout(poll, {interval});
}}

if (window.location.protocol.startsWith("http")) {{ poll(); }}
else {{ document.getElementById("state").textContent = ""; }}
</script>
</body>
</html>
"""


def _render_items(items: List[ReviewItem]) -> str:
    parts = []
    for item in items:
        parts.append(
            f"<section><h2>{html.escape(item.file)}</h2>"
            f"<pre>{html.escape(item.review)}</pre>"
            f"<pre>{html.escape(item.diff)}</pre></section>"
        )
    return "\n".join(parts)


def render_live_page(review_id: str, info: ReviewRunInfo, items: Optional[List[ReviewItem]] = None) -> str:
    """Page for /review/<id>. `items` are pre-rendered for static (file://) viewing."""
    items = items or []
    meta = " | ".join(part for part in [
        f"{info.provider} / {info.model}",
        info.datetime,
        info.subtitle,
        info.status,
    ] if part)
    return PAGE_TEMPLATE.format(
        title=html.escape(f"Code Review {review_id}"),
        meta=html.escape(meta),
        items=_render_items(items),
        interval=POLL_INTERVAL_MS,
    )
