from __future__ import annotations

import html
import re


DESCRIPTION_MAX_CHARS = 1000
PREVIEW_CHARS = 200
ELLIPSIS = "..."

_REMOTE_RE = re.compile(r"remote", re.I)


def clean_text(text: str) -> str:
    """Collapse whitespace and decode HTML entities (&amp;, &nbsp;, &#39; ...)."""
    if not text:
        return ""
    text = html.unescape(str(text)).replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, max_chars: int, marker: str = ELLIPSIS) -> str:
    if len(text) > max_chars:
        return text[:max_chars] + marker
    return text


def is_remote(*parts: str) -> bool:
    return bool(_REMOTE_RE.search(" ".join(p or "" for p in parts)))


def title_from_slug(slug: str) -> str:
    # "acme-corp" -> "Acme Corp"
    words = re.sub(r"[-_]+", " ", slug or "").split()
    return " ".join(w.capitalize() for w in words)
