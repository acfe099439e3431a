"""HTML sanitising for guest-submitted text."""

import html
from functools import partial

import bleach
from bleach.linkifier import LinkifyFilter

ALLOWED_TAGS = frozenset(
    {"b", "i", "em", "strong", "a", "br", "p", "ul", "ol", "li", "blockquote", "code"}
)
ALLOWED_ATTRIBUTES = {"a": ["href", "title", "rel"]}
ALLOWED_PROTOCOLS = frozenset({"http", "https"})
LINK_REL = "noopener noreferrer nofollow"


def _force_link_rel(attrs: dict, new: bool = False) -> dict:
    attrs[(None, "rel")] = LINK_REL
    return attrs


_comment_cleaner = bleach.Cleaner(
    tags=ALLOWED_TAGS,
    attributes=ALLOWED_ATTRIBUTES,
    protocols=ALLOWED_PROTOCOLS,
    strip=True,
    filters=[
        partial(
            LinkifyFilter,
            callbacks=[_force_link_rel],
            skip_tags=["code"],
            parse_email=False,
        )
    ],
)


def sanitize_comment_html(html: str) -> str:
    """Allowlist sanitise rich comment HTML; every link gets ``rel=LINK_REL``."""
    return _comment_cleaner.clean(html).strip()


def strip_html(text: str) -> str:
    """Remove every tag, keeping the text content as plain unescaped text."""
    return html.unescape(bleach.clean(text, tags=set(), attributes={}, strip=True)).strip()
