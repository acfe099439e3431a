"""Slug generation."""

import uuid

from slugify import slugify

MAX_BASE_LENGTH = 200
SLUG_ATTEMPTS = 5


def simple_slug(title: str) -> str:
    """Deterministic slug without a random suffix (used for tags)."""
    return slugify(title, max_length=MAX_BASE_LENGTH, word_boundary=True)


def generate_slug(title: str) -> str:
    """``slugify(title)`` plus an 8-hex random suffix.

    >>> generate_slug("Hello World!")[:12]
    'hello-world-'
    """
    base = simple_slug(title) or "untitled"
    return f"{base}-{uuid.uuid4().hex[:8]}"
