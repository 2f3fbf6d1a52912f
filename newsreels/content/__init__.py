"""Content normalization helpers."""

from .fingerprint import (
    normalize_url,
    resolve_link,
    normalize_text,
    fingerprint,
    normalize_hashtags,
)

__all__ = [
    "normalize_url",
    "resolve_link",
    "normalize_text",
    "fingerprint",
    "normalize_hashtags",
]
