"""
Canonical forms for links, text and hashtags.

normalize_url is the dedup key for scraped items; fingerprint builds the
ResultCache keys for generation requests.
"""

import hashlib
from typing import Iterable, List, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

TRACKING_PREFIXES = ("utm_", "fbclid", "gclid")


def normalize_url(url: str) -> str:
    """
    Canonicalize an article link.

    Lower-cases scheme and host, drops the fragment and tracking query
    parameters (utm_*, fbclid*, gclid*), and strips a trailing slash.

    Raises:
        ValueError: If the link is not an absolute http(s) URL
    """
    parts = urlsplit((url or "").strip())
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Not an absolute http(s) URL: {url!r}")

    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not key.lower().startswith(TRACKING_PREFIXES)
    ]

    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path.rstrip("/"),
        urlencode(query),
        "",
    ))


def resolve_link(href: str, base_url: str) -> str:
    """Absolute links are kept, relative ones are joined onto ``base_url``."""
    parts = urlsplit(href or "")
    if parts.scheme and parts.netloc:
        return href
    return urljoin(base_url, href)


def normalize_text(text: Optional[str]) -> str:
    return " ".join((text or "").strip().lower().split())


def fingerprint(tag: str, *parts: Optional[str], prefix: Optional[int] = None) -> str:
    """
    Stable cache key for a generation request.

    Each part is normalized and, when ``prefix`` is given, cut to its first
    ``prefix`` characters before hashing, so requests that differ only in
    whitespace or case share a key.

    Example:
        >>> fingerprint("image", "A  Sunset", prefix=400) == fingerprint("image", "a sunset")
        True
    """
    h = hashlib.sha1()
    for part in parts:
        text = normalize_text(part)
        if prefix is not None:
            text = text[:prefix]
        h.update(text.encode("utf-8"))
        h.update(b"\x1f")
    return f"{tag}:{h.hexdigest()}"


def normalize_hashtags(tags: Iterable[str]) -> List[str]:
    """Lower-case, '#'-prefixed, de-duplicated; first occurrence wins."""
    seen = set()
    result = []
    for tag in tags or []:
        cleaned = "".join(str(tag).strip().lower().split()).lstrip("#")
        if not cleaned:
            continue
        cleaned = f"#{cleaned}"
        if cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result
