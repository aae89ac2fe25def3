"""Groups per-locale sitemap URLs into logical pages.

Every entry is assigned a *page id*: the path of its canonical URL with the
trailing slash and any leading locale prefix removed.  Entries for the same
page in different locales (``/uk/contact``, ``/de/contact``, or the same path
on different country hosts) therefore land in the same :class:`PageGroup`.
"""

import logging
from typing import Dict, Iterable, List
from urllib.parse import urlparse

from orgprofile.config import ProfileConfig
from orgprofile.models.page_group import PageGroup, PageLocale
from orgprofile.models.sitemap_entry import SitemapEntry
from orgprofile.services.locale import prefix_mapping, resolve_locale

logger = logging.getLogger(__name__)

# hreflang values tried, in order, before falling back to the first alternate
_CANONICAL_HREFLANGS = ("x-default", "en-GB", "en-US")


def is_ignored(value: str, config: ProfileConfig) -> bool:
    """Return True when *value* contains any URL ignore pattern (case-insensitive)."""
    lowered = value.lower()
    return any(pattern.lower() in lowered for pattern in config.url_ignore_patterns)


def canonical_url(entry: SitemapEntry) -> str:
    """Pick the URL whose path identifies *entry*'s logical page."""
    if not entry.alternates:
        return entry.loc
    for hreflang in _CANONICAL_HREFLANGS:
        for alternate in entry.alternates:
            if alternate.hreflang == hreflang:
                return alternate.href
    return entry.alternates[0].href


def derive_page_id(url: str, config: ProfileConfig) -> str:
    """Return the locale-free path of *url*.

    Raises:
        ValueError: if *url* has no scheme and host.
    """
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Not an absolute URL: {url!r}")
    return page_id_from_path(parsed.path, config)


def page_id_from_path(path: str, config: ProfileConfig) -> str:
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]

    parts = [part for part in path.split("/") if part]
    if parts and prefix_mapping(path, config) is not None:
        path = "/" + "/".join(parts[1:])

    return path or "/"


def group_pages(
    entries: Iterable[SitemapEntry],
    config: ProfileConfig,
) -> List[PageGroup]:
    """Group *entries* by page id, in sitemap encounter order.

    Entries whose literal URL or page id contains an ignore pattern are
    dropped.  Malformed URLs are skipped with a warning.  Within a group a
    URL appears at most once.
    """
    groups: Dict[str, PageGroup] = {}

    for entry in entries:
        url = entry.loc
        if is_ignored(url, config):
            logger.debug("Grouper: ignoring %s", url)
            continue

        try:
            match = resolve_locale(url, config)
            page_id = derive_page_id(canonical_url(entry), config)
        except ValueError as exc:
            logger.warning("Grouper: skipping invalid URL %s – %s", url, exc)
            continue

        if is_ignored(page_id, config):
            logger.debug("Grouper: ignoring %s (page id %s)", url, page_id)
            continue

        group = groups.get(page_id)
        if group is None:
            group = groups[page_id] = PageGroup(page_id=page_id)

        if not group.has_url(url):
            group.locales.append(
                PageLocale(locale=match.locale, country_code=match.country_code, url=url)
            )

    logger.info("Grouper: %d page groups from sitemap entries", len(groups))
    return list(groups.values())
