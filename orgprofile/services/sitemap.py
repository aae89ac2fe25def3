"""Sitemap ingestion: flattens a sitemap or sitemap index into URL entries."""

import logging
from typing import FrozenSet, List, Optional
from xml.etree import ElementTree

from orgprofile.config import ProfileConfig
from orgprofile.models.sitemap_entry import Alternate, SitemapEntry
from orgprofile.services.fetcher import FETCH_ERRORS, Fetcher, fetch_url

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """``{http://www.sitemaps.org/...}url`` → ``url``."""
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _children(elem: ElementTree.Element, name: str) -> List[ElementTree.Element]:
    return [child for child in elem if _local_name(child.tag) == name]


def _loc_text(elem: ElementTree.Element) -> str:
    for child in _children(elem, "loc"):
        if child.text and child.text.strip():
            return child.text.strip()
    return ""


def _parse_alternates(url_elem: ElementTree.Element) -> List[Alternate]:
    """Collect ``<xhtml:link rel="alternate" hreflang=".." href="..">`` children."""
    alternates: List[Alternate] = []
    for link in _children(url_elem, "link"):
        hreflang = link.get("hreflang")
        href = link.get("href")
        if link.get("rel") == "alternate" and hreflang and href:
            alternates.append(Alternate(hreflang=hreflang.strip(), href=href.strip()))
    return alternates


def parse_urlset(root: ElementTree.Element) -> List[SitemapEntry]:
    """Return one :class:`SitemapEntry` per ``<url>`` carrying a ``<loc>``."""
    entries: List[SitemapEntry] = []
    for url_elem in _children(root, "url"):
        loc = _loc_text(url_elem)
        if not loc:
            continue
        entries.append(SitemapEntry(loc=loc, alternates=tuple(_parse_alternates(url_elem))))
    return entries


def parse_sitemap_index(root: ElementTree.Element) -> List[str]:
    """Return child sitemap URLs of a ``<sitemapindex>`` in document order."""
    return [loc for loc in (_loc_text(sm) for sm in _children(root, "sitemap")) if loc]


async def _load_node(
    url: str,
    config: ProfileConfig,
    fetch: Fetcher,
    depth: int,
    ancestors: FrozenSet[str],
) -> List[SitemapEntry]:
    logger.info("Fetching sitemap %s", url)
    try:
        xml_text = await fetch(url)
        root = ElementTree.fromstring(xml_text.lstrip("\ufeff").strip())
    except FETCH_ERRORS as exc:
        logger.warning("Failed to fetch sitemap %s: %s", url, exc)
        return []
    except ElementTree.ParseError as exc:
        logger.warning("Failed to parse sitemap XML %s: %s", url, exc)
        return []

    kind = _local_name(root.tag)
    if kind == "urlset":
        entries = parse_urlset(root)
        logger.info("Found %d URLs in %s", len(entries), url)
        return entries

    if kind != "sitemapindex":
        logger.warning("Unrecognised sitemap root <%s> at %s", kind, url)
        return []

    children = parse_sitemap_index(root)
    logger.info("Found %d sub-sitemaps in %s", len(children), url)

    if depth >= config.max_sitemap_depth:
        logger.warning(
            "Sitemap index %s exceeds maximum depth %d; not descending",
            url,
            config.max_sitemap_depth,
        )
        return []

    path = ancestors | {url}
    results: List[SitemapEntry] = []
    # Sequential, depth-first: one sub-sitemap in flight at a time
    for child in children:
        if child in path:
            logger.warning("Sitemap cycle: %s references ancestor %s; skipping", url, child)
            continue
        results.extend(await _load_node(child, config, fetch, depth + 1, path))
    return results


async def load_sitemap(
    url: str,
    config: Optional[ProfileConfig] = None,
    fetch: Optional[Fetcher] = None,
) -> List[SitemapEntry]:
    """Load *url* and flatten it into an ordered list of :class:`SitemapEntry`.

    Sitemap indexes are followed depth-first, left to right; each child's
    entries are concatenated in child order without deduplication.  A child
    already on the current recursion path is skipped, and nesting deeper than
    ``config.max_sitemap_depth`` is not followed.

    Fetch and XML errors are logged and yield no entries for that node only,
    so an unreachable root returns an empty list.
    """
    return await _load_node(url, config or ProfileConfig(), fetch or fetch_url, 0, frozenset())
