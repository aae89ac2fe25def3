"""Orchestration: sitemap → page groups → per-country organisation profiles."""

import logging
from typing import List, NamedTuple, Optional

from orgprofile.config import ProfileConfig
from orgprofile.models.country_config import CountryOrganizationConfig
from orgprofile.models.page_group import PageGroup
from orgprofile.models.sitemap_entry import SitemapEntry
from orgprofile.services.builder import build_country_configs
from orgprofile.services.fetcher import Fetcher
from orgprofile.services.grouper import group_pages
from orgprofile.services.sitemap import load_sitemap

logger = logging.getLogger(__name__)


class EmptySitemapError(RuntimeError):
    """The root sitemap yielded no URL entries at all."""


class ProfileResult(NamedTuple):
    entries: List[SitemapEntry]
    groups: List[PageGroup]
    countries: List[CountryOrganizationConfig]


async def build_profile(
    sitemap_url: str,
    config: Optional[ProfileConfig] = None,
    fetch: Optional[Fetcher] = None,
) -> ProfileResult:
    """Run the whole pipeline for *sitemap_url*.

    Raises:
        EmptySitemapError: if the sitemap (or every sub-sitemap) could not be
            loaded or listed no URLs.
    """
    config = config or ProfileConfig()

    # ── 1. Sitemap ────────────────────────────────────────────────────────────
    entries = await load_sitemap(sitemap_url, config, fetch)
    if not entries:
        raise EmptySitemapError(f"No URLs could be loaded from {sitemap_url}")
    logger.info("Pipeline: %d sitemap entries from %s", len(entries), sitemap_url)

    # ── 2. Grouping ───────────────────────────────────────────────────────────
    groups = group_pages(entries, config)
    logger.info("Pipeline: identified %d logical page groups", len(groups))

    # ── 3. Country profiles ───────────────────────────────────────────────────
    countries = await build_country_configs(groups, config, fetch)
    logger.info("Pipeline: built %d country configurations", len(countries))

    return ProfileResult(entries, groups, countries)
