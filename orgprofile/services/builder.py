"""Per-country organisation profiles built from grouped sitemap pages.

Structural fields (locales, pages) are collected synchronously in one pass
over the groups.  Organisation details (homepage, social links, contact) are
then extracted concurrently, one task per country, under a shared
``asyncio.Semaphore``.  Each task returns its own result, and results are
merged into the country records only after every task has finished.
"""

import asyncio
import logging
from typing import Dict, List, NamedTuple, Optional, Sequence
from urllib.parse import urlparse

from orgprofile.config import ProfileConfig
from orgprofile.models.country_config import (
    CountryOrganizationConfig,
    Organization,
    PageEntry,
)
from orgprofile.models.page_group import PageGroup
from orgprofile.services.contact import extract_contact
from orgprofile.services.fetcher import Fetcher, fetch_url
from orgprofile.services.locale import first_segment
from orgprofile.services.social import extract_footer_social

logger = logging.getLogger(__name__)


class Homepage(NamedTuple):
    url: str
    domain: str


class CountryDetails(NamedTuple):
    """Outcome of one country's extraction task."""

    default_locale: str
    base_domain: Optional[str]
    organization: Organization


def collect_countries(
    groups: Sequence[PageGroup],
) -> Dict[str, CountryOrganizationConfig]:
    """One record per country with its locales and pages, in first-seen order."""
    countries: Dict[str, CountryOrganizationConfig] = {}
    for group in groups:
        for loc in group.locales:
            country = countries.get(loc.country_code)
            if country is None:
                country = countries[loc.country_code] = CountryOrganizationConfig(
                    country_code=loc.country_code,
                    default_locale=loc.locale,
                )
            if loc.locale not in country.available_locales:
                country.available_locales.append(loc.locale)
            country.pages.append(PageEntry(page_id=group.page_id, url=loc.url))
    return countries


def find_homepage(
    country_code: str,
    groups: Sequence[PageGroup],
    config: ProfileConfig,
) -> Optional[Homepage]:
    """Derive the homepage from the first URL of *country_code* in *groups*.

    The homepage is ``scheme://host/`` plus the first path segment when that
    segment is a known prefix belonging to the same country.
    """
    for group in groups:
        loc = group.first_for_country(country_code)
        if loc is None:
            continue
        try:
            parsed = urlparse(loc.url)
            hostname = parsed.hostname
        except ValueError:
            continue
        if not parsed.scheme or not hostname:
            continue

        segment = first_segment(parsed.path)
        mapping = config.path_prefix_mapping.get(segment)
        prefix = f"{segment}/" if mapping and mapping.country_code == country_code else ""
        return Homepage(url=f"{parsed.scheme}://{hostname}/{prefix}", domain=hostname)
    return None


def find_contact_page(
    country_code: str,
    groups: Sequence[PageGroup],
    config: ProfileConfig,
) -> Optional[str]:
    """Return the URL of this country's best contact page.

    Patterns are tried in configured order; the first pattern matching any
    page (by URL or page id, case-insensitive) decides.
    """
    for pattern in config.contact_page_patterns:
        needle = pattern.lower()
        for group in groups:
            loc = group.first_for_country(country_code)
            if loc is None:
                continue
            if needle in loc.url.lower() or needle in group.page_id.lower():
                return loc.url
    return None


async def _extract_country(
    country: CountryOrganizationConfig,
    groups: Sequence[PageGroup],
    config: ProfileConfig,
    fetch: Fetcher,
) -> Optional[CountryDetails]:
    code = country.country_code
    homepage = find_homepage(code, groups, config)
    if homepage is None:
        logger.warning("Could not determine homepage for country %s", code)
        return None

    default_locale = country.default_locale
    mapping = config.country_mapping.get(homepage.domain)
    if mapping is not None:
        default_locale = mapping.default_locale

    organization = Organization(url=homepage.url)
    organization.social = await extract_footer_social(homepage.url, config, fetch)

    contact_url = find_contact_page(code, groups, config)
    if contact_url:
        organization.contact = await extract_contact(contact_url, code, config, fetch)
    else:
        logger.warning("No contact page found for %s in sitemap", code)

    return CountryDetails(default_locale, homepage.domain, organization)


async def build_country_configs(
    groups: Sequence[PageGroup],
    config: Optional[ProfileConfig] = None,
    fetch: Optional[Fetcher] = None,
) -> List[CountryOrganizationConfig]:
    """Build one :class:`CountryOrganizationConfig` per country in *groups*.

    At most ``config.max_concurrent_requests`` country tasks run at once;
    further tasks wait for a free slot.  A country whose extraction fails
    keeps its locales and pages with an empty organisation.
    """
    config = config or ProfileConfig()
    fetch = fetch or fetch_url
    countries = collect_countries(groups)
    semaphore = asyncio.Semaphore(config.max_concurrent_requests)

    async def _bounded(country: CountryOrganizationConfig) -> Optional[CountryDetails]:
        async with semaphore:
            logger.info("Extracting organisation details for %s", country.country_code)
            return await _extract_country(country, groups, config, fetch)

    results = await asyncio.gather(
        *(_bounded(country) for country in countries.values()),
        return_exceptions=True,
    )

    built: List[CountryOrganizationConfig] = []
    for country, result in zip(countries.values(), results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            logger.error("Extraction for %s failed: %s", country.country_code, result)
            result = None
        if result is not None:
            country = country.model_copy(
                update={
                    "default_locale": result.default_locale,
                    "base_domain": result.base_domain,
                    "organization": result.organization,
                }
            )
        built.append(country)
    return built
