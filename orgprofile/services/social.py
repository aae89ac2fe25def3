"""Footer social-media link discovery."""

import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import Tag

from orgprofile.config import ProfileConfig
from orgprofile.models.country_config import SocialLinks
from orgprofile.services.fetcher import FETCH_ERRORS, Fetcher, fetch_url
from orgprofile.services.sanitizer import parse_html

logger = logging.getLogger(__name__)


def _platform_for(href: str, config: ProfileConfig) -> Optional[str]:
    for platform, domains in config.social_platforms.items():
        if any(domain in href for domain in domains):
            return platform
    return None


def find_footer(html: str, config: ProfileConfig) -> List[Tag]:
    """Return every element matched by the first footer selector that matches anything."""
    soup = parse_html(html)
    for selector in config.selectors.footer:
        found = soup.select(selector)
        if found:
            return found
    return []


def parse_footer_social(html: str, url: str, config: ProfileConfig) -> SocialLinks:
    """Map platform → URL for the whitelisted social links inside the footer.

    Share/intent links (``config.social_ignore_patterns``) are skipped.  When
    a platform is linked more than once the last link in the footer wins.
    """
    social: SocialLinks = {}
    footer = find_footer(html, config)
    if not footer:
        logger.warning(
            "No footer found for %s using selectors: %s",
            url,
            ", ".join(config.selectors.footer),
        )
        return social

    whitelist = config.social_whitelist
    for region in footer:
        for a in region.find_all("a", href=True):
            href = str(a["href"]).strip()
            if not any(domain in href for domain in whitelist):
                continue
            if any(pattern in href for pattern in config.social_ignore_patterns):
                continue
            platform = _platform_for(href, config)
            if platform:
                social[platform] = urljoin(url, href)
    return social


async def extract_footer_social(
    url: str,
    config: Optional[ProfileConfig] = None,
    fetch: Optional[Fetcher] = None,
) -> SocialLinks:
    """Fetch *url* and return its footer social links; ``{}`` on any failure."""
    config = config or ProfileConfig()
    logger.info("Extracting social links from footer of %s", url)
    try:
        html = await (fetch or fetch_url)(url)
    except FETCH_ERRORS as exc:
        logger.warning("Social: could not fetch %s – %s", url, exc)
        return {}

    try:
        return parse_footer_social(html, url, config)
    except Exception as exc:
        logger.warning("Social: extraction failed for %s – %s", url, exc)
        return {}
