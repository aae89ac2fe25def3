"""URL → (country, locale) resolution from hostname and path-prefix tables."""

from typing import NamedTuple, Optional
from urllib.parse import urlparse

from orgprofile.config import LocaleMapping, ProfileConfig


class LocaleMatch(NamedTuple):
    country_code: str
    locale: str


def first_segment(path: str) -> str:
    """Return the first non-empty path segment of *path*, or ``""``."""
    for part in path.split("/"):
        if part:
            return part
    return ""


def prefix_mapping(path: str, config: ProfileConfig) -> Optional[LocaleMapping]:
    """Return the path-prefix mapping for the first segment of *path*, if known."""
    segment = first_segment(path)
    if not segment:
        return None
    return config.path_prefix_mapping.get(segment)


def resolve_locale(url: str, config: ProfileConfig) -> LocaleMatch:
    """Map *url* to its country and locale.

    Exact hostname match wins, then the first path segment; anything else
    falls back to ``config.unknown_country`` / ``config.fallback_locale``.
    Never raises.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname or ""
    except ValueError:
        return LocaleMatch(config.unknown_country, config.fallback_locale)

    mapping = config.country_mapping.get(hostname) or prefix_mapping(parsed.path, config)
    if mapping is None:
        return LocaleMatch(config.unknown_country, config.fallback_locale)
    return LocaleMatch(mapping.country_code, mapping.default_locale)
