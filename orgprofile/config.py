"""Static lookup tables and tunables, bundled into one immutable value.

Every service receives a :class:`ProfileConfig` explicitly; nothing here is
mutated at runtime.  :func:`load_config` builds the value used by the HTTP
app, optionally replacing the defaults with a JSON file.
"""

import logging
import os
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "ORGPROFILE_CONFIG"
MAX_CONCURRENT_ENV = "ORGPROFILE_MAX_CONCURRENT_REQUESTS"
MAX_CONCURRENT_LIMIT = 20


class LocaleMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    country_code: str
    default_locale: str


class Selectors(BaseModel):
    model_config = ConfigDict(frozen=True)

    footer: Tuple[str, ...] = (
        "footer",
        ".footer",
        "#footer",
        ".site-footer",
        ".footer-link-wrapper",
        ".footer-bottom",
        ".section_footer",
    )
    nav: Tuple[str, ...] = (
        "nav",
        ".navbar",
        ".nav",
        ".main-nav",
        "header",
        ".w-nav",
        ".navbar_component",
    )
    address: Tuple[str, ...] = (
        "address",
        ".address",
        ".contact-address",
        ".footer-address",
    )
    email: Tuple[str, ...] = (
        ".email",
        ".contact-email",
        ".mail",
        ".contact-info-email",
    )


def _m(country_code: str, default_locale: str) -> LocaleMapping:
    return LocaleMapping(country_code=country_code, default_locale=default_locale)


_COUNTRY_MAPPING = {
    "uk.example.com": _m("UK", "en-GB"),
    "de.example.com": _m("DE", "de-DE"),
    "fr.example.com": _m("FR", "fr-FR"),
    "www.example.com": _m("US", "en-US"),
    "www.smallerearth.com": _m("WW", "en-US"),
}

_PATH_PREFIX_MAPPING = {
    "uk": _m("UK", "en-GB"),
    "cz": _m("CZ", "cs-CZ"),
    "hu": _m("HU", "hu-HU"),
    "pl": _m("PL", "pl-PL"),
    "sk": _m("SK", "sk-SK"),
    "mx": _m("MX", "es-MX"),
    "cl": _m("CL", "es-CL"),
    "pe": _m("PE", "es-PE"),
    "br": _m("BR", "pt-BR"),
    "co": _m("CO", "es-CO"),
    "nz": _m("NZ", "en-NZ"),
    "au": _m("AU", "en-AU"),
    "us": _m("US", "en-US"),
    "ie": _m("IE", "en-IE"),
    "de": _m("DE", "de-DE"),
    "es": _m("ES", "es-ES"),
    "rosa": _m("ROSA", "es-419"),
    "ww": _m("WW", "en-US"),
    "eu": _m("EU", "en-EU"),
}

# Reference data only: hreflang never decides the country of a literal URL.
_HREFLANG_MAPPING = {
    "en-IE": _m("IE", "en-IE"),
    "en-AU": _m("AU", "en-AU"),
    "en-NZ": _m("NZ", "en-NZ"),
    "de-DE": _m("DE", "de-DE"),
    "es-ES": _m("ES", "es-ES"),
    "hu": _m("HU", "hu-HU"),
    "pl": _m("PL", "pl-PL"),
    "sk": _m("SK", "sk-SK"),
    "es-MX": _m("MX", "es-MX"),
    "es-CO": _m("CO", "es-CO"),
    "en-FR": _m("EU", "en-EU"),
    "en": _m("WW", "en-US"),
    "es-AR": _m("ROSA", "es-419"),
    "nl": _m("NL", "nl-NL"),
    "cs": _m("CZ", "cs-CZ"),
    "en-ZA": _m("ZA", "en-ZA"),
    "en-US": _m("US", "en-US"),
    "en-GB": _m("UK", "en-GB"),
}

_CONTACT_PAGE_PATTERNS = (
    "/contact",
    "/kontakt",
    "/contact-us",
    "/contactus",
    "/nous-contacter",
    "/o-nas/kontakty",
    "/about/contact",
    "/kapcsolat",
    "/contato",
    "/mais-informacao/contato",
    "/rolunk/kapcsolat",
    "/get-in-touch",
    "/reach-us",
    "/connect",
    "/support",
    "/help",
    "/acerca-de/contactenos",
    "/nosotros/contactanos",
    "/about/contact-us",
)

# Ordered: the first platform whose domain appears in a link claims it.
_SOCIAL_PLATFORMS = {
    "facebook": ("facebook.com",),
    "instagram": ("instagram.com",),
    "youtube": ("youtube.com",),
    "linkedin": ("linkedin.com",),
    "tiktok": ("tiktok.com",),
    "x": ("x.com", "twitter.com"),
    "pinterest": ("pinterest.com",),
}

_CALLING_CODES = {
    "CZ": "+420",
    "HU": "+36",
    "PL": "+48",
    "SK": "+421",
    "MX": "+52",
    "CL": "+56",
    "PE": "+51",
    "BR": "+55",
    "CO": "+57",
    "NZ": "+64",
    "AU": "+61",
    "UK": "+44",
    "US": "+1",
    "CA": "+1",
    "IE": "+353",
    "DE": "+49",
    "FR": "+33",
    "ES": "+34",
}

# Optional "+" or "00", then 6-15 digits with single space/dot/dash separators
_PHONE_PATTERN = r"(?<![\d+])(?:\+|00)?\d(?:[ .\-]?\d){5,14}(?!\d)"


class ProfileConfig(BaseModel):
    """Every lookup table and limit the pipeline consults."""

    model_config = ConfigDict(frozen=True)

    country_mapping: Dict[str, LocaleMapping] = Field(default_factory=lambda: dict(_COUNTRY_MAPPING))
    path_prefix_mapping: Dict[str, LocaleMapping] = Field(
        default_factory=lambda: dict(_PATH_PREFIX_MAPPING)
    )
    hreflang_mapping: Dict[str, LocaleMapping] = Field(default_factory=lambda: dict(_HREFLANG_MAPPING))
    contact_page_patterns: Tuple[str, ...] = _CONTACT_PAGE_PATTERNS
    selectors: Selectors = Field(default_factory=Selectors)
    social_platforms: Dict[str, Tuple[str, ...]] = Field(default_factory=lambda: dict(_SOCIAL_PLATFORMS))
    social_ignore_patterns: Tuple[str, ...] = ("sharer.php", "/share", "intent/tweet")
    calling_codes: Dict[str, str] = Field(default_factory=lambda: dict(_CALLING_CODES))
    foreign_calling_prefixes: Tuple[str, ...] = ("1", "44")
    phone_pattern: str = _PHONE_PATTERN
    url_ignore_patterns: Tuple[str, ...] = ("review", "copy")
    max_concurrent_requests: int = Field(default=5, ge=1, le=MAX_CONCURRENT_LIMIT)
    max_sitemap_depth: int = Field(default=5, ge=1)
    unknown_country: str = "Unknown"
    fallback_locale: str = "en-US"

    @property
    def social_whitelist(self) -> List[str]:
        return [domain for domains in self.social_platforms.values() for domain in domains]


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def load_config() -> ProfileConfig:
    """Return the active configuration.

    ``ORGPROFILE_CONFIG`` may name a JSON file whose keys replace the
    defaults; ``ORGPROFILE_MAX_CONCURRENT_REQUESTS`` overrides the cap on
    simultaneous per-country extraction tasks.
    """
    config = ProfileConfig()

    path = os.environ.get(CONFIG_PATH_ENV)
    if path:
        try:
            with open(path, encoding="utf-8") as fh:
                config = ProfileConfig.model_validate_json(fh.read())
        except (OSError, ValidationError) as exc:
            logger.warning("Could not load config from %s, using defaults: %s", path, exc)

    cap = _env_int(MAX_CONCURRENT_ENV, config.max_concurrent_requests)
    if cap != config.max_concurrent_requests and 1 <= cap <= MAX_CONCURRENT_LIMIT:
        config = config.model_copy(update={"max_concurrent_requests": cap})
    elif cap != config.max_concurrent_requests:
        logger.warning("Ignoring out-of-range %s=%d", MAX_CONCURRENT_ENV, cap)
    return config
