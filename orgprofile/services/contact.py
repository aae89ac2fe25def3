"""Contact-page heuristics: telephone, email and postal address."""

import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import unquote

from bs4 import BeautifulSoup, Tag

from orgprofile.config import ProfileConfig
from orgprofile.models.country_config import OrganizationAddress, OrganizationContact
from orgprofile.services.fetcher import FETCH_ERRORS, Fetcher, fetch_url
from orgprofile.services.sanitizer import (
    collapse_whitespace,
    parse_html,
    strip_invisible,
    visible_text,
)

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_NON_DIGIT_RE = re.compile(r"\D")


def _digits(value: str) -> str:
    """Dialable digits of *value*, with an international "00" prefix dropped."""
    digits = _NON_DIGIT_RE.sub("", value)
    if value.lstrip().startswith("00"):
        digits = digits[2:]
    return digits


def _link_targets(soup: BeautifulSoup, scheme: str) -> List[str]:
    """Return the decoded targets of ``<a href="{scheme}...">`` links in document order."""
    targets: List[str] = []
    for a in soup.find_all("a", href=True):
        href = str(a["href"]).strip()
        if href[: len(scheme)].lower() != scheme:
            continue
        target = unquote(href[len(scheme):]).strip()
        if target:
            targets.append(target)
    return targets


def _matching_calling_code(
    candidates: Sequence[str],
    country_code: Optional[str],
    config: ProfileConfig,
) -> Optional[str]:
    """Return the first candidate dialled with *country_code*'s calling code."""
    calling_code = config.calling_codes.get(country_code or "")
    if not calling_code:
        return None
    prefix = _digits(calling_code)
    for candidate in candidates:
        if _digits(candidate).startswith(prefix):
            return candidate
    return None


def select_telephone(
    tel_links: Sequence[str],
    text: str,
    country_code: Optional[str],
    config: ProfileConfig,
) -> Optional[str]:
    """Choose the telephone number for *country_code*.

    ``tel:`` links win over numbers found in *text*.  Among links, one with
    the country's calling code is preferred, then one not starting with a
    ``config.foreign_calling_prefixes`` code, then the first link.  Text
    matches prefer the calling code, else the first match.
    """
    if tel_links:
        if not config.calling_codes.get(country_code or ""):
            return tel_links[0]
        match = _matching_calling_code(tel_links, country_code, config)
        if match:
            return match
        for tel in tel_links:
            digits = _digits(tel)
            if not any(digits.startswith(prefix) for prefix in config.foreign_calling_prefixes):
                return tel
        return tel_links[0]

    matches = [m.group(0).strip() for m in re.finditer(config.phone_pattern, text)]
    if not matches:
        return None
    return _matching_calling_code(matches, country_code, config) or matches[0]


def select_email(soup: BeautifulSoup, text: str, config: ProfileConfig) -> Optional[str]:
    """``mailto:`` link, then an email selector whose text has ``@``, then *text*."""
    for target in _link_targets(soup, "mailto:"):
        address = target.split("?", 1)[0].strip()
        if address:
            return address

    for selector in config.selectors.email:
        el = soup.select_one(selector)
        if el is None:
            continue
        candidate = el.get_text(strip=True)
        if "@" in candidate:
            return candidate

    match = _EMAIL_RE.search(text)
    return match.group(0) if match else None


def select_address(soup: BeautifulSoup, config: ProfileConfig) -> Optional[str]:
    """Text of the first ``<address>``, else of the first address selector."""
    candidates: List[Optional[Tag]] = [soup.find("address")]
    candidates.extend(soup.select_one(selector) for selector in config.selectors.address)
    for el in candidates:
        if el is None:
            continue
        text = collapse_whitespace(el.get_text(" "))
        if text:
            return text
    return None


def _fill_contact(
    contact: OrganizationContact,
    html: str,
    country_code: Optional[str],
    config: ProfileConfig,
) -> None:
    # Links and elements are read from the full document, hidden markup
    # included; only the regex fallbacks are limited to visible text.
    soup = parse_html(html)
    visible = strip_invisible(parse_html(html))
    text = visible_text(visible.body or visible)

    contact.telephone = select_telephone(_link_targets(soup, "tel:"), text, country_code, config)
    contact.email = select_email(soup, text, config)

    raw_address = select_address(soup, config)
    if raw_address:
        contact.address = OrganizationAddress(raw=raw_address)


def parse_contact(
    html: str,
    url: str,
    country_code: Optional[str],
    config: ProfileConfig,
) -> OrganizationContact:
    """Run the telephone/email/address heuristics over *html*."""
    contact = OrganizationContact(contact_page_url=url)
    _fill_contact(contact, html, country_code, config)
    return contact


async def extract_contact(
    url: str,
    country_code: Optional[str] = None,
    config: Optional[ProfileConfig] = None,
    fetch: Optional[Fetcher] = None,
) -> OrganizationContact:
    """Fetch the contact page at *url* and extract its contact details.

    Never raises: a failed fetch is logged and an otherwise empty contact
    carrying ``contact_page_url`` is returned.  If a heuristic fails part
    way, the fields found before it are kept.
    """
    config = config or ProfileConfig()
    logger.info("Extracting contact info from %s", url)
    contact = OrganizationContact(contact_page_url=url)
    try:
        html = await (fetch or fetch_url)(url)
    except FETCH_ERRORS as exc:
        logger.warning("Contact: could not fetch %s – %s", url, exc)
        return contact

    try:
        _fill_contact(contact, html, country_code, config)
    except Exception as exc:
        logger.warning("Contact: extraction failed for %s – %s", url, exc)
    return contact
