from typing import List

from orgprofile.models.base import CamelModel


class PageLocale(CamelModel):
    locale: str
    country_code: str
    url: str


class PageGroup(CamelModel):
    """Same logical page across locales, keyed by a locale-free path."""

    page_id: str
    locales: List[PageLocale] = []

    def has_url(self, url: str) -> bool:
        return any(loc.url == url for loc in self.locales)

    def first_for_country(self, country_code: str) -> PageLocale | None:
        for loc in self.locales:
            if loc.country_code == country_code:
                return loc
        return None
