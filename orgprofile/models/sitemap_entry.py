from typing import Tuple

from pydantic import ConfigDict

from orgprofile.models.base import CamelModel


class Alternate(CamelModel):
    model_config = ConfigDict(frozen=True)

    hreflang: str
    href: str


class SitemapEntry(CamelModel):
    """One ``<url>`` of a urlset: its ``<loc>`` plus declared locale alternates."""

    model_config = ConfigDict(frozen=True)

    loc: str
    alternates: Tuple[Alternate, ...] = ()
