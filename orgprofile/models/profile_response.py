from typing import List

from orgprofile.models.base import CamelModel
from orgprofile.models.country_config import CountryOrganizationConfig


class ProfileResponse(CamelModel):
    sitemap_url: str
    urls_found: int
    page_groups: int
    countries: List[CountryOrganizationConfig]
