from typing import Dict, List, Optional

from pydantic import Field

from orgprofile.models.base import CamelModel

# Platform key (facebook, instagram, x, ...) -> absolute URL
SocialLinks = Dict[str, str]


class OrganizationAddress(CamelModel):
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    address_locality: Optional[str] = None
    address_region: Optional[str] = None
    address_country: Optional[str] = None
    raw: Optional[str] = None  # whitespace-collapsed text as found on the page


class OrganizationContact(CamelModel):
    telephone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[OrganizationAddress] = None
    contact_page_url: str = ""


class Organization(CamelModel):
    name: Optional[str] = None
    legal_name: Optional[str] = None
    url: Optional[str] = None
    contact: OrganizationContact = Field(default_factory=OrganizationContact)
    social: SocialLinks = Field(default_factory=dict)


class PageEntry(CamelModel):
    page_id: str
    url: str


class CountryOrganizationConfig(CamelModel):
    country_code: str
    default_locale: str
    available_locales: List[str] = []
    base_domain: Optional[str] = None
    organization: Organization = Field(default_factory=Organization)
    pages: List[PageEntry] = []
