from typing import Optional

from pydantic import Field, HttpUrl

from orgprofile.config import MAX_CONCURRENT_LIMIT
from orgprofile.models.base import CamelModel


class ProfileRequest(CamelModel):
    sitemap_url: HttpUrl
    max_concurrent_requests: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_CONCURRENT_LIMIT,
        description=f"Override for simultaneous per-country extraction tasks (1–{MAX_CONCURRENT_LIMIT}).",
    )
