"""Organisation-profile endpoint: sitemap URL in, per-country configuration out."""

import json
import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from orgprofile.config import load_config
from orgprofile.models.profile_request import ProfileRequest
from orgprofile.models.profile_response import ProfileResponse
from orgprofile.services.pipeline import EmptySitemapError, build_profile

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "country-config.json"

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/organization-config",
    response_model=ProfileResponse,
    response_model_exclude_none=True,
    summary="Build per-country organisation profiles from a sitemap",
    description=(
        "Loads the sitemap (following sitemap indexes), groups localized URLs "
        "into logical pages, and for every country extracts the homepage, "
        "footer social links and contact details.\n\n"
        f"Pass `?format=file` to download the country list as `{OUTPUT_FILENAME}`."
    ),
)
@limiter.limit("3/minute")
async def organization_config(
    request: Request,
    body: ProfileRequest,
    format: str = Query(default="json", description="Output format: 'json' or 'file'."),
) -> ProfileResponse | Response:
    sitemap_url = str(body.sitemap_url)
    logger.info(
        "Organization config request received",
        extra={"sitemap_url": sitemap_url, "max_concurrent_requests": body.max_concurrent_requests},
    )

    config = load_config()
    if body.max_concurrent_requests is not None:
        config = config.model_copy(update={"max_concurrent_requests": body.max_concurrent_requests})

    try:
        result = await build_profile(sitemap_url, config)
    except EmptySitemapError as exc:
        logger.error("Sitemap unusable: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))

    if format == "file":
        return _build_file_response(result.countries)

    return ProfileResponse(
        sitemap_url=sitemap_url,
        urls_found=len(result.entries),
        page_groups=len(result.groups),
        countries=result.countries,
    )


def _build_file_response(countries) -> Response:
    """Return the country list as a downloadable JSON attachment."""
    payload = [c.model_dump(by_alias=True, exclude_none=True) for c in countries]
    return Response(
        content=json.dumps(payload, ensure_ascii=False, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{OUTPUT_FILENAME}"'},
    )
