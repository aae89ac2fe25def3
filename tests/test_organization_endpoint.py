"""Tests for the /organization-config endpoint.

Network access is replaced by a fake fetcher patched into the sitemap loader
and the country builder, so the whole pipeline runs offline.
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from orgprofile.config import CONFIG_PATH_ENV, MAX_CONCURRENT_ENV, MAX_CONCURRENT_LIMIT
from orgprofile.main import app
from orgprofile.services.pipeline import EmptySitemapError

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    """Clear the slowapi in-memory counter and config env before every test."""
    app.state.limiter._storage.reset()
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(MAX_CONCURRENT_ENV, raising=False)
    yield


# ---------------------------------------------------------------------------
# Shared site fixture
# ---------------------------------------------------------------------------

_SITE = {
    "https://www.site.com/sitemap.xml": (
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
        'xmlns:xhtml="http://www.w3.org/1999/xhtml">'
        "<url><loc>https://www.site.com/uk/contact/</loc>"
        '<xhtml:link rel="alternate" hreflang="en-GB" href="https://www.site.com/uk/contact/"/>'
        '<xhtml:link rel="alternate" hreflang="pl" href="https://www.site.com/pl/kontakt/"/>'
        "</url>"
        "<url><loc>https://www.site.com/pl/kontakt/</loc>"
        '<xhtml:link rel="alternate" hreflang="en-GB" href="https://www.site.com/uk/contact/"/>'
        '<xhtml:link rel="alternate" hreflang="pl" href="https://www.site.com/pl/kontakt/"/>'
        "</url>"
        "<url><loc>https://www.site.com/uk/reviews/</loc></url>"
        "</urlset>"
    ),
    "https://www.site.com/uk/": (
        '<html><body><footer><a href="https://instagram.com/site">ig</a></footer></body></html>'
    ),
    "https://www.site.com/pl/": "<html><body><p>no footer</p></body></html>",
    "https://www.site.com/uk/contact/": (
        "<html><body><address>1 High St, London</address>"
        '<a href="tel:+442079460000">Call</a></body></html>'
    ),
    "https://www.site.com/pl/kontakt/": (
        "<html><body><p>Zadzwoń: +48 22 123 45 67</p>"
        '<a href="mailto:biuro@site.com">biuro@site.com</a></body></html>'
    ),
}


async def _fake_fetch(url: str) -> str:
    if url not in _SITE:
        raise httpx.ConnectError(f"unreachable: {url}")
    return _SITE[url]


def _post(url: str = "https://www.site.com/sitemap.xml", params=None, **kwargs):
    payload = {"sitemapUrl": url, **kwargs}
    with (
        patch("orgprofile.services.sitemap.fetch_url", new=_fake_fetch),
        patch("orgprofile.services.builder.fetch_url", new=_fake_fetch),
    ):
        return client.post("/organization-config", json=payload, params=params)


class TestOrganizationConfig:
    def test_builds_per_country_profiles(self):
        resp = _post()
        assert resp.status_code == 200
        data = resp.json()
        assert data["urlsFound"] == 3
        assert data["pageGroups"] == 1

        by_code = {c["countryCode"]: c for c in data["countries"]}
        assert set(by_code) == {"UK", "PL"}

        uk = by_code["UK"]
        assert uk["defaultLocale"] == "en-GB"
        assert uk["availableLocales"] == ["en-GB"]
        assert uk["baseDomain"] == "www.site.com"
        assert uk["pages"] == [{"pageId": "/contact", "url": "https://www.site.com/uk/contact/"}]
        assert uk["organization"]["url"] == "https://www.site.com/uk/"
        assert uk["organization"]["social"] == {"instagram": "https://instagram.com/site"}
        assert uk["organization"]["contact"] == {
            "telephone": "+442079460000",
            "address": {"raw": "1 High St, London"},
            "contactPageUrl": "https://www.site.com/uk/contact/",
        }

        pl = by_code["PL"]
        assert pl["organization"]["social"] == {}
        assert pl["organization"]["contact"]["telephone"] == "+48 22 123 45 67"
        assert pl["organization"]["contact"]["email"] == "biuro@site.com"

    def test_snake_case_body_accepted(self):
        with (
            patch("orgprofile.services.sitemap.fetch_url", new=_fake_fetch),
            patch("orgprofile.services.builder.fetch_url", new=_fake_fetch),
        ):
            resp = client.post(
                "/organization-config",
                json={"sitemap_url": "https://www.site.com/sitemap.xml"},
            )
        assert resp.status_code == 200

    def test_file_format_download(self):
        resp = _post(params={"format": "file"})
        assert resp.status_code == 200
        assert 'filename="country-config.json"' in resp.headers["content-disposition"]
        countries = json.loads(resp.content)
        assert [c["countryCode"] for c in countries] == ["UK", "PL"]
        assert "name" not in countries[0]["organization"]

    def test_concurrency_override_is_used(self):
        with patch(
            "orgprofile.routers.organization.build_profile",
            new=AsyncMock(side_effect=EmptySitemapError("stop")),
        ) as mocked:
            client.post(
                "/organization-config",
                json={"sitemapUrl": "https://www.site.com/sitemap.xml", "maxConcurrentRequests": 2},
            )
        config = mocked.await_args.args[1]
        assert config.max_concurrent_requests == 2


class TestOrganizationConfigErrors:
    def test_unreachable_sitemap_returns_502(self):
        resp = _post(url="https://www.site.com/missing.xml")
        assert resp.status_code == 502

    def test_invalid_url_returns_422(self):
        resp = _post(url="not-a-url")
        assert resp.status_code == 422

    def test_concurrency_out_of_range_returns_422(self):
        resp = _post(maxConcurrentRequests=0)
        assert resp.status_code == 422

    def test_concurrency_above_config_limit_returns_422(self):
        resp = _post(maxConcurrentRequests=MAX_CONCURRENT_LIMIT + 1)
        assert resp.status_code == 422


class TestHealth:
    def test_root(self):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Hello from OrgProfile"}
