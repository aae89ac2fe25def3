"""Tests for orgprofile.config."""

import json

import pytest
from pydantic import ValidationError

from orgprofile.config import (
    CONFIG_PATH_ENV,
    MAX_CONCURRENT_ENV,
    MAX_CONCURRENT_LIMIT,
    ProfileConfig,
    load_config,
)


class TestProfileConfig:
    def test_defaults(self):
        config = ProfileConfig()
        assert config.max_concurrent_requests == 5
        assert config.path_prefix_mapping["pl"].country_code == "PL"
        assert config.calling_codes["PL"] == "+48"
        assert config.contact_page_patterns[0] == "/contact"
        assert config.foreign_calling_prefixes == ("1", "44")

    def test_is_immutable(self):
        config = ProfileConfig()
        with pytest.raises(ValidationError):
            config.max_concurrent_requests = 10

    def test_whitelist_is_union_of_platform_domains(self):
        whitelist = ProfileConfig().social_whitelist
        assert "twitter.com" in whitelist
        assert "x.com" in whitelist
        assert "pinterest.com" in whitelist

    def test_cap_must_be_positive(self):
        with pytest.raises(ValidationError):
            ProfileConfig(max_concurrent_requests=0)

    def test_cap_has_upper_limit(self):
        with pytest.raises(ValidationError):
            ProfileConfig(max_concurrent_requests=MAX_CONCURRENT_LIMIT + 1)

    def test_instances_do_not_share_tables(self):
        a, b = ProfileConfig(), ProfileConfig()
        assert a.country_mapping is not b.country_mapping


class TestLoadConfig:
    def test_defaults_without_env(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        monkeypatch.delenv(MAX_CONCURRENT_ENV, raising=False)
        assert load_config() == ProfileConfig()

    def test_json_file_replaces_defaults(self, monkeypatch, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "country_mapping": {
                        "shop.example.nl": {"country_code": "NL", "default_locale": "nl-NL"}
                    },
                    "max_concurrent_requests": 2,
                }
            ),
            encoding="utf-8",
        )
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))
        monkeypatch.delenv(MAX_CONCURRENT_ENV, raising=False)
        config = load_config()
        assert list(config.country_mapping) == ["shop.example.nl"]
        assert config.max_concurrent_requests == 2

    def test_unreadable_file_falls_back(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "missing.json"))
        monkeypatch.delenv(MAX_CONCURRENT_ENV, raising=False)
        assert load_config() == ProfileConfig()

    def test_env_overrides_cap(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        monkeypatch.setenv(MAX_CONCURRENT_ENV, "8")
        assert load_config().max_concurrent_requests == 8

    def test_bad_env_cap_ignored(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        monkeypatch.setenv(MAX_CONCURRENT_ENV, "many")
        assert load_config().max_concurrent_requests == 5

    def test_env_cap_above_limit_ignored(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        monkeypatch.setenv(MAX_CONCURRENT_ENV, str(MAX_CONCURRENT_LIMIT + 1))
        assert load_config().max_concurrent_requests == 5
