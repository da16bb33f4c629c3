"""Tests for tenant slug extraction and tenant URL construction."""
import pytest

from workspace_hub.config import Settings
from workspace_hub.tenancy.hostname import build_tenant_url, extract_tenant_from_url, extract_tenant_slug


class TestExtractTenantSlug:

    @pytest.mark.parametrize("host,expected", [
        ("acme.example.com", "acme"),
        ("acme.localhost:3000", "acme"),
        ("ACME.Example.com", "acme"),
        ("a.b.example.com", "a"),
        ("contoso.example.com:443", "contoso"),
    ])
    def test_first_label_is_the_slug(self, host, expected):
        assert extract_tenant_slug(host) == expected

    @pytest.mark.parametrize("host", ["localhost", "localhost:3000", "", None, "[::1]:8000"])
    def test_hosts_without_tenant(self, host):
        assert extract_tenant_slug(host) is None

    def test_leading_dot_is_no_tenant(self):
        assert extract_tenant_slug(".example.com") is None


class TestBuildTenantUrl:

    def test_production_url(self):
        settings = Settings(ENVIRONMENT="production", ROOT_DOMAIN="example.com")
        assert build_tenant_url("acme", settings=settings) == "https://acme.example.com"

    def test_development_url_uses_localhost_port(self):
        settings = Settings(ENVIRONMENT="development", DEV_PORT=3000)
        assert build_tenant_url("acme", "/dashboard", settings=settings) == "http://acme.localhost:3000/dashboard"

    def test_path_without_leading_slash(self):
        settings = Settings(ENVIRONMENT="production", ROOT_DOMAIN="example.com")
        assert build_tenant_url("acme", "projects", settings=settings) == "https://acme.example.com/projects"


class TestExtractTenantFromUrl:

    def test_extracts_first_label(self):
        assert extract_tenant_from_url("https://acme.example.com/dashboard") == "acme"

    def test_inverse_of_build_tenant_url(self):
        settings = Settings(ENVIRONMENT="development", DEV_PORT=3000)
        assert extract_tenant_from_url(build_tenant_url("globex", settings=settings)) == "globex"

    @pytest.mark.parametrize("url", ["http://localhost:3000/", "not a url", ""])
    def test_no_tenant(self, url):
        assert extract_tenant_from_url(url) is None
