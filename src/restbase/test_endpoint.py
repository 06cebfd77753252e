"""Tests for the RESTBase URL builder."""

from django.test import override_settings

from restbase.services.endpoint import RestbaseEndpoint, domain_from_url
from restbase.titles import Title


def test_page_url_encodes_title(endpoint):
    url = endpoint.page_url(Title(0, "Foo Bar"), 42)

    assert url == "http://cache/svc/en.example.org/v1/page/html/Foo_Bar/42"


def test_page_url_includes_namespace_prefix(endpoint):
    url = endpoint.page_url(Title.parse("Template:Infobox"), 7)

    assert url == "http://cache/svc/en.example.org/v1/page/html/Template:Infobox/7"


def test_page_url_accepts_dbkey_string(endpoint):
    assert endpoint.page_url("Foo Bar", 1).endswith("/page/html/Foo_Bar/1")


def test_page_url_without_revision(endpoint):
    assert endpoint.page_url(Title(0, "Gone")) == "http://cache/svc/en.example.org/v1/page/html/Gone"


def test_revision_url(endpoint):
    assert endpoint.revision_url(1234) == "http://cache/svc/en.example.org/v1/page/revision/1234"


class TestFromSettings:
    """Tests for building the endpoint from Django settings."""

    @override_settings(
        RESTBASE_SERVER="http://restbase:7231/",
        RESTBASE_DOMAIN="de.example.org",
        RESTBASE_API_VERSION="v2",
    )
    def test_uses_configured_domain(self):
        endpoint = RestbaseEndpoint.from_settings()

        assert endpoint.base == "http://restbase:7231/de.example.org/v2"

    @override_settings(RESTBASE_SERVER="http://restbase:7231", RESTBASE_DOMAIN="", SITE_URL="https://wiki.example.org/")
    def test_derives_domain_from_site_url(self):
        endpoint = RestbaseEndpoint.from_settings()

        assert endpoint.domain == "wiki.example.org"


class TestDomainFromUrl:
    """Tests for domain_from_url helper."""

    def test_strips_scheme_and_slash(self):
        assert domain_from_url("https://en.example.org/") == "en.example.org"

    def test_strips_port(self):
        assert domain_from_url("http://localhost:8080") == "localhost"

    def test_bare_host(self):
        assert domain_from_url("en.example.org") == "en.example.org"
