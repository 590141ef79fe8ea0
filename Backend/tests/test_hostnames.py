"""
Host and path parsing rules used by tenant resolution.

Run with: pytest Backend/tests/test_hostnames.py -v
"""

import pytest

from wedsite.tenancy.hostnames import (
    domain_candidates,
    extract_slug_from_path,
    extract_subdomain,
    is_tenantless_path,
    normalize_hostname,
    strip_port,
)


class TestStripPort:
    @pytest.mark.parametrize(
        "host, expected",
        [
            ("couple.com", "couple.com"),
            ("couple.com:3000", "couple.com"),
            ("Couple.COM:443", "couple.com"),
            ("localhost:3000", "localhost"),
            ("[::1]:3000", "::1"),
            ("couple.com.", "couple.com"),
            ("", ""),
        ],
    )
    def test_strip_port(self, host, expected):
        assert strip_port(host) == expected


class TestNormalizeHostname:
    def test_www_and_bare_normalize_the_same(self):
        assert normalize_hostname("www.example.com") == normalize_hostname("example.com")

    def test_port_is_removed(self):
        assert normalize_hostname("www.example.com:8080") == "example.com"

    @pytest.mark.parametrize(
        "host",
        ["www.example.com", "example.com", "www.www.example.com", "a.b.example.com", "www.com", "localhost"],
    )
    def test_normalization_is_idempotent(self, host):
        once = normalize_hostname(host)
        assert normalize_hostname(once) == once

    def test_www_alone_before_tld_is_kept(self):
        """``www.com`` is a domain in its own right, not ``com``."""
        assert normalize_hostname("www.com") == "www.com"


class TestDomainCandidates:
    def test_bare_host_includes_www_form(self):
        assert domain_candidates("ourwedding.com") == ["ourwedding.com", "www.ourwedding.com"]

    def test_www_host_includes_bare_form_exact_first(self):
        assert domain_candidates("www.ourwedding.com:3000") == [
            "www.ourwedding.com",
            "ourwedding.com",
        ]

    def test_www_and_bare_yield_same_set(self):
        assert set(domain_candidates("www.couple.com")) == set(domain_candidates("couple.com"))

    def test_empty_host(self):
        assert domain_candidates("") == []

    def test_ip_address_has_no_www_variant(self):
        assert domain_candidates("10.0.0.1") == ["10.0.0.1"]


class TestExtractSubdomain:
    @pytest.mark.parametrize(
        "host, expected",
        [
            ("couple.example.com", "couple"),
            ("acme.weddingplatform.com", "acme"),
            ("acme.weddingplatform.com:443", "acme"),
            ("a.b.c.example.com", "a"),
            ("www.example.com", "www"),
        ],
    )
    def test_three_or_more_labels_yield_first_label(self, host, expected):
        assert extract_subdomain(host) == expected

    @pytest.mark.parametrize(
        "host",
        ["localhost", "localhost:3000", "127.0.0.1", "192.168.1.20:8000", "example.com", ""],
    )
    def test_no_subdomain(self, host):
        assert extract_subdomain(host) is None

    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1", "10.1.2.3"])
    def test_localhost_and_ipv4_never_yield_even_in_local_mode(self, host):
        assert extract_subdomain(host, allow_local_patterns=True) is None

    def test_localhost_pattern_requires_local_mode(self):
        assert extract_subdomain("john-sarah.localhost:3000") is None
        assert extract_subdomain("john-sarah.localhost:3000", allow_local_patterns=True) == "john-sarah"

    def test_lvh_me_pattern(self):
        assert extract_subdomain("couple.lvh.me", allow_local_patterns=True) == "couple"

    def test_bare_lvh_me_has_no_subdomain(self):
        assert extract_subdomain("lvh.me", allow_local_patterns=True) is None


class TestExtractSlugFromPath:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/w/jane-and-sam", "jane-and-sam"),
            ("/w/jane-and-sam/rsvp", "jane-and-sam"),
            ("/w/", None),
            ("/wedding/jane", None),
            ("/", None),
            ("", None),
        ],
    )
    def test_extract_slug(self, path, expected):
        assert extract_slug_from_path(path) == expected


class TestTenantlessPaths:
    @pytest.mark.parametrize(
        "path",
        [
            "/_next/static/chunks/main.js",
            "/_next/image",
            "/api/health",
            "/store",
            "/store/pricing",
            "/dashboard",
            "/onboarding/step-2",
            "/auth/sign-in",
            "/images/hero.PNG",
            "/favicon.ico",
            "/logo.svg",
        ],
    )
    def test_skipped(self, path):
        assert is_tenantless_path(path)

    @pytest.mark.parametrize(
        "path",
        ["/", "/rsvp", "/admin/guests", "/w/jane-and-sam", "/stories", "/authors", "/api/wedding/context"],
    )
    def test_not_skipped(self, path):
        assert not is_tenantless_path(path)
