import pytest

from authbroker.identity_access.redirects import is_allowed_redirect, normalize_origin, parse_origin_list


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://Docs.Example.com/admin/#x", "https://docs.example.com"),
        ("https://docs.example.com:443/", "https://docs.example.com"),
        ("http://localhost:5173/cms", "http://localhost:5173"),
        ("http://example.com:80", "http://example.com"),
        ("javascript:alert(1)", ""),
        ("//evil.example/path", ""),
        ("not a url", ""),
        ("https://host:notaport/", ""),
    ],
)
def test_normalize_origin(url: str, expected: str):
    assert normalize_origin(url) == expected


def test_parse_origin_list_ignores_junk():
    assert parse_origin_list(" https://a.example , , ftp://x, http://b.example:8080/p") == {
        "https://a.example",
        "http://b.example:8080",
    }
    assert parse_origin_list(None) == set()


def test_empty_allow_list_is_unrestricted():
    assert is_allowed_redirect("https://anything.example/", [])


def test_empty_redirect_is_always_allowed():
    assert is_allowed_redirect("", ["https://a.example"])


def test_origin_must_match_exactly():
    allowed = ["https://a.example"]
    assert is_allowed_redirect("https://a.example/admin/", allowed)
    assert not is_allowed_redirect("https://a.example.evil.test/", allowed)
    assert not is_allowed_redirect("http://a.example/", allowed)
    assert not is_allowed_redirect("https://a.example:8443/", allowed)
    assert not is_allowed_redirect("javascript:alert(1)", allowed)
