from pytest import mark, raises

from quest.errors import UnsupportedURLError, UsageError
from quest.http.target import SocketTarget, URLTarget, parse_url


def test_parse_url():
    target = parse_url("http://example.com/widgets/1?color=red")
    assert target == URLTarget("http", "example.com", None, "/widgets/1?color=red")
    assert target.effective_port == 80
    assert target.host_header == "example.com"
    assert target.url == "http://example.com/widgets/1?color=red"


def test_parse_url_with_port_and_no_path():
    target = parse_url("https://example.com:8443")
    assert target == URLTarget("https", "example.com", 8443, "/")
    assert target.effective_port == 8443
    assert target.host_header == "example.com:8443"
    assert target.url == "https://example.com:8443/"


def test_parse_url_with_default_https_port():
    assert parse_url("https://example.com/").effective_port == 443


@mark.parametrize(
    "url",
    [
        "ftp://example.com/file",
        "example.com/widgets",
        "http://",
        "http://example.com:http/",
        "http://exa mple.com/",
        "http://example.com\r\nX-Injected: 1/",
        "http://example.com\t/",
        "",
    ],
)
def test_parse_unsupported_url(url):
    with raises(UnsupportedURLError) as info:
        parse_url(url)
    assert isinstance(info.value, UsageError)
    assert isinstance(info.value, ValueError)
    assert str(info.value) == f"Unsupported url: {url}"


def test_parse_url_with_invalid_type():
    with raises(TypeError):
        parse_url(b"http://example.com/")  # type: ignore


def test_socket_target():
    target = SocketTarget("/var/run/docker.sock", "/info")
    assert target.host_header == "localhost"
    assert target.url == "unix:/var/run/docker.sock:/info"
