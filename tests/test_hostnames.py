import pytest

from gitredirect.errors import HostnameMatchError
from gitredirect.hostnames import hostnames_match


@pytest.mark.parametrize(
    "url1, url2",
    [
        ("https://git.internal.local", "https://git.internal.local/org/repo.git"),
        ("https://Git.Internal.Local/", "https://git.internal.local/org/repo.git"),
        ("https://git.internal.local:443", "https://git.internal.local/org/repo.git"),
        ("http://git.internal.local:3000", "https://user@git.internal.local/repo"),
    ],
)
def test_hostnames_match(url1, url2):
    assert hostnames_match(url1, url2) is True


@pytest.mark.parametrize(
    "url1, url2",
    [
        ("https://git.internal.local", "https://github.com/org/repo.git"),
        ("https://git.internal.local", "https://git.internal.local.evil.com/org/repo.git"),
    ],
)
def test_hostnames_differ(url1, url2):
    assert hostnames_match(url1, url2) is False


@pytest.mark.parametrize(
    "url",
    ["", "org/repo.git", "https://", "https://git.internal.local:notaport/repo"],
)
def test_unparsable_url_raises(url):
    with pytest.raises(HostnameMatchError):
        hostnames_match("https://git.internal.local", url)
