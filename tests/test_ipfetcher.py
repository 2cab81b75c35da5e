import pytest
import requests
import responses

from apavs.ipfetcher import get_ip

URL = "https://ip.example.com/"


@pytest.fixture
def mock():
    with responses.RequestsMock() as rsps:
        yield rsps


def test_returns_body_without_whitespace(mock):
    mock.add(responses.GET, URL, body="  203.0.113.7\n")
    assert get_ip(URL) == "203.0.113.7"


def test_uses_given_session(mock):
    mock.add(responses.GET, URL, body="2001:db8::1\r\n")
    with requests.Session() as session:
        assert get_ip(URL, session=session) == "2001:db8::1"
    assert len(mock.calls) == 1


def test_connection_failure_raises(mock):
    mock.add(responses.GET, URL, body=requests.ConnectionError("unreachable"))
    with pytest.raises(requests.ConnectionError):
        get_ip(URL)