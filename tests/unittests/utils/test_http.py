from unittest import mock

from requests import Session

from token_deployer import __version__
from token_deployer.utils.http import TimeoutSession


@mock.patch.object(Session, "request")
def test_default_timeout_is_applied(mock_request):
    TimeoutSession(timeout=7).get("https://gasstation.test/amoy")

    assert mock_request.call_args[1]["timeout"] == 7


@mock.patch.object(Session, "request")
def test_explicit_timeout_is_kept(mock_request):
    TimeoutSession(timeout=7).get("https://gasstation.test/amoy", timeout=1)

    assert mock_request.call_args[1]["timeout"] == 1


def test_identifies_itself():
    assert TimeoutSession(timeout=7).headers["User-Agent"] == f"token-deployer/{__version__}"
