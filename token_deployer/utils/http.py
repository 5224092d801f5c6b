from requests import Session

from token_deployer import __version__


class TimeoutSession(Session):
    """A :class:`requests.Session` applying `timeout` to every request that sets none."""

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout
        self.headers["User-Agent"] = f"token-deployer/{__version__}"

    def request(self, method, url, **kwargs):
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().request(method, url, **kwargs)
