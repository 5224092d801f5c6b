from token_deployer.exceptions.base import TokenDeployerError


class FeeOracleError(TokenDeployerError):
    exit_code = 26


class NetworkError(FeeOracleError):
    """Fetching or parsing fee tiers from the gas station failed.

    Raised from:

        * :exc:`requests.RequestException`
        * :exc:`ValueError`, if the response body is not JSON or has the wrong shape
    """

    def __init__(self, reason=None, url=None):
        self.url = url
        message = f"Error fetching fee data from '{url}'! {reason or ''}".rstrip()
        super(NetworkError, self).__init__(message)


class FeeDataUnavailable(FeeOracleError):
    """Neither the chosen tier nor the `standard` fallback tier has fee data."""

    exit_code = 27
