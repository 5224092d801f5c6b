class TokenDeployerError(Exception):
    exit_code = 20


class ActionInProgress(TokenDeployerError):
    """An action was started while the same kind of action is still in flight."""

    exit_code = 25
