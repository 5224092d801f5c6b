from token_deployer.exceptions.base import ActionInProgress, TokenDeployerError
from token_deployer.exceptions.config import (
    ArtifactFileError,
    ArtifactFileMissing,
    ConfigurationError,
    CredentialMissing,
    SettingsFileError,
)
from token_deployer.exceptions.fees import FeeDataUnavailable, FeeOracleError, NetworkError
from token_deployer.exceptions.transactions import (
    ConfirmationError,
    PreconditionError,
    SubmissionError,
    TransactionError,
)

__all__ = [
    "ActionInProgress",
    "ArtifactFileError",
    "ArtifactFileMissing",
    "ConfigurationError",
    "ConfirmationError",
    "CredentialMissing",
    "FeeDataUnavailable",
    "FeeOracleError",
    "NetworkError",
    "PreconditionError",
    "SettingsFileError",
    "SubmissionError",
    "TokenDeployerError",
    "TransactionError",
]
