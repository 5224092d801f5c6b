class ConfigurationError(ValueError):
    """Generic error thrown if the engine could not be configured at startup."""


class CredentialMissing(ConfigurationError):
    """A required secret was not found in the environment, or could not be parsed."""


class SettingsFileError(ConfigurationError):
    """The settings file could not be read or holds invalid values."""


class ArtifactFileError(ConfigurationError):
    """There was an error while reading the contract artifact from disk."""


class ArtifactFileMissing(ArtifactFileError):
    """The contract artifact file does not exist."""
