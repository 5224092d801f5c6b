"""Engine configuration.

Secrets are only ever read from the environment::

    INFURA_API_KEY=<rpc access key>
    ACCOUNT_PRIVATE_KEY=<hex encoded private key>

All other options have defaults and may be overridden in a YAML settings file::

    >settings.yaml
    gas_station_url: https://gasstation.polygon.technology/amoy
    rpc_url_template: https://polygon-amoy.infura.io/v3/{api_key}
    artifact_path: contracts/MyToken.json
    poll_interval_ms: 30000
    confirmations: 1
    receipt_poll_interval: 1.0
    drop_after: 60
    request_timeout: 10
    chain_id: 80002
"""
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Optional, Union

import structlog
import yaml
from eth_keys.exceptions import ValidationError as KeyValidationError

from token_deployer.constants import (
    DEFAULT_ARTIFACT_PATH,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_DROP_AFTER,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_RECEIPT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    ENV_INFURA_API_KEY,
    ENV_PRIVATE_KEY,
    GAS_STATION_URL,
    RPC_URL_TEMPLATE,
)
from token_deployer.exceptions import CredentialMissing, SettingsFileError
from token_deployer.types import SigningCredential

log = structlog.get_logger(__name__)

SECRET_FIELDS = ("infura_api_key", "private_key")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class EngineConfig:
    infura_api_key: str
    private_key: str
    gas_station_url: str = GAS_STATION_URL
    rpc_url_template: str = RPC_URL_TEMPLATE
    artifact_path: str = DEFAULT_ARTIFACT_PATH
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    confirmations: int = DEFAULT_CONFIRMATIONS
    receipt_poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL
    drop_after: int = DEFAULT_DROP_AFTER
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    chain_id: Optional[int] = None

    def __repr__(self):
        return f"EngineConfig({self.redacted()})"

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str],
        settings_file: Optional[Union[str, Path]] = None,
        require_secrets: bool = True,
    ) -> "EngineConfig":
        """Load the configuration from `environ` and the optional `settings_file`.

        Commands that never touch the chain pass `require_secrets=False`; missing
        secrets are then left empty.

        :raises CredentialMissing: if a required secret is not set.
        :raises SettingsFileError: if the settings file is unreadable or invalid.
        """
        secrets = {}
        for attr, env_var in (
            ("infura_api_key", ENV_INFURA_API_KEY),
            ("private_key", ENV_PRIVATE_KEY),
        ):
            value = environ.get(env_var, "")
            if not value and require_secrets:
                raise CredentialMissing(f"{env_var} is not defined in environment variables")
            secrets[attr] = value

        settings = load_settings_file(settings_file) if settings_file else {}
        config = cls(**secrets, **settings)
        config.validate()
        log.debug("Loaded configuration", config=config.redacted())
        return config

    @staticmethod
    def assert_option(expression, err: str):
        """Raise a SettingsFileError with message `err` if `expression` is falsy."""
        if not expression:
            raise SettingsFileError(err)

    def validate(self) -> None:
        self.assert_option(
            isinstance(self.poll_interval_ms, int) and self.poll_interval_ms > 0,
            "poll_interval_ms must be a positive integer!",
        )
        self.assert_option(
            isinstance(self.confirmations, int) and self.confirmations >= 1,
            "confirmations must be an integer >= 1!",
        )
        self.assert_option(
            isinstance(self.drop_after, int) and self.drop_after >= 0,
            "drop_after must be a non-negative integer!",
        )
        self.assert_option(
            _is_number(self.receipt_poll_interval) and self.receipt_poll_interval > 0,
            "receipt_poll_interval must be positive!",
        )
        self.assert_option(
            _is_number(self.request_timeout) and self.request_timeout > 0,
            "request_timeout must be positive!",
        )
        self.assert_option(
            self.chain_id is None or isinstance(self.chain_id, int),
            "chain_id must be an integer!",
        )
        self.assert_option(
            "{api_key}" in self.rpc_url_template,
            "rpc_url_template must contain an '{api_key}' placeholder!",
        )

    @property
    def rpc_url(self) -> str:
        """The RPC endpoint, including the access key. Never log this."""
        return self.rpc_url_template.format(api_key=self.infura_api_key)

    def redacted(self) -> dict:
        """All options, with secrets masked. Safe to log."""
        return {
            f.name: ("***" if f.name in SECRET_FIELDS else getattr(self, f.name))
            for f in fields(self)
        }

    def load_credential(self) -> SigningCredential:
        """Build the signing credential from the configured private key.

        :raises CredentialMissing: if the private key cannot be parsed.
        """
        try:
            return SigningCredential.from_private_key(self.private_key)
        except (ValueError, TypeError, KeyValidationError):
            # Do not chain the original error, its message may include the key.
            raise CredentialMissing(f"{ENV_PRIVATE_KEY} is not a valid private key") from None


def load_settings_file(path: Union[str, Path]) -> dict:
    """Load engine options from a YAML file.

    :raises SettingsFileError:
        if the file does not exist, is not valid YAML, or contains unknown options.
    """
    try:
        with open(path) as handler:
            loaded = yaml.safe_load(handler) or {}
    except FileNotFoundError as e:
        raise SettingsFileError(f"Settings file {path} does not exist!") from e
    except yaml.YAMLError as e:
        raise SettingsFileError(f"Settings file {path} is not valid YAML!") from e

    if not isinstance(loaded, dict):
        raise SettingsFileError(f"Settings file {path} must contain a mapping!")

    known = {f.name for f in fields(EngineConfig)} - set(SECRET_FIELDS)
    unknown = set(loaded) - known
    if unknown:
        raise SettingsFileError(f"Unknown options in settings file: {', '.join(sorted(unknown))}")
    return loaded
