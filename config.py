"""
config.py

Responsibility: Builds the immutable WebhookConfig once at startup from
environment variables and validates it.
Does NOT: talk to Porkbun, configure logging, or hold any mutable state.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

from exceptions import ConfigurationError
from porkbun.porkbun_client import PORKBUN_BASE_URL

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("", "0", "false", "no", "off")


@dataclass(frozen=True)
class WebhookConfig:
    """
    All settings of the webhook process.

    Constructed once and passed explicitly to the app and the engine.
    Invalid combinations raise ConfigurationError from __post_init__.
    """

    # Managed zone suffixes, in the order given
    domain_filter: tuple[str, ...]

    api_key: str
    api_secret: str

    # Simulate only: never contact Porkbun
    dry_run: bool = False

    # host:port; an empty host means all interfaces
    listen_address: str = ":8888"

    log_level: str = "info"
    api_base_url: str = PORKBUN_BASE_URL

    # Per-request timeout of the shared HTTP client, in seconds
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.domain_filter:
            raise ConfigurationError(
                "porkbun provider requires at least one configured domain in the domain filter"
            )
        if not self.api_key:
            raise ConfigurationError("porkbun provider requires an API key")
        if not self.api_secret:
            raise ConfigurationError("porkbun provider requires an API secret")
        if self.log_level.lower() not in _LOG_LEVELS:
            raise ConfigurationError(
                f"invalid log level {self.log_level!r}, expected one of {', '.join(_LOG_LEVELS)}"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("request timeout must be positive")
        # Validates the address eagerly so a typo fails at startup.
        _split_address(self.listen_address)

    @property
    def listen_host(self) -> str:
        return _split_address(self.listen_address)[0]

    @property
    def listen_port(self) -> int:
        return _split_address(self.listen_address)[1]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> WebhookConfig:
        """
        Reads the configuration from environment variables.

        Args:
            environ: Mapping to read from; defaults to os.environ.

        Returns:
            A validated WebhookConfig.

        Raises:
            ConfigurationError: If a value is missing or malformed.
        """
        env = os.environ if environ is None else environ

        try:
            timeout = float(env.get("REQUEST_TIMEOUT", "30"))
        except ValueError as exc:
            raise ConfigurationError(
                f"invalid REQUEST_TIMEOUT {env.get('REQUEST_TIMEOUT')!r}"
            ) from exc

        return cls(
            domain_filter=parse_domain_filter(env.get("DOMAIN_FILTER", "")),
            api_key=env.get("API_KEY", ""),
            api_secret=env.get("API_SECRET", ""),
            dry_run=_parse_bool("DRY_RUN", env.get("DRY_RUN", "false")),
            listen_address=env.get("LISTEN_ADDRESS", ":8888"),
            log_level=env.get("LOG_LEVEL", "info"),
            api_base_url=env.get("PORKBUN_API_URL", PORKBUN_BASE_URL),
            request_timeout=timeout,
        )

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks.
        return (
            f"WebhookConfig(domain_filter={self.domain_filter!r}, dry_run={self.dry_run!r}, "
            f"listen_address={self.listen_address!r}, log_level={self.log_level!r}, "
            f"api_base_url={self.api_base_url!r})"
        )


def parse_domain_filter(raw: str) -> tuple[str, ...]:
    """
    Splits a comma- or whitespace-separated zone list, dropping duplicates.

    Args:
        raw: e.g. "example.com, example.org".

    Returns:
        The zones in their original order.
    """
    zones: list[str] = []
    for item in re.split(r"[,\s]+", raw):
        if item and item not in zones:
            zones.append(item)
    return tuple(zones)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"invalid boolean for {name}: {raw!r}")


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigurationError(f"invalid listen address {address!r}, expected host:port")
    return host or "0.0.0.0", int(port)
