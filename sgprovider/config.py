"""
Provider settings and the per-operation context handed to every handler.
"""
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from sgprovider.client import ComputeClient
from sgprovider.errors import ConfigError

DEFAULT_CONFIG_FILE = "sgprovider.yaml"
DEFAULT_COMPUTE_ENDPOINT = "https://api.exoscale.ch/compute"

_ENV_OVERRIDES = {
    "SGPROVIDER_ENDPOINT": "compute_endpoint",
    "SGPROVIDER_KEY": "key",
    "SGPROVIDER_SECRET": "secret",
    "SGPROVIDER_ASYNC": "async",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _to_bool(key: str, val: Any) -> bool:
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        low = val.strip().lower()
        if low in _TRUE_STRINGS:
            return True
        if low in _FALSE_STRINGS:
            return False
    raise ConfigError(f"'{key}' must be a boolean, got {val!r}")


@dataclass
class ProviderSettings:
    compute_endpoint: str = DEFAULT_COMPUTE_ENDPOINT
    key: str = ""
    secret: str = ""
    async_: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderSettings":
        known = {"compute_endpoint", "key", "secret", "async"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown setting(s): {', '.join(unknown)}")

        for k in ("compute_endpoint", "key", "secret"):
            if k in data and not isinstance(data[k], str):
                raise ConfigError(f"'{k}' must be a string, got {data[k]!r}")

        return cls(
            compute_endpoint=data.get("compute_endpoint") or DEFAULT_COMPUTE_ENDPOINT,
            key=data.get("key", ""),
            secret=data.get("secret", ""),
            async_=_to_bool("async", data.get("async", False)),
        )

    def to_dict(self, mask_secret: bool = True) -> dict:
        secret = self.secret
        if mask_secret and secret:
            secret = "*" * 8
        return {
            "compute_endpoint": self.compute_endpoint,
            "key": self.key,
            "secret": secret,
            "async": self.async_,
        }


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> ProviderSettings:
    """
    Read settings from a YAML file, then apply SGPROVIDER_* environment overrides.

    Without an explicit path, 'sgprovider.yaml' in the working directory is
    used when present. An explicit path that does not exist is an error.
    """
    env = os.environ if environ is None else environ
    data: Dict[str, Any] = {}

    config_file = path or DEFAULT_CONFIG_FILE
    if os.path.exists(config_file):
        try:
            with open(config_file, "r") as fh:
                loaded = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse {config_file}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_file} must contain a mapping at top level")
        data.update(loaded)
    elif path:
        raise ConfigError(f"config file '{path}' does not exist")

    for env_key, setting in _ENV_OVERRIDES.items():
        if env_key in env:
            data[setting] = env[env_key]

    return ProviderSettings.from_dict(data)


@dataclass
class ProviderContext:
    """Client handle and pass-through options threaded into each operation."""
    client: ComputeClient
    async_: bool = False

    @classmethod
    def from_settings(cls, settings: ProviderSettings, client: ComputeClient) -> "ProviderContext":
        return cls(client=client, async_=settings.async_)
