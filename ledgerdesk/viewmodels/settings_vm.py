from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Literal, Mapping, Optional

from ..utils.logging import env_debug

Network = Literal["local", "ic"]
NETWORKS = ("local", "ic")
MAINNET_GATEWAY = "https://icp-api.io"
MAINNET_IDENTITY_PROVIDER = "https://identity.ic0.app"
LOCAL_REPLICA_PORT = 4943

_ENV_KEYS = {
    "LEDGERDESK_URL": "ledger_url",
    "LEDGERDESK_LEDGER_ID": "ledger_id",
    "LEDGERDESK_NETWORK": "network",
    "LEDGERDESK_IDENTITY_ID": "identity_provider_id",
    "LEDGERDESK_IDENTITY_PROVIDER": "identity_provider_url",
    "LEDGERDESK_TIMEOUT_S": "request_timeout_s",
    "LEDGERDESK_RETRIES": "retries",
}


@dataclass
class LedgerSettings:
    """Typed runtime settings for building ledger clients."""

    ledger_url: str = ""
    ledger_id: str = ""
    network: Network = "local"
    identity_provider_id: str = ""
    identity_provider_url: str = ""
    request_timeout_s: int = 10
    retries: int = 2


def identity_provider_for(network: str, identity_provider_id: str = "") -> str:
    """Local replicas host the identity provider on ``<id>.localhost``."""
    if network == "local" and identity_provider_id:
        return f"http://{identity_provider_id}.localhost:{LOCAL_REPLICA_PORT}/"
    return MAINNET_IDENTITY_PROVIDER


class SettingsVM:
    """Keeps ledger connection settings and validation, no I/O here."""

    def __init__(self, *, config: Optional[LedgerSettings] = None) -> None:
        self.config = config or LedgerSettings()
        self.debug_logging: bool = env_debug()

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def ledger_url(self) -> str:
        return self.config.ledger_url

    @ledger_url.setter
    def ledger_url(self, value: str) -> None:
        self.config = replace(self.config, ledger_url=self._coerce_str(value))

    @property
    def ledger_id(self) -> str:
        return self.config.ledger_id

    @ledger_id.setter
    def ledger_id(self, value: str) -> None:
        self.config = replace(self.config, ledger_id=self._coerce_str(value))

    @property
    def network(self) -> Network:
        return self.config.network

    @network.setter
    def network(self, value: str) -> None:
        self.config = replace(self.config, network=self._coerce_network(value))

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @property
    def retries(self) -> int:
        return self.config.retries

    # ------------------------------------------------------------------
    def effective_ledger_url(self) -> str:
        if self.config.ledger_url:
            return self.config.ledger_url
        if self.config.network == "ic":
            return MAINNET_GATEWAY
        return ""

    def effective_identity_provider(self) -> str:
        if self.config.identity_provider_url:
            return self.config.identity_provider_url
        return identity_provider_for(self.config.network, self.config.identity_provider_id)

    def is_valid(self) -> bool:
        if self.config.network not in NETWORKS:
            return False
        if self.config.request_timeout_s <= 0 or self.config.retries < 0:
            return False
        return bool(self.effective_ledger_url() and self.config.ledger_id)

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply a flat settings mapping to the view-model."""

        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")

        allowed = {*LedgerSettings.__annotations__.keys(), "debug_logging"}
        unknown = set(payload.keys()) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")

        updates: Dict[str, Any] = {}
        for cfg_key in LedgerSettings.__annotations__.keys():
            if cfg_key in payload:
                updates[cfg_key] = self._coerce_config_value(cfg_key, payload[cfg_key])
        if updates:
            self.config = replace(self.config, **updates)

        if "debug_logging" in payload:
            self.debug_logging = self._coerce_bool(payload["debug_logging"])

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Overlay ``LEDGERDESK_*`` environment variables onto the settings."""
        env = os.environ if environ is None else environ
        payload = {key: env[var] for var, key in _ENV_KEYS.items() if env.get(var)}
        if payload:
            self.apply_dict(payload)

    def to_dict(self) -> dict:
        snapshot = asdict(self.config)
        snapshot["debug_logging"] = bool(self.debug_logging)
        return snapshot

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _coerce_config_value(self, key: str, raw: Any) -> Any:
        if key in {"request_timeout_s", "retries"}:
            return self._coerce_int(key, raw, allow_negative=False)
        if key == "network":
            return self._coerce_network(raw)
        return self._coerce_str(raw)

    @staticmethod
    def _coerce_str(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @staticmethod
    def _coerce_network(value: Any) -> Network:
        text = str(value or "").strip().lower()
        if text not in NETWORKS:
            raise ValueError(f"network must be one of {', '.join(NETWORKS)}.")
        return text  # type: ignore[return-value]

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    @staticmethod
    def _coerce_int(name: str, value: Any, *, allow_negative: bool = True) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        if isinstance(value, (int, float)):
            coerced = int(value)
        elif isinstance(value, str):
            try:
                coerced = int(value.strip())
            except ValueError as exc:
                raise ValueError(f"{name} must be an integer.") from exc
        else:
            raise ValueError(f"{name} must be an integer.")
        if not allow_negative and coerced < 0:
            raise ValueError(f"{name} must be non-negative.")
        return coerced
