"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    AMNIS_STATS_URL,
    DEFAULT_MAINNET_NODE_URL,
    DEFAULT_PRICE_API_URL,
    DEFAULT_SUPPORTED_TOKENS,
    DEFAULT_TESTNET_NODE_URL,
    HIGH_APY_THRESHOLD,
    JOULE_MARKET_URL,
    LOW_TVL_FLOOR,
    THALA_STATS_URL,
    TOKEN_COIN_TYPES,
    TOKEN_PRICE_IDS,
)

load_dotenv()

SECRET_FIELDS = ("private_key", "anthropic_api_key")


class Network(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


class ProtocolEndpointSettings(BaseModel):
    """Data source options shared by every protocol adapter.

    ``apy_scale`` multiplies the APY reported by the source so that it ends
    up in percentage points (use 100 for sources that report fractions).
    """

    stats_url: str | None = None
    apy_scale: float = Field(default=1.0, gt=0)

    model_config = ConfigDict(extra="ignore")


class JouleAdapterSettings(ProtocolEndpointSettings):
    stats_url: str | None = JOULE_MARKET_URL


class ThalaAdapterSettings(ProtocolEndpointSettings):
    stats_url: str | None = THALA_STATS_URL


class AmnisAdapterSettings(ProtocolEndpointSettings):
    stats_url: str | None = AMNIS_STATS_URL


class EchoAdapterSettings(ProtocolEndpointSettings):
    """Echo has no public stats endpoint; one must be configured."""


class AdapterSettings(BaseModel):
    joule: JouleAdapterSettings = Field(default_factory=JouleAdapterSettings)
    thala: ThalaAdapterSettings = Field(default_factory=ThalaAdapterSettings)
    amnis: AmnisAdapterSettings = Field(default_factory=AmnisAdapterSettings)
    echo: EchoAdapterSettings = Field(default_factory=EchoAdapterSettings)

    model_config = ConfigDict(extra="ignore")

    def for_protocol(self, protocol: str) -> ProtocolEndpointSettings:
        """Return the endpoint settings for a protocol identifier."""
        try:
            return getattr(self, protocol.lower())
        except AttributeError:
            raise ValueError(f"No adapter settings for protocol '{protocol}'") from None


class YieldSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with APTOS_YIELD_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- network / account ---
    network: Network = Network.MAINNET
    node_url: str | None = None
    account_address: str | None = None
    private_key: SecretStr | None = None

    # --- recommendation service ---
    anthropic_api_key: SecretStr | None = None
    llm_model: str = "claude-3-5-sonnet-latest"
    llm_max_tokens: int = Field(default=2048, gt=0)

    # --- strategy thresholds ---
    min_yield_difference: float = Field(
        default=0.5,
        gt=0,
        description="Minimum APY (percentage points) a strategy must exceed to be surfaced.",
    )
    gas_buffer: float = Field(default=1.2, ge=1.0)
    low_tvl_floor: float = Field(default=LOW_TVL_FLOOR, ge=0)
    high_apy_threshold: float = Field(default=HIGH_APY_THRESHOLD, gt=0)

    # --- tokens / protocols ---
    supported_tokens: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_TOKENS)
    )
    token_coin_types: dict[str, str] = Field(
        default_factory=lambda: dict(TOKEN_COIN_TYPES)
    )
    token_price_ids: dict[str, str] = Field(
        default_factory=lambda: dict(TOKEN_PRICE_IDS)
    )
    enabled_protocols: list[str] = Field(
        default_factory=lambda: ["Joule", "Thala", "Amnis", "Echo"]
    )

    # --- HTTP ---
    price_api_url: str = DEFAULT_PRICE_API_URL
    http_timeout: float = Field(default=10.0, gt=0)
    http_max_tries: int = Field(default=4, ge=1)
    adapter_timeout_seconds: float | None = None

    # --- logging ---
    log_level: str = "INFO"

    # --- adapters ---
    adapters: AdapterSettings = Field(default_factory=AdapterSettings)

    model_config = SettingsConfigDict(
        env_prefix="APTOS_YIELD_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator(*SECRET_FIELDS, mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @model_validator(mode="after")
    def validate_threshold_ordering(self) -> "YieldSettings":
        """Validate that the volatility threshold sits above the minimum yield."""
        if self.high_apy_threshold <= self.min_yield_difference:
            raise ValueError(
                f"high_apy_threshold ({self.high_apy_threshold}) "
                f"must be greater than min_yield_difference ({self.min_yield_difference})"
            )
        return self

    @model_validator(mode="after")
    def set_derived_values(self) -> "YieldSettings":
        """Fill in the fullnode URL for the selected network."""
        if self.node_url is None:
            self.node_url = {
                Network.MAINNET: DEFAULT_MAINNET_NODE_URL,
                Network.TESTNET: DEFAULT_TESTNET_NODE_URL,
            }[self.network]
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("APTOS_YIELD_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("aptos-yield.toml")
                    user_config = Path.home() / ".config" / "aptos-yield" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [aptos_yield]
                body = data.get("aptos_yield", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def node_url_required(self) -> str:
        """Get node_url, raising ValueError if not set."""
        if self.node_url is None:
            raise ValueError("node_url must be configured")
        return self.node_url

    @property
    def private_key_required(self) -> str:
        """Get the signing key, raising ValueError if not set."""
        if self.private_key is None:
            raise ValueError("private_key must be configured to submit transactions")
        return self.private_key.get_secret_value()

    def coin_type(self, token: str) -> str | None:
        """Resolve a token symbol to its Move coin type, if known."""
        return self.token_coin_types.get(token)
