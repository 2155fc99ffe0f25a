"""
Runtime configuration, read from the environment (and .env if present).

  ETH_RPC_URL             JSON-RPC endpoint (takes precedence)
  ALCHEMY_API_KEY         used to build an Alchemy mainnet URL if ETH_RPC_URL is unset
  ENS_CHAIN_ID            chain to resolve on (default 1)
  ENS_UNIVERSAL_RESOLVER  optional universal resolver override
  ENS_GATEWAY_TIMEOUT     seconds per CCIP-Read gateway request (default 10)
  ENS_RPC_TIMEOUT         seconds per JSON-RPC request (default 30)
  ENS_STRICT              "1"/"true" to raise instead of returning None
  ENS_LOG_LEVEL           logging level for the CLI (default WARNING)
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ens_reverse.engine.errors import ConfigurationError
from ens_reverse.utils.schemas import is_eth_address

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ResolverSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    rpc_url: Optional[str] = None
    chain_id: int = Field(default=1, ge=1)
    universal_resolver_address: Optional[str] = None
    gateway_timeout: float = Field(default=10, gt=0)
    rpc_timeout: float = Field(default=30, gt=0)
    strict: bool = False
    log_level: str = "WARNING"

    @field_validator("universal_resolver_address")
    @classmethod
    def _validate_universal_resolver_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not is_eth_address(v):
            raise ValueError("ENS_UNIVERSAL_RESOLVER must be 0x + 40 hex chars")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ResolverSettings":
        """Build settings from ``environ`` (defaults to os.environ after loading .env)."""
        if environ is None:
            load_dotenv(_PROJECT_ROOT.parent / ".env")
            environ = os.environ

        rpc_url = environ.get("ETH_RPC_URL") or None
        if rpc_url is None and environ.get("ALCHEMY_API_KEY"):
            rpc_url = f"https://eth-mainnet.g.alchemy.com/v2/{environ['ALCHEMY_API_KEY']}"

        values = {
            "rpc_url": rpc_url,
            "universal_resolver_address": environ.get("ENS_UNIVERSAL_RESOLVER") or None,
            "strict": environ.get("ENS_STRICT", "").strip().lower() in _TRUE_VALUES,
        }
        for key, env_name in (
            ("chain_id", "ENS_CHAIN_ID"),
            ("gateway_timeout", "ENS_GATEWAY_TIMEOUT"),
            ("rpc_timeout", "ENS_RPC_TIMEOUT"),
            ("log_level", "ENS_LOG_LEVEL"),
        ):
            if environ.get(env_name):
                values[key] = environ[env_name]

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid resolver configuration:\n{e}") from None

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise ConfigurationError("ETH_RPC_URL (or ALCHEMY_API_KEY) not found in environment variables")
        return self.rpc_url
