"""
Pydantic schemas for ENS reverse resolution requests and gateway payloads.

These models validate what comes in from callers (addresses, block numbers,
gateway URL lists) and what comes back from CCIP-Read gateways before any
of it reaches the ABI codec.
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


_ETH_ADDRESS_REGEX = re.compile(r"^0x[a-fA-F0-9]{40}$")
_HEX_REGEX = re.compile(r"^0x([a-fA-F0-9]{2})*$")


def is_eth_address(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(_ETH_ADDRESS_REGEX.fullmatch(value))


def is_hex_data(value: Optional[str]) -> bool:
    """True for ``0x``-prefixed, even-length hex strings (``0x`` included)."""
    return isinstance(value, str) and bool(_HEX_REGEX.fullmatch(value))


def _require_eth_address(value: str) -> str:
    """
    Validate that `value` is an Ethereum address in the strict format:
    `0x` followed by exactly 40 hex characters.
    """
    if not is_eth_address(value):
        raise ValueError("Invalid Ethereum address (expected 0x + 40 hex chars)")
    return value


class ResolutionRequest(BaseModel):
    """
    A single reverse-resolution request.

    Attributes:
        address: Address whose primary name is looked up.
        universal_resolver_address: Optional lookup contract override; when
            set, no chain registry lookup happens.
        block_number: Optional historical block to resolve at.
        gateway_urls: Optional ordered CCIP-Read gateway URLs passed to the
            universal resolver.
        strict: Raise descriptive errors instead of returning None for
            recoverable protocol failures.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str
    universal_resolver_address: Optional[str] = None
    block_number: Optional[int] = Field(default=None, ge=0)
    gateway_urls: Optional[List[str]] = None
    strict: bool = False

    @field_validator("address")
    @classmethod
    def _validate_address(cls, v: str) -> str:
        return _require_eth_address(v)

    @field_validator("universal_resolver_address")
    @classmethod
    def _validate_universal_resolver_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _require_eth_address(v)

    @field_validator("gateway_urls")
    @classmethod
    def _validate_gateway_urls(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        cleaned = [u.strip() for u in v]
        if any(not u for u in cleaned):
            raise ValueError("gateway_urls must not contain empty entries")
        return cleaned


class GatewayPayload(BaseModel):
    """
    JSON body returned by a CCIP-Read gateway: ``{"data": "0x..."}``.
    """

    model_config = ConfigDict(extra="ignore")

    data: str

    @field_validator("data")
    @classmethod
    def _validate_data(cls, v: str) -> str:
        if not is_hex_data(v):
            raise ValueError("gateway data must be 0x-prefixed hex")
        return v

    def as_bytes(self) -> bytes:
        return bytes.fromhex(self.data[2:])
