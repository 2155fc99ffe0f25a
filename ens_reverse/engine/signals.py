"""
Decoded revert signals.

A reverted contract call is decoded into exactly one of:
  - OffchainLookupSignal -- EIP-3668 request to fetch data from gateways
  - NamedError           -- a revert the resolver recognises (see RevertKind)
  - UnclassifiedRevert   -- anything else, kept as raw bytes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class RevertKind(str, Enum):
    """Recognised revert shapes from the universal resolver and its resolvers."""

    WILDCARD_NOT_SUPPORTED = "ResolverWildcardNotSupported"
    RESOLVER_NOT_CONTRACT = "ResolverNotContract"
    RESOLVER_NOT_FOUND = "ResolverNotFound"
    RESOLVER_ERROR = "ResolverError"
    HTTP_ERROR = "HttpError"
    REVERT_REASON = "Error"
    PANIC = "Panic"


@dataclass(frozen=True)
class HttpErrorDetail:
    status: int
    message: str


@dataclass(frozen=True)
class RevertSignal:
    """Base of the closed set of decoded reverts."""
    pass


@dataclass(frozen=True)
class OffchainLookupSignal(RevertSignal):
    sender: str
    urls: Tuple[str, ...]
    call_data: bytes
    callback_selector: bytes
    extra_data: bytes
    raw_data: bytes = b""


@dataclass(frozen=True)
class NamedError(RevertSignal):
    """Recognised revert.

    ``payload`` depends on ``kind``: the revert reason string for
    REVERT_REASON (and reason-based WILDCARD_NOT_SUPPORTED), the inner return
    data for RESOLVER_ERROR, a tuple of HttpErrorDetail for HTTP_ERROR, the
    panic code for PANIC, otherwise None.
    """
    kind: RevertKind
    payload: Any = None


@dataclass(frozen=True)
class UnclassifiedRevert(RevertSignal):
    raw_data: bytes = b""
