"""
Error taxonomy for ENS reverse resolution.

Three families:
  - ConfigurationError        -- caller misuse; always raised
  - ContractFunctionExecutionError -- protocol-level failures; raised only in
                                 strict mode (see error_classifier.py)
  - HttpTransportError        -- a single gateway could not be reached; never
                                 leaves the off-chain lookup handler

Transport failures from the RPC layer (timeouts, connection errors) are not
wrapped here: they propagate as whatever the transport raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from ens_reverse.engine.signals import (
    HttpErrorDetail,
    NamedError,
    RevertKind,
    RevertSignal,
    UnclassifiedRevert,
)


class ResolutionError(Exception):
    """Base class for every error raised by the resolver."""
    pass


# ─────────────────────────────────────────────────────────────────────
# Configuration errors
# ─────────────────────────────────────────────────────────────────────

class ConfigurationError(ResolutionError):
    """Raised when the request or client setup cannot be used at all."""
    pass


class ChainNotConfiguredError(ConfigurationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "client chain not configured. universalResolverAddress is required."
        )


class InvalidAddressError(ConfigurationError):
    def __init__(self, address: str, field: str = "address"):
        self.address = address
        self.field = field
        super().__init__(
            f'Address "{address}" is invalid ({field}).\n\n'
            "- Address must be a hex value of 20 bytes (40 hex characters)."
        )


class UnsupportedReason(str, Enum):
    NOT_CONFIGURED = "not_configured"
    NOT_YET_DEPLOYED = "not_yet_deployed"


class UnsupportedChainContractError(ConfigurationError):
    """Chain has no usable deployment of the requested contract.

    ``reason`` separates "never configured for this chain" from "configured,
    but the requested block predates the deployment".
    """

    def __init__(
        self,
        chain_name: str,
        contract_name: str,
        reason: UnsupportedReason,
        block_number: Optional[int] = None,
        activation_block: Optional[int] = None,
    ):
        self.chain_name = chain_name
        self.contract_name = contract_name
        self.reason = reason
        self.block_number = block_number
        self.activation_block = activation_block

        if reason is UnsupportedReason.NOT_YET_DEPLOYED:
            cause = (
                f'- The contract "{contract_name}" was not deployed until block '
                f"{activation_block} (current block {block_number})."
            )
        else:
            cause = f'- The chain does not have the contract "{contract_name}" configured.'
        super().__init__(
            f'Chain "{chain_name}" does not support contract "{contract_name}".\n\n'
            "This could be due to any of the following:\n"
            f"{cause}"
        )


# ─────────────────────────────────────────────────────────────────────
# Protocol errors (strict mode)
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ContractCall:
    """The on-chain call a protocol error is attributed to."""
    address: str
    function_name: str
    signature: str
    args: Sequence[bytes]

    def describe(self) -> str:
        args = ", ".join("0x" + a.hex() for a in self.args)
        return (
            "Contract Call:\n"
            f"  address:   {self.address}\n"
            f"  function:  {self.signature}\n"
            f"  args:      ({args})"
        )


class ContractFunctionExecutionError(ResolutionError):
    """A contract function reverted in a way the resolver understands.

    The message mirrors what a wallet or block explorer shows for a failed
    call: which function reverted, the decoded error, then the call itself.
    """

    error_label: Optional[str] = None

    def __init__(self, contract_call: ContractCall, signal: Optional[RevertSignal] = None):
        self.contract_call = contract_call
        self.signal = signal
        super().__init__(self._build_message())

    @property
    def reason(self) -> Optional[str]:
        if isinstance(self.signal, NamedError) and isinstance(self.signal.payload, str):
            return self.signal.payload
        return None

    def _headline(self) -> str:
        fn = self.contract_call.function_name
        if self.reason:
            return f'The contract function "{fn}" reverted with the following reason:\n{self.reason}'
        return f'The contract function "{fn}" reverted.'

    def _details(self) -> List[str]:
        if self.error_label and not self.reason:
            return [f"Error: {self.error_label}"]
        return []

    def _build_message(self) -> str:
        parts = [self._headline()]
        details = self._details()
        if details:
            parts.append("\n".join(details))
        parts.append(self.contract_call.describe())
        return "\n\n".join(parts)


class ResolverWildcardNotSupportedError(ContractFunctionExecutionError):
    error_label = "ResolverWildcardNotSupported()"


class ResolverNotContractError(ContractFunctionExecutionError):
    error_label = "ResolverNotContract()"


class ResolverRevertedError(ContractFunctionExecutionError):
    """The name's resolver reverted; ``return_data`` is what it reverted with."""

    @property
    def return_data(self) -> bytes:
        if isinstance(self.signal, NamedError) and isinstance(self.signal.payload, bytes):
            return self.signal.payload
        return b""

    def _details(self) -> List[str]:
        return [
            "Error: ResolverError(bytes returnData)",
            f"                    (0x{self.return_data.hex()})",
        ]


class GatewayHttpError(ContractFunctionExecutionError):
    """A gateway answered, but with an application-level HttpError."""

    @property
    def errors(self) -> Sequence[HttpErrorDetail]:
        if isinstance(self.signal, NamedError) and self.signal.kind is RevertKind.HTTP_ERROR:
            return self.signal.payload or ()
        return ()

    @property
    def status(self) -> Optional[int]:
        return self.errors[0].status if self.errors else None

    @property
    def message_text(self) -> Optional[str]:
        return self.errors[0].message if self.errors else None

    def _details(self) -> List[str]:
        rendered = ", ".join(f"({e.status}, {e.message!r})" for e in self.errors)
        return ["Error: HttpError((uint16,string)[])", f"       [{rendered}]"]


class UnclassifiedRevertError(ContractFunctionExecutionError):
    """Revert with a shape the resolver does not recognise."""

    def _details(self) -> List[str]:
        signal = self.signal
        if isinstance(signal, NamedError):
            if signal.kind is RevertKind.PANIC:
                return [f"Error: Panic(uint256)\n       ({signal.payload})"]
            if signal.kind is RevertKind.RESOLVER_NOT_FOUND:
                return ["Error: ResolverNotFound()"]
            return []
        if isinstance(signal, UnclassifiedRevert) and signal.raw_data:
            return [f"Revert data: 0x{signal.raw_data.hex()}"]
        return []


@dataclass(frozen=True)
class GatewayAttempt:
    url: str
    reason: str


class AllGatewaysFailedError(ContractFunctionExecutionError):
    """Every gateway URL of an off-chain lookup failed to answer."""

    def __init__(self, contract_call: ContractCall, attempts: Sequence[GatewayAttempt]):
        self.attempts = list(attempts)
        super().__init__(contract_call, None)

    @property
    def urls(self) -> List[str]:
        return [a.url for a in self.attempts]

    def _headline(self) -> str:
        return (
            f'The contract function "{self.contract_call.function_name}" requested an '
            "off-chain lookup, but no gateway returned a usable response."
        )

    def _details(self) -> List[str]:
        if not self.attempts:
            return ["Gateway URLs: (none)"]
        lines = ["Gateway URLs:"]
        lines.extend(f"  - {a.url}: {a.reason}" for a in self.attempts)
        return lines


# ─────────────────────────────────────────────────────────────────────
# Gateway transport
# ─────────────────────────────────────────────────────────────────────

class HttpTransportError(Exception):
    """A gateway request did not complete (connection refused, timeout, ...)."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"{url}: {message}")
