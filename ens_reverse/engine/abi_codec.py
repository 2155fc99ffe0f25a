"""
ABI codec for the ENS universal resolver.

Provides:
  - dns_encode(name) / namehash(name)           -- ENS name encodings
  - AbiCodec.encode_reverse_call / decode_reverse_result
  - AbiCodec.encode_forward_call / decode_forward_result
  - AbiCodec.encode_callback                     -- EIP-3668 callback calldata
  - AbiCodec.decode_revert                       -- revert bytes -> RevertSignal
  - AbiCodec.decode_gateway_error                -- gateway payload -> HttpError

Selectors are computed from canonical signatures with keccak, the same way
calldata is built for any other contract function.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_checksum_address

from ens_reverse.engine.signals import (
    HttpErrorDetail,
    NamedError,
    OffchainLookupSignal,
    RevertKind,
    RevertSignal,
    UnclassifiedRevert,
)


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def compute_selector(signature: str) -> bytes:
    """4-byte selector of a canonical function or error signature."""
    return keccak(text=signature)[:4]


# ─────────────────────────────────────────────────────────────────────
# Signatures & selectors
# ─────────────────────────────────────────────────────────────────────

REVERSE_SIGNATURE = "reverse(bytes)"
REVERSE_WITH_GATEWAYS_SIGNATURE = "reverse(bytes,string[])"
RESOLVE_SIGNATURE = "resolve(bytes,bytes)"
RESOLVE_WITH_GATEWAYS_SIGNATURE = "resolve(bytes,bytes,string[])"
ADDR_SIGNATURE = "addr(bytes32)"

# Human-readable forms used in error messages
REVERSE_DISPLAY = "reverse(bytes reverseName)"
REVERSE_WITH_GATEWAYS_DISPLAY = "reverse(bytes reverseName, string[] gateways)"
RESOLVE_DISPLAY = "resolve(bytes name, bytes data)"
RESOLVE_WITH_GATEWAYS_DISPLAY = "resolve(bytes name, bytes data, string[] gateways)"

OFFCHAIN_LOOKUP_SELECTOR = compute_selector("OffchainLookup(address,string[],bytes,bytes4,bytes)")
RESOLVER_NOT_FOUND_SELECTOR = compute_selector("ResolverNotFound()")
RESOLVER_WILDCARD_NOT_SUPPORTED_SELECTOR = compute_selector("ResolverWildcardNotSupported()")
RESOLVER_NOT_CONTRACT_SELECTOR = compute_selector("ResolverNotContract()")
RESOLVER_ERROR_SELECTOR = compute_selector("ResolverError(bytes)")
HTTP_ERROR_SELECTOR = compute_selector("HttpError((uint16,string)[])")
ERROR_STRING_SELECTOR = compute_selector("Error(string)")
PANIC_SELECTOR = compute_selector("Panic(uint256)")

_WILDCARD_REASON = "Wildcard on non-extended resolvers is not supported"

# Parameterless errors that map straight onto a RevertKind
_BARE_ERRORS = {
    RESOLVER_NOT_FOUND_SELECTOR: RevertKind.RESOLVER_NOT_FOUND,
    RESOLVER_WILDCARD_NOT_SUPPORTED_SELECTOR: RevertKind.WILDCARD_NOT_SUPPORTED,
    RESOLVER_NOT_CONTRACT_SELECTOR: RevertKind.RESOLVER_NOT_CONTRACT,
}

DECODE_ERRORS = (DecodingError, ValueError, OverflowError)


# ─────────────────────────────────────────────────────────────────────
# Name encodings
# ─────────────────────────────────────────────────────────────────────

def dns_encode(name: str) -> bytes:
    """Encode a dotted name in DNS wire format.

    Each label is prefixed with its byte length and the whole name is
    terminated by 0x00, e.g. ``awkweb.eth`` -> ``\\x06awkweb\\x03eth\\x00``.
    Labels longer than 255 bytes are replaced by their bracketed labelhash.
    """
    out = bytearray()
    for label in name.split("."):
        if not label:
            continue
        encoded = label.encode("utf-8")
        if len(encoded) > 255:
            encoded = f"[{keccak(encoded).hex()}]".encode("ascii")
        out.append(len(encoded))
        out.extend(encoded)
    out.append(0)
    return bytes(out)


def namehash(name: str) -> bytes:
    """EIP-137 namehash. Empty labels are skipped, as in ``dns_encode``."""
    node = b"\x00" * 32
    if not name:
        return node
    for label in reversed([label for label in name.split(".") if label]):
        node = keccak(node + keccak(text=label))
    return node


def reverse_node_name(address: str) -> str:
    """``0xAbC...`` -> ``abc....addr.reverse``"""
    return f"{address.lower()[2:]}.addr.reverse"


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison on the canonical lower-case form."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


@dataclass(frozen=True)
class ReverseRecord:
    """Decoded return value of ``reverse(bytes)``."""
    name: str
    resolved_address: str
    reverse_resolver: str
    resolver: str


# ─────────────────────────────────────────────────────────────────────
# Codec
# ─────────────────────────────────────────────────────────────────────

class AbiCodec:
    """Encodes universal resolver calls and decodes their results and reverts."""

    # -- reverse --------------------------------------------------------

    def reverse_name(self, address: str) -> bytes:
        return dns_encode(reverse_node_name(address))

    def encode_reverse_call(self, address: str, gateway_urls: Optional[Sequence[str]] = None) -> bytes:
        reverse_name = self.reverse_name(address)
        if gateway_urls:
            return compute_selector(REVERSE_WITH_GATEWAYS_SIGNATURE) + abi_encode(
                ["bytes", "string[]"], [reverse_name, list(gateway_urls)]
            )
        return compute_selector(REVERSE_SIGNATURE) + abi_encode(["bytes"], [reverse_name])

    def decode_reverse_result(self, data: bytes) -> ReverseRecord:
        name, resolved_address, reverse_resolver, resolver = abi_decode(
            ["string", "address", "address", "address"], data
        )
        return ReverseRecord(
            name=name,
            resolved_address=resolved_address,
            reverse_resolver=reverse_resolver,
            resolver=resolver,
        )

    # -- forward (verification) -----------------------------------------

    def encode_forward_call(self, name: str, gateway_urls: Optional[Sequence[str]] = None) -> bytes:
        addr_call = compute_selector(ADDR_SIGNATURE) + abi_encode(["bytes32"], [namehash(name)])
        if gateway_urls:
            return compute_selector(RESOLVE_WITH_GATEWAYS_SIGNATURE) + abi_encode(
                ["bytes", "bytes", "string[]"], [dns_encode(name), addr_call, list(gateway_urls)]
            )
        return compute_selector(RESOLVE_SIGNATURE) + abi_encode(
            ["bytes", "bytes"], [dns_encode(name), addr_call]
        )

    def decode_forward_result(self, data: bytes) -> Optional[str]:
        """Decode ``resolve(bytes,bytes)`` wrapping ``addr(bytes32)``.

        Returns the checksummed address, or None when the resolver returned
        nothing or the zero address.
        """
        result, _resolver = abi_decode(["bytes", "address"], data)
        if len(result) < 32:
            return None
        (address,) = abi_decode(["address"], result)
        if same_address(address, ZERO_ADDRESS):
            return None
        return to_checksum_address(address)

    # -- CCIP-Read -------------------------------------------------------

    def encode_callback(self, selector: bytes, response: bytes, extra_data: bytes) -> bytes:
        return selector + abi_encode(["bytes", "bytes"], [response, extra_data])

    def decode_http_errors(self, data: bytes) -> Optional[Tuple[HttpErrorDetail, ...]]:
        if data[:4] != HTTP_ERROR_SELECTOR:
            return None
        try:
            (entries,) = abi_decode(["(uint16,string)[]"], data[4:])
        except DECODE_ERRORS:
            return None
        return tuple(HttpErrorDetail(status=int(s), message=m) for s, m in entries)

    def decode_gateway_error(self, data: bytes) -> Optional[NamedError]:
        """Return a HTTP_ERROR signal if a gateway payload carries HttpError.

        Two shapes are recognised: a bare ``HttpError(...)`` payload, and a
        batch gateway ``query`` result whose every entry failed with one.
        Anything else is a success payload for the callback.
        """
        details = self.decode_http_errors(data)
        if details is not None:
            return NamedError(RevertKind.HTTP_ERROR, details)

        try:
            failures, responses = abi_decode(["bool[]", "bytes[]"], data)
        except DECODE_ERRORS:
            return None
        if not failures or len(failures) != len(responses) or not all(failures):
            return None

        collected = []
        for response in responses:
            entry = self.decode_http_errors(response)
            if entry is None:
                return None
            collected.extend(entry)
        return NamedError(RevertKind.HTTP_ERROR, tuple(collected))

    # -- reverts ---------------------------------------------------------

    def decode_revert(self, data: Optional[bytes]) -> RevertSignal:
        data = bytes(data or b"")
        if len(data) < 4:
            return UnclassifiedRevert(data)
        selector, body = data[:4], data[4:]

        try:
            if selector == OFFCHAIN_LOOKUP_SELECTOR:
                sender, urls, call_data, callback, extra = abi_decode(
                    ["address", "string[]", "bytes", "bytes4", "bytes"], body
                )
                return OffchainLookupSignal(
                    sender=to_checksum_address(sender),
                    urls=tuple(urls),
                    call_data=call_data,
                    callback_selector=callback,
                    extra_data=extra,
                    raw_data=data,
                )

            if selector in _BARE_ERRORS:
                return NamedError(_BARE_ERRORS[selector])

            if selector == RESOLVER_ERROR_SELECTOR:
                (inner,) = abi_decode(["bytes"], body)
                details = self.decode_http_errors(inner)
                if details is not None:
                    return NamedError(RevertKind.HTTP_ERROR, details)
                return NamedError(RevertKind.RESOLVER_ERROR, inner)

            if selector == HTTP_ERROR_SELECTOR:
                details = self.decode_http_errors(data)
                if details is not None:
                    return NamedError(RevertKind.HTTP_ERROR, details)
                return UnclassifiedRevert(data)

            if selector == ERROR_STRING_SELECTOR:
                (reason,) = abi_decode(["string"], body)
                if reason.endswith(_WILDCARD_REASON):
                    return NamedError(RevertKind.WILDCARD_NOT_SUPPORTED, reason)
                return NamedError(RevertKind.REVERT_REASON, reason)

            if selector == PANIC_SELECTOR:
                (code,) = abi_decode(["uint256"], body)
                return NamedError(RevertKind.PANIC, code)
        except DECODE_ERRORS:
            return UnclassifiedRevert(data)

        return UnclassifiedRevert(data)
