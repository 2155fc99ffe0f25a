"""ABI codec: name encodings, revert decoding, gateway payload decoding."""

from eth_abi import decode as abi_decode

from ens_reverse.engine.abi_codec import (
    ERROR_STRING_SELECTOR,
    HTTP_ERROR_SELECTOR,
    OFFCHAIN_LOOKUP_SELECTOR,
    PANIC_SELECTOR,
    AbiCodec,
    dns_encode,
    namehash,
    reverse_node_name,
    same_address,
)
from ens_reverse.engine.signals import (
    HttpErrorDetail,
    NamedError,
    OffchainLookupSignal,
    RevertKind,
    UnclassifiedRevert,
)
from ens_reverse.tests.fakes import (
    AWKWEB,
    CALLBACK_SELECTOR,
    NO_RESOLVER,
    UNIVERSAL_RESOLVER_ADDRESS,
    VITALIK,
    batch_query_result,
    error_data,
    forward_ok,
    http_error_payload,
    offchain_lookup_data,
    reverse_ok,
)

codec = AbiCodec()


# ─────────────────────────────────────────────────────────────────────
# Name encodings
# ─────────────────────────────────────────────────────────────────────

def test_well_known_selectors():
    assert OFFCHAIN_LOOKUP_SELECTOR.hex() == "556f1830"
    assert ERROR_STRING_SELECTOR.hex() == "08c379a0"
    assert PANIC_SELECTOR.hex() == "4e487b71"
    assert HTTP_ERROR_SELECTOR.hex() == "ca7a4e75"


def test_reverse_name_is_dns_encoded_lowercase_address():
    expected = bytes.fromhex(
        "2830303030303030303030303036316164386565313930373130353038613831386165353332356333"
        "0461646472077265766572736500"
    )
    assert reverse_node_name(NO_RESOLVER) == "00000000000061ad8ee190710508a818ae5325c3.addr.reverse"
    assert codec.reverse_name(NO_RESOLVER) == expected


def test_dns_encode():
    assert dns_encode("awkweb.eth") == b"\x06awkweb\x03eth\x00"
    assert dns_encode("") == b"\x00"


def test_namehash():
    assert namehash("") == b"\x00" * 32
    assert namehash("eth").hex() == "93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"


def test_trailing_dot_names_encode_like_their_plain_form():
    assert dns_encode("vitalik.eth.") == dns_encode("vitalik.eth")
    assert namehash("vitalik.eth.") == namehash("vitalik.eth")

    data = codec.encode_forward_call("vitalik.eth.")
    assert data == codec.encode_forward_call("vitalik.eth")


def test_same_address_ignores_case():
    assert same_address(VITALIK.lower(), VITALIK.upper().replace("0X", "0x"))
    assert not same_address(VITALIK, AWKWEB)
    assert not same_address(None, VITALIK)


# ─────────────────────────────────────────────────────────────────────
# Calls and results
# ─────────────────────────────────────────────────────────────────────

def test_reverse_call_with_gateways_carries_urls():
    data = codec.encode_reverse_call(AWKWEB, ["https://gw.example/{sender}/{data}"])
    name, urls = abi_decode(["bytes", "string[]"], data[4:])
    assert name == codec.reverse_name(AWKWEB)
    assert urls == ("https://gw.example/{sender}/{data}",)
    assert data[:4] != codec.encode_reverse_call(AWKWEB)[:4]


def test_decode_reverse_result():
    record = codec.decode_reverse_result(reverse_ok("awkweb.eth", AWKWEB).data)
    assert record.name == "awkweb.eth"
    assert same_address(record.resolved_address, AWKWEB)


def test_forward_call_wraps_addr_of_namehash():
    data = codec.encode_forward_call("vitalik.eth")
    name, inner = abi_decode(["bytes", "bytes"], data[4:])
    assert name == dns_encode("vitalik.eth")
    assert inner[4:] == namehash("vitalik.eth")


def test_decode_forward_result():
    assert codec.decode_forward_result(forward_ok(VITALIK).data) == VITALIK
    assert codec.decode_forward_result(forward_ok("0x" + "00" * 20).data) is None


def test_encode_callback():
    data = codec.encode_callback(CALLBACK_SELECTOR, b"response", b"extra")
    assert data[:4] == CALLBACK_SELECTOR
    assert abi_decode(["bytes", "bytes"], data[4:]) == (b"response", b"extra")


# ─────────────────────────────────────────────────────────────────────
# Reverts
# ─────────────────────────────────────────────────────────────────────

def test_decode_offchain_lookup():
    signal = codec.decode_revert(offchain_lookup_data(["https://a.example", "https://b.example"]))
    assert isinstance(signal, OffchainLookupSignal)
    assert same_address(signal.sender, UNIVERSAL_RESOLVER_ADDRESS)
    assert signal.urls == ("https://a.example", "https://b.example")
    assert signal.call_data == b"\x12\x34\x56\x78"
    assert signal.callback_selector == CALLBACK_SELECTOR
    assert signal.extra_data == b"extra"


def test_decode_bare_resolver_errors():
    assert codec.decode_revert(error_data("ResolverWildcardNotSupported()")) == NamedError(
        RevertKind.WILDCARD_NOT_SUPPORTED
    )
    assert codec.decode_revert(error_data("ResolverNotContract()")) == NamedError(
        RevertKind.RESOLVER_NOT_CONTRACT
    )
    assert codec.decode_revert(error_data("ResolverNotFound()")) == NamedError(
        RevertKind.RESOLVER_NOT_FOUND
    )


def test_decode_resolver_error_empty_and_wrapped_http_error():
    empty = codec.decode_revert(error_data("ResolverError(bytes)", ["bytes"], [b""]))
    assert empty == NamedError(RevertKind.RESOLVER_ERROR, b"")

    wrapped = codec.decode_revert(
        error_data("ResolverError(bytes)", ["bytes"], [http_error_payload(404, "Not Found")])
    )
    assert wrapped == NamedError(RevertKind.HTTP_ERROR, (HttpErrorDetail(404, "Not Found"),))


def test_decode_revert_reason_wildcard_and_generic():
    wildcard = codec.decode_revert(error_data(
        "Error(string)", ["string"],
        ["UniversalResolver: Wildcard on non-extended resolvers is not supported"],
    ))
    assert wildcard.kind is RevertKind.WILDCARD_NOT_SUPPORTED
    assert wildcard.payload.startswith("UniversalResolver:")

    other = codec.decode_revert(error_data("Error(string)", ["string"], ["nope"]))
    assert other == NamedError(RevertKind.REVERT_REASON, "nope")


def test_decode_panic():
    assert codec.decode_revert(error_data("Panic(uint256)", ["uint256"], [0x32])) == NamedError(
        RevertKind.PANIC, 0x32
    )


def test_decode_unknown_and_empty_reverts():
    assert codec.decode_revert(b"") == UnclassifiedRevert(b"")
    assert codec.decode_revert(None) == UnclassifiedRevert(b"")
    assert codec.decode_revert(b"\xde\xad\xbe\xef") == UnclassifiedRevert(b"\xde\xad\xbe\xef")
    # truncated OffchainLookup body
    truncated = OFFCHAIN_LOOKUP_SELECTOR + b"\x00" * 8
    assert codec.decode_revert(truncated) == UnclassifiedRevert(truncated)


# ─────────────────────────────────────────────────────────────────────
# Gateway payloads
# ─────────────────────────────────────────────────────────────────────

def test_gateway_error_direct_http_error():
    signal = codec.decode_gateway_error(http_error_payload(500, "Internal"))
    assert signal == NamedError(RevertKind.HTTP_ERROR, (HttpErrorDetail(500, "Internal"),))


def test_gateway_error_from_batch_query_result():
    payload = batch_query_result([True], [http_error_payload(404, "Not Found")])
    signal = codec.decode_gateway_error(payload)
    assert signal == NamedError(RevertKind.HTTP_ERROR, (HttpErrorDetail(404, "Not Found"),))


def test_gateway_success_payloads_are_not_errors():
    assert codec.decode_gateway_error(b"signed-response") is None
    assert codec.decode_gateway_error(batch_query_result([False], [b"\x01\x02"])) is None
    assert codec.decode_gateway_error(batch_query_result([True], [b"\x01\x02"])) is None
