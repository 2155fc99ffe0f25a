"""web3 transport and requests gateway client, with their libraries mocked out."""

import json
from unittest.mock import MagicMock

import pytest
import requests
from web3.exceptions import ContractLogicError, OffchainLookup

from ens_reverse.engine.errors import HttpTransportError
from ens_reverse.engine.http_client import RequestsHttpClient
from ens_reverse.engine.transport import CallResult, Web3RpcTransport
from ens_reverse.tests.fakes import UNIVERSAL_RESOLVER_ADDRESS, offchain_lookup_data


def _w3():
    w3 = MagicMock()
    w3.eth.call.return_value = b"\x00\x01"
    return w3


def test_call_disables_web3_ccip_read():
    w3 = _w3()
    result = Web3RpcTransport(w3=w3).call(UNIVERSAL_RESOLVER_ADDRESS.lower(), b"\xab\xcd")

    assert result == CallResult(data=b"\x00\x01")
    w3.eth.call.assert_called_once_with(
        {"to": UNIVERSAL_RESOLVER_ADDRESS, "data": "0xabcd"}, "latest", ccip_read_enabled=False
    )


def test_call_at_block():
    w3 = _w3()
    Web3RpcTransport(w3=w3).call(UNIVERSAL_RESOLVER_ADDRESS, b"\x01", block_number=19300000)
    assert w3.eth.call.call_args.args[1] == 19300000


@pytest.mark.parametrize("data,expected", [
    ("0x556f1830", b"\x55\x6f\x18\x30"),
    (b"\xde\xad", b"\xde\xad"),
    (None, b""),
])
def test_revert_becomes_call_result(data, expected):
    w3 = _w3()
    w3.eth.call.side_effect = ContractLogicError("execution reverted", data=data)

    result = Web3RpcTransport(w3=w3).call(UNIVERSAL_RESOLVER_ADDRESS, b"\x01")

    assert result.reverted
    assert result.revert_data == expected


def test_web3_offchain_lookup_is_returned_as_revert_data():
    raw = offchain_lookup_data(["https://gw.example/{sender}/{data}"])
    w3 = _w3()
    w3.eth.call.side_effect = OffchainLookup({}, data="0x" + raw.hex())

    result = Web3RpcTransport(w3=w3).call(UNIVERSAL_RESOLVER_ADDRESS, b"\x01")

    assert result.revert_data == raw


def test_transport_errors_are_not_caught():
    w3 = _w3()
    w3.eth.call.side_effect = requests.exceptions.ReadTimeout("node timed out")
    with pytest.raises(requests.exceptions.ReadTimeout):
        Web3RpcTransport(w3=w3).call(UNIVERSAL_RESOLVER_ADDRESS, b"\x01")


def test_transport_needs_w3_or_url():
    with pytest.raises(ValueError):
        Web3RpcTransport()


# ─────────────────────────────────────────────────────────────────────
# Gateway HTTP client
# ─────────────────────────────────────────────────────────────────────

def _response(status=200, body=None, text="", content_type="application/json", reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {"Content-Type": content_type}
    resp.reason = reason
    resp.text = text if body is None else json.dumps(body)
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


def test_get_reads_data_field():
    session = MagicMock()
    session.get.return_value = _response(body={"data": "0xabcd"})

    resp = RequestsHttpClient(session=session, timeout=3).get("https://gw.example/x")

    assert resp.ok
    assert resp.payload == "0xabcd"
    session.get.assert_called_once_with("https://gw.example/x", timeout=3)


def test_post_sends_json_body():
    session = MagicMock()
    session.post.return_value = _response(body={"data": "0x"})
    body = {"data": "0x01", "sender": UNIVERSAL_RESOLVER_ADDRESS}

    RequestsHttpClient(session=session).post("https://gw.example", body)

    kwargs = session.post.call_args.kwargs
    assert json.loads(kwargs["data"]) == body
    assert kwargs["headers"]["Content-Type"] == "application/json"


def test_error_body_becomes_detail():
    session = MagicMock()
    session.get.return_value = _response(status=404, body={"message": "Unknown name"}, reason="Not Found")

    resp = RequestsHttpClient(session=session).get("https://gw.example")

    assert not resp.ok
    assert resp.payload is None
    assert resp.detail == "Unknown name"


def test_non_json_response():
    session = MagicMock()
    session.get.return_value = _response(status=502, text="<html>bad gateway</html>",
                                         content_type="text/html", reason="Bad Gateway")

    resp = RequestsHttpClient(session=session).get("https://gw.example")

    assert resp.payload == "<html>bad gateway</html>"
    assert resp.detail == "Bad Gateway"


def test_connection_error_is_wrapped():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(HttpTransportError) as exc_info:
        RequestsHttpClient(session=session).get("https://gw.example")
    assert str(exc_info.value) == "https://gw.example: refused"
