"""
Read-only contract calls over JSON-RPC, backed by web3.py.

A revert is a normal outcome here: it comes back as ``CallResult`` with
``revert_data`` set. Anything else that goes wrong (timeouts, refused
connections, malformed node responses) is raised unchanged.
"""

from dataclasses import dataclass
from typing import Any, Optional

from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError


@dataclass(frozen=True)
class CallResult:
    data: bytes = b""
    revert_data: Optional[bytes] = None

    @property
    def reverted(self) -> bool:
        return self.revert_data is not None

    @classmethod
    def revert(cls, data: Optional[bytes]) -> "CallResult":
        return cls(revert_data=bytes(data or b""))


def _revert_bytes(exc: ContractLogicError) -> bytes:
    """Raw revert data carried by a web3 ContractLogicError, if any."""
    data = getattr(exc, "data", None)
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str) and data.startswith("0x"):
        try:
            return bytes(HexBytes(data))
        except ValueError:
            return b""
    return b""


class Web3RpcTransport:
    """``eth_call`` against a node, with web3.py's own CCIP-Read disabled.

    The off-chain lookup is handled by OffchainLookupHandler, so web3.py
    must hand the OffchainLookup revert back instead of following it.
    """

    def __init__(self, w3: Any = None, rpc_url: Optional[str] = None, timeout: float = 30):
        self._w3: Any = w3
        if self._w3 is None:
            if not rpc_url:
                raise ValueError("Web3RpcTransport needs either a Web3 instance or an rpc_url")
            self._w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    @property
    def w3(self) -> Any:
        return self._w3

    def call(self, to: str, data: bytes, block_number: Optional[int] = None) -> CallResult:
        tx = {"to": to_checksum_address(to), "data": "0x" + data.hex()}
        block = block_number if block_number is not None else "latest"
        try:
            raw = self._w3.eth.call(tx, block, ccip_read_enabled=False)
        except ContractLogicError as exc:
            return CallResult.revert(_revert_bytes(exc))
        return CallResult(data=bytes(raw))
