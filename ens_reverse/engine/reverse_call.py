"""
Execute universal resolver calls through the RPC transport.

A successful call returns raw return data; a revert is decoded into a
RevertSignal and returned rather than raised. Transport exceptions are not
caught.
"""

from typing import Optional, Sequence, Tuple, Union

from ens_reverse.engine.abi_codec import (
    RESOLVE_DISPLAY,
    RESOLVE_WITH_GATEWAYS_DISPLAY,
    REVERSE_DISPLAY,
    REVERSE_WITH_GATEWAYS_DISPLAY,
    AbiCodec,
    ReverseRecord,
    dns_encode,
)
from ens_reverse.engine.errors import ContractCall
from ens_reverse.engine.signals import RevertSignal

CallOutcome = Union[bytes, RevertSignal]


class ReverseCallInvoker:
    """Builds and runs ``reverse`` / ``resolve`` calls on the universal resolver."""

    def __init__(self, transport, codec: Optional[AbiCodec] = None):
        self._transport = transport
        self.codec = codec or AbiCodec()

    def call(self, to: str, data: bytes, block_number: Optional[int] = None) -> CallOutcome:
        """Raw call: return data on success, decoded RevertSignal on revert."""
        result = self._transport.call(to, data, block_number)
        if result.reverted:
            return self.codec.decode_revert(result.revert_data)
        return result.data

    def reverse(
        self,
        contract_address: str,
        address: str,
        gateway_urls: Optional[Sequence[str]] = None,
        block_number: Optional[int] = None,
    ) -> Tuple[ContractCall, CallOutcome]:
        reverse_name = self.codec.reverse_name(address)
        contract_call = ContractCall(
            address=contract_address,
            function_name="reverse",
            signature=REVERSE_WITH_GATEWAYS_DISPLAY if gateway_urls else REVERSE_DISPLAY,
            args=(reverse_name,),
        )
        data = self.codec.encode_reverse_call(address, gateway_urls)
        return contract_call, self.call(contract_address, data, block_number)

    def forward(
        self,
        contract_address: str,
        name: str,
        gateway_urls: Optional[Sequence[str]] = None,
        block_number: Optional[int] = None,
    ) -> Tuple[ContractCall, CallOutcome]:
        contract_call = ContractCall(
            address=contract_address,
            function_name="resolve",
            signature=RESOLVE_WITH_GATEWAYS_DISPLAY if gateway_urls else RESOLVE_DISPLAY,
            args=(dns_encode(name),),
        )
        data = self.codec.encode_forward_call(name, gateway_urls)
        return contract_call, self.call(contract_address, data, block_number)

    def decode_reverse(self, data: bytes) -> ReverseRecord:
        return self.codec.decode_reverse_result(data)
