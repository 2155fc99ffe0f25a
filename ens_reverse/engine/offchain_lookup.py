"""
EIP-3668 (CCIP-Read) off-chain lookup.

When a universal resolver call reverts with OffchainLookup, the handler:

  1. checks the signal's sender is the contract that was called
  2. tries the gateway URLs strictly in order until one returns hex data
  3. stops at a gateway HttpError (application-level answer, not retried)
  4. calls ``callbackSelector(response, extraData)`` on the same contract

The callback may revert again (decoded like any other revert) or request
another lookup, which is followed up to ``max_redirects`` times.
"""

import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError

from ens_reverse.engine.errors import (
    AllGatewaysFailedError,
    ContractCall,
    GatewayAttempt,
    HttpTransportError,
)
from ens_reverse.engine.abi_codec import same_address
from ens_reverse.engine.reverse_call import CallOutcome, ReverseCallInvoker
from ens_reverse.engine.signals import OffchainLookupSignal, UnclassifiedRevert
from ens_reverse.utils.schemas import GatewayPayload

logger = logging.getLogger(__name__)

# EIP-3668 recommends clients follow at most 4 nested lookups
MAX_REDIRECTS = 4


def build_gateway_request(url: str, sender: str, call_data: bytes):
    """Expand a gateway URL template.

    Returns ``(method, url, body)``. Templates containing ``{data}`` are GET
    requests; everything else is a POST with ``{"data", "sender"}``.
    """
    data_hex = "0x" + call_data.hex()
    target = url.replace("{sender}", sender.lower()).replace("{data}", data_hex)
    if "{data}" in url:
        return "GET", target, None
    return "POST", target, {"data": data_hex, "sender": sender.lower()}


class OffchainLookupHandler:
    """Runs the gateway-fallback protocol for one contract call."""

    def __init__(self, invoker: ReverseCallInvoker, http_client, max_redirects: int = MAX_REDIRECTS):
        self._invoker = invoker
        self._http = http_client
        self._max_redirects = max_redirects

    def handle(
        self,
        signal: OffchainLookupSignal,
        contract_call: ContractCall,
        block_number: Optional[int] = None,
    ) -> CallOutcome:
        """Follow ``signal`` to completion.

        Returns the callback's return data, or the RevertSignal that ended
        the exchange. Raises AllGatewaysFailedError when no gateway answers.
        """
        outcome: CallOutcome = signal
        redirects = 0
        while isinstance(outcome, OffchainLookupSignal):
            if redirects > self._max_redirects:
                logger.warning(
                    "Off-chain lookup from %s exceeded %d redirects",
                    contract_call.address, self._max_redirects,
                )
                return UnclassifiedRevert(outcome.raw_data)
            if not same_address(outcome.sender, contract_call.address):
                logger.warning(
                    "OffchainLookup sender %s does not match called contract %s",
                    outcome.sender, contract_call.address,
                )
                return UnclassifiedRevert(outcome.raw_data)

            response = self.ccip_request(outcome.sender, outcome.urls, outcome.call_data, contract_call)

            http_error = self._invoker.codec.decode_gateway_error(response)
            if http_error is not None:
                logger.debug("Gateway answered with HttpError for %s", contract_call.address)
                return http_error

            callback = self._invoker.codec.encode_callback(
                outcome.callback_selector, response, outcome.extra_data
            )
            outcome = self._invoker.call(contract_call.address, callback, block_number)
            redirects += 1
        return outcome

    def ccip_request(
        self,
        sender: str,
        urls: Sequence[str],
        call_data: bytes,
        contract_call: ContractCall,
    ) -> bytes:
        """Ask each gateway in turn; first well-formed response wins."""
        attempts: List[GatewayAttempt] = []
        for url in urls:
            method, target, body = build_gateway_request(url, sender, call_data)
            logger.debug("CCIP-Read %s %s", method, target)
            try:
                if method == "GET":
                    resp = self._http.get(target)
                else:
                    resp = self._http.post(target, body)
            except HttpTransportError as e:
                attempts.append(GatewayAttempt(url=target, reason=e.message))
                logger.warning("Gateway %s unreachable: %s", target, e)
                continue

            if not resp.ok:
                reason = f"HTTP {resp.status_code}" + (f": {resp.detail}" if resp.detail else "")
                attempts.append(GatewayAttempt(url=target, reason=reason))
                logger.warning("Gateway %s failed: %s", target, reason)
                continue

            try:
                payload = GatewayPayload(data=resp.payload)
            except ValidationError:
                attempts.append(GatewayAttempt(url=target, reason="malformed response"))
                logger.warning("Gateway %s returned a malformed response", target)
                continue
            return payload.as_bytes()

        raise AllGatewaysFailedError(contract_call, attempts)
