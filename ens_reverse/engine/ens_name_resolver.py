"""
Address -> primary ENS name, via the universal resolver.

Provides:
  - AddressToNameResolver.resolve_name(address, ...) -> Optional[str]
  - build_resolver(settings) -> AddressToNameResolver   -- live web3/requests wiring
  - get_ens_name(address, ...) -> Optional[str]        -- one-shot convenience

Each call walks a small state machine:

  RESOLVE_CONTRACT_ADDRESS -> INVOKE_REVERSE_CALL
      -> (RUN_GATEWAY_PROTOCOL)       on OffchainLookup
      -> CLASSIFY                     on any other revert / exhausted gateways
      -> VERIFY                       on return data
  -> DONE

Configuration errors and transport errors escape from any state. Protocol
failures end in CLASSIFY, which returns None or raises depending on
``strict``. VERIFY returns the name only if it forward-resolves back to the
address.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from ens_reverse.engine.abi_codec import DECODE_ERRORS, AbiCodec
from ens_reverse.engine.chains import ChainContext, ChainRegistry
from ens_reverse.engine.config import ResolverSettings
from ens_reverse.engine.contract_address import ContractAddressResolver
from ens_reverse.engine.error_classifier import ErrorClassifier
from ens_reverse.engine.errors import (
    AllGatewaysFailedError,
    ChainNotConfiguredError,
    ConfigurationError,
    InvalidAddressError,
)
from ens_reverse.engine.http_client import RequestsHttpClient
from ens_reverse.engine.offchain_lookup import MAX_REDIRECTS, OffchainLookupHandler
from ens_reverse.engine.reverse_call import CallOutcome, ReverseCallInvoker
from ens_reverse.engine.signals import OffchainLookupSignal, RevertSignal, UnclassifiedRevert
from ens_reverse.engine.transport import Web3RpcTransport
from ens_reverse.engine.verifier import ReverseRecordVerifier
from ens_reverse.utils.schemas import ResolutionRequest

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    RESOLVE_CONTRACT_ADDRESS = "resolve_contract_address"
    INVOKE_REVERSE_CALL = "invoke_reverse_call"
    RUN_GATEWAY_PROTOCOL = "run_gateway_protocol"
    CLASSIFY = "classify"
    VERIFY = "verify"
    DONE = "done"


def _state_after_call(outcome: Any) -> ResolutionState:
    if isinstance(outcome, OffchainLookupSignal):
        return ResolutionState.RUN_GATEWAY_PROTOCOL
    if isinstance(outcome, (RevertSignal, AllGatewaysFailedError)):
        return ResolutionState.CLASSIFY
    return ResolutionState.VERIFY


def _build_request(**fields) -> ResolutionRequest:
    try:
        return ResolutionRequest(**fields)
    except ValidationError as e:
        for err in e.errors():
            field = err["loc"][0] if err.get("loc") else None
            if field in ("address", "universal_resolver_address"):
                raise InvalidAddressError(str(fields.get(field)), field=field) from None
        raise ConfigurationError(f"Invalid resolution request:\n{e}") from None


class AddressToNameResolver:
    """Reverse resolution orchestrator.

    Holds only read-only collaborators, so one instance can serve many
    concurrent ``resolve_name`` calls.
    """

    def __init__(
        self,
        transport,
        http_client=None,
        chain: Optional[ChainContext] = None,
        codec: Optional[AbiCodec] = None,
        max_redirects: int = MAX_REDIRECTS,
    ):
        self.chain = chain
        self._invoker = ReverseCallInvoker(transport, codec)
        self._offchain = OffchainLookupHandler(
            self._invoker, http_client or RequestsHttpClient(), max_redirects=max_redirects
        )
        self._contract_resolver = ContractAddressResolver()
        self._classifier = ErrorClassifier()

    # -- Public API -------------------------------------------------------

    def resolve_name(
        self,
        address: str,
        chain: Optional[ChainContext] = None,
        universal_resolver_address: Optional[str] = None,
        block_number: Optional[int] = None,
        gateway_urls: Optional[Sequence[str]] = None,
        strict: bool = False,
    ) -> Optional[str]:
        """Primary name for ``address``, or None.

        Raises ConfigurationError subclasses for unusable requests in both
        modes, and ContractFunctionExecutionError subclasses for protocol
        failures when ``strict`` is set.
        """
        request = _build_request(
            address=address,
            universal_resolver_address=universal_resolver_address,
            block_number=block_number,
            gateway_urls=list(gateway_urls) if gateway_urls is not None else None,
            strict=strict,
        )
        chain = chain if chain is not None else self.chain

        state = ResolutionState.RESOLVE_CONTRACT_ADDRESS
        contract_address = None
        contract_call = None
        outcome: Any = None
        name: Optional[str] = None

        while state is not ResolutionState.DONE:
            logger.debug("[%s] %s", request.address, state.value)

            if state is ResolutionState.RESOLVE_CONTRACT_ADDRESS:
                contract_address = self._contract_resolver.resolve(
                    chain, request.universal_resolver_address, request.block_number
                )
                state = ResolutionState.INVOKE_REVERSE_CALL

            elif state is ResolutionState.INVOKE_REVERSE_CALL:
                contract_call, outcome = self._invoker.reverse(
                    contract_address, request.address, request.gateway_urls, request.block_number
                )
                state = _state_after_call(outcome)

            elif state is ResolutionState.RUN_GATEWAY_PROTOCOL:
                outcome = self._run_gateway_protocol(outcome, contract_call, request.block_number)
                state = _state_after_call(outcome)

            elif state is ResolutionState.CLASSIFY:
                name = self._classifier.classify(outcome, contract_call, strict=request.strict)
                state = ResolutionState.DONE

            elif state is ResolutionState.VERIFY:
                try:
                    record = self._invoker.decode_reverse(outcome)
                except DECODE_ERRORS:
                    # Not a universal resolver (or not a contract at all)
                    outcome = UnclassifiedRevert(bytes(outcome))
                    state = ResolutionState.CLASSIFY
                    continue
                verifier = ReverseRecordVerifier(
                    lambda n: self._forward_address(n, contract_address, request)
                )
                name = verifier.verify(record, request.address)
                state = ResolutionState.DONE

        return name

    # -- Internals --------------------------------------------------------

    def _run_gateway_protocol(self, signal, contract_call, block_number):
        try:
            return self._offchain.handle(signal, contract_call, block_number)
        except AllGatewaysFailedError as e:
            return e

    def _forward_address(
        self,
        name: str,
        contract_address: str,
        request: ResolutionRequest,
    ) -> Optional[str]:
        """Forward-resolve ``name``; any protocol failure counts as no address."""
        contract_call, outcome = self._invoker.forward(
            contract_address, name, request.gateway_urls, request.block_number
        )
        if isinstance(outcome, OffchainLookupSignal):
            outcome = self._run_gateway_protocol(outcome, contract_call, request.block_number)
        if isinstance(outcome, (RevertSignal, AllGatewaysFailedError)):
            logger.debug("Forward resolution of %s failed: %r", name, outcome)
            return None
        try:
            return self._invoker.codec.decode_forward_result(outcome)
        except DECODE_ERRORS:
            return None


# ─────────────────────────────────────────────────────────────────────
# Live wiring
# ─────────────────────────────────────────────────────────────────────

def build_resolver(
    settings: Optional[ResolverSettings] = None,
    registry: Optional[ChainRegistry] = None,
    w3=None,
) -> AddressToNameResolver:
    """Wire a resolver from settings: web3 transport, requests gateway client."""
    settings = settings or ResolverSettings.from_env()
    registry = registry or ChainRegistry()

    if w3 is not None:
        transport = Web3RpcTransport(w3=w3)
    else:
        transport = Web3RpcTransport(rpc_url=settings.require_rpc_url(), timeout=settings.rpc_timeout)

    chain = registry.get_chain(settings.chain_id)
    if chain is None and not settings.universal_resolver_address:
        known = ", ".join(str(chain_id) for chain_id in registry.known_chain_ids())
        raise ChainNotConfiguredError(
            f"chain {settings.chain_id} is not in the chain registry (known: {known}). "
            "universalResolverAddress is required."
        )

    return AddressToNameResolver(
        transport=transport,
        http_client=RequestsHttpClient(timeout=settings.gateway_timeout),
        chain=chain,
    )


def get_ens_name(
    address: str,
    settings: Optional[ResolverSettings] = None,
    **options,
) -> Optional[str]:
    """One-shot reverse lookup using environment configuration.

    ``options`` are passed to ``resolve_name``; ``strict`` and
    ``universal_resolver_address`` default to the settings' values.
    """
    settings = settings or ResolverSettings.from_env()
    options.setdefault("strict", settings.strict)
    if settings.universal_resolver_address:
        options.setdefault("universal_resolver_address", settings.universal_resolver_address)
    return build_resolver(settings).resolve_name(address, **options)
