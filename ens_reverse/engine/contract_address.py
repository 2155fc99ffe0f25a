"""
Pick the universal resolver address a resolution should call.

Pure decision, no I/O: the chain context already carries the deployment
address and its activation block.
"""

from typing import Optional

from eth_utils import to_checksum_address

from ens_reverse.engine.chains import UNIVERSAL_RESOLVER, ChainContext
from ens_reverse.engine.errors import (
    ChainNotConfiguredError,
    InvalidAddressError,
    UnsupportedChainContractError,
    UnsupportedReason,
)
from ens_reverse.utils.schemas import is_eth_address


def get_chain_contract_address(
    chain: ChainContext,
    contract_name: str,
    block_number: Optional[int] = None,
) -> str:
    """Address of ``contract_name`` on ``chain``, honouring its activation block."""
    deployment = chain.contract(contract_name)
    if deployment is None:
        raise UnsupportedChainContractError(
            chain_name=chain.name,
            contract_name=contract_name,
            reason=UnsupportedReason.NOT_CONFIGURED,
        )

    if (
        block_number is not None
        and deployment.block_created is not None
        and deployment.block_created > block_number
    ):
        raise UnsupportedChainContractError(
            chain_name=chain.name,
            contract_name=contract_name,
            reason=UnsupportedReason.NOT_YET_DEPLOYED,
            block_number=block_number,
            activation_block=deployment.block_created,
        )

    return to_checksum_address(deployment.address)


class ContractAddressResolver:
    """Resolves which universal resolver to call for a request."""

    def __init__(self, contract_name: str = UNIVERSAL_RESOLVER):
        self.contract_name = contract_name

    def resolve(
        self,
        chain: Optional[ChainContext],
        override_address: Optional[str] = None,
        block_number: Optional[int] = None,
    ) -> str:
        if override_address:
            if not is_eth_address(override_address):
                raise InvalidAddressError(override_address, field="universal_resolver_address")
            return to_checksum_address(override_address)

        if chain is None:
            raise ChainNotConfiguredError()

        return get_chain_contract_address(chain, self.contract_name, block_number)
