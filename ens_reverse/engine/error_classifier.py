"""
Single place that decides whether a protocol failure is visible.

Non-strict: every recoverable failure becomes None ("no name").
Strict: it is raised as the ContractFunctionExecutionError subclass that
names the failing actor.
"""

import logging
from typing import Dict, Optional, Type, Union

from ens_reverse.engine.errors import (
    AllGatewaysFailedError,
    ContractCall,
    ContractFunctionExecutionError,
    GatewayHttpError,
    ResolverNotContractError,
    ResolverRevertedError,
    ResolverWildcardNotSupportedError,
    UnclassifiedRevertError,
)
from ens_reverse.engine.signals import (
    NamedError,
    RevertKind,
    RevertSignal,
)

logger = logging.getLogger(__name__)

STRICT_ERRORS: Dict[RevertKind, Type[ContractFunctionExecutionError]] = {
    RevertKind.WILDCARD_NOT_SUPPORTED: ResolverWildcardNotSupportedError,
    RevertKind.RESOLVER_NOT_CONTRACT: ResolverNotContractError,
    RevertKind.RESOLVER_ERROR: ResolverRevertedError,
    RevertKind.HTTP_ERROR: GatewayHttpError,
    RevertKind.RESOLVER_NOT_FOUND: UnclassifiedRevertError,
    RevertKind.REVERT_REASON: UnclassifiedRevertError,
    RevertKind.PANIC: UnclassifiedRevertError,
}

Classifiable = Union[RevertSignal, AllGatewaysFailedError]


def error_for(failure: Classifiable, contract_call: ContractCall) -> ContractFunctionExecutionError:
    """The typed error strict mode raises for ``failure``."""
    if isinstance(failure, AllGatewaysFailedError):
        return failure
    if isinstance(failure, NamedError):
        return STRICT_ERRORS[failure.kind](contract_call, failure)
    # OffchainLookup reaching here was never followed (e.g. redirect limit)
    return UnclassifiedRevertError(contract_call, failure)


class ErrorClassifier:
    def classify(
        self,
        failure: Classifiable,
        contract_call: ContractCall,
        strict: bool = False,
    ) -> Optional[str]:
        """Return None (suppressed) or raise the strict-mode error."""
        error = error_for(failure, contract_call)
        if strict:
            raise error
        logger.debug(
            "Suppressed %s from %s at %s",
            type(error).__name__, contract_call.function_name, contract_call.address,
        )
        return None
