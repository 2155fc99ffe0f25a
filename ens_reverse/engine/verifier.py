"""
Reverse record verification.

Anyone can set a reverse record claiming any name, so a name is only
returned if forward-resolving it leads back to the original address.
A failed check is always a silent None, in strict mode too.
"""

import logging
from typing import Callable, Optional

from ens_reverse.engine.abi_codec import ZERO_ADDRESS, ReverseRecord, same_address

logger = logging.getLogger(__name__)


class ReverseRecordVerifier:
    """Checks a reverse record against forward resolution.

    ``forward_lookup(name)`` returns the address the name resolves to, or
    None if it resolves to nothing.
    """

    def __init__(self, forward_lookup: Callable[[str], Optional[str]]):
        self._forward_lookup = forward_lookup

    def verify(self, record: ReverseRecord, address: str) -> Optional[str]:
        if not record.name:
            return None

        # The universal resolver already resolved forward once
        claimed = record.resolved_address
        if claimed and not same_address(claimed, ZERO_ADDRESS) and not same_address(claimed, address):
            logger.warning(
                "Reverse record %s for %s resolves to %s", record.name, address, claimed,
            )
            return None

        forward = self._forward_lookup(record.name)
        if not same_address(forward, address):
            logger.warning(
                "Reverse record %s for %s failed forward check (got %s)",
                record.name, address, forward,
            )
            return None
        return record.name
