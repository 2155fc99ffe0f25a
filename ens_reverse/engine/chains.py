"""
Chain registry: chain id -> deployed lookup contracts.

Chain definitions live in data/chains.json. Each chain lists the contracts
it has deployed together with the block they were created at, e.g.

    {"id": 1, "name": "Ethereum",
     "contracts": {"ensUniversalResolver": {"address": "0x...", "block_created": 19258213}}}

The registry is read-only once loaded and can be shared between threads.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_DEFAULT_CHAINS_PATH = _DATA_DIR / "chains.json"

UNIVERSAL_RESOLVER = "ensUniversalResolver"


@dataclass(frozen=True)
class ContractDeployment:
    address: str
    block_created: Optional[int] = None


@dataclass(frozen=True)
class ChainContext:
    """Immutable description of the chain a resolution runs against.

    ``contracts`` may be given as a mapping; it is stored as a sorted tuple of
    ``(name, deployment)`` pairs so the context stays hashable.
    """
    chain_id: int
    name: str
    contracts: Tuple[Tuple[str, ContractDeployment], ...] = ()

    def __post_init__(self):
        contracts = self.contracts
        if isinstance(contracts, Mapping):
            contracts = contracts.items()
        object.__setattr__(self, "contracts", tuple(sorted(contracts, key=lambda item: item[0])))

    def contract(self, contract_name: str) -> Optional[ContractDeployment]:
        return dict(self.contracts).get(contract_name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainContext":
        contracts = {
            name: ContractDeployment(
                address=info["address"],
                block_created=info.get("block_created"),
            )
            for name, info in (data.get("contracts") or {}).items()
        }
        return cls(chain_id=int(data["id"]), name=data["name"], contracts=contracts)


class ChainRegistry:
    """Lookup table of known chains, loaded from a JSON file."""

    def __init__(self, chains: Optional[List[ChainContext]] = None, chains_path: Optional[str] = None):
        self._chains: Dict[int, ChainContext] = {}
        if chains is None:
            chains = self._load(Path(chains_path) if chains_path else _DEFAULT_CHAINS_PATH)
        for chain in chains:
            self._chains[chain.chain_id] = chain

    @staticmethod
    def _load(path: Path) -> List[ChainContext]:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [ChainContext.from_dict(entry) for entry in data.get("chains", [])]

    def get_chain(self, chain_id: int) -> Optional[ChainContext]:
        return self._chains.get(chain_id)

    def known_chain_ids(self) -> List[int]:
        return sorted(self._chains)
