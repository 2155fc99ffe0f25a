import sys
from pathlib import Path

import pytest

# Repository root on sys.path so `ens_reverse` imports without installing
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ens_reverse.engine.ens_name_resolver import AddressToNameResolver
from ens_reverse.tests.fakes import MAINNET, FakeHttpClient, FakeUniversalResolver


@pytest.fixture
def contract() -> FakeUniversalResolver:
    return FakeUniversalResolver()


@pytest.fixture
def gateways() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def resolver(contract, gateways) -> AddressToNameResolver:
    return AddressToNameResolver(transport=contract, http_client=gateways, chain=MAINNET)
