"""
Look up the primary ENS name of an address from the command line.

Usage (from the repository root):
  python -m ens_reverse.engine.lookup_cli 0xA0Cf798816D4b9b9866b5330EEa46a18382f251e
  python -m ens_reverse.engine.lookup_cli 0x... --strict --block 19300000
  python -m ens_reverse.engine.lookup_cli 0x... --gateway-url https://ccip.example/{sender}/{data}.json

Requires ETH_RPC_URL (or ALCHEMY_API_KEY) in .env or the environment.
Prints the name, or "null" when the address has no verified primary name.

Exit codes: 0 = resolved (or null), 1 = resolution error, 2 = configuration error.
"""

import argparse
import logging
import sys
from typing import List, Optional

from ens_reverse.engine.config import ResolverSettings
from ens_reverse.engine.ens_name_resolver import build_resolver
from ens_reverse.engine.errors import ConfigurationError, ResolutionError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reverse-resolve an address to its ENS name.")
    parser.add_argument("address", help="0x-prefixed address to look up")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Raise resolver errors instead of printing null")
    parser.add_argument("--block", type=int, default=None, help="Resolve at this block number")
    parser.add_argument("--gateway-url", action="append", dest="gateway_urls", default=None,
                        help="CCIP-Read gateway URL (repeatable, tried in order)")
    parser.add_argument("--universal-resolver", default=None,
                        help="Universal resolver address override")
    parser.add_argument("--chain-id", type=int, default=None, help="Chain id (default: ENS_CHAIN_ID or 1)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = ResolverSettings.from_env()
        if args.chain_id is not None:
            settings = settings.model_copy(update={"chain_id": args.chain_id})
        logging.basicConfig(
            level=getattr(logging, settings.log_level),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        resolver = build_resolver(settings)
        name = resolver.resolve_name(
            args.address,
            universal_resolver_address=args.universal_resolver or settings.universal_resolver_address,
            block_number=args.block,
            gateway_urls=args.gateway_urls,
            strict=settings.strict if args.strict is None else args.strict,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except ResolutionError as e:
        print(f"Resolution error: {e}", file=sys.stderr)
        return 1

    print(name if name is not None else "null")
    return 0


if __name__ == "__main__":
    sys.exit(main())
