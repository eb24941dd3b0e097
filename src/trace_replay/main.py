#!/usr/bin/env python3
"""
Main entry point for the trace replay generator.

This script orchestrates the generation workflow:
1. Parse command-line arguments
2. Load the trace and build the replay pipeline
3. Walk, decode and enrich the trace
4. Write the Foundry test harness
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .abi import ExplorerAbiSource, KnownAbiDirectory
from .clients import EtherfaceRegistry, FourByteRegistry, Web3TokenEnrichment
from .config import ConfigManager
from .pipeline import ReplayPipeline
from .trace import DEFAULT_CALLBACK_WINDOW, load_trace_file

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("test") / "TraceReproduction.t.sol"


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value, 0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate a Foundry replay harness from a transaction execution trace',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables (can also be set in .env file):
  TRACE_FILE            Path to the trace JSON file
  MAIN_ADDRESS          Address whose outbound calls are replayed (optional)
  CHAIN                 Chain name (default: ethereum)
  RPC_URL               RPC endpoint used for token enrichment (optional)
  BLOCK_NUMBER          Fork block for the generated harness (optional)
  ETHERSCAN_API_KEY     Explorer API key for verified ABIs (optional)
  CALLBACK_WINDOW       Callback region lookahead (default: 50)

Priority: Command-line arguments > Environment variables > Defaults
        """
    )
    parser.add_argument(
        '--trace-file',
        type=Path,
        default=os.getenv('TRACE_FILE'),
        help='Path to trace JSON file (env: TRACE_FILE)'
    )
    parser.add_argument(
        '--main-address',
        default=os.getenv('MAIN_ADDRESS'),
        help='Main actor address; derived from the root node when omitted (env: MAIN_ADDRESS)'
    )
    parser.add_argument(
        '--chain',
        default=os.getenv('CHAIN'),
        help='Chain name; detected from --rpc-url when omitted (env: CHAIN)'
    )
    parser.add_argument(
        '--rpc-url',
        default=os.getenv('RPC_URL'),
        help='RPC endpoint for token enrichment (env: RPC_URL, optional)'
    )
    parser.add_argument(
        '--block-number',
        type=_optional_int,
        default=_optional_int(os.getenv('BLOCK_NUMBER')),
        help='Fork block number for the harness (env: BLOCK_NUMBER, optional)'
    )
    parser.add_argument(
        '--api-key',
        default=os.getenv('ETHERSCAN_API_KEY'),
        help='Explorer API key for fetching verified ABIs (env: ETHERSCAN_API_KEY, optional)'
    )
    parser.add_argument(
        '--callback-window',
        type=int,
        default=int(os.getenv('CALLBACK_WINDOW') or DEFAULT_CALLBACK_WINDOW),
        help=f'Callback region lookahead in ordering keys (env: CALLBACK_WINDOW, default: {DEFAULT_CALLBACK_WINDOW})'
    )
    parser.add_argument(
        '--abi-dir',
        type=Path,
        default=os.getenv('ABI_DIR'),
        help='Directory of <address>.json ABI files (env: ABI_DIR, optional)'
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=os.getenv('CHAIN_CONFIG'),
        help='JSON file overriding the built-in chain table (env: CHAIN_CONFIG, optional)'
    )
    parser.add_argument(
        '--output',
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f'Output Solidity file (default: {DEFAULT_OUTPUT})'
    )
    parser.add_argument(
        '--offline',
        action='store_true',
        default=False,
        help='Skip signature registries, explorer ABIs and token enrichment'
    )
    parser.add_argument(
        '--include-static-calls',
        action='store_true',
        default=False,
        help='Replay STATICCALL invocations as well'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        default=False,
        help='Enable debug mode to log to file (default: False)'
    )
    return parser


def configure_logging(debug: bool):
    if debug:
        # Create output directory for log file
        output_dir = Path("output")
        output_dir.mkdir(exist_ok=True)

        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(output_dir / 'generate_replay.log')
            ]
        )
    else:
        # Only warnings reach the console without --debug
        logging.basicConfig(
            level=logging.WARNING,
            format='%(levelname)s - %(message)s',
        )


def build_pipeline(args, config_manager: ConfigManager) -> ReplayPipeline:
    chain = args.chain
    if not chain:
        chain = config_manager.detect_chain_from_rpc(args.rpc_url) if args.rpc_url else config_manager.default_chain

    known_abis = KnownAbiDirectory(args.abi_dir) if args.abi_dir else None

    if args.offline:
        abi_source = ExplorerAbiSource(None, chain, known_abis=known_abis) if known_abis else None
        return ReplayPipeline(
            registries=[],
            abi_source=abi_source,
            chain=chain,
            config_manager=config_manager,
            callback_window=args.callback_window,
            include_static_calls=args.include_static_calls,
        )

    rpc_url = args.rpc_url or config_manager.get_rpc_url(chain)
    enrichment = Web3TokenEnrichment(rpc_url) if rpc_url else None
    if enrichment is None:
        logger.warning("⚠️  No RPC URL configured; token enrichment disabled")

    has_api_key = bool(config_manager.get_explorer_api_key(chain))
    abi_source = None
    if has_api_key or known_abis:
        abi_source = ExplorerAbiSource(config_manager if has_api_key else None, chain, known_abis=known_abis)

    return ReplayPipeline(
        registries=[FourByteRegistry(), EtherfaceRegistry()],
        enrichment=enrichment,
        abi_source=abi_source,
        chain=chain,
        config_manager=config_manager,
        callback_window=args.callback_window,
        include_static_calls=args.include_static_calls,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv(override=True)

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    if not args.trace_file:
        parser.error("--trace-file is required (or set TRACE_FILE environment variable)")

    config_manager = ConfigManager(args.config, api_key=args.api_key)

    try:
        trace_data = load_trace_file(args.trace_file)
        pipeline = build_pipeline(args, config_manager)
        source = pipeline.run(trace_data, args.main_address, args.block_number)
    except ValueError as e:
        logger.error(f"❌ {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(source)

    model = pipeline.model
    logger.info(f"\n{'='*60}")
    logger.info(f"Replay harness written to {args.output}")
    logger.info(f"Top-level calls: {len(model.walk.top_level_calls)}")
    logger.info(f"Callback regions: {len(model.walk.callback_regions)}")
    logger.info(f"{'='*60}\n")

    for key in model.walk.boundary_warnings:
        print(f"Warning: callback region opened at node {key} may be truncated", file=sys.stderr)

    print(f"Wrote {args.output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
