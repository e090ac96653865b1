"""
Mint executor command. Invoked once per moment by the backend.

Usage:
    nowink-mint --metadata-uri ipfs://CID --video-uri ipfs://CID \\
        --name "Moment Title" --creator-wallet ADDRESS \\
        [--network devnet|mainnet-beta] [--output /path/to/output.json]

Exactly one JSON MintResult document is written, to --output or stdout.
Exit status: 0 on success, 1 on a mint failure, 2 on usage errors.
"""
import sys
import json
import argparse
from pathlib import Path
from typing import List, Optional

from nowink.core.config import Settings, get_settings
from nowink.core.exceptions import InvalidMintArguments
from nowink.core.logging import setup_logging
from nowink.core.redis import close_redis_client
from nowink.models.mint_schemas import (
    PRODUCTION_SELLER_FEE_BASIS_POINTS,
    MintArguments,
    MintFailure,
    MintRequest,
    MintResult,
    MintSuccess,
)
from nowink.services.minting.executor import MintExecutor
from nowink.services.minting.ledger import SolanaLedger

EXIT_OK = 0
EXIT_FAILED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='nowink-mint',
        description='Mint a now.ink moment NFT with the platform wallet',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--metadata-uri', required=True, help='Content address of the metadata document')
    parser.add_argument('--video-uri', required=True, help='Content address of the video')
    parser.add_argument('--name', required=True, help='On-chain name (max 32 characters)')
    parser.add_argument('--creator-wallet', required=True, help='Creator wallet address (95%% share)')
    parser.add_argument('--network', choices=['devnet', 'mainnet-beta'], default='devnet',
                        help='Solana cluster (default: devnet)')
    parser.add_argument('--output', help='Write the result JSON here instead of stdout')
    return parser


def write_result(result: MintResult, output: Optional[str]) -> None:
    """Write the result document to a file (pretty) or stdout (one line)."""
    if output:
        Path(output).write_text(json.dumps(result.model_dump(mode="json"), indent=2), encoding="utf-8")
    else:
        sys.stdout.write(result.model_dump_json() + "\n")
        sys.stdout.flush()


def emit(result: MintResult, output: Optional[str]) -> int:
    """
    Write the result and return the exit status.

    If the output file cannot be written, a failure document goes to stdout
    instead, naming the minted address when the mint itself succeeded.
    """
    try:
        write_result(result, output)
    except OSError as e:
        reason = e.strerror or str(e)
        if isinstance(result, MintSuccess):
            error = f"Minted {result.mint_address} but could not write result to {output}: {reason}"
        else:
            error = f"Could not write result to {output}: {reason}"
        write_result(MintFailure(error=error), None)
        return EXIT_FAILED
    return EXIT_OK if result.success else EXIT_FAILED


def configure() -> Settings:
    """
    Load settings and start file logging.

    Raises:
        ValueError: On invalid settings or an unknown log level
        OSError: If the log directory cannot be created
    """
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    return settings


def run(args: MintArguments, executor: MintExecutor) -> int:
    """Mint with validated arguments, write the result, return the exit status."""
    request = MintRequest.from_arguments(args, PRODUCTION_SELLER_FEE_BASIS_POINTS)
    return emit(executor.mint(request), args.output)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    namespace = parser.parse_args(argv)

    try:
        settings = configure()
    except (ValueError, OSError) as e:
        return emit(MintFailure(error=f"Configuration error: {e}"), namespace.output)

    try:
        args = MintArguments.parse(vars(namespace))
    except InvalidMintArguments as e:
        return emit(MintFailure(error=e.message), namespace.output)

    executor = MintExecutor(ledger=SolanaLedger(settings.get_rpc_url(args.network)), settings=settings)
    try:
        return run(args, executor)
    finally:
        close_redis_client()


def console_main() -> None:
    sys.exit(main())


if __name__ == '__main__':
    console_main()
