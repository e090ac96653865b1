"""
Minting services package: platform-signed NFT creation on Solana.
"""
from nowink.services.minting.executor import (
    MintExecutor,
    MIN_BALANCE_SOL,
    LAMPORTS_PER_SOL,
)
from nowink.services.minting.ledger import (
    CreatedNft,
    LedgerClient,
    SolanaLedger,
    load_platform_keypair,
)
from nowink.services.minting.metadata import (
    build_moment_metadata,
    bootstrap_metadata,
)
from nowink.services.minting.sequencer import PlatformSignerLock
from nowink.services.minting.storage import PinataMetadataStorage

__all__ = [
    "MintExecutor",
    "MIN_BALANCE_SOL",
    "LAMPORTS_PER_SOL",
    "CreatedNft",
    "LedgerClient",
    "SolanaLedger",
    "load_platform_keypair",
    "build_moment_metadata",
    "bootstrap_metadata",
    "PlatformSignerLock",
    "PinataMetadataStorage",
]
