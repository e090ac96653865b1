"""
Mint executor: turns one MintRequest into exactly one MintResult.

Step order is fixed so that cheap local checks run before anything touches
the network:

1. load the platform keypair (local)
2. validate the creator address (local)
3. check the platform balance against the fee floor (ledger read)
4. submit the mint (ledger write, optionally behind the signer lock)

``mint`` never raises; every failure becomes the failure variant.
"""
import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Callable, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from nowink.core.config import Settings, get_settings
from nowink.core.exceptions import (
    InsufficientBalance,
    InvalidCreatorAddress,
    MetadataUploadError,
    NowInkException,
)
from nowink.core.logging import generate_correlation_id, operation_logger, set_correlation_id
from nowink.models.mint_schemas import (
    MINT_SYMBOL,
    MintFailure,
    MintRequest,
    MintResult,
    MintSuccess,
    NFTMetadata,
    build_creator_shares,
    explorer_url,
)
from nowink.services.minting.ledger import LedgerClient, load_platform_keypair
from nowink.services.minting.sequencer import PlatformSignerLock
from nowink.services.minting.storage import PinataMetadataStorage
from nowink.utils.address import parse_address

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
MIN_BALANCE_SOL = 0.01

SignerLockFactory = Callable[[str], PlatformSignerLock]


class MintExecutor:
    """Mints moment NFTs with the platform keypair as payer and update authority."""

    def __init__(
        self,
        ledger: LedgerClient,
        storage: Optional[PinataMetadataStorage] = None,
        wallet_path: Optional[Path] = None,
        signer_lock: Optional[SignerLockFactory] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.ledger = ledger
        self.storage = storage
        self.wallet_path = Path(wallet_path or settings.platform_wallet_path)
        if signer_lock is None and settings.mint_sequencing_enabled:
            signer_lock = PlatformSignerLock
        self.signer_lock = signer_lock

    def _check_balance(self, signer: Keypair) -> None:
        lamports = self.ledger.get_balance(signer.pubkey())
        balance_sol = lamports / LAMPORTS_PER_SOL
        logger.info(f"Platform wallet {signer.pubkey()} balance: {balance_sol} SOL")
        if lamports < MIN_BALANCE_SOL * LAMPORTS_PER_SOL:
            raise InsufficientBalance(balance_sol, MIN_BALANCE_SOL)

    @staticmethod
    def check_creator(creator_wallet: str) -> Pubkey:
        """
        Parse the creator wallet, before anything is uploaded or submitted.

        Raises:
            InvalidCreatorAddress: If the value is not a Solana address
        """
        try:
            return parse_address(creator_wallet)
        except ValueError as e:
            raise InvalidCreatorAddress(creator_wallet, str(e)) from e

    def _submit(self, request: MintRequest) -> MintSuccess:
        signer = load_platform_keypair(self.wallet_path)
        platform_address = str(signer.pubkey())

        creator = self.check_creator(request.creator_wallet)
        self._check_balance(signer)

        creators = build_creator_shares(platform_address, str(creator))
        guard = self.signer_lock(platform_address) if self.signer_lock else nullcontext()
        with guard:
            created = self.ledger.create_nft(
                signer=signer,
                name=request.name,
                symbol=MINT_SYMBOL,
                uri=request.metadata_uri,
                seller_fee_basis_points=request.seller_fee_basis_points,
                creators=creators,
            )

        return MintSuccess(
            mint_address=created.mint_address,
            metadata_uri=request.metadata_uri,
            name=request.name,
            symbol=MINT_SYMBOL,
            update_authority=created.update_authority,
            creators=creators,
            network=request.network,
            explorer_url=explorer_url(created.mint_address, request.network),
        )

    @operation_logger("platform_mint")
    def mint(self, request: MintRequest) -> MintResult:
        """
        Mint one NFT for a moment.

        Args:
            request: Metadata URI, name, creator wallet, network and seller fee

        Returns:
            MintSuccess, or MintFailure carrying the error message
        """
        set_correlation_id(generate_correlation_id("mint"))
        try:
            result = self._submit(request)
        except NowInkException as e:
            if e.detail:
                logger.error(f"Mint failed: {e.message} ({e.detail})")
            else:
                logger.error(f"Mint failed: {e.message}")
            return MintFailure(error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected mint failure: {type(e).__name__}: {e}")
            return MintFailure(error=str(e) or type(e).__name__)

        logger.info(f"Minted {result.mint_address} for {request.creator_wallet} on {request.network}")
        return result

    def upload_metadata(self, metadata: NFTMetadata) -> str:
        """
        Upload a metadata document to decentralized storage.

        Returns:
            The content address of the stored document

        Raises:
            MetadataUploadError: If no storage is configured or the upload fails
        """
        if self.storage is None:
            raise MetadataUploadError("no metadata storage configured")
        document = metadata.model_dump(mode="json", exclude_none=True)
        return self.storage.upload_json(document, name=f"{metadata.name}.json")
