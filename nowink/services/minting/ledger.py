"""
Solana ledger adapter for minting moment NFTs.

One transaction creates the mint account, the platform's associated token
account, a single token, the Metaplex metadata account and the master
edition. The Token Metadata instructions are encoded here directly.
"""
import json
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import CreateAccountParams, create_account
from solders.sysvar import RENT
from solders.transaction import Transaction
from spl.token.constants import MINT_LEN, TOKEN_PROGRAM_ID
from spl.token.instructions import (
    InitializeMintParams,
    MintToParams,
    create_associated_token_account,
    get_associated_token_address,
    initialize_mint,
    mint_to,
)

from nowink.core.exceptions import LedgerSubmissionError, WalletFileMalformed, WalletFileMissing
from nowink.models.mint_schemas import CreatorShare
from nowink.utils.address import parse_address

logger = logging.getLogger(__name__)

TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")

CREATE_METADATA_ACCOUNT_V3 = 33
CREATE_MASTER_EDITION_V3 = 17

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200


@dataclass(frozen=True)
class CreatedNft:
    """Addresses produced by a successful mint."""
    mint_address: str
    update_authority: str
    signature: Optional[str] = None


class LedgerClient(Protocol):
    """What the mint executor needs from the ledger."""

    def get_balance(self, address: Pubkey) -> int:
        """Balance in lamports."""
        ...

    def create_nft(
        self,
        signer: Keypair,
        name: str,
        symbol: str,
        uri: str,
        seller_fee_basis_points: int,
        creators: Sequence[CreatorShare],
    ) -> CreatedNft:
        ...


def load_platform_keypair(path: Path) -> Keypair:
    """
    Load the platform keypair from a JSON array of 64 integers.

    Raises:
        WalletFileMissing: If the file does not exist
        WalletFileMalformed: If the file is not a valid 64-byte secret key
    """
    path = Path(path)
    if not path.exists():
        raise WalletFileMissing(str(path))

    try:
        secret = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(secret, list) or len(secret) != 64:
            raise ValueError("expected a JSON array of 64 integers")
        return Keypair.from_bytes(bytes(secret))
    except (OSError, ValueError, TypeError) as e:
        raise WalletFileMalformed(str(path), str(e)) from e


# Token Metadata encoding

def find_metadata_pda(mint: Pubkey) -> Pubkey:
    """Metadata account address for a mint."""
    pda, _ = Pubkey.find_program_address(
        [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint)],
        TOKEN_METADATA_PROGRAM_ID,
    )
    return pda


def find_master_edition_pda(mint: Pubkey) -> Pubkey:
    """Master edition account address for a mint."""
    pda, _ = Pubkey.find_program_address(
        [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint), b"edition"],
        TOKEN_METADATA_PROGRAM_ID,
    )
    return pda


def _encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def encode_create_metadata_v3(
    name: str,
    symbol: str,
    uri: str,
    seller_fee_basis_points: int,
    creators: Sequence[CreatorShare],
) -> bytes:
    """
    Instruction data for CreateMetadataAccountV3.

    Layout: discriminator, DataV2 (name, symbol, uri, fee, creators,
    collection, uses), is_mutable, collection_details.
    """
    data = bytes([CREATE_METADATA_ACCOUNT_V3])
    data += _encode_string(name)
    data += _encode_string(symbol)
    data += _encode_string(uri)
    data += struct.pack("<H", seller_fee_basis_points)

    if creators:
        data += b"\x01" + struct.pack("<I", len(creators))
        for creator in creators:
            data += bytes(parse_address(creator.address))
            data += struct.pack("<BB", int(creator.verified), creator.share)
    else:
        data += b"\x00"

    data += b"\x00"  # collection
    data += b"\x00"  # uses
    data += b"\x01"  # is_mutable
    data += b"\x00"  # collection_details
    return data


def encode_create_master_edition_v3(max_supply: int = 0) -> bytes:
    """Instruction data for CreateMasterEditionV3 with a fixed max supply."""
    return bytes([CREATE_MASTER_EDITION_V3]) + b"\x01" + struct.pack("<Q", max_supply)


def create_metadata_instruction(
    mint: Pubkey,
    authority: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    seller_fee_basis_points: int,
    creators: Sequence[CreatorShare],
) -> Instruction:
    accounts = [
        AccountMeta(find_metadata_pda(mint), is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(authority, is_signer=True, is_writable=False),  # mint authority
        AccountMeta(authority, is_signer=True, is_writable=True),  # payer
        AccountMeta(authority, is_signer=True, is_writable=False),  # update authority
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(RENT, is_signer=False, is_writable=False),
    ]
    data = encode_create_metadata_v3(name, symbol, uri, seller_fee_basis_points, creators)
    return Instruction(TOKEN_METADATA_PROGRAM_ID, data, accounts)


def create_master_edition_instruction(mint: Pubkey, authority: Pubkey) -> Instruction:
    accounts = [
        AccountMeta(find_master_edition_pda(mint), is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=True),
        AccountMeta(authority, is_signer=True, is_writable=False),  # update authority
        AccountMeta(authority, is_signer=True, is_writable=False),  # mint authority
        AccountMeta(authority, is_signer=True, is_writable=True),  # payer
        AccountMeta(find_metadata_pda(mint), is_signer=False, is_writable=True),
        AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(RENT, is_signer=False, is_writable=False),
    ]
    return Instruction(TOKEN_METADATA_PROGRAM_ID, encode_create_master_edition_v3(), accounts)


class SolanaLedger:
    """LedgerClient backed by a Solana JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, client: Optional[Client] = None):
        self.rpc_url = rpc_url
        self.client = client or Client(rpc_url, commitment=Confirmed)

    def get_balance(self, address: Pubkey) -> int:
        try:
            return self.client.get_balance(address).value
        except (RPCException, SolanaRpcException) as e:
            raise LedgerSubmissionError(f"balance lookup failed: {e}") from e

    def build_mint_instructions(
        self,
        payer: Pubkey,
        mint: Pubkey,
        rent_lamports: int,
        name: str,
        symbol: str,
        uri: str,
        seller_fee_basis_points: int,
        creators: Sequence[CreatorShare],
    ) -> List[Instruction]:
        """Instructions for one NFT: mint account, token account, one token, metadata, edition."""
        return [
            create_account(CreateAccountParams(
                from_pubkey=payer,
                to_pubkey=mint,
                lamports=rent_lamports,
                space=MINT_LEN,
                owner=TOKEN_PROGRAM_ID,
            )),
            initialize_mint(InitializeMintParams(
                decimals=0,
                program_id=TOKEN_PROGRAM_ID,
                mint=mint,
                mint_authority=payer,
                freeze_authority=payer,
            )),
            create_associated_token_account(payer=payer, owner=payer, mint=mint),
            mint_to(MintToParams(
                program_id=TOKEN_PROGRAM_ID,
                mint=mint,
                dest=get_associated_token_address(payer, mint),
                mint_authority=payer,
                amount=1,
            )),
            create_metadata_instruction(mint, payer, name, symbol, uri, seller_fee_basis_points, creators),
            create_master_edition_instruction(mint, payer),
        ]

    def create_nft(
        self,
        signer: Keypair,
        name: str,
        symbol: str,
        uri: str,
        seller_fee_basis_points: int,
        creators: Sequence[CreatorShare],
    ) -> CreatedNft:
        """
        Submit the mint transaction and wait for confirmation.

        Raises:
            LedgerSubmissionError: If the fields do not fit on-chain, or the
                RPC node rejects or fails to confirm the transaction
        """
        if len(name.encode("utf-8")) > MAX_NAME_LENGTH:
            raise LedgerSubmissionError(f"name longer than {MAX_NAME_LENGTH} bytes")
        if len(symbol.encode("utf-8")) > MAX_SYMBOL_LENGTH:
            raise LedgerSubmissionError(f"symbol longer than {MAX_SYMBOL_LENGTH} bytes")
        if len(uri.encode("utf-8")) > MAX_URI_LENGTH:
            raise LedgerSubmissionError(f"uri longer than {MAX_URI_LENGTH} bytes")

        payer = signer.pubkey()
        mint_keypair = Keypair()
        mint = mint_keypair.pubkey()

        try:
            rent_lamports = self.client.get_minimum_balance_for_rent_exemption(MINT_LEN).value
            instructions = self.build_mint_instructions(
                payer, mint, rent_lamports, name, symbol, uri, seller_fee_basis_points, creators
            )
            blockhash = self.client.get_latest_blockhash().value.blockhash
            transaction = Transaction([signer, mint_keypair], Message(instructions, payer), blockhash)

            logger.info(f"Submitting mint {mint} to {self.rpc_url}")
            signature = self.client.send_transaction(
                transaction, opts=TxOpts(preflight_commitment=Confirmed)
            ).value
            statuses = self.client.confirm_transaction(signature, commitment=Confirmed).value
        except (RPCException, SolanaRpcException) as e:
            logger.error(f"Mint {mint} failed: {e}")
            raise LedgerSubmissionError(str(e)) from e

        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            logger.error(f"Mint {mint} landed but failed: {status.err}")
            raise LedgerSubmissionError(f"transaction {signature} failed: {status.err}")

        logger.info(f"Mint {mint} confirmed: {signature}")
        return CreatedNft(
            mint_address=str(mint),
            update_authority=str(payer),
            signature=str(signature),
        )
