"""
Solana address helpers.
"""
from typing import Optional

from solders.pubkey import Pubkey


def parse_address(value: Optional[str]) -> Pubkey:
    """
    Parse a base58-encoded Solana address.

    Raises:
        ValueError: If the value is empty or not a 32-byte base58 public key
    """
    if not value or not value.strip():
        raise ValueError("address is empty")
    return Pubkey.from_string(value.strip())


def is_valid_address(value: Optional[str]) -> bool:
    """Check whether a value parses as a Solana address."""
    try:
        parse_address(value)
    except ValueError:
        return False
    return True
