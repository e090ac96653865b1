"""
Utility functions for now.ink.
Contains retry helpers and Solana address parsing.
"""

from nowink.utils.retry import (
    is_transient_error,
    retry_call
)

from nowink.utils.address import (
    parse_address,
    is_valid_address
)

__all__ = [
    "is_transient_error",
    "retry_call",
    "parse_address",
    "is_valid_address",
]
