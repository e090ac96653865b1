"""
Custom exception classes for the now.ink minting pipeline.
Each exception carries a human-readable message for the end user and an
optional diagnostic detail that is only ever logged.
"""
from typing import Optional


class NowInkException(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


# Wallet session

class AuthorizationDenied(NowInkException):
    """Raised when the wallet refuses (or fails) to authorize the app."""

    def __init__(self, error: str):
        super().__init__(
            message="Wallet authorization was denied",
            detail=error
        )
        self.error = error


class NotConnected(NowInkException):
    """Raised when signing is requested without a connected wallet."""

    def __init__(self):
        super().__init__(message="Wallet not connected")


class SigningRejected(NowInkException):
    """Raised when the wallet declines to sign a message."""

    def __init__(self, error: str):
        super().__init__(
            message="Message signing was rejected by the wallet",
            detail=error
        )
        self.error = error


# Backend gateway

class GatewayTransportError(NowInkException):
    """Raised when the backend cannot be reached (timeout, refused, DNS)."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Could not reach the now.ink backend during {operation}",
            detail=error
        )
        self.operation = operation
        self.error = error


class GatewayApplicationError(NowInkException):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, operation: str, status_code: int, error: str):
        super().__init__(
            message=f"Backend rejected {operation}: {error}",
            detail=f"HTTP {status_code}"
        )
        self.operation = operation
        self.status_code = status_code
        self.error = error


# Capture / orchestrator preconditions

class MissingLocation(NowInkException):
    """Raised when a recording has no geographic fix to tag it with."""

    def __init__(self):
        super().__init__(message="Unable to get location for geo-tagging")


class WalletNotConnected(NowInkException):
    """Raised when a mint is attempted without a connected wallet identity."""

    def __init__(self):
        super().__init__(message="Please connect your Solana wallet first")


class InvalidArtifact(NowInkException):
    """Raised when the recorded video cannot be uploaded as-is."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Recorded video cannot be uploaded: {error}",
            detail=path
        )
        self.path = path
        self.error = error


class InvalidStateTransition(NowInkException):
    """Raised when the capture state machine is driven out of order."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot move from {current} to {target}"
        )
        self.current = current
        self.target = target


# Mint executor

class InvalidMintArguments(NowInkException):
    """Raised when executor arguments are missing, unknown or malformed."""

    def __init__(self, problems: list):
        super().__init__(
            message="Invalid mint arguments: " + "; ".join(problems)
        )
        self.problems = problems


class WalletFileMissing(NowInkException):
    """Raised when the platform keypair file does not exist."""

    def __init__(self, path: str):
        super().__init__(message=f"Wallet not found at: {path}")
        self.path = path


class WalletFileMalformed(NowInkException):
    """Raised when the platform keypair file cannot be parsed."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Wallet file is malformed: {path}",
            detail=error
        )
        self.path = path
        self.error = error


class InsufficientBalance(NowInkException):
    """Raised when the platform wallet cannot cover network fees."""

    def __init__(self, balance_sol: float, floor_sol: float):
        super().__init__(
            message=f"Insufficient balance: {balance_sol} SOL",
            detail=f"Minimum required: {floor_sol} SOL"
        )
        self.balance_sol = balance_sol
        self.floor_sol = floor_sol


class InvalidCreatorAddress(NowInkException):
    """Raised when the creator wallet is not a valid on-chain address."""

    def __init__(self, address: str, error: str = ""):
        super().__init__(
            message=f"Invalid creator wallet address: {address}",
            detail=error or None
        )
        self.address = address


class MetadataUploadError(NowInkException):
    """Raised when metadata cannot be stored or fetched."""

    def __init__(self, error: str):
        super().__init__(message=f"Metadata upload failed: {error}")
        self.error = error


class LedgerSubmissionError(NowInkException):
    """Raised when the ledger rejects or cannot receive a mint."""

    def __init__(self, error: str):
        super().__init__(message=f"Mint submission failed: {error}")
        self.error = error


class SignerBusy(NowInkException):
    """Raised when the platform signer lock cannot be acquired in time."""

    def __init__(self, address: str, waited_seconds: float):
        super().__init__(
            message="Platform signer is busy, try again shortly",
            detail=f"Lock for {address} not acquired within {waited_seconds}s"
        )
        self.address = address
        self.waited_seconds = waited_seconds
