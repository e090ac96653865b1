"""
Domain models for the client-side capture and mint flow.
These are internal representations separate from the gateway schemas.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from nowink.models.schemas import Stream


@dataclass(frozen=True)
class AppIdentity:
    """Application identity presented to the wallet during authorization."""
    name: str
    uri: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class WalletIdentity:
    """A connected wallet: base58 address plus connection flag."""
    address: str
    connected: bool = True


@dataclass(frozen=True)
class GeoFix:
    """A geographic fix captured when recording starts."""
    latitude: float
    longitude: float
    captured_at: datetime = field(default_factory=datetime.now)


class CaptureState(str, Enum):
    """Capture-to-mint state machine states."""
    IDLE = "idle"
    RECORDING = "recording"
    AWAITING_LOCATION = "awaiting_location"
    STREAM_STARTED = "stream_started"
    UPLOADING = "uploading"
    MINTING = "minting"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


TERMINAL_STATES = {CaptureState.CONFIRMED, CaptureState.TIMED_OUT, CaptureState.FAILED}

ALLOWED_TRANSITIONS = {
    CaptureState.IDLE: {CaptureState.RECORDING},
    CaptureState.RECORDING: {CaptureState.AWAITING_LOCATION, CaptureState.IDLE},
    CaptureState.AWAITING_LOCATION: {CaptureState.STREAM_STARTED, CaptureState.FAILED},
    CaptureState.STREAM_STARTED: {CaptureState.UPLOADING, CaptureState.FAILED},
    CaptureState.UPLOADING: {CaptureState.MINTING, CaptureState.FAILED},
    CaptureState.MINTING: {CaptureState.CONFIRMED, CaptureState.TIMED_OUT, CaptureState.FAILED},
    CaptureState.CONFIRMED: {CaptureState.IDLE},
    CaptureState.TIMED_OUT: {CaptureState.IDLE},
    CaptureState.FAILED: {CaptureState.IDLE},
}


@dataclass
class PendingMint:
    """Correlation state held while waiting for a mint address."""
    stream_id: str
    max_attempts: int
    deadline: float
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


@dataclass(frozen=True)
class PollResult:
    """Outcome of a confirmation poll: confirmed, or still pending."""
    stream_id: str
    attempts: int
    mint_address: Optional[str] = None
    stream: Optional[Stream] = None

    @property
    def confirmed(self) -> bool:
        return bool(self.mint_address)


# Capture outcomes

@dataclass(frozen=True)
class MintConfirmed:
    """The mint address was observed while the client was watching."""
    stream_id: str
    mint_address: str
    metadata_uri: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    creator: Optional[str] = None
    network: Optional[str] = None
    explorer_url: Optional[str] = None
    status: str = "confirmed"

    @property
    def message(self) -> str:
        return "Your moment has been minted on Solana!"


@dataclass(frozen=True)
class MintStillProcessing:
    """The client stopped watching; the mint may still complete server-side."""
    stream_id: str
    attempts: int
    status: str = "timed_out"

    @property
    def message(self) -> str:
        return "Your moment is still being minted. Check your profile again in a little while."


@dataclass(frozen=True)
class MintFailed:
    """The flow stopped for a reason the user can act on."""
    reason: str
    stream_id: Optional[str] = None
    detail: Optional[str] = None
    status: str = "failed"

    @property
    def message(self) -> str:
        return self.reason


MintOutcome = Union[MintConfirmed, MintStillProcessing, MintFailed]
