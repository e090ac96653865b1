"""
Capture-to-mint orchestrator.

Drives one moment through the state machine:

    IDLE -> RECORDING -> AWAITING_LOCATION -> STREAM_STARTED -> UPLOADING
         -> MINTING -> CONFIRMED | TIMED_OUT | FAILED

Every public entry point that touches the network ends in exactly one
``MintOutcome``; no exception escapes ``stop_recording``. There is no resume:
after a terminal state, ``reset()`` and a new recording create a new Stream.
"""
import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Tuple

from pydantic import ValidationError

from nowink.core.config import Settings, get_settings
from nowink.core.exceptions import (
    InvalidArtifact,
    InvalidStateTransition,
    MissingLocation,
    NowInkException,
    WalletNotConnected,
)
from nowink.core.logging import operation_logger, set_correlation_id
from nowink.models.domain import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    CaptureState,
    GeoFix,
    MintConfirmed,
    MintFailed,
    MintOutcome,
    MintStillProcessing,
)
from nowink.models.mint_schemas import explorer_url
from nowink.models.schemas import NFT, SaveStreamResponse, StartStreamRequest
from nowink.services.capture.poller import ConfirmationPoller
from nowink.services.gateway_client import BackendGateway
from nowink.services.wallet_session import WalletSession

logger = logging.getLogger(__name__)

SUPPORTED_VIDEO_EXTENSIONS = {'.mp4', '.mov'}
MAX_VIDEO_BYTES = 100 * 1024 * 1024
TICK_SECONDS = 1.0


def default_title(started_at: datetime) -> str:
    """Title used when the user does not name the moment."""
    return f"Moment at {started_at.strftime('%H:%M')}"


def validate_artifact(video_path: Path) -> None:
    """
    Check the recorded file before anything is sent to the backend.

    Raises:
        InvalidArtifact: If the file is missing, empty, too large or not mp4/mov
    """
    if not video_path.exists():
        raise InvalidArtifact(str(video_path), "file not found")
    if video_path.suffix.lower() not in SUPPORTED_VIDEO_EXTENSIONS:
        raise InvalidArtifact(str(video_path), "only mp4 and mov videos supported")
    size = video_path.stat().st_size
    if size == 0:
        raise InvalidArtifact(str(video_path), "file is empty")
    if size > MAX_VIDEO_BYTES:
        raise InvalidArtifact(str(video_path), "video file too large (max 100MB)")


class MomentMintOrchestrator:
    """Client-side driver of the capture-to-mint pipeline for one device."""

    def __init__(
        self,
        wallet: WalletSession,
        gateway: BackendGateway,
        poller: Optional[ConfirmationPoller] = None,
        settings: Optional[Settings] = None,
        tick: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = datetime.now,
    ):
        settings = settings or get_settings()
        self.wallet = wallet
        self.gateway = gateway
        self.poller = poller or ConfirmationPoller(gateway.get_stream)
        self.network = settings.solana_cluster
        self._tick = tick
        self._now = now

        self.state = CaptureState.IDLE
        self.history: List[Tuple[CaptureState, CaptureState]] = []
        self.elapsed_seconds = 0
        self.location: Optional[GeoFix] = None
        self.recording_started_at: Optional[datetime] = None
        self.stream_id: Optional[str] = None
        self._ticker: Optional[asyncio.Task] = None

    # State handling

    def _transition(self, target: CaptureState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransition(self.state.value, target.value)
        logger.info(f"Capture state {self.state.value} -> {target.value}")
        self.history.append((self.state, target))
        self.state = target

    def _fail(self, error: NowInkException) -> MintFailed:
        if error.detail:
            logger.error(f"Capture failed in {self.state.value}: {error.message} ({error.detail})")
        else:
            logger.error(f"Capture failed in {self.state.value}: {error.message}")
        self._transition(CaptureState.FAILED)
        return MintFailed(reason=error.message, stream_id=self.stream_id, detail=error.detail)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    # Elapsed-time counter (user feedback only)

    async def _run_ticker(self) -> None:
        while True:
            await self._tick(TICK_SECONDS)
            self.elapsed_seconds += 1

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    # Public API

    async def start_recording(self, location: Optional[GeoFix]) -> None:
        """
        Begin a capture. The geographic fix is taken now, not when recording stops.

        Args:
            location: Fix captured at record-start, or None if unavailable

        Raises:
            InvalidStateTransition: If a capture is already in progress
        """
        self._transition(CaptureState.RECORDING)
        self.location = location
        self.recording_started_at = self._now()
        self.elapsed_seconds = 0
        self.stream_id = None
        set_correlation_id(None)
        if location is None:
            logger.warning("Recording started without a location fix")
        self._ticker = asyncio.create_task(self._run_ticker())

    def discard_recording(self) -> None:
        """Throw the recording away without contacting the backend."""
        if self.state != CaptureState.RECORDING:
            raise InvalidStateTransition(self.state.value, CaptureState.IDLE.value)
        self._stop_ticker()
        self._transition(CaptureState.IDLE)
        self.location = None
        logger.info("Recording discarded")

    @operation_logger("moment_mint")
    async def stop_recording(
        self,
        video_path: Path,
        title: Optional[str] = None,
        is_public: bool = True,
    ) -> MintOutcome:
        """
        Finish the capture and drive it to a terminal state.

        Args:
            video_path: Recorded video artifact
            title: Moment title; defaults to "Moment at HH:MM"
            is_public: Whether the stream is publicly visible

        Returns:
            MintConfirmed, MintStillProcessing (timed out, not failed) or MintFailed
        """
        if self.state != CaptureState.RECORDING:
            return MintFailed(reason="No recording in progress")

        self._stop_ticker()
        self._transition(CaptureState.AWAITING_LOCATION)
        try:
            return await self._run_pipeline(Path(video_path), title, is_public)
        except Exception as e:
            logger.exception(f"Unexpected error in {self.state.value}: {type(e).__name__}: {e}")
            return self._fail(NowInkException("Something went wrong while minting your moment", str(e)))

    async def _run_pipeline(self, video_path: Path, title: Optional[str], is_public: bool) -> MintOutcome:
        # Preconditions: no backend call may happen before both hold
        if self.location is None:
            return self._fail(MissingLocation())
        if not self.wallet.is_connected:
            return self._fail(WalletNotConnected())
        try:
            validate_artifact(video_path)
        except InvalidArtifact as e:
            return self._fail(e)

        self._transition(CaptureState.STREAM_STARTED)
        request = StartStreamRequest(
            title=title or default_title(self.recording_started_at or self._now()),
            latitude=self.location.latitude,
            longitude=self.location.longitude,
            is_public=is_public,
        )
        try:
            stream = await self.gateway.start_stream(request)
        except NowInkException as e:
            return self._fail(e)

        if not stream.id:
            return self._fail(NowInkException("Backend returned a stream without an id"))
        self.stream_id = stream.id
        set_correlation_id(stream.id)

        self._transition(CaptureState.UPLOADING)
        try:
            saved = await self.gateway.save_stream(stream.id, video_path)
        except NowInkException as e:
            return self._fail(e)
        except OSError as e:
            return self._fail(InvalidArtifact(str(video_path), str(e)))

        self._transition(CaptureState.MINTING)
        return await self._await_confirmation(saved, request.title)

    async def _lookup_nft(self, mint_address: str) -> Optional[NFT]:
        """Fetch the minted NFT's details. A miss does not undo the confirmation."""
        try:
            return await self.gateway.get_nft(mint_address)
        except NowInkException as e:
            logger.warning(f"Minted {mint_address} but its details are unavailable: {e.message}")
        except ValidationError as e:
            logger.warning(f"Minted {mint_address} but its details are unreadable: {e.error_count()} error(s)")
        return None

    async def _await_confirmation(self, saved: SaveStreamResponse, title: str) -> MintOutcome:
        stream_id = self.stream_id
        try:
            result = await self.poller.poll(stream_id)
        except NowInkException as e:
            return self._fail(e)

        if result.confirmed:
            nft = await self._lookup_nft(result.mint_address)
            self._transition(CaptureState.CONFIRMED)
            return MintConfirmed(
                stream_id=stream_id,
                mint_address=result.mint_address,
                metadata_uri=saved.mint.metadata_uri or (nft.metadata_uri if nft else None),
                name=nft.name if nft and nft.name else title,
                symbol=nft.symbol if nft else None,
                creator=(nft.creator if nft else None) or self.wallet.address,
                network=self.network,
                explorer_url=explorer_url(result.mint_address, self.network),
            )

        self._transition(CaptureState.TIMED_OUT)
        return MintStillProcessing(stream_id=stream_id, attempts=result.attempts)

    def reset(self) -> None:
        """Return a finished capture to IDLE. The next recording starts a new Stream."""
        if not self.is_terminal:
            raise InvalidStateTransition(self.state.value, CaptureState.IDLE.value)
        self._transition(CaptureState.IDLE)
        self.location = None
        self.stream_id = None
        self.elapsed_seconds = 0
        set_correlation_id(None)
