"""
Capture services package: record, upload and watch a moment get minted.
"""
from nowink.services.capture.poller import (
    ConfirmationPoller,
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
)
from nowink.services.capture.orchestrator import (
    MomentMintOrchestrator,
    default_title,
    validate_artifact,
)

__all__ = [
    "ConfirmationPoller",
    "POLL_INTERVAL_SECONDS",
    "POLL_MAX_ATTEMPTS",
    "MomentMintOrchestrator",
    "default_title",
    "validate_artifact",
]
