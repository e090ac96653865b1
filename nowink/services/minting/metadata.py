"""
Builders for the off-chain moment metadata document.
"""
from datetime import datetime
from typing import List, Optional

from nowink.models.mint_schemas import (
    MINT_SYMBOL,
    MetadataAttribute,
    MetadataFile,
    MetadataProperties,
    NFTMetadata,
)

APP_NAME = "now.ink"
VIDEO_MIME_TYPE = "video/mp4"

# Sample values for the devnet bootstrap mint
BOOTSTRAP_NAME = "now.ink Test Moment #1"
BOOTSTRAP_VIDEO_URI = "https://arweave.net/test-video-hash"
BOOTSTRAP_IMAGE_URI = "https://arweave.net/test-image-hash"
BOOTSTRAP_EXTERNAL_URL = "https://now.ink/nft/test-1"


def _short_address(address: str) -> str:
    return f"{address[:8]}..." if len(address) > 8 else address


def build_moment_metadata(
    name: str,
    creator_address: str,
    latitude: float,
    longitude: float,
    timestamp: datetime,
    video_uri: str,
    duration_seconds: Optional[int] = None,
    location_name: Optional[str] = None,
    image_uri: Optional[str] = None,
    external_url: Optional[str] = None,
    description: Optional[str] = None,
) -> NFTMetadata:
    """
    Build the metadata document for one geo-tagged moment.

    Args:
        name: On-chain name (at most 32 characters)
        creator_address: Creator wallet, shortened in the Creator attribute
        latitude: Latitude at record-start
        longitude: Longitude at record-start
        timestamp: When the moment was captured
        video_uri: Content address of the video
        duration_seconds: Recording length, if known
        location_name: Human-readable place name, if known
        image_uri: Thumbnail, if one exists
        external_url: Link back to the moment on now.ink
        description: Free text; a default is generated when omitted

    Returns:
        NFTMetadata with video file properties and ``category: video``
    """
    attributes: List[MetadataAttribute] = [
        MetadataAttribute(trait_type="Latitude", value=f"{latitude:.4f}"),
        MetadataAttribute(trait_type="Longitude", value=f"{longitude:.4f}"),
        MetadataAttribute(trait_type="Timestamp", value=timestamp.isoformat()),
        MetadataAttribute(trait_type="Creator", value=_short_address(creator_address)),
    ]
    if duration_seconds is not None:
        attributes.append(MetadataAttribute(trait_type="Duration (seconds)", value=str(duration_seconds)))
    if location_name:
        attributes.append(MetadataAttribute(trait_type="Location", value=location_name))
    attributes.append(MetadataAttribute(trait_type="App", value=APP_NAME))

    return NFTMetadata(
        name=name,
        symbol=MINT_SYMBOL,
        description=description or f"A moment captured on {APP_NAME}",
        image=image_uri,
        animation_url=video_uri,
        external_url=external_url,
        attributes=attributes,
        properties=MetadataProperties(
            files=[MetadataFile(uri=video_uri, type=VIDEO_MIME_TYPE)],
            category="video",
        ),
    )


def bootstrap_metadata(creator_address: str, timestamp: datetime) -> NFTMetadata:
    """Sample moment used to exercise a fresh platform wallet on devnet."""
    return build_moment_metadata(
        name=BOOTSTRAP_NAME,
        creator_address=creator_address,
        latitude=40.7128,
        longitude=-74.0060,
        timestamp=timestamp,
        video_uri=BOOTSTRAP_VIDEO_URI,
        duration_seconds=42,
        location_name="Times Square, New York",
        image_uri=BOOTSTRAP_IMAGE_URI,
        external_url=BOOTSTRAP_EXTERNAL_URL,
        description="Test NFT minted from now.ink on Solana devnet",
    )
