"""
Pydantic models for backend gateway request/response validation.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Request Models

class NonceRequest(BaseModel):
    """Request body for POST /auth/nonce."""
    wallet_address: str


class VerifyWalletRequest(BaseModel):
    """Request body for POST /auth/verify."""
    wallet_address: str
    signature: str
    nonce: str


class StartStreamRequest(BaseModel):
    """Request body for POST /streams/start."""
    title: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    is_public: bool = True


# Response Models

class NonceResponse(BaseModel):
    """Response model for nonce issuance."""
    nonce: str


class VerifyWalletResponse(BaseModel):
    """Response model for wallet verification."""
    model_config = ConfigDict(extra="ignore")

    token: str
    user: Optional[Dict[str, Any]] = None


class Stream(BaseModel):
    """A server-tracked recording session."""
    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    latitude: float
    longitude: float
    is_public: bool = True
    is_live: bool = False
    started_at: datetime
    user_id: Optional[str] = None
    ended_at: Optional[datetime] = None
    viewer_count: int = 0
    mint_address: Optional[str] = None
    arweave_hash: Optional[str] = None

    @property
    def is_minted(self) -> bool:
        return bool(self.mint_address)


class MintInfo(BaseModel):
    """Mint details reported by the backend after a save."""
    model_config = ConfigDict(extra="ignore")

    mint_address: Optional[str] = None
    metadata_uri: Optional[str] = None
    arweave_hash: Optional[str] = None
    status: str = "pending"


class SaveStreamResponse(BaseModel):
    """
    Response model for POST /streams/{id}/save.

    The mint block may be nested under ``mint`` or flattened into the top
    level; both shapes are accepted. ``mint_address`` is absent while the mint
    is still pending.
    """
    model_config = ConfigDict(extra="ignore")

    stream_id: str
    mint: MintInfo = Field(default_factory=MintInfo)
    message: str = ""

    @model_validator(mode='before')
    @classmethod
    def fold_flat_mint_fields(cls, data: Any) -> Any:
        """Move flat mint keys into the nested mint block."""
        if not isinstance(data, dict) or isinstance(data.get("mint"), dict):
            return data
        flat_keys = ("mint_address", "metadata_uri", "arweave_hash", "arweave_tx", "status")
        if not any(key in data for key in flat_keys):
            return data
        folded = {k: v for k, v in data.items() if k not in flat_keys}
        folded["mint"] = {
            "mint_address": data.get("mint_address"),
            "metadata_uri": data.get("metadata_uri"),
            "arweave_hash": data.get("arweave_hash") or data.get("arweave_tx"),
            "status": data.get("status") or "pending",
        }
        return folded


class NFT(BaseModel):
    """An NFT as listed by the backend."""
    model_config = ConfigDict(extra="ignore")

    mint_address: str
    metadata_uri: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    creator: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class NFTListResponse(BaseModel):
    """Response model for GET /nfts."""
    model_config = ConfigDict(extra="ignore")

    nfts: List[NFT] = Field(default_factory=list)
    total: Optional[int] = None
