"""
Pydantic models for the mint executor: arguments, requests, results and the
NFT metadata document.
"""
from datetime import datetime, timezone
from typing import Optional, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nowink.core.exceptions import InvalidMintArguments

Network = Literal["devnet", "mainnet-beta"]

MINT_SYMBOL = "NOWINK"
PLATFORM_SHARE = 5
CREATOR_SHARE = 95
PRODUCTION_SELLER_FEE_BASIS_POINTS = 500
BOOTSTRAP_SELLER_FEE_BASIS_POINTS = 0


def utc_timestamp() -> str:
    """Current time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MintArguments(BaseModel):
    """
    Arguments accepted at the executor process boundary.

    Exactly these fields are accepted; unknown or missing ones are reported
    together through ``InvalidMintArguments``.
    """
    model_config = ConfigDict(extra="forbid")

    metadata_uri: str = Field(min_length=1)
    video_uri: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=32)
    creator_wallet: str = Field(min_length=1)
    network: Network = "devnet"
    output: Optional[str] = None

    @classmethod
    def parse(cls, values: dict) -> "MintArguments":
        """Validate raw values, raising one enumerated error for every problem."""
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = []
            for err in e.errors():
                field = ".".join(str(part) for part in err["loc"]) or "arguments"
                problems.append(f"{field}: {err['msg']}")
            raise InvalidMintArguments(problems)


class CreatorShare(BaseModel):
    """One entry of the on-chain creator list."""
    address: str
    share: int = Field(ge=0, le=100)
    verified: bool


def build_creator_shares(platform_address: str, creator_address: str) -> List[CreatorShare]:
    """
    Build the fixed creator split attached to every mint.

    The platform co-signs the mint, so only its entry is verified. The user's
    entry stays unverified until a separate verification step.
    """
    return [
        CreatorShare(address=platform_address, share=PLATFORM_SHARE, verified=True),
        CreatorShare(address=creator_address, share=CREATOR_SHARE, verified=False),
    ]


class MintRequest(BaseModel):
    """Everything needed to mint one moment."""
    metadata_uri: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=32)
    creator_wallet: str
    network: Network
    seller_fee_basis_points: int = Field(ge=0, le=10000)
    video_uri: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: MintArguments, seller_fee_basis_points: int) -> "MintRequest":
        return cls(
            metadata_uri=args.metadata_uri,
            name=args.name,
            creator_wallet=args.creator_wallet,
            network=args.network,
            seller_fee_basis_points=seller_fee_basis_points,
            video_uri=args.video_uri,
        )


class MintSuccess(BaseModel):
    """Success variant of a mint result."""
    success: Literal[True] = True
    mint_address: str
    metadata_uri: str
    name: str
    symbol: str
    update_authority: str
    creators: List[CreatorShare]
    network: Network
    timestamp: str = Field(default_factory=utc_timestamp)
    explorer_url: str


class MintFailure(BaseModel):
    """Failure variant of a mint result."""
    success: Literal[False] = False
    error: str
    timestamp: str = Field(default_factory=utc_timestamp)


MintResult = Union[MintSuccess, MintFailure]


def parse_mint_result(data: dict) -> MintResult:
    """Parse a result document, branching on its success flag."""
    if data.get("success") is True:
        return MintSuccess.model_validate(data)
    return MintFailure.model_validate(data)


def explorer_url(mint_address: str, network: str) -> str:
    """Solscan token URL; only devnet needs the cluster parameter."""
    url = f"https://solscan.io/token/{mint_address}"
    if network == "devnet":
        url += "?cluster=devnet"
    return url


# Metadata document

class MetadataAttribute(BaseModel):
    """A trait_type/value pair."""
    trait_type: str
    value: Union[str, int, float]


class MetadataFile(BaseModel):
    """A file referenced by the metadata document."""
    uri: str
    type: str


class MetadataProperties(BaseModel):
    """Properties block naming the media file(s) and their category."""
    files: List[MetadataFile]
    category: str


class NFTMetadata(BaseModel):
    """Off-chain NFT metadata document uploaded to decentralized storage."""
    model_config = ConfigDict(extra="ignore")

    name: str
    symbol: str = MINT_SYMBOL
    description: str
    image: Optional[str] = None
    animation_url: str
    external_url: Optional[str] = None
    attributes: List[MetadataAttribute] = Field(default_factory=list)
    properties: MetadataProperties

    @field_validator("attributes")
    @classmethod
    def unique_trait_types(cls, v: List[MetadataAttribute]) -> List[MetadataAttribute]:
        seen = set()
        for attribute in v:
            if attribute.trait_type in seen:
                raise ValueError(f"Duplicate trait_type: {attribute.trait_type}")
            seen.add(attribute.trait_type)
        return v
