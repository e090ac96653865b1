import pytest
from pydantic import ValidationError

from nowink.core.exceptions import InvalidMintArguments
from nowink.models.mint_schemas import (
    MintArguments,
    MintFailure,
    MintSuccess,
    NFTMetadata,
    build_creator_shares,
    explorer_url,
    parse_mint_result,
)

VALID_ARGS = {
    "metadata_uri": "ipfs://meta-cid",
    "video_uri": "ipfs://video-cid",
    "name": "Moment at 10:45",
    "creator_wallet": "Creator111",
}


def test_arguments_default_to_devnet():
    args = MintArguments.parse(VALID_ARGS)

    assert args.network == "devnet"
    assert args.output is None


def test_arguments_report_every_problem_at_once():
    with pytest.raises(InvalidMintArguments) as exc_info:
        MintArguments.parse({"name": "x" * 33, "network": "testnet", "verbose": True})

    problems = " ".join(exc_info.value.problems)
    for field in ("metadata_uri", "video_uri", "creator_wallet", "name", "network", "verbose"):
        assert field in problems


def test_creator_shares_sum_to_100_with_one_verified_entry():
    shares = build_creator_shares("Platform111", "Creator111")

    assert [s.share for s in shares] == [5, 95]
    assert sum(s.share for s in shares) == 100
    assert [s.verified for s in shares] == [True, False]
    assert shares[0].address == "Platform111"


@pytest.mark.parametrize("network, expected", [
    ("devnet", "https://solscan.io/token/Mint111?cluster=devnet"),
    ("mainnet-beta", "https://solscan.io/token/Mint111"),
])
def test_explorer_url(network, expected):
    assert explorer_url("Mint111", network) == expected


def test_result_documents_branch_on_success_flag():
    success = MintSuccess(
        mint_address="Mint111",
        metadata_uri="ipfs://meta-cid",
        name="Moment at 10:45",
        symbol="NOWINK",
        update_authority="Platform111",
        creators=build_creator_shares("Platform111", "Creator111"),
        network="devnet",
        explorer_url=explorer_url("Mint111", "devnet"),
    )
    failure = MintFailure(error="Insufficient balance: 0.005 SOL")

    assert parse_mint_result(success.model_dump(mode="json")) == success
    assert parse_mint_result(failure.model_dump(mode="json")) == failure
    assert failure.timestamp.endswith("Z")


def test_metadata_rejects_duplicate_trait_types():
    with pytest.raises(ValidationError):
        NFTMetadata(
            name="Moment",
            description="d",
            animation_url="ipfs://video-cid",
            attributes=[
                {"trait_type": "Latitude", "value": "40.7128"},
                {"trait_type": "Latitude", "value": "41.0000"},
            ],
            properties={"files": [{"uri": "ipfs://video-cid", "type": "video/mp4"}], "category": "video"},
        )
