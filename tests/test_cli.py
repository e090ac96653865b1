import json
from typing import List, Optional

import pytest

from nowink.cli import mint_nft, mint_test
from nowink.core.exceptions import MetadataUploadError
from nowink.core.logging import setup_logging
from nowink.models.mint_schemas import (
    MintArguments,
    MintFailure,
    MintRequest,
    MintResult,
    MintSuccess,
    build_creator_shares,
    explorer_url,
)
from nowink.services.minting.executor import MintExecutor

ARGV = [
    "--metadata-uri", "ipfs://meta-cid",
    "--video-uri", "ipfs://video-cid",
    "--name", "Moment at 10:45",
    "--creator-wallet", "Creator111",
]


class FakeExecutor:
    def __init__(self, result: Optional[MintResult] = None, upload_error: Optional[Exception] = None):
        self.result = result
        self.upload_error = upload_error
        self.requests: List[MintRequest] = []
        self.uploads = []

    def mint(self, request: MintRequest) -> MintResult:
        self.requests.append(request)
        if self.result is not None:
            return self.result
        return MintSuccess(
            mint_address="Mint111",
            metadata_uri=request.metadata_uri,
            name=request.name,
            symbol="NOWINK",
            update_authority="Platform111",
            creators=build_creator_shares("Platform111", request.creator_wallet),
            network=request.network,
            explorer_url=explorer_url("Mint111", request.network),
        )

    check_creator = staticmethod(MintExecutor.check_creator)

    def upload_metadata(self, metadata) -> str:
        self.uploads.append(metadata)
        if self.upload_error is not None:
            raise self.upload_error
        return "ipfs://bootstrap-cid"


@pytest.fixture(autouse=True)
def _no_log_files(monkeypatch):
    monkeypatch.setattr(mint_nft, "setup_logging", lambda *args, **kwargs: None)


def _args(**overrides) -> MintArguments:
    values = {
        "metadata_uri": "ipfs://meta-cid",
        "video_uri": "ipfs://video-cid",
        "name": "Moment at 10:45",
        "creator_wallet": "Creator111",
    }
    values.update(overrides)
    return MintArguments.parse(values)


@pytest.mark.parametrize("missing", ["--metadata-uri", "--video-uri", "--name", "--creator-wallet"])
def test_missing_required_flag_exits_with_usage_error(missing, capsys):
    index = ARGV.index(missing)
    argv = ARGV[:index] + ARGV[index + 2:]

    with pytest.raises(SystemExit) as exc_info:
        mint_nft.main(argv)

    assert exc_info.value.code == 2
    assert capsys.readouterr().out == ""


def test_success_prints_one_json_document(capsys):
    executor = FakeExecutor()

    code = mint_nft.run(_args(), executor)

    out = capsys.readouterr().out
    assert code == 0
    assert len(out.strip().splitlines()) == 1
    document = json.loads(out)
    assert document["success"] is True
    assert document["mint_address"] == "Mint111"
    assert document["explorer_url"].endswith("?cluster=devnet")
    assert executor.requests[0].seller_fee_basis_points == 500


def test_failure_goes_to_output_file_with_exit_1(tmp_path, capsys):
    output = tmp_path / "result.json"
    executor = FakeExecutor(result=MintFailure(error="Insufficient balance: 0.005 SOL"))

    code = mint_nft.run(_args(output=str(output)), executor)

    assert code == 1
    assert capsys.readouterr().out == ""
    document = json.loads(output.read_text())
    assert document == {"success": False, "error": "Insufficient balance: 0.005 SOL", "timestamp": document["timestamp"]}


def test_invalid_arguments_produce_failure_document(capsys):
    argv = list(ARGV)
    argv[argv.index("--name") + 1] = "x" * 40

    code = mint_nft.main(argv)

    document = json.loads(capsys.readouterr().out)
    assert code == 1
    assert document["success"] is False
    assert "name" in document["error"]


def test_main_connects_to_requested_network(monkeypatch, capsys):
    ledgers = []
    executor = FakeExecutor()

    def fake_ledger(rpc_url):
        ledgers.append(rpc_url)
        return object()

    monkeypatch.setattr(mint_nft, "SolanaLedger", fake_ledger)
    monkeypatch.setattr(mint_nft, "MintExecutor", lambda **kwargs: executor)

    code = mint_nft.main(ARGV + ["--network", "mainnet-beta"])

    assert code == 0
    assert ledgers == ["https://api.mainnet-beta.solana.com"]
    assert executor.requests[0].network == "mainnet-beta"
    assert json.loads(capsys.readouterr().out)["explorer_url"] == "https://solscan.io/token/Mint111"


def test_bootstrap_uploads_sample_metadata_and_mints_without_fee(creator_address, capsys):
    executor = FakeExecutor()

    code = mint_test.run(creator_address, executor)

    assert code == 0
    assert executor.uploads[0].name == "now.ink Test Moment #1"
    request = executor.requests[0]
    assert request.metadata_uri == "ipfs://bootstrap-cid"
    assert request.network == "devnet"
    assert request.seller_fee_basis_points == 0
    assert json.loads(capsys.readouterr().out)["success"] is True


def test_bootstrap_upload_failure_skips_mint(creator_address, capsys):
    executor = FakeExecutor(upload_error=MetadataUploadError("PINATA_JWT is not configured"))

    code = mint_test.run(creator_address, executor)

    assert code == 1
    assert executor.requests == []
    assert "PINATA_JWT" in json.loads(capsys.readouterr().out)["error"]


def test_bootstrap_rejects_bad_creator_before_uploading(capsys):
    executor = FakeExecutor()

    code = mint_test.run("not-a-wallet", executor)

    assert code == 1
    assert executor.uploads == []
    assert executor.requests == []
    document = json.loads(capsys.readouterr().out)
    assert document["success"] is False
    assert "not-a-wallet" in document["error"]


def test_unknown_log_level_is_reported_as_failure_document(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(mint_nft, "setup_logging", setup_logging)
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

    code = mint_nft.main(ARGV)

    document = json.loads(capsys.readouterr().out)
    assert code == 1
    assert document["success"] is False
    assert "verbose" in document["error"]


def test_unwritable_output_falls_back_to_stdout(tmp_path, capsys):
    output = tmp_path / "missing" / "result.json"

    code = mint_nft.run(_args(output=str(output)), FakeExecutor())

    assert code == 1
    assert not output.exists()
    document = json.loads(capsys.readouterr().out)
    assert document["success"] is False
    assert "Minted Mint111" in document["error"]


def test_invalid_arguments_with_unwritable_output_still_report(tmp_path, capsys):
    argv = ARGV + ["--output", str(tmp_path / "missing" / "out.json")]
    argv[argv.index("--name") + 1] = "x" * 40

    code = mint_nft.main(argv)

    assert code == 1
    assert json.loads(capsys.readouterr().out)["success"] is False


def test_main_releases_redis_client(monkeypatch, capsys):
    closed = []
    monkeypatch.setattr(mint_nft, "SolanaLedger", lambda rpc_url: object())
    monkeypatch.setattr(mint_nft, "MintExecutor", lambda **kwargs: FakeExecutor())
    monkeypatch.setattr(mint_nft, "close_redis_client", lambda: closed.append(True))

    assert mint_nft.main(ARGV) == 0
    assert closed == [True]
