import json
from pathlib import Path
from typing import List, Optional, Sequence

import pytest
from solders.keypair import Keypair

from nowink.core.config import Settings, reset_settings
from nowink.models.domain import AppIdentity


class FakeWalletAdapter:
    """Wallet capability that records calls and answers from canned values."""

    def __init__(
        self,
        accounts: Optional[List[str]] = None,
        signature: bytes = b"\x01" * 64,
        authorize_error: Optional[Exception] = None,
        sign_error: Optional[Exception] = None,
    ):
        self.accounts = accounts if accounts is not None else [str(Keypair().pubkey())]
        self.signature = signature
        self.authorize_error = authorize_error
        self.sign_error = sign_error
        self.authorize_calls: List[tuple] = []
        self.sign_calls: List[tuple] = []

    async def authorize(self, cluster: str, identity: AppIdentity) -> List[str]:
        self.authorize_calls.append((cluster, identity))
        if self.authorize_error is not None:
            raise self.authorize_error
        return list(self.accounts)

    async def sign_messages(self, addresses: Sequence[str], payloads: Sequence[bytes]) -> List[bytes]:
        self.sign_calls.append((list(addresses), list(payloads)))
        if self.sign_error is not None:
            raise self.sign_error
        return [self.signature for _ in payloads]


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        api_base_url="http://backend.test/api/v1",
        solana_cluster="devnet",
        platform_wallet_path=tmp_path / "platform-wallet.json",
        pinata_jwt="test-jwt",
        storage_retry_base_delay=0.0,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def platform_keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def wallet_file(tmp_path: Path, platform_keypair: Keypair) -> Path:
    path = tmp_path / "platform-wallet.json"
    path.write_text(json.dumps(list(bytes(platform_keypair))))
    return path


@pytest.fixture
def creator_address() -> str:
    return str(Keypair().pubkey())
