import base64

import pytest

from nowink.core.exceptions import NotConnected, SigningRejected
from nowink.models.schemas import VerifyWalletResponse
from nowink.services.auth_service import sign_in
from nowink.services.wallet_session import WalletSession

from tests.conftest import FakeWalletAdapter


class FakeAuthGateway:
    def __init__(self):
        self.verified = []
        self.token = None
        self.nonce_requests = []

    async def request_nonce(self, wallet_address: str) -> str:
        self.nonce_requests.append(wallet_address)
        return "nonce-123"

    async def verify_wallet(self, wallet_address: str, signature: str, nonce: str) -> VerifyWalletResponse:
        self.verified.append((wallet_address, signature, nonce))
        return VerifyWalletResponse(token="jwt-token", user={"wallet_address": wallet_address})

    def set_auth_token(self, token: str) -> None:
        self.token = token


async def test_sign_in_signs_nonce_and_installs_token(settings):
    adapter = FakeWalletAdapter(signature=b"\x07" * 64)
    wallet = WalletSession(adapter, settings)
    await wallet.connect()
    gateway = FakeAuthGateway()

    verified = await sign_in(wallet, gateway)

    assert verified.token == "jwt-token"
    assert gateway.token == "jwt-token"
    assert gateway.verified == [(wallet.address, base64.b64encode(b"\x07" * 64).decode(), "nonce-123")]
    assert adapter.sign_calls[0][1] == [b"nonce-123"]


async def test_sign_in_requires_connected_wallet(settings):
    gateway = FakeAuthGateway()

    with pytest.raises(NotConnected):
        await sign_in(WalletSession(FakeWalletAdapter(), settings), gateway)

    assert gateway.nonce_requests == []


async def test_rejected_signature_installs_no_token(settings):
    wallet = WalletSession(FakeWalletAdapter(sign_error=RuntimeError("declined")), settings)
    await wallet.connect()
    gateway = FakeAuthGateway()

    with pytest.raises(SigningRejected):
        await sign_in(wallet, gateway)

    assert gateway.verified == []
    assert gateway.token is None
