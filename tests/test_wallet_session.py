import base64

import pytest

from nowink.core.exceptions import AuthorizationDenied, NotConnected, SigningRejected
from nowink.models.domain import AppIdentity
from nowink.services.wallet_session import WalletSession

from tests.conftest import FakeWalletAdapter


async def test_connect_remembers_first_account(settings):
    adapter = FakeWalletAdapter()
    session = WalletSession(adapter, settings)

    wallet = await session.connect()

    assert wallet.address == adapter.accounts[0]
    assert session.is_connected
    assert session.address == adapter.accounts[0]
    assert not session.is_connecting
    cluster, identity = adapter.authorize_calls[0]
    assert cluster == "devnet"
    assert identity.name == "now.ink"
    assert identity.uri == settings.app_uri


async def test_connect_denied_leaves_session_disconnected(settings):
    adapter = FakeWalletAdapter(authorize_error=RuntimeError("user declined"))
    session = WalletSession(adapter, settings)

    with pytest.raises(AuthorizationDenied) as exc_info:
        await session.connect()

    assert exc_info.value.detail == "user declined"
    assert not session.is_connected
    assert session.wallet is None
    assert not session.is_connecting


@pytest.mark.parametrize("accounts", [[], ["not-a-solana-address"]])
async def test_connect_rejects_unusable_accounts(settings, accounts):
    session = WalletSession(FakeWalletAdapter(accounts=accounts), settings)

    with pytest.raises(AuthorizationDenied):
        await session.connect()

    assert not session.is_connected


async def test_sign_message_without_connection_never_contacts_wallet(settings):
    adapter = FakeWalletAdapter()
    session = WalletSession(adapter, settings)

    with pytest.raises(NotConnected):
        await session.sign_message("nonce-123")

    assert adapter.authorize_calls == []
    assert adapter.sign_calls == []


async def test_sign_message_reauthorizes_and_encodes_signature(settings):
    adapter = FakeWalletAdapter(signature=b"\xaa" * 64)
    session = WalletSession(adapter, settings)
    await session.connect()

    signature = await session.sign_message("nonce-123")

    assert base64.b64decode(signature) == b"\xaa" * 64
    assert len(adapter.authorize_calls) == 2
    assert adapter.authorize_calls[1] == ("devnet", AppIdentity(name="now.ink"))
    assert adapter.sign_calls == [([session.address], [b"nonce-123"])]


async def test_sign_message_rejection_is_reported(settings):
    adapter = FakeWalletAdapter(sign_error=RuntimeError("rejected"))
    session = WalletSession(adapter, settings)
    await session.connect()

    with pytest.raises(SigningRejected):
        await session.sign_message("nonce-123")

    assert session.is_connected


async def test_disconnect_is_idempotent(settings):
    session = WalletSession(FakeWalletAdapter(), settings)
    await session.connect()

    session.disconnect()
    session.disconnect()

    assert not session.is_connected
    assert session.address is None
