"""
Wallet session: identity and message signing through an external wallet.

The session never holds key material. Authorization and signing are delegated
to a ``WalletAdapter`` (for example a mobile wallet adapter bridge), and the
session is passed explicitly to every component that needs identity.
"""
import base64
import logging
from typing import List, Optional, Protocol, Sequence

from nowink.core.config import Settings, get_settings
from nowink.core.exceptions import AuthorizationDenied, NotConnected, SigningRejected
from nowink.models.domain import AppIdentity, WalletIdentity
from nowink.utils.address import is_valid_address

logger = logging.getLogger(__name__)


class WalletAdapter(Protocol):
    """External wallet capability."""

    async def authorize(self, cluster: str, identity: AppIdentity) -> List[str]:
        """Authorize the app and return the authorized account addresses."""
        ...

    async def sign_messages(self, addresses: Sequence[str], payloads: Sequence[bytes]) -> List[bytes]:
        """Sign each payload with the given accounts and return the signatures."""
        ...


class WalletSession:
    """Connection state for one external wallet."""

    def __init__(self, adapter: WalletAdapter, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.adapter = adapter
        self.cluster = settings.solana_cluster
        self.identity = AppIdentity(
            name=settings.app_name,
            uri=settings.app_uri,
            icon=settings.app_icon,
        )
        self._wallet: Optional[WalletIdentity] = None
        self.is_connecting = False

    @property
    def wallet(self) -> Optional[WalletIdentity]:
        return self._wallet

    @property
    def is_connected(self) -> bool:
        return self._wallet is not None and self._wallet.connected

    @property
    def address(self) -> Optional[str]:
        return self._wallet.address if self._wallet else None

    async def connect(self) -> WalletIdentity:
        """
        Request authorization from the wallet and remember the first account.

        Returns:
            The connected wallet identity

        Raises:
            AuthorizationDenied: If the wallet declines, fails, or returns no
                usable account. Session state is left unchanged.
        """
        self.is_connecting = True
        try:
            try:
                accounts = await self.adapter.authorize(self.cluster, self.identity)
            except Exception as e:
                logger.error(f"Wallet connection failed: {type(e).__name__}: {e}")
                raise AuthorizationDenied(str(e)) from e

            if not accounts:
                raise AuthorizationDenied("wallet returned no accounts")
            address = accounts[0]
            if not is_valid_address(address):
                raise AuthorizationDenied(f"wallet returned an invalid address: {address!r}")

            self._wallet = WalletIdentity(address=address)
            logger.info(f"Wallet connected: {address}")
            return self._wallet
        finally:
            self.is_connecting = False

    def disconnect(self) -> None:
        """Forget the identity locally. Authorization on the wallet side is untouched."""
        if self._wallet is not None:
            logger.info(f"Wallet disconnected: {self._wallet.address}")
        self._wallet = None

    async def sign_message(self, message: str) -> str:
        """
        Sign a UTF-8 message with the connected account.

        Args:
            message: Text to sign (for example a backend nonce)

        Returns:
            The signature, base64-encoded

        Raises:
            NotConnected: If no wallet is connected (the wallet is not contacted)
            SigningRejected: If the wallet declines to re-authorize or sign
        """
        if not self.is_connected:
            raise NotConnected()

        address = self._wallet.address
        payload = message.encode("utf-8")

        try:
            # Wallets may require a fresh authorization per signing session
            await self.adapter.authorize(self.cluster, AppIdentity(name=self.identity.name))
            signatures = await self.adapter.sign_messages([address], [payload])
        except Exception as e:
            logger.error(f"Message signing failed: {type(e).__name__}: {e}")
            raise SigningRejected(str(e)) from e

        if not signatures:
            raise SigningRejected("wallet returned no signature")

        return base64.b64encode(bytes(signatures[0])).decode("ascii")
