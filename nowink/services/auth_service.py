"""
Wallet sign-in against the backend: nonce, signature, bearer token.
"""
import logging

from nowink.core.exceptions import NotConnected
from nowink.models.schemas import VerifyWalletResponse
from nowink.services.gateway_client import BackendGateway
from nowink.services.wallet_session import WalletSession

logger = logging.getLogger(__name__)


async def sign_in(wallet: WalletSession, gateway: BackendGateway) -> VerifyWalletResponse:
    """
    Prove ownership of the connected wallet and install the session token.

    Args:
        wallet: A connected wallet session
        gateway: Gateway that receives the bearer token on success

    Returns:
        The backend's verification response (token and user)

    Raises:
        NotConnected: If the wallet session has no identity
        SigningRejected: If the wallet declines to sign the nonce
        GatewayTransportError / GatewayApplicationError: On backend failure
    """
    if not wallet.is_connected:
        raise NotConnected()

    address = wallet.address
    nonce = await gateway.request_nonce(address)
    signature = await wallet.sign_message(nonce)
    verified = await gateway.verify_wallet(address, signature, nonce)

    gateway.set_auth_token(verified.token)
    logger.info(f"Signed in as {address}")
    return verified
