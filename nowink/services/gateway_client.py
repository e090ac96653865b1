"""
Typed client for the now.ink backend HTTP gateway.

Every call runs the blocking ``requests`` call in the default executor so the
capture flow stays on one event loop. Transport failures and backend-reported
errors surface as different exceptions; nothing here retries, because only
the caller knows which calls are safe to repeat.
"""
import asyncio
import functools
import logging
import mimetypes
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from nowink.core.config import Settings, get_settings
from nowink.core.exceptions import GatewayApplicationError, GatewayTransportError
from nowink.models.schemas import (
    NFT,
    NFTListResponse,
    NonceRequest,
    NonceResponse,
    SaveStreamResponse,
    StartStreamRequest,
    Stream,
    VerifyWalletRequest,
    VerifyWalletResponse,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30


class BackendGateway:
    """One method per backend capability."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        settings = settings or get_settings()
        self.base_url = settings.api_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    # Auth token

    def set_auth_token(self, token: str) -> None:
        self.session.headers["Authorization"] = f"Bearer {token}"

    def clear_auth_token(self) -> None:
        self.session.headers.pop("Authorization", None)

    # Transport

    def _send(self, operation: str, method: str, path: str, **kwargs) -> Any:
        """
        Perform one HTTP request and decode its JSON body.

        Raises:
            GatewayTransportError: On timeout or connection failure
            GatewayApplicationError: On a non-2xx response or an undecodable body
        """
        url = f"{self.base_url}{path}"
        start_time = time.time()

        try:
            response = self.session.request(method, url, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs)
        except requests.exceptions.Timeout:
            error_msg = f"Request timeout after {REQUEST_TIMEOUT_SECONDS}s"
            logger.error(f"{operation} timeout: {error_msg}")
            raise GatewayTransportError(operation, error_msg)
        except requests.exceptions.RequestException as e:
            error_msg = f"Connection error: {str(e)}"
            logger.error(f"{operation} connection error: {error_msg}")
            raise GatewayTransportError(operation, error_msg)

        duration = time.time() - start_time
        logger.info(f"{method} {path} -> {response.status_code} [{duration:.3f}s]")

        if not 200 <= response.status_code < 300:
            error = _extract_error(response)
            logger.error(f"{operation} failed: HTTP {response.status_code}: {error}")
            raise GatewayApplicationError(operation, response.status_code, error)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # /health may answer with plain text
            return response.text

    async def _call(self, operation: str, method: str, path: str, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(self._send, operation, method, path, **kwargs)
        )

    # Auth

    async def request_nonce(self, wallet_address: str) -> str:
        """POST /auth/nonce"""
        body = NonceRequest(wallet_address=wallet_address).model_dump()
        data = await self._call("request_nonce", "POST", "/auth/nonce", json=body)
        return NonceResponse.model_validate(data).nonce

    async def verify_wallet(self, wallet_address: str, signature: str, nonce: str) -> VerifyWalletResponse:
        """POST /auth/verify"""
        body = VerifyWalletRequest(wallet_address=wallet_address, signature=signature, nonce=nonce).model_dump()
        data = await self._call("verify_wallet", "POST", "/auth/verify", json=body)
        return VerifyWalletResponse.model_validate(data)

    # Streams

    async def start_stream(self, request: StartStreamRequest) -> Stream:
        """POST /streams/start. Not idempotent: every call creates a new Stream."""
        data = await self._call("start_stream", "POST", "/streams/start", json=request.model_dump())
        return Stream.model_validate(data)

    async def end_stream(self, stream_id: str) -> Stream:
        """POST /streams/{id}/end"""
        data = await self._call("end_stream", "POST", f"/streams/{stream_id}/end")
        return Stream.model_validate(data)

    async def save_stream(self, stream_id: str, video_path: Path) -> SaveStreamResponse:
        """
        POST /streams/{id}/save with the video as the multipart ``video`` field.
        Not idempotent: a repeated save may trigger a second mint.
        """
        video_path = Path(video_path)
        content_type = mimetypes.guess_type(video_path.name)[0] or "video/mp4"
        with open(video_path, "rb") as video_file:
            files = {"video": (video_path.name, video_file, content_type)}
            data = await self._call("save_stream", "POST", f"/streams/{stream_id}/save", files=files)
        return SaveStreamResponse.model_validate(data)

    async def get_stream(self, stream_id: str) -> Stream:
        """GET /streams/{id}"""
        data = await self._call("get_stream", "GET", f"/streams/{stream_id}")
        return Stream.model_validate(data)

    # NFTs

    async def list_nfts(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_km: Optional[float] = None,
    ) -> List[NFT]:
        """
        GET /nfts, optionally filtered to a circle around a center point.

        Raises:
            ValueError: If only one coordinate is given, or a radius without a center
        """
        params: Dict[str, float] = {}
        if (latitude is None) != (longitude is None):
            raise ValueError("latitude and longitude must be given together")
        if latitude is not None:
            params["latitude"] = latitude
            params["longitude"] = longitude
            if radius_km is not None:
                if radius_km <= 0:
                    raise ValueError("radius_km must be positive")
                params["radius_km"] = radius_km
        elif radius_km is not None:
            raise ValueError("radius_km requires a center point")

        data = await self._call("list_nfts", "GET", "/nfts", params=params or None)
        return NFTListResponse.model_validate(data or {}).nfts

    async def get_nft(self, mint_address: str) -> NFT:
        """GET /nfts/{mint_address}"""
        data = await self._call("get_nft", "GET", f"/nfts/{mint_address}")
        return NFT.model_validate(data)

    async def health(self) -> bool:
        """GET /health. Returns True when the backend answers 2xx."""
        await self._call("health", "GET", "/health")
        return True


def _extract_error(response: requests.Response) -> str:
    """Pull the backend's error string out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return str(body)[:200]
