"""
Decentralized metadata storage backed by Pinata (IPFS).

Uploads are content-addressed, so repeating one is harmless and transient
failures are retried with backoff.
"""
import logging
from typing import Any, Dict, Optional

import requests

from nowink.core.config import Settings, get_settings
from nowink.core.exceptions import MetadataUploadError
from nowink.utils.retry import retry_call

logger = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"


class PinataMetadataStorage:
    """Pins JSON documents to IPFS and reads them back through the gateway."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        settings = settings or get_settings()
        self.api_url = settings.pinata_api_url.rstrip("/")
        self.gateway_url = settings.pinata_gateway_url.rstrip("/")
        self.jwt = settings.pinata_jwt
        self.timeout = settings.storage_timeout_seconds
        self.max_retries = settings.storage_retry_count
        self.base_delay = settings.storage_retry_base_delay
        self.session = session or requests.Session()

    def _pin_json(self, document: Dict[str, Any], name: str) -> str:
        response = self.session.post(
            f"{self.api_url}/pinning/pinJSONToIPFS",
            json={"pinataContent": document, "pinataMetadata": {"name": name}},
            headers={
                "Authorization": f"Bearer {self.jwt}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()["IpfsHash"]

    def upload_json(self, document: Dict[str, Any], name: str = "metadata.json") -> str:
        """
        Pin a JSON document.

        Args:
            document: JSON-serializable document
            name: Pin name shown in the Pinata dashboard

        Returns:
            Content address in the form ``ipfs://<cid>``

        Raises:
            MetadataUploadError: If no JWT is configured or the upload fails
        """
        if not self.jwt:
            raise MetadataUploadError("PINATA_JWT is not configured")

        try:
            cid = retry_call(
                self._pin_json,
                document,
                name,
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                operation_name="pin_metadata",
            )
        except requests.exceptions.RequestException as e:
            raise MetadataUploadError(str(e)) from e
        except (KeyError, ValueError) as e:
            raise MetadataUploadError(f"unexpected Pinata response: {e}") from e

        logger.info(f"Metadata pinned: {cid}")
        return f"{IPFS_SCHEME}{cid}"

    def gateway_url_for(self, uri: str) -> str:
        """Map an ``ipfs://`` content address to a fetchable gateway URL."""
        if uri.startswith(IPFS_SCHEME):
            return f"{self.gateway_url}/{uri[len(IPFS_SCHEME):]}"
        return uri

    def _get_json(self, url: str) -> Dict[str, Any]:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def fetch_json(self, uri: str) -> Dict[str, Any]:
        """
        Fetch a stored document back, by content address or plain URL.

        Raises:
            MetadataUploadError: If the document cannot be retrieved or decoded
        """
        url = self.gateway_url_for(uri)
        try:
            return retry_call(
                self._get_json,
                url,
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                operation_name="fetch_metadata",
            )
        except requests.exceptions.RequestException as e:
            raise MetadataUploadError(f"could not fetch {uri}: {e}") from e
        except ValueError as e:
            raise MetadataUploadError(f"document at {uri} is not JSON: {e}") from e
