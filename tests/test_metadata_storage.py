import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from nowink.core.exceptions import MetadataUploadError
from nowink.models.mint_schemas import NFTMetadata
from nowink.services.minting.metadata import build_moment_metadata
from nowink.services.minting.storage import PinataMetadataStorage

CAPTURED_AT = datetime(2026, 10, 19, 10, 45, tzinfo=timezone.utc)


def _response(status_code: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode("utf-8")
    response.url = "https://api.pinata.cloud/pinning/pinJSONToIPFS"
    return response


def _metadata() -> NFTMetadata:
    return build_moment_metadata(
        name="Moment at 10:45",
        creator_address="CreatorWallet1111111111111111111111111111111",
        latitude=40.7128,
        longitude=-74.0060,
        timestamp=CAPTURED_AT,
        video_uri="ipfs://video-cid",
        duration_seconds=42,
        location_name="Times Square, New York",
    )


def test_moment_metadata_carries_location_and_video():
    document = _metadata().model_dump(mode="json", exclude_none=True)

    attributes = {a["trait_type"]: a["value"] for a in document["attributes"]}
    assert attributes == {
        "Latitude": "40.7128",
        "Longitude": "-74.0060",
        "Timestamp": "2026-10-19T10:45:00+00:00",
        "Creator": "CreatorW...",
        "Duration (seconds)": "42",
        "Location": "Times Square, New York",
        "App": "now.ink",
    }
    assert document["symbol"] == "NOWINK"
    assert document["animation_url"] == "ipfs://video-cid"
    assert document["properties"] == {
        "files": [{"uri": "ipfs://video-cid", "type": "video/mp4"}],
        "category": "video",
    }
    assert "image" not in document


def test_uploaded_metadata_round_trips_through_gateway(settings):
    stored = {}

    def post(url, json=None, headers=None, timeout=None):
        stored["QmMeta"] = json["pinataContent"]
        return _response(200, {"IpfsHash": "QmMeta"})

    def get(url, timeout=None):
        assert url == "https://gateway.pinata.cloud/ipfs/QmMeta"
        return _response(200, stored["QmMeta"])

    session = requests.Session()
    session.post = MagicMock(side_effect=post)
    session.get = MagicMock(side_effect=get)
    storage = PinataMetadataStorage(settings, session=session)
    metadata = _metadata()

    uri = storage.upload_json(metadata.model_dump(mode="json", exclude_none=True), name="moment.json")
    fetched = NFTMetadata.model_validate(storage.fetch_json(uri))

    assert uri == "ipfs://QmMeta"
    assert fetched == metadata
    headers = session.post.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer test-jwt"


def test_transient_upload_failures_are_retried(settings):
    session = requests.Session()
    session.post = MagicMock(side_effect=[
        requests.exceptions.ConnectionError("reset"),
        _response(503, {"error": "busy"}),
        _response(200, {"IpfsHash": "QmMeta"}),
    ])
    storage = PinataMetadataStorage(settings, session=session)

    assert storage.upload_json({"name": "Moment"}) == "ipfs://QmMeta"
    assert session.post.call_count == 3


def test_rejected_upload_is_not_retried(settings):
    session = requests.Session()
    session.post = MagicMock(return_value=_response(401, {"error": "bad jwt"}))
    storage = PinataMetadataStorage(settings, session=session)

    with pytest.raises(MetadataUploadError):
        storage.upload_json({"name": "Moment"})

    assert session.post.call_count == 1


def test_upload_requires_jwt(settings):
    session = requests.Session()
    session.post = MagicMock()
    storage = PinataMetadataStorage(settings.model_copy(update={"pinata_jwt": None}), session=session)

    with pytest.raises(MetadataUploadError):
        storage.upload_json({"name": "Moment"})

    session.post.assert_not_called()


def test_plain_urls_are_fetched_as_is(settings):
    storage = PinataMetadataStorage(settings, session=requests.Session())

    assert storage.gateway_url_for("https://arweave.net/abc") == "https://arweave.net/abc"
    assert storage.gateway_url_for("ipfs://QmMeta") == "https://gateway.pinata.cloud/ipfs/QmMeta"
