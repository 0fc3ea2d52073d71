"""
API tests for POST /api/v1/identify and the flat /identify/tree variant.
"""
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.services.plantnet_service import (
    MissingApiKeyError,
    ImageFetchError,
    ImageFetchTimeout,
    PlantNetError,
    PlantNetTimeout,
)

pytestmark = pytest.mark.integration

IMAGE_URL = "https://img.test/oak.jpg"


@pytest.fixture
def sighting(plant_service_mocks):
    record = SimpleNamespace(id=uuid.uuid4(), created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
    plant_service_mocks.record_sighting.return_value = (SimpleNamespace(), record)
    return record


class TestIdentify:
    def test_success(self, client, mock_plantnet, plant_service_mocks, sighting):
        response = client.post(
            "/api/v1/identify",
            json={"imageUrl": IMAGE_URL, "organ": "flower", "lat": 51.5, "lng": -0.12},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(sighting.id)
        assert data["plantKey"] == "quercus-robur"
        assert data["name"] == "English oak"
        assert data["scientificName"] == "Quercus robur"
        assert data["commonNames"] == ["English oak", "Pedunculate oak", "French oak"]
        assert data["family"] == "Fagaceae"
        assert data["gbifId"] == "2878688"
        assert data["powoId"] == "296524-1"
        assert data["iucnCategory"] == "LC"
        assert data["confidence"] == pytest.approx(0.87123)
        assert data["referenceImages"][0]["url"] == "https://bs.plantnet.org/image/m/abc"
        assert data["rawTop"]["species"]["scientificName"] == "Quercus robur L."

        mock_plantnet.fetch_image.assert_awaited_once_with(IMAGE_URL)
        mock_plantnet.identify.assert_awaited_once_with(b"\xff\xd8fake-jpeg", "image/jpeg", "flower")

        args, kwargs = plant_service_mocks.record_sighting.call_args
        assert args[1] == "quercus-robur"
        assert kwargs == {
            "image_url": IMAGE_URL,
            "image_path": None,
            "lat": 51.5,
            "lng": -0.12,
            "organ": "flower",
        }

    def test_default_organ_is_leaf(self, client, mock_plantnet, sighting):
        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 200
        assert mock_plantnet.identify.call_args.args[2] == "leaf"

    def test_missing_image_url(self, client, mock_plantnet):
        response = client.post("/api/v1/identify", json={"organ": "leaf"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required field: imageUrl"
        mock_plantnet.fetch_image.assert_not_called()

    def test_blank_image_url(self, client):
        response = client.post("/api/v1/identify", json={"imageUrl": "   "})
        assert response.status_code == 400

    def test_invalid_organ(self, client, mock_plantnet):
        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL, "organ": "root"})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid organ type")
        mock_plantnet.fetch_image.assert_not_called()

    def test_latitude_out_of_range(self, client):
        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL, "lat": 123})
        assert response.status_code == 422

    def test_missing_api_key(self, client, mock_plantnet):
        mock_plantnet.ensure_configured.side_effect = MissingApiKeyError(
            "Server misconfigured: missing PLANTNET_KEY"
        )

        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 500
        assert response.json()["detail"] == "Server misconfigured: missing PLANTNET_KEY"
        mock_plantnet.fetch_image.assert_not_called()

    @pytest.mark.parametrize("error, status", [
        (ImageFetchError("Could not fetch imageUrl (HTTP 404)"), 400),
        (ImageFetchTimeout("Image fetch timeout after 15 seconds"), 408),
    ])
    def test_image_fetch_failures(self, client, mock_plantnet, plant_service_mocks, error, status):
        mock_plantnet.fetch_image.side_effect = error

        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == status
        assert response.json()["detail"] == error.message
        plant_service_mocks.record_sighting.assert_not_called()

    def test_plantnet_timeout(self, client, mock_plantnet):
        mock_plantnet.identify.side_effect = PlantNetTimeout("PlantNet API timeout after 30 seconds")

        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 408
        assert response.json()["detail"] == "PlantNet API timeout after 30 seconds"

    def test_plantnet_error(self, client, mock_plantnet, plant_service_mocks):
        mock_plantnet.identify.side_effect = PlantNetError(
            "PlantNet request failed", 401, details={"message": "Invalid API key"}
        )

        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 502
        assert response.json()["detail"] == {
            "error": "PlantNet request failed",
            "status": 401,
            "details": {"message": "Invalid API key"},
        }
        plant_service_mocks.record_sighting.assert_not_called()

    def test_unidentified_is_not_recorded(self, client, mock_plantnet, plant_service_mocks):
        mock_plantnet.identify.return_value = {"results": []}

        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Unknown"
        assert data["id"] is None
        assert data["plantKey"] is None
        plant_service_mocks.record_sighting.assert_not_called()

    def test_database_failure_rolls_back(self, client, mock_db, plant_service_mocks):
        plant_service_mocks.record_sighting.side_effect = RuntimeError("connection lost")

        response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 500
        assert response.json()["detail"] == "Unexpected server error: connection lost"
        mock_db.rollback.assert_awaited()


class TestIdentifyTree:
    def test_records_flat_row(self, client, plant_service_mocks):
        tree = SimpleNamespace(id=uuid.uuid4(), created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        plant_service_mocks.record_tree.return_value = tree

        response = client.post("/api/v1/identify/tree", json={"imageUrl": IMAGE_URL, "lat": 10, "lng": 20})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(tree.id)
        assert data["name"] == "English oak"
        assert "plantKey" not in data
        plant_service_mocks.record_sighting.assert_not_called()

        kwargs = plant_service_mocks.record_tree.call_args.kwargs
        assert kwargs["image_url"] == IMAGE_URL
        assert kwargs["lat"] == 10
        assert kwargs["lng"] == 20

    def test_unidentified_still_recorded(self, client, mock_plantnet, plant_service_mocks):
        mock_plantnet.identify.return_value = {"results": []}
        plant_service_mocks.record_tree.return_value = SimpleNamespace(
            id=uuid.uuid4(), created_at=datetime.now(timezone.utc)
        )

        response = client.post("/api/v1/identify/tree", json={"imageUrl": IMAGE_URL})

        assert response.status_code == 200
        assert response.json()["name"] == "Unknown"
        plant_service_mocks.record_tree.assert_awaited_once()


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["plantnet_configured"] is True


def test_missing_key_is_reported_before_bad_organ(client, mock_plantnet):
    mock_plantnet.ensure_configured.side_effect = MissingApiKeyError(
        "Server misconfigured: missing PLANTNET_KEY"
    )

    response = client.post("/api/v1/identify", json={"imageUrl": IMAGE_URL, "organ": "root"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Server misconfigured: missing PLANTNET_KEY"


def test_http_client_opened_at_startup(client):
    from app.services import http_client

    assert http_client._shared_client is not None
