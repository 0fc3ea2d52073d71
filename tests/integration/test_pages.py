"""
Tests for the server-rendered pages.
"""
import io
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from PIL import Image

from app.models import Plant, TreeEntry
from app.services.plantnet_service import PlantNetTimeout

pytestmark = pytest.mark.integration

NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)

LOG_ROW = {
    "key": "quercus-robur",
    "name": "English oak",
    "scientific_name": "Quercus robur",
    "sightings_count": 2,
    "last_seen": NOW,
    "thumbnail_url": None,
}


def _png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (128, 128), color=(0, 100, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_root_redirects_to_log(client):
    response = client.get("/", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/log"


class TestLogPage:
    def test_lists_plants(self, client, plant_service_mocks):
        plant_service_mocks.list_species_log.return_value = [LOG_ROW]

        response = client.get("/log")

        assert response.status_code == 200
        assert "English oak" in response.text
        assert "Quercus robur" in response.text
        assert 'href="/plants/quercus-robur"' in response.text
        assert "2 sightings" in response.text

    def test_empty(self, client, plant_service_mocks):
        plant_service_mocks.list_species_log.return_value = []

        response = client.get("/log")

        assert "No plants logged yet." in response.text

    def test_error_is_shown(self, client, plant_service_mocks):
        plant_service_mocks.list_species_log.side_effect = RuntimeError("db down")

        response = client.get("/log")

        assert response.status_code == 200
        assert "Error loading log: db down" in response.text


class TestUploadPage:
    def test_form(self, client):
        response = client.get("/upload")

        assert response.status_code == 200
        assert 'name="file"' in response.text
        assert "bark" in response.text

    def test_no_file(self, client, mock_plantnet):
        response = client.post("/upload", data={"organ": "leaf"})

        assert response.status_code == 400
        assert "Please choose a photo first." in response.text
        mock_plantnet.identify.assert_not_called()

    def test_result_is_rendered(self, client, plant_service_mocks):
        record = SimpleNamespace(id=uuid.uuid4(), created_at=NOW)
        plant_service_mocks.record_sighting.return_value = (SimpleNamespace(), record)

        response = client.post(
            "/upload",
            files={"file": ("oak.png", _png(), "image/png")},
            data={"organ": "leaf"},
        )

        assert response.status_code == 200
        assert "English oak" in response.text
        assert "Confidence: 87.1%" in response.text
        assert "https://www.gbif.org/species/2878688" in response.text
        assert 'href="/plants/quercus-robur"' in response.text
        assert str(record.id) in response.text

    def test_identify_error_is_shown(self, client, mock_plantnet):
        mock_plantnet.identify.side_effect = PlantNetTimeout("PlantNet API timeout after 30 seconds")

        response = client.post("/upload", files={"file": ("oak.png", _png(), "image/png")})

        assert response.status_code == 408
        assert "PlantNet API timeout after 30 seconds" in response.text


class TestPlantPage:
    def _detail(self, notes=None):
        return {
            "log": LOG_ROW,
            "entry": TreeEntry(key="quercus-robur", display_name=None, notes=notes, updated_at=NOW),
            "plant": Plant(
                id=uuid.uuid4(),
                key="quercus-robur",
                common_name="English oak",
                scientific_name="Quercus robur",
                family="Fagaceae",
                genus="Quercus",
                reference_images=[{"url": {"m": "https://bs.plantnet.org/image/m/abc"}}],
            ),
        }

    def test_read_mode(self, client, plant_service_mocks):
        plant_service_mocks.get_detail.return_value = self._detail()

        response = client.get("/plants/quercus-robur")

        assert response.status_code == 200
        assert "<h1>English oak</h1>" in response.text
        assert "Fagaceae" in response.text
        assert "https://bs.plantnet.org/image/m/abc" in response.text
        assert "No notes yet." in response.text
        assert "<textarea" not in response.text

    def test_edit_mode(self, client, plant_service_mocks):
        plant_service_mocks.get_detail.return_value = self._detail(notes="Big one by the creek")

        response = client.get("/plants/quercus-robur?edit=1")

        assert "<textarea" in response.text
        assert "Big one by the creek" in response.text

    def test_saved_notice(self, client, plant_service_mocks):
        plant_service_mocks.get_detail.return_value = self._detail()

        response = client.get("/plants/quercus-robur?saved=1")

        assert "Saved" in response.text

    def test_no_plant_record(self, client, plant_service_mocks):
        plant_service_mocks.get_detail.return_value = {
            "log": None,
            "entry": TreeEntry(key="mystery"),
            "plant": None,
        }

        response = client.get("/plants/mystery")

        assert response.status_code == 200
        assert "Unknown plant" in response.text
        assert "No plant details found for this key yet." in response.text

    def test_save_redirects(self, client, plant_service_mocks):
        response = client.post(
            "/plants/Quercus-Robur",
            data={"display_name": "Creek oak", "notes": "  acorns  "},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/plants/quercus-robur?saved=1"
        args = plant_service_mocks.save_entry.call_args.args
        assert args[1:] == ("quercus-robur", "Creek oak", "  acorns  ")


class TestPlantPageInput:
    def test_blank_key_is_not_found(self, client, plant_service_mocks):
        response = client.get("/plants/%20")

        assert response.status_code == 404
        assert "Missing plant key" in response.text
        plant_service_mocks.get_detail.assert_not_called()

    def test_blank_key_save_is_not_found(self, client, plant_service_mocks):
        response = client.post("/plants/%20", data={"notes": "x"}, follow_redirects=False)

        assert response.status_code == 404
        plant_service_mocks.save_entry.assert_not_called()

    def test_display_name_too_long(self, client, plant_service_mocks):
        plant_service_mocks.get_detail.return_value = {
            "log": LOG_ROW,
            "entry": TreeEntry(key="quercus-robur"),
            "plant": None,
        }

        response = client.post(
            "/plants/quercus-robur",
            data={"display_name": "x" * 256, "notes": "keep me"},
            follow_redirects=False,
        )

        assert response.status_code == 400
        assert "Display name: String should have at most 255 characters" in response.text
        assert "<textarea" in response.text
        assert "keep me" in response.text
        plant_service_mocks.save_entry.assert_not_called()
