"""
Tests for the asset CRUD endpoints.

CHANGELOG:
- 2026-10-10: Initial creation (STORY-110)

TODO:
- None
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from asset_telemetry.api.deps import get_asset_storage
from asset_telemetry.api.main import app
from asset_telemetry.db.models import SiteArea
from asset_telemetry.errors import ConcurrentUpdateError
from asset_telemetry.models import DataResult
from tests.conftest import AUTH_HEADER, TENANT_ID, make_asset

ASSETS_URL = "/v1/assets"

CREATE_BODY = {
    "name": "Heat pump",
    "assetType": "CO",
    "siteAreaID": "sa-1",
    "dynamicAsset": True,
    "connectionID": "conn-1",
    "meterID": "meter-9",
}


@pytest.fixture()
def overridden_storage(storage: MagicMock) -> MagicMock:
    """Storage mock wired into the app, with site area sa-1 in site s1."""
    storage.get_site_area.return_value = SiteArea(id="sa-1", tenant_id=TENANT_ID, site_id="s1")
    app.dependency_overrides[get_asset_storage] = lambda: storage
    return storage


# ---------------------------------------------------------------------------
# GET /v1/assets
# ---------------------------------------------------------------------------


class TestListAssets:
    def test_filters_passed_through(
        self, client: TestClient, overridden_storage: MagicMock
    ) -> None:
        overridden_storage.get_assets.return_value = DataResult(
            count=1, result=[{"id": "A1", "name": "Main meter"}]
        )

        response = client.get(
            ASSETS_URL,
            params={"SiteID": "s1|s2", "DynamicOnly": "true", "SortFields": "-name"},
            headers=AUTH_HEADER,
        )

        assert response.status_code == 200
        assert response.json() == {"count": 1, "result": [{"id": "A1", "name": "Main meter"}]}
        tenant_id, filters, paging = overridden_storage.get_assets.call_args.args
        assert tenant_id == TENANT_ID
        assert filters.site_ids == ["s1", "s2"]
        assert filters.dynamic_only is True
        assert paging.sort == ["-name"]

    def test_requires_auth(self, client: TestClient) -> None:
        assert client.get(ASSETS_URL).status_code == 401


# ---------------------------------------------------------------------------
# POST /v1/assets
# ---------------------------------------------------------------------------


class TestCreateAsset:
    def test_creates_with_site_from_site_area(
        self, client: TestClient, overridden_storage: MagicMock
    ) -> None:
        response = client.post(ASSETS_URL, json=CREATE_BODY, headers=AUTH_HEADER)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Heat pump"
        assert body["siteAreaID"] == "sa-1"
        assert body["siteID"] == "s1"
        assert body["connectionID"] == "conn-1"
        assert body["createdBy"] == TENANT_ID
        assert body["id"]
        saved = overridden_storage.save_asset.call_args.args[0]
        assert saved.tenant_id == TENANT_ID

    def test_unknown_site_area_is_404(
        self, client: TestClient, overridden_storage: MagicMock
    ) -> None:
        overridden_storage.get_site_area.return_value = None

        response = client.post(ASSETS_URL, json=CREATE_BODY, headers=AUTH_HEADER)

        assert response.status_code == 404
        assert response.json()["detail"] == "Site Area ID 'sa-1' does not exist"
        overridden_storage.save_asset.assert_not_awaited()

    def test_dynamic_asset_without_connection_rejected(
        self, client: TestClient, overridden_storage: MagicMock
    ) -> None:
        body = {**CREATE_BODY, "connectionID": None}

        response = client.post(ASSETS_URL, json=body, headers=AUTH_HEADER)

        assert response.status_code == 422
        overridden_storage.save_asset.assert_not_awaited()


# ---------------------------------------------------------------------------
# GET / PUT / DELETE /v1/assets/{asset_id}
# ---------------------------------------------------------------------------


class TestSingleAsset:
    def test_get(self, client: TestClient, overridden_storage: MagicMock) -> None:
        overridden_storage.get_asset.return_value = make_asset(current_instant_watts=12.5)

        response = client.get(f"{ASSETS_URL}/A1", headers=AUTH_HEADER)

        assert response.status_code == 200
        assert response.json()["currentInstantWatts"] == 12.5
        overridden_storage.get_asset.assert_awaited_once_with(TENANT_ID, "A1")

    def test_get_unknown_is_404(self, client: TestClient, overridden_storage: MagicMock) -> None:
        response = client.get(f"{ASSETS_URL}/A404", headers=AUTH_HEADER)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_update_keeps_live_state(
        self, client: TestClient, overridden_storage: MagicMock
    ) -> None:
        asset = make_asset(current_instant_watts=99.0)
        overridden_storage.get_asset.return_value = asset

        response = client.put(
            f"{ASSETS_URL}/A1",
            json={**CREATE_BODY, "name": "Renamed"},
            headers=AUTH_HEADER,
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["currentInstantWatts"] == 99.0
        assert asset.last_changed_by == TENANT_ID

    def test_concurrent_update_is_409(
        self, client: TestClient, overridden_storage: MagicMock
    ) -> None:
        overridden_storage.get_asset.return_value = make_asset()
        overridden_storage.save_asset.side_effect = ConcurrentUpdateError(
            "Asset ID 'A1' was modified concurrently, try again"
        )

        response = client.put(f"{ASSETS_URL}/A1", json=CREATE_BODY, headers=AUTH_HEADER)

        assert response.status_code == 409
        assert response.json()["error"] == "concurrent_update"

    def test_delete(self, client: TestClient, overridden_storage: MagicMock) -> None:
        asset = make_asset()
        overridden_storage.get_asset.return_value = asset

        response = client.delete(f"{ASSETS_URL}/A1", headers=AUTH_HEADER)

        assert response.status_code == 200
        assert response.json() == {"status": "Success"}
        overridden_storage.delete_asset.assert_awaited_once_with(asset)
