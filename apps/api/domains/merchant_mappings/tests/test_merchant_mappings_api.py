"""Tests for the merchant mappings router."""

from packages.statement_import.models import MerchantMapping


def test_list_mappings(api_client, mock_repository):
    mock_repository.list_merchant_mappings.return_value = [
        MerchantMapping(pattern="SPINNEYS", display_name="Spinneys", use_count=9, id="m1"),
        MerchantMapping(pattern="UBER", display_name="Uber", use_count=2, id="m2"),
    ]

    response = api_client.get("/api/v1/merchant-mappings")

    assert response.status_code == 200
    data = response.json()
    assert [m["merchant_pattern"] for m in data] == ["SPINNEYS", "UBER"]
    assert data[0]["use_count"] == 9
    mock_repository.list_merchant_mappings.assert_called_once_with("test-user-id")


def test_save_mapping_normalizes_pattern(api_client, mock_repository):
    mock_repository.upsert_merchant_mapping.side_effect = lambda user_id, m: m

    response = api_client.post(
        "/api/v1/merchant-mappings",
        json={"merchant_pattern": " spinneys ", "merchant_name": " Spinneys ", "category_id": ""},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["merchant_pattern"] == "SPINNEYS"
    assert data["merchant_name"] == "Spinneys"
    assert data["category_id"] is None


def test_save_mapping_requires_pattern_and_name(api_client, mock_repository):
    response = api_client.post(
        "/api/v1/merchant-mappings", json={"merchant_pattern": "   ", "merchant_name": "X"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "merchant_pattern and merchant_name are required"

    response = api_client.post("/api/v1/merchant-mappings", json={"merchant_pattern": "X"})
    assert response.status_code == 400
    mock_repository.upsert_merchant_mapping.assert_not_called()


def test_delete_mapping(api_client, mock_repository):
    response = api_client.delete("/api/v1/merchant-mappings", params={"id": "m1"})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    mock_repository.delete_merchant_mapping.assert_called_once_with("test-user-id", "m1")


def test_delete_requires_id(api_client, mock_repository):
    response = api_client.delete("/api/v1/merchant-mappings")

    assert response.status_code == 400
    assert response.json() == {"error": "id is required"}
    mock_repository.delete_merchant_mapping.assert_not_called()


def test_storage_failure_is_500(api_client, mock_repository):
    mock_repository.list_merchant_mappings.side_effect = RuntimeError("connection reset")

    response = api_client.get("/api/v1/merchant-mappings")

    assert response.status_code == 500
    assert response.json()["error"] == "An unexpected error occurred"
