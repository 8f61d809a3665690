"""Tests for the statement import router: parse and import endpoints."""

import io
from unittest.mock import patch

from packages.statement_import.errors import ExtractionError
from packages.statement_import.fingerprint import generate_fingerprint
from packages.statement_import.models import MerchantMapping

CSV_SAMPLE = """Date,Description,Amount
2024-03-15,COFFEE SHOP,5.50
2024-03-16,STARBUCKS ABC MALL,7.00
2024-03-17,LOCAL BAKERY,3.25
"""

PDF_TEXT = "\n".join(
    [
        "BANK OF BEIRUT - ACCOUNT STATEMENT",
        "01/02/2024 SPINNEYS HAZMIEH 45,000",
        "05/02/2024 SALARY PAYMENT 1,500.00 CR",
    ]
)


def upload(client, name, content, content_type="text/csv"):
    return client.post(
        "/api/v1/statement-import/parse",
        files={"file": (name, io.BytesIO(content), content_type)},
    )


class TestParseEndpoint:
    """POST /statement-import/parse"""

    def test_csv_upload(self, api_client):
        response = upload(api_client, "march.csv", CSV_SAMPLE.encode("utf-8"))

        assert response.status_code == 200
        data = response.json()
        assert data["totalCount"] == 3
        assert data["matchedCount"] == 1
        assert data["unmatchedCount"] == 2
        assert data["skippedCount"] == 1
        assert data["format"] == "csv"
        assert data["rawTextPreview"].startswith("Date,Description,Amount")

        coffee = data["transactions"][0]
        assert coffee["date"] == "2024-03-15"
        assert coffee["amount"] == 5.5
        assert coffee["type"] == "debit"
        assert coffee["merchant_name"] == "COFFEE SHOP"
        assert coffee["matched"] is False
        assert coffee["selected"] is True

    def test_user_mappings_are_loaded_for_the_caller(self, api_client, mock_repository):
        mock_repository.list_merchant_mappings.return_value = [
            MerchantMapping(pattern="COFFEE", display_name="Corner Coffee", category_id="cat-1")
        ]

        data = upload(api_client, "march.csv", CSV_SAMPLE.encode("utf-8")).json()

        mock_repository.list_merchant_mappings.assert_called_once_with("test-user-id")
        assert data["transactions"][0]["merchant_name"] == "Corner Coffee"
        assert data["transactions"][0]["category_id"] == "cat-1"

    def test_already_imported_rows_are_flagged(self, api_client, mock_repository):
        fingerprint = generate_fingerprint("2024-03-15", 5.5, "COFFEE SHOP")
        mock_repository.existing_fingerprints.return_value = {fingerprint}

        data = upload(api_client, "march.csv", CSV_SAMPLE.encode("utf-8")).json()

        assert data["totalCount"] == 3
        assert data["duplicateCount"] == 1
        assert data["transactions"][0]["duplicate"] is True
        assert data["transactions"][0]["selected"] is False

    def test_failed_duplicate_lookup_flags_nothing(self, api_client, mock_repository):
        mock_repository.existing_fingerprints.side_effect = RuntimeError(
            "column transactions.fingerprint does not exist"
        )

        response = upload(api_client, "march.csv", CSV_SAMPLE.encode("utf-8"))

        assert response.status_code == 200
        data = response.json()
        assert data["totalCount"] == 3
        assert data["duplicateCount"] == 0
        assert all(t["selected"] for t in data["transactions"])

    def test_latin1_csv_is_decoded(self, api_client):
        content = "Date,Description,Amount\n2024-03-15,CAFÉ NOIR,4.00\n".encode("latin-1")
        data = upload(api_client, "march.csv", content).json()
        assert data["transactions"][0]["description"] == "CAFÉ NOIR"

    def test_pdf_upload(self, api_client):
        with patch(
            "apps.api.domains.statement_import.service.extract_pdf_text",
            return_value=PDF_TEXT,
        ) as extract:
            response = upload(api_client, "feb.pdf", b"%PDF-1.7", "application/pdf")

        assert response.status_code == 200
        assert extract.call_args.kwargs["min_chars"] == 50
        data = response.json()
        assert data["format"] == "freeform"
        assert data["transactions"][0]["merchant_name"] == "Spinneys"
        assert data["transactions"][1]["type"] == "credit"

    def test_unreadable_pdf_is_400_with_hint(self, api_client):
        error = ExtractionError(
            "Could not extract text from PDF. Try exporting as CSV from your bank.",
            details="The PDF might be image-based or empty.",
        )
        with patch(
            "apps.api.domains.statement_import.service.extract_pdf_text", side_effect=error
        ):
            response = upload(api_client, "scan.pdf", b"%PDF-1.7", "application/pdf")

        assert response.status_code == 400
        body = response.json()
        assert "CSV" in body["error"]
        assert body["details"] == "The PDF might be image-based or empty."

    def test_unsupported_extension(self, api_client, mock_repository):
        response = upload(api_client, "statement.xlsx", b"PK\x03\x04")

        assert response.status_code == 400
        assert response.json() == {"error": "Only PDF and CSV files are supported"}
        mock_repository.list_merchant_mappings.assert_not_called()

    def test_oversized_upload(self, api_client):
        content = b"2024-03-15,COFFEE,5.50\n" * 4000
        response = upload(api_client, "big.csv", content)
        assert response.status_code == 413

    def test_no_transactions_returns_preview(self, api_client):
        response = upload(api_client, "empty.csv", b"Date,Description,Amount\n")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "No transactions found in the file."
        assert body["rawTextPreview"] == "Date,Description,Amount\n"

    def test_missing_file_is_400(self, api_client):
        response = api_client.post("/api/v1/statement-import/parse")
        assert response.status_code == 400

    def test_requires_authentication(self, api_client):
        from apps.api.core.auth import get_current_user_id
        from apps.api.main import app

        del app.dependency_overrides[get_current_user_id]
        response = upload(api_client, "march.csv", CSV_SAMPLE.encode("utf-8"))

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"


def commit_item(**overrides):
    item = {
        "date": "2024-03-15",
        "amount": 5.5,
        "description": "COFFEE SHOP",
        "account_id": "acc-1",
    }
    item.update(overrides)
    return item


class TestImportEndpoint:
    """POST /statement-import/import"""

    def test_imports_rows(self, api_client, mock_repository):
        response = api_client.post(
            "/api/v1/statement-import/import",
            json={"transactions": [commit_item(), commit_item(description="TEA")], "file_name": "march.csv"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "imported_count": 2,
            "merchant_mappings_saved": 0,
            "errors": [],
        }
        row = mock_repository.insert_transaction.call_args_list[0].args[1]
        assert row["is_imported"] is True
        assert row["fingerprint"] == generate_fingerprint("2024-03-15", 5.5, "COFFEE SHOP")

        batch = mock_repository.record_import_batch.call_args.args[1]
        assert batch.file_name == "march.csv"
        assert batch.transactions_count == 2

    def test_failing_row_is_reported_not_fatal(self, api_client, mock_repository):
        def insert(user_id, row):
            if row["description"] == "BROKEN":
                raise RuntimeError("insert failed")
            return {"id": "row", **row}

        mock_repository.insert_transaction.side_effect = insert

        response = api_client.post(
            "/api/v1/statement-import/import",
            json={"transactions": [commit_item(), commit_item(description="BROKEN")]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported_count"] == 1
        assert data["errors"] == [{"index": 1, "description": "BROKEN", "message": "insert failed"}]

    def test_saves_requested_mappings(self, api_client, mock_repository):
        mock_repository.upsert_merchant_mapping.side_effect = lambda user_id, m: m

        response = api_client.post(
            "/api/v1/statement-import/import",
            json={
                "transactions": [
                    commit_item(
                        save_merchant_mapping=True,
                        merchant_pattern=" coffee shop ",
                        merchant_name="Coffee Shop",
                        matched=True,
                    )
                ]
            },
        )

        assert response.json()["merchant_mappings_saved"] == 1
        mapping = mock_repository.upsert_merchant_mapping.call_args.args[1]
        assert mapping.pattern == "COFFEE SHOP"
        mock_repository.increment_merchant_use_count.assert_called_once_with(
            "test-user-id", "COFFEE SHOP"
        )

    def test_empty_list_is_rejected(self, api_client):
        response = api_client.post(
            "/api/v1/statement-import/import", json={"transactions": []}
        )
        assert response.status_code == 400

    def test_row_validation(self, api_client, mock_repository):
        for bad in (
            commit_item(date="15/03/2024"),
            commit_item(date="2024-13-45"),
            commit_item(date="2024-01-01garbage"),
            commit_item(amount=0),
            commit_item(account_id=""),
        ):
            response = api_client.post(
                "/api/v1/statement-import/import", json={"transactions": [bad]}
            )
            assert response.status_code == 400
            assert response.json()["error"] == "Invalid request"

        mock_repository.insert_transaction.assert_not_called()
