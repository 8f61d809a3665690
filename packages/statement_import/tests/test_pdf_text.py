from unittest.mock import MagicMock

import pytest

from packages.statement_import import pdf_text
from packages.statement_import.errors import ExtractionError


def fake_pdf(*page_texts):
    pdf = MagicMock()
    pdf.pages = [MagicMock(**{"extract_text.return_value": text}) for text in page_texts]
    pdf.__enter__.return_value = pdf
    return pdf


def test_pages_are_joined(monkeypatch):
    first = "01/02/2024 SPINNEYS HAZMIEH 45,000"
    second = "03/02/2024 LOCAL BAKERY 12.50 AND SOME MORE TEXT"
    monkeypatch.setattr(pdf_text.pdfplumber, "open", lambda _: fake_pdf(first, None, second))

    assert pdf_text.extract_pdf_text(b"%PDF") == f"{first}\n\n{second}"


def test_too_little_text_is_an_error(monkeypatch):
    monkeypatch.setattr(pdf_text.pdfplumber, "open", lambda _: fake_pdf("   ", "short"))

    with pytest.raises(ExtractionError) as exc:
        pdf_text.extract_pdf_text(b"%PDF")
    assert "image-based" in exc.value.details


def test_unreadable_pdf_is_an_error(monkeypatch):
    def broken(_):
        raise ValueError("No /Root object")

    monkeypatch.setattr(pdf_text.pdfplumber, "open", broken)

    with pytest.raises(ExtractionError) as exc:
        pdf_text.extract_pdf_text(b"not a pdf")
    assert "CSV" in str(exc.value)
    assert exc.value.details == "No /Root object"
