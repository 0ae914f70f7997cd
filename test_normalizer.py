"""
Tests for PDF -> text normalization and the request-id log filter.
"""

import logging

import pymupdf
import pytest

from bills.normalizer import EXTRACTION_FAILED, NormalizationService, extract_pdf_text
from logging_setup import RequestIdFilter


def _pdf(*page_texts):
    doc = pymupdf.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def test_native_text_is_extracted():
    result = extract_pdf_text(_pdf("Total amount due $128.47"))
    assert result.success
    assert "Total amount due $128.47" in result.text
    assert result.metadata["pages"] == 1
    assert result.metadata["method"] == "pdf_native"


def test_only_first_pages_are_read():
    result = NormalizationService(max_pages=1).normalize_bytes(_pdf("page one", "page two"))
    assert "page one" in result.text
    assert "page two" not in result.text
    assert result.metadata["pages"] == 2


@pytest.mark.parametrize("data", [b"", b"hello world", b"%PDF-1.4 broken"])
def test_unreadable_bytes_fail(data):
    result = NormalizationService().normalize_bytes(data)
    assert result.success is False
    assert result.error == EXTRACTION_FAILED
    assert result.text == ""


def test_image_only_pdf_fails():
    result = NormalizationService().normalize_bytes(_pdf(None))
    assert result.success is False
    assert result.metadata["pages"] == 1


def test_normalize_from_disk(tmp_path):
    path = tmp_path / "bill.pdf"
    path.write_bytes(_pdf("Gas used 100 CCF"))
    assert "100 CCF" in NormalizationService().normalize(str(path)).text

    other = tmp_path / "bill.png"
    other.write_bytes(b"\x89PNG")
    result = NormalizationService().normalize(str(other))
    assert result.success is False
    assert "Unsupported file type" in result.error

    assert NormalizationService().normalize(str(tmp_path / "missing.pdf")).success is False


def test_request_id_filter_outside_request():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert RequestIdFilter().filter(record) is True
    assert record.request_id == "-"
