"""
HTTP tests for the bill audit app (Flask test client).

PDF fixtures are generated in-memory with PyMuPDF; WeasyPrint rendering is
monkeypatched out.
"""

import io

import pymupdf
import pytest

import routes.print_pdf
from app import create_app
from reports import NOT_ENOUGH_INFO
from routes.proposal_api import READ_FAILED_MESSAGE

GAS_BILL_TEXT = "Acme Gas Statement\nAccount Number: 4455667788\nTotal Gas Use 122 therms\nTotal amount due $210.40"


def _cfg(**app_overrides):
    app_cfg = {"cors": {"origins": ["*"]}, "max_upload_mb": 5}
    app_cfg.update(app_overrides)
    return {
        "app": app_cfg,
        "logging": {"level": "WARNING"},
        "rates": {"form_defaults": {"current": 1.20, "offered": 0.69}},
        "pdf": {"max_pages": 20},
        "mail": {"smtp_url": None},
    }


def _pdf_bytes(text):
    doc = pymupdf.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _blank_pdf_bytes():
    doc = pymupdf.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def client():
    flask_app = create_app(_cfg())
    flask_app.config["TESTING"] = True
    return flask_app.test_client()


def _upload(client, path, data, filename="bill.pdf", **form):
    form["bill"] = (io.BytesIO(data), filename)
    return client.post(path, data=form, content_type="multipart/form-data")


class TestHealthAndConfig:
    def test_health(self, client):
        for path in ("/health", "/healthz"):
            resp = client.get(path)
            assert resp.status_code == 200
            assert resp.get_json()["status"] == "ok"

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-Id": "abc-123"})
        assert resp.headers["X-Request-Id"] == "abc-123"
        assert client.get("/health").headers["X-Request-Id"]

    def test_public_config(self, client):
        data = client.get("/api/config").get_json()
        assert data["rateFormDefaults"] == {"current": 1.20, "offered": 0.69}
        assert data["maxUploadMb"] == 5
        assert data["mailRelayEnabled"] is False

    def test_index_prefills_rates(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        body = resp.get_data(as_text=True)
        assert 'value="1.2000"' in body
        assert 'value="0.6900"' in body


class TestAuditText:
    def test_gas_scenario(self, client):
        resp = client.post("/api/audit/text", json={"text": GAS_BILL_TEXT, "rateCurrent": 1.20, "rateOffered": "0.69"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["audit"]["usage"]["gasTherms"] == 122
        assert data["audit"]["totals"]["totalDue"] == 210.40
        assert data["audit"]["accountNumber"] == "4455667788"
        assert data["savings"]["monthlySavings"] == 62.22
        assert data["savings"]["termSavings"]["5yr"] == 3733.20

    def test_missing_rates_reports_insufficient_data(self, client):
        data = client.post("/api/audit/text", json={"text": GAS_BILL_TEXT}).get_json()
        assert data["savings"]["insufficientData"] is True
        assert data["savings"]["monthlySavings"] is None

    def test_utility_override(self, client):
        data = client.post("/api/audit/text", json={"text": GAS_BILL_TEXT, "utility": "socalgas"}).get_json()
        assert data["audit"]["utility"] == "Southern California Gas"

    def test_requires_text(self, client):
        assert client.post("/api/audit/text", json={"rateCurrent": 1}).status_code == 400
        assert client.post("/api/audit/text", data="not json").status_code == 400

    def test_blank_text_is_unprocessable(self, client):
        resp = client.post("/api/audit/text", json={"text": "   \n"})
        assert resp.status_code == 422


class TestAuditUpload:
    def test_pdf_upload(self, client):
        resp = _upload(client, "/api/audit", _pdf_bytes(GAS_BILL_TEXT), rate_current="1.20", rate_offered="0.69")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["audit"]["usage"]["gasTherms"] == 122
        assert data["savings"]["unit"] == "therms"
        assert data["savings"]["annualSavings"] == 746.64

    def test_missing_file(self, client):
        resp = client.post("/api/audit", data={"rate_current": "1.20"}, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_non_pdf_extension(self, client):
        resp = _upload(client, "/api/audit", b"hello", filename="bill.txt")
        assert resp.status_code == 400

    def test_unreadable_pdf(self, client):
        resp = _upload(client, "/api/audit", b"%PDF-1.4 this is not really a pdf")
        assert resp.status_code == 422
        assert resp.get_json()["error"] == READ_FAILED_MESSAGE

    def test_pdf_without_text_layer(self, client):
        resp = _upload(client, "/api/audit", _blank_pdf_bytes())
        assert resp.status_code == 422

    def test_too_large(self):
        flask_app = create_app(_cfg(max_upload_mb=0.001))
        resp = _upload(flask_app.test_client(), "/api/audit", b"%PDF" + b"0" * 5000)
        assert resp.status_code == 413
        assert resp.get_json()["success"] is False


class TestProposal:
    def test_html_proposal(self, client):
        resp = _upload(client, "/proposal", _pdf_bytes(GAS_BILL_TEXT), rate_current="1.20", rate_offered="0.69")
        assert resp.status_code == 200
        assert resp.mimetype == "text/html"
        body = resp.get_data(as_text=True)
        assert "$62.22" in body
        assert "Term Savings" in body

    def test_html_proposal_without_rates(self, client):
        resp = _upload(client, "/proposal", _pdf_bytes(GAS_BILL_TEXT))
        assert resp.status_code == 200
        body = resp.get_data(as_text=True)
        assert NOT_ENOUGH_INFO in body
        assert "$0.00" not in body

    def test_html_proposal_bad_pdf(self, client):
        resp = _upload(client, "/proposal", b"%PDF-garbage")
        assert resp.status_code == 422
        assert READ_FAILED_MESSAGE in resp.get_data(as_text=True)

    def test_pdf_proposal(self, client, monkeypatch):
        rendered = {}

        def fake_render(html):
            rendered["html"] = html
            return b"%PDF-1.7 fake"

        monkeypatch.setattr(routes.print_pdf, "render_pdf", fake_render)
        resp = _upload(client, "/proposal.pdf", _pdf_bytes(GAS_BILL_TEXT), rate_current="1.20", rate_offered="0.69")
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data == b"%PDF-1.7 fake"
        assert "Acme Gas" in resp.headers["Content-Disposition"]
        assert "$62.22" in rendered["html"]
