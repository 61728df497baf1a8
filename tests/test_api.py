"""
Tests for the Flask API server.

Run with: pytest tests/
"""

import io
import logging
import os
import sys
from unittest.mock import patch

import pytest

# Add project to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import api_server
from coldreach.exceptions import EmailSendError
from coldreach.models import ParsingMethod, ResumeData
from coldreach.services.resume_parser import extract_resume_fields

RESUME_TEXT = (
    "Jane Doe\njane.doe@mail.com | 555-123-4567\n"
    "Experience: five years building Python services at Initech.\n"
)


class FakeAdapter:
    """Regex-only adapter so no provider is called."""

    is_configured = False

    def __init__(self, resume=None):
        self.resume = resume

    def extract_resume(self, text):
        return self.resume or extract_resume_fields(text)

    def generate_email(self, contact, resume):
        return f"Hello {contact.company}", f"Hi {contact.name}"


@pytest.fixture
def client():
    api_server.app.config["TESTING"] = True
    api_server.rate_limit_cache.clear()
    with patch("api_server.get_adapter", return_value=FakeAdapter()):
        with api_server.app.test_client() as client:
            yield client


def _upload(content: bytes, filename: str, field: str = "file"):
    return {field: (io.BytesIO(content), filename)}


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        """Test the health endpoint reports status."""
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "ok"
        assert response.get_json()["aiEnabled"] is False

    def test_request_is_logged_with_duration(self, client, caplog):
        """Test each request is logged with its duration."""
        with caplog.at_level(logging.INFO, logger="api_server"):
            client.get("/api/health")

        assert "GET /api/health -> 200 (" in caplog.text
        assert " ms)" in caplog.text


class TestParseContacts:
    """Tests for contact file upload."""

    def test_csv(self, client):
        """Test uploading a CSV contact file."""
        data = _upload(b"SNo,Name,Email,Title,Company\n1,John Doe,john@x.com,HR,Acme\n", "contacts.csv")

        response = client.post("/api/parse-contacts", data=data, content_type="multipart/form-data")

        body = response.get_json()
        assert response.status_code == 200
        assert body["contacts"] == [{
            "sno": 1, "name": "John Doe", "email": "john@x.com", "title": "HR", "company": "Acme",
        }]
        assert body["method"] == "csv"

    def test_no_file(self, client):
        """Test a request without a file."""
        response = client.post("/api/parse-contacts", data={}, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["error"] == "No file provided"

    def test_unsupported_type(self, client):
        """Test a file that is neither PDF nor CSV."""
        data = _upload(b"PK", "contacts.xlsx")

        response = client.post("/api/parse-contacts", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["error"] == "File must be a PDF or CSV"

    def test_no_contacts_found(self, client):
        """Test a file without valid contacts."""
        data = _upload(b"Name,Email,Company\nnobody,not-an-email,x\n", "contacts.csv")

        response = client.post("/api/parse-contacts", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert "manual input" in response.get_json()["details"]


class TestParseResume:
    """Tests for resume upload."""

    def test_text_resume(self, client):
        """Test uploading a text resume."""
        data = _upload(RESUME_TEXT.encode(), "resume.txt")

        response = client.post("/api/parse-resume", data=data, content_type="multipart/form-data")

        body = response.get_json()
        assert response.status_code == 200
        assert body["name"] == "Jane Doe"
        assert body["parsingMethod"] == "Regex Fallback"

    def test_failed_extraction(self, client):
        """Test failed extraction returns the partial data."""
        failed = ResumeData(
            name="AI extraction failed",
            email="ai@example.com",
            experience="AI extraction failed",
            education="AI extraction failed",
            skills=["AI extraction failed"],
            parsing_method=ParsingMethod.AI_ERROR,
        )
        data = _upload(RESUME_TEXT.encode(), "resume.txt")

        with patch("api_server.get_adapter", return_value=FakeAdapter(failed)):
            response = client.post("/api/parse-resume", data=data, content_type="multipart/form-data")

        body = response.get_json()
        assert response.status_code == 400
        assert body["extractedData"]["parsingMethod"] == "AI (error)"
        assert "manual input" in body["details"]

    def test_image_only_resume(self, client):
        """Test a resume without usable text."""
        data = _upload(b"   ", "resume.txt")

        response = client.post("/api/parse-resume", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["error"] == "Insufficient text extracted from resume"


class TestGenerateEmails:
    """Tests for batch email generation."""

    def test_generate(self, client):
        """Test generating one email per contact."""
        payload = {
            "contacts": [
                {"sno": 1, "name": "John Doe", "email": "john@x.com", "title": "HR", "company": "Acme"},
                {"sno": 2, "name": "Jane Roe", "email": "jane@y.com", "company": "Globex"},
            ],
            "resume": {"name": "Jane Doe", "email": "jane@mail.com", "experience": "x", "education": "y",
                       "skills": ["Python"], "parsingMethod": "AI"},
        }

        response = client.post("/api/generate-emails", json=payload)

        body = response.get_json()
        assert response.status_code == 200
        assert [e["subject"] for e in body["emails"]] == ["Hello Acme", "Hello Globex"]
        assert body["emails"][1]["contact"]["title"] == "Not specified"

    def test_missing_fields(self, client):
        """Test a request without a resume."""
        response = client.post("/api/generate-emails", json={"contacts": []})

        assert response.status_code == 400

    def test_bad_contact(self, client):
        """Test a contact without an email is rejected."""
        payload = {"contacts": [{"name": "No Email"}], "resume": {"name": "Jane"}}

        response = client.post("/api/generate-emails", json=payload)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid request data"


class TestSendEmail:
    """Tests for single email sending."""

    FORM = {
        "to": "bob@corp.com",
        "subject": "Hello",
        "body": "Hi Bob",
        "senderEmail": "jane@gmail.com",
        "senderPassword": "app-pass",
    }

    def test_missing_fields(self, client):
        """Test a request missing sender fields."""
        response = client.post("/api/send-email", data={"to": "bob@corp.com"})

        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing required fields"

    @patch("api_server.SmtpTransport")
    def test_send(self, mock_transport, client):
        """Test sending one email with a resume attachment."""
        smtp = mock_transport.return_value.__enter__.return_value
        smtp.send.return_value = "<abc@gmail.com>"
        data = dict(self.FORM)
        data["resumeFile"] = (io.BytesIO(b"%PDF"), "resume.pdf")

        response = client.post("/api/send-email", data=data, content_type="multipart/form-data")

        assert response.status_code == 200
        assert response.get_json()["messageId"] == "<abc@gmail.com>"
        mock_transport.assert_called_once_with(user="jane@gmail.com", password="app-pass")
        message = smtp.send.call_args.args[0]
        assert message["To"] == "bob@corp.com"
        assert message.get_payload()[1].get_filename() == "resume.pdf"

    @patch("api_server.SmtpTransport")
    def test_auth_failure(self, mock_transport, client):
        """Test an authentication failure returns its code."""
        mock_transport.return_value.__enter__.side_effect = EmailSendError(
            "Gmail authentication failed", "Use an App Password.", code="EAUTH"
        )

        response = client.post("/api/send-email", data=self.FORM)

        body = response.get_json()
        assert response.status_code == 500
        assert body["code"] == "EAUTH"
        assert body["details"] == "Use an App Password."
