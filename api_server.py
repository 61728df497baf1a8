#!/usr/bin/env python3
"""
Flask API server for the cold outreach frontend.

Provides endpoints for contact import, resume extraction, email
generation and sending.
"""

import logging
import os
import sys
import time
from datetime import datetime
from typing import Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

# Add the project to path
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, BASE_DIR)

from coldreach import __version__
from coldreach.ai_adapter import AIExtractionAdapter
from coldreach.config import config
from coldreach.exceptions import (
    MANUAL_RESUME_HINT,
    EmailSendError,
    OutreachError,
)
from coldreach.models import Contact, ResumeData
from coldreach.outreach import build_email_templates, generate_batch_emails
from coldreach.send_email import Attachment, SmtpTransport, create_message, describe_smtp_error
from coldreach.services import ContactService, read_resume_text

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_MB * 1024 * 1024

# CORS Configuration - Restrict to known origins
CORS(app, origins=config.ALLOWED_ORIGINS, supports_credentials=True)

# Rate limiting configuration
RATE_LIMIT_WINDOW = 60  # seconds
RATE_LIMIT_MAX_REQUESTS = 30  # max requests per window
rate_limit_cache = {}

_adapter: Optional[AIExtractionAdapter] = None


def get_adapter() -> AIExtractionAdapter:
    """Shared adapter; all requests draw on one provider budget."""
    global _adapter
    if _adapter is None:
        _adapter = AIExtractionAdapter()
    return _adapter


def rate_limit():
    """Simple in-memory rate limiter."""
    client_ip = request.remote_addr
    current_time = time.time()

    if client_ip not in rate_limit_cache:
        rate_limit_cache[client_ip] = []

    # Clean old requests
    rate_limit_cache[client_ip] = [
        t for t in rate_limit_cache[client_ip]
        if current_time - t < RATE_LIMIT_WINDOW
    ]

    if len(rate_limit_cache[client_ip]) >= RATE_LIMIT_MAX_REQUESTS:
        return False

    rate_limit_cache[client_ip].append(current_time)
    return True


@app.before_request
def before_request():
    """Run before each request - rate limiting and timing."""
    if not rate_limit():
        return jsonify({"error": "Rate limit exceeded. Please wait.", "details": ""}), 429

    g.start_time = time.time()


@app.after_request
def after_request(response):
    """Log each request with its duration."""
    start = g.get("start_time")
    if start is not None:
        elapsed_ms = (time.time() - start) * 1000
        logger.info(f"{request.method} {request.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


@app.errorhandler(OutreachError)
def handle_outreach_error(error: OutreachError):
    status = 500 if isinstance(error, EmailSendError) else 400
    return jsonify(error.to_dict()), status


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(error):
    return jsonify({
        "error": "File too large",
        "details": f"Uploads are limited to {config.MAX_UPLOAD_MB} MB.",
    }), 413


def _uploaded_file():
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return None, (jsonify({"error": "No file provided", "details": ""}), 400)
    return upload, None


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "aiEnabled": get_adapter().is_configured,
    })


@app.route('/api/parse-contacts', methods=['POST'])
def parse_contacts():
    """Parse an uploaded PDF or CSV contact list."""
    upload, error = _uploaded_file()
    if error:
        return error

    result = ContactService().parse_upload(upload.read(), upload.filename, upload.mimetype)
    logger.info(result.message)

    return jsonify({
        "contacts": [c.to_dict() for c in result.contacts],
        "total": len(result.contacts),
        "method": result.method,
        "message": result.message,
    })


@app.route('/api/parse-resume', methods=['POST'])
def parse_resume():
    """Extract structured data from an uploaded resume."""
    upload, error = _uploaded_file()
    if error:
        return error

    text = read_resume_text(upload.read(), upload.filename)
    resume = get_adapter().extract_resume(text)

    if resume.extraction_failed:
        return jsonify({
            "error": "Could not extract resume information",
            "details": "Unable to extract meaningful information from your resume. " + MANUAL_RESUME_HINT,
            "extractedData": resume.to_dict(),
            "parsedText": text[:500] + "...",
        }), 400

    return jsonify(resume.to_dict())


@app.route('/api/generate-emails', methods=['POST'])
def generate_emails():
    """Generate one email per contact from JSON {contacts, resume}."""
    data = request.get_json(silent=True) or {}
    contacts_data = data.get('contacts') or []
    resume_data = data.get('resume') or data.get('resumeData')

    if not contacts_data or not resume_data:
        return jsonify({"error": "Missing required fields", "details": "Both contacts and resume are required."}), 400

    try:
        contacts = [Contact.from_dict(c) for c in contacts_data]
        resume = ResumeData.from_dict(resume_data)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"error": "Invalid request data", "details": str(e)}), 400

    results = generate_batch_emails(contacts, resume, get_adapter())
    templates = build_email_templates(results)

    return jsonify({
        "emails": [t.to_dict() for t in templates],
        "total": len(templates),
    })


@app.route('/api/send-email', methods=['POST'])
def send_email_endpoint():
    """Send one email over SMTP with the sender's credentials."""
    form = request.form
    to = form.get('to', '').strip()
    subject = form.get('subject', '')
    body = form.get('body', '')
    sender_email = form.get('senderEmail', '').strip()
    sender_password = form.get('senderPassword', '')

    if not all([to, subject, body, sender_email, sender_password]):
        return jsonify({"error": "Missing required fields", "details": ""}), 400

    attachment = None
    resume_file = request.files.get('resumeFile')
    if resume_file and resume_file.filename:
        attachment = Attachment(
            filename=resume_file.filename,
            content=resume_file.read(),
            content_type=resume_file.mimetype or "application/pdf",
        )

    message = create_message(
        sender_name=sender_email.split('@')[0],
        sender_email=sender_email,
        to=to,
        subject=subject,
        body_text=body,
        attachment=attachment,
    )

    with SmtpTransport(user=sender_email, password=sender_password) as smtp:
        try:
            message_id = smtp.send(message)
        except Exception as e:
            logger.error(f"Error sending email: {e}")
            raise describe_smtp_error(e) from e

    return jsonify({
        "success": True,
        "messageId": message_id,
        "message": "Email sent successfully",
    })


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Cold Outreach API Server')
    parser.add_argument('--debug', action='store_true', help='Run in debug mode (development only)')
    parser.add_argument('--port', type=int, default=config.API_PORT, help='Port to run on')
    parser.add_argument('--host', default=config.API_HOST, help='Host to bind to')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    # Use environment variable or command line for debug mode
    debug_mode = args.debug or config.FLASK_DEBUG

    print("\n🚀 Cold Outreach API Server")
    print("=" * 40)
    print(f"🌐 API running at: http://{args.host}:{args.port}")
    print(f"🤖 AI extraction: {'ON' if get_adapter().is_configured else 'OFF (template mode)'}")
    print(f"🔧 Debug mode: {'ON' if debug_mode else 'OFF'}")
    print("=" * 40)
    print("\nEndpoints:")
    print("  GET  /api/health           - Health check")
    print("  POST /api/parse-contacts   - Parse a PDF/CSV contact list")
    print("  POST /api/parse-resume     - Extract resume data")
    print("  POST /api/generate-emails  - Generate cold emails")
    print("  POST /api/send-email       - Send one email")
    print("\nPress Ctrl+C to stop\n")

    for problem in config.validate():
        print(f"⚠️  {problem}")

    if debug_mode:
        print("⚠️  WARNING: Running in debug mode. Do not use in production!\n")

    app.run(host=args.host, port=args.port, debug=debug_mode)
