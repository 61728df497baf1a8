"""
Coldreach - Cold email outreach from a resume and a contact list.

This package turns a resume and a contact file (CSV or PDF table) into
structured records, drafts personalized emails with OpenAI (falling back
to templates when the API is unavailable), and sends them over SMTP.
"""

__version__ = "0.1.0"
