"""
Exceptions raised to the outer layers (CLI and API).

Row-level parsing problems and provider failures are recovered inside the
pipeline; only terminal failures surface as these exceptions.
"""

MANUAL_CONTACTS_HINT = "You can also use the manual input option to add contacts."
MANUAL_RESUME_HINT = "Please use the manual input option to enter your details."


class OutreachError(Exception):
    """Base class for user-facing errors."""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class UnsupportedFileError(OutreachError):
    """The uploaded file is neither a PDF nor a CSV."""


class NoContactsFoundError(OutreachError):
    """Every parsing strategy ran and none produced a valid contact."""

    def __init__(self, message: str = "No contacts found in the file", details: str = ""):
        super().__init__(
            message,
            details or (
                "Please ensure your file contains contact information in the format: "
                f"SNo, Name, Email, Title, Company. {MANUAL_CONTACTS_HINT}"
            ),
        )


class ResumeExtractionError(OutreachError):
    """No usable information could be extracted from the resume."""

    def __init__(self, message: str = "Could not extract resume information", details: str = ""):
        super().__init__(message, details or MANUAL_RESUME_HINT)


class ContactValidationError(OutreachError):
    """A manually entered contact failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(message, MANUAL_CONTACTS_HINT)
        self.field = field


class EmailSendError(OutreachError):
    """SMTP transport could not be set up (bad credentials, no connection)."""

    def __init__(self, message: str, details: str = "", code: str = "UNKNOWN_ERROR"):
        super().__init__(message, details)
        self.code = code

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details, "code": self.code}
