"""Domain errors raised by the analysis services and mapped to HTTP by the API layer."""


class AnalysisError(Exception):
    """Base class. ``status_code`` is the HTTP status the API layer responds with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AnalysisError):
    """Referenced project does not exist."""

    status_code = 404


class InvalidArgumentError(AnalysisError):
    """Caller must fix the input (empty sheet, no valid rows, missing parent code)."""

    status_code = 400


class InternalError(AnalysisError):
    """Storage or decode failure. Message is generic; the cause is chained and logged."""

    status_code = 500


# ── Collaborator failures ────────────────────────────────────────────────────
# Raised by the file store and spreadsheet decoder; the services wrap them in
# InternalError so callers only ever see the taxonomy above.

class StorageError(Exception):
    """File could not be stored, read or removed."""


class DecodeError(Exception):
    """Bytes could not be decoded into spreadsheet rows."""
