"""Error taxonomy for journal operations, each carrying its HTTP status."""


class JournalError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message=None):
        super().__init__(message or self.error)
        self.message = message or self.error


class InvalidInputError(JournalError):
    status_code = 400
    error = "Bad Request"


class NotFoundError(JournalError):
    status_code = 404
    error = "Not Found"


class InternalError(JournalError):
    """Persistence or unexpected failure. The message is never the underlying cause."""

    def __init__(self, message="An unexpected error occurred"):
        super().__init__(message)
