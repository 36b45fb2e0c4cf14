class IntegrityError(Exception):
    """Base class for violation ledger / review errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AttemptNotFound(IntegrityError):
    status_code = 404

    def __init__(self, attempt_id: str):
        super().__init__(f"Quiz attempt not found: {attempt_id}")
        self.attempt_id = attempt_id


class NotAuthorized(IntegrityError):
    """A student asked for violations of an attempt they do not own."""

    status_code = 403

    def __init__(self, message: str = "You are not authorized to view these violations"):
        super().__init__(message)
