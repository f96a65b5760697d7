"""
Domain error taxonomy.

Services raise these; the app factory turns them into JSON responses of the
form ``{"error": message}`` with the matching status code and rolls back the
session. Messages are shown to end users as-is.
"""


class QuestboardError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(QuestboardError):
    status_code = 400


class UnauthorizedError(QuestboardError):
    status_code = 403


class NotFoundError(QuestboardError):
    status_code = 404


class ConflictError(QuestboardError):
    status_code = 409
