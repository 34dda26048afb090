from __future__ import annotations


class CrudError(Exception):
    """Base of every error the engine raises on purpose.

    Each subclass carries the HTTP status it maps to, so the transport layer
    can translate it without knowing the concrete type.
    """

    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthorized(CrudError):
    status_code = 401
    default_detail = "Not authorized"


class NotFound(CrudError):
    status_code = 404
    default_detail = "Record not found"


class InvalidPayload(CrudError):
    status_code = 400
    default_detail = "Invalid payload"


class IntegrityViolation(CrudError):
    status_code = 400
    default_detail = "Data constraint violated"


class FilterParseError(CrudError):
    status_code = 400

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f'Invalid filter "{key}": {reason}')


class UnsupportedPredicate(CrudError):
    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f'Unsupported filter on "{field}": {reason}')
