"""Operation errors.

Lifecycle and auth code raise `OperationError` with a kind and a stable,
machine-readable code (e.g. "EMAIL_ALREADY_USED"). The app turns these into
HTTP responses in one place, see `main.operation_error_handler`.
"""

import enum


class ErrorKind(enum.Enum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL = 500

    @property
    def status_code(self) -> int:
        return self.value


class OperationError(Exception):
    def __init__(self, kind: ErrorKind, code: str):
        super().__init__(f"{kind.name}: {code}")
        self.kind = kind
        self.code = code

    @property
    def status_code(self) -> int:
        return self.kind.status_code


def bad_request(code: str) -> OperationError:
    return OperationError(ErrorKind.BAD_REQUEST, code)


def unauthorized(code: str) -> OperationError:
    return OperationError(ErrorKind.UNAUTHORIZED, code)


def forbidden(code: str) -> OperationError:
    return OperationError(ErrorKind.FORBIDDEN, code)


def not_found(code: str) -> OperationError:
    return OperationError(ErrorKind.NOT_FOUND, code)
