"""API error types and their HTTP status codes."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

GENERAL_ERROR = "GeneralException"
TOKEN_ERROR = "TokenException"
PERMISSION_ERROR = "PermissionError"
USER_ERROR = "UserException"
TWOFA_ERROR = "TwoFAException"
ORDER_ERROR = "OrderException"
INPUT_ERROR = "InputException"
DATA_ERROR = "DataException"
NETWORK_ERROR = "NetworkException"

_STATUS_BY_TYPE = {
    GENERAL_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
    TOKEN_ERROR: HTTPStatus.FORBIDDEN,
    PERMISSION_ERROR: HTTPStatus.FORBIDDEN,
    USER_ERROR: HTTPStatus.FORBIDDEN,
    TWOFA_ERROR: HTTPStatus.FORBIDDEN,
    ORDER_ERROR: HTTPStatus.BAD_REQUEST,
    INPUT_ERROR: HTTPStatus.BAD_REQUEST,
    DATA_ERROR: HTTPStatus.GATEWAY_TIMEOUT,
    NETWORK_ERROR: HTTPStatus.SERVICE_UNAVAILABLE,
}


class KiteError(Exception):
    """An error reported by the API or raised while talking to it."""

    def __init__(
        self,
        message: str,
        error_type: str = GENERAL_ERROR,
        code: int = int(HTTPStatus.INTERNAL_SERVER_ERROR),
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.data = data

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"KiteError(message={self.message!r}, error_type={self.error_type!r}, "
            f"code={self.code!r})"
        )


def new_error(error_type: str, message: str, data: Any = None) -> KiteError:
    """Build an error whose status code follows from its type.

    Unknown types become GeneralException.
    """
    status = _STATUS_BY_TYPE.get(error_type)
    if status is None:
        error_type = GENERAL_ERROR
        status = HTTPStatus.INTERNAL_SERVER_ERROR
    return KiteError(message, error_type, int(status), data)


def get_error_name(code: int) -> str:
    """Return the error type name that matches an HTTP status code."""
    if code == HTTPStatus.INTERNAL_SERVER_ERROR:
        return GENERAL_ERROR
    if code in (HTTPStatus.FORBIDDEN, HTTPStatus.UNAUTHORIZED):
        return TOKEN_ERROR
    if code == HTTPStatus.BAD_REQUEST:
        return INPUT_ERROR
    if code in (HTTPStatus.SERVICE_UNAVAILABLE, HTTPStatus.GATEWAY_TIMEOUT):
        return NETWORK_ERROR
    return GENERAL_ERROR