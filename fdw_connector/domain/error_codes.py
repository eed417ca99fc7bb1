from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок сканирования.
    """

    # config
    OPTION_REQUIRED = "OPTION_REQUIRED"
    INVALID_OPTION = "INVALID_OPTION"
    UNKNOWN_CONNECTOR = "UNKNOWN_CONNECTOR"

    # schema
    UNSUPPORTED_COLUMN = "UNSUPPORTED_COLUMN"
    WRONG_COLUMN_TYPE = "WRONG_COLUMN_TYPE"
    DUPLICATE_COLUMN = "DUPLICATE_COLUMN"

    # client
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_JSON = "INVALID_JSON"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    MAX_PAGES_EXCEEDED = "MAX_PAGES_EXCEEDED"
    API_ERROR = "API_ERROR"

    # mapping
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"

    # protocol
    SCAN_NOT_ACTIVE = "SCAN_NOT_ACTIVE"

    @classmethod
    def from_status(cls, status_code: int | None) -> "ErrorCode":
        """
        Назначение:
            Подбор общего кода по HTTP-статусу.
        """
        if status_code is None:
            return cls.API_ERROR
        if status_code == 401:
            return cls.UNAUTHORIZED
        if status_code == 403:
            return cls.FORBIDDEN
        if 400 <= status_code <= 499:
            return cls.HTTP_4XX
        if 500 <= status_code <= 599:
            return cls.HTTP_5XX
        return cls.API_ERROR
