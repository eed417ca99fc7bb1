from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError as BotoClientError, EndpointConnectionError

from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.domain.models import SourcePage
from fdw_connector.errors import ClientError

# Максимальный Limit, который принимает ListUsers
COGNITO_MAX_PAGE_SIZE = 60

_AUTH_ERROR_CODES = ("NotAuthorizedException", "UnrecognizedClientException", "InvalidSignatureException")


class CognitoUsersClient:
    """
    Назначение/ответственность:
        Постраничное чтение пользователей user pool через ListUsers.
    Взаимодействия:
        Ретраи выполняет botocore (retries.max_attempts); ошибки AWS
        превращаются в ClientError с кодом ErrorCode.
    """

    def __init__(
        self,
        userPoolId: str,
        region: str,
        accessKeyId: str,
        secretAccessKey: str,
        endpointUrl: str | None = None,
        timeoutSeconds: float = 20.0,
        retries: int = 3,
        boto_client: Any | None = None,
    ):
        self.userPoolId = userPoolId
        if boto_client is None:
            boto_client = boto3.client(
                "cognito-idp",
                region_name=region,
                aws_access_key_id=accessKeyId,
                aws_secret_access_key=secretAccessKey,
                endpoint_url=endpointUrl,
                config=Config(
                    connect_timeout=timeoutSeconds,
                    read_timeout=timeoutSeconds,
                    retries={"max_attempts": retries + 1, "mode": "standard"},
                ),
            )
        self.client = boto_client

    def fetch_page(self, collection: str, limit: int, token: Any | None) -> SourcePage:
        """
        Контракт:
            - collection - имя объекта ("users"), проверяется коннектором.
            - token - PaginationToken предыдущего ответа или None.
        """
        kwargs: dict[str, Any] = {
            "UserPoolId": self.userPoolId,
            "Limit": min(limit, COGNITO_MAX_PAGE_SIZE),
        }
        if token is not None:
            kwargs["PaginationToken"] = token
        try:
            response = self.client.list_users(**kwargs)
        except EndpointConnectionError as exc:
            raise ClientError("Network error", code=ErrorCode.NETWORK_ERROR, retryable=True) from exc
        except BotoClientError as exc:
            error = exc.response.get("Error", {})
            aws_code = error.get("Code") or "Unknown"
            status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            code = ErrorCode.UNAUTHORIZED if aws_code in _AUTH_ERROR_CODES else ErrorCode.from_status(status)
            raise ClientError(
                f"Cognito ListUsers failed: {aws_code}",
                code=code,
                retryable=aws_code == "TooManyRequestsException",
                details={"aws_code": aws_code, "status_code": status, "aws_message": error.get("Message")},
            ) from exc
        except BotoCoreError as exc:
            raise ClientError(f"Cognito client error: {exc}", code=ErrorCode.API_ERROR) from exc

        users = response.get("Users")
        if not isinstance(users, list):
            raise ClientError("Unexpected response format: no Users array", code=ErrorCode.INVALID_RESPONSE)
        return SourcePage(records=users, next_token=response.get("PaginationToken") or None)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()
