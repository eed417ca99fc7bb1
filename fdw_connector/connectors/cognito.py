from __future__ import annotations

from typing import Mapping

from fdw_connector.connectors.base import ForeignConnector
from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.domain.mapping.accessors import AttributeListAccessor
from fdw_connector.domain.mapping.record_mapper import RecordMapper
from fdw_connector.domain.models import OptionScope, SemanticType
from fdw_connector.domain.options import optional_option, require_option
from fdw_connector.errors import ConfigurationError
from fdw_connector.infra.aws.cognito_client import COGNITO_MAX_PAGE_SIZE, CognitoUsersClient

SUPPORTED_OBJECTS = ("users",)

# Поля UserType верхнего уровня; остальные колонки ищутся в Attributes[{Name, Value}]
TOP_LEVEL_FIELDS = {
    "username": "Username",
    "status": "UserStatus",
    "enabled": "Enabled",
    "created_at": "UserCreateDate",
    "updated_at": "UserLastModifiedDate",
}


class CognitoConnector(ForeignConnector):
    """
    Назначение:
        Пользователи AWS Cognito user pool как foreign table.

    Опции:
        server: aws_access_key_id, aws_secret_access_key, region, user_pool_id (+ endpoint_url)
        table: object (сейчас только "users")
    """

    connector_id = "cognito"
    allowed_schema = {
        "username": SemanticType.TEXT,
        "email": SemanticType.TEXT,
        "status": SemanticType.TEXT,
        "enabled": SemanticType.BOOL,
        "email_verified": SemanticType.BOOL,
        "created_at": SemanticType.TIMESTAMP,
        "updated_at": SemanticType.TIMESTAMP,
        "identities": SemanticType.JSONB,
    }
    required_options = {
        OptionScope.SERVER: ("aws_access_key_id", "aws_secret_access_key", "region", "user_pool_id"),
        OptionScope.TABLE: ("object",),
    }
    default_batch_size = COGNITO_MAX_PAGE_SIZE

    def build_mapper(self) -> RecordMapper:
        return RecordMapper(AttributeListAccessor(top_level=TOP_LEVEL_FIELDS))

    def resolve_collection(self, options: Mapping[str, str]) -> str:
        obj = require_option("object", options)
        self._check_object(obj)
        return obj

    def build_client(self, options: Mapping[str, str]) -> CognitoUsersClient:
        settings = self.client_settings
        return CognitoUsersClient(
            userPoolId=require_option("user_pool_id", options),
            region=require_option("region", options),
            accessKeyId=require_option("aws_access_key_id", options),
            secretAccessKey=require_option("aws_secret_access_key", options),
            endpointUrl=optional_option("endpoint_url", options),
            timeoutSeconds=settings.timeout_seconds,
            retries=settings.retries,
        )

    @classmethod
    def check_option_values(cls, options: Mapping[str, str], scope: OptionScope) -> None:
        if scope is OptionScope.TABLE:
            cls._check_object(options["object"])

    @staticmethod
    def _check_object(obj: str) -> None:
        if obj not in SUPPORTED_OBJECTS:
            raise ConfigurationError(
                f"unsupported object `{obj}`, supported: {', '.join(SUPPORTED_OBJECTS)}",
                option="object",
                code=ErrorCode.INVALID_OPTION,
            )
