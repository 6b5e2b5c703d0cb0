"""Application configuration using Pydantic Settings."""

import json
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_secret_from_aws(secret_arn: str, region: str | None = None) -> str:
    """Fetch a secret value from AWS Secrets Manager.

    Args:
        secret_arn: The ARN or name of the secret.
        region: Optional AWS region override.

    Returns:
        The secret value, or empty string if not found.
    """
    if not secret_arn:
        return ""

    try:
        import boto3

        client = boto3.client("secretsmanager", region_name=region or None)
        response = client.get_secret_value(SecretId=secret_arn)
        return response.get("SecretString", "")
    except Exception as e:
        logger.error(f"Failed to fetch secret {secret_arn}: {e}")
        return ""


def get_database_url_from_aws(secret_arn: str, region: str | None = None) -> str:
    """Fetch database URL from AWS Secrets Manager.

    The database secret is stored as JSON with a 'url' field.
    """
    secret_string = get_secret_from_aws(secret_arn, region)
    if not secret_string:
        return ""

    try:
        secret_data = json.loads(secret_string)
        return secret_data.get("url", "")
    except (json.JSONDecodeError, TypeError, AttributeError):
        return ""


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    See .env.example for the full list of variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Snippet Vault"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = ["*"]

    # Database
    database_url: str = ""
    database_secret_arn: str = ""  # AWS Secrets Manager ARN for DB connection
    database_pool_size: int = 5

    # Gemini - API key
    gemini_api_key: str = ""
    gemini_api_key_secret_arn: str = ""

    # Enrichment model. No default: must be set explicitly per environment
    llm_enrichment_model: str = ""  # e.g. gemini-2.5-flash
    llm_max_output_tokens: int = 500
    ai_timeout_seconds: float = 30.0

    # Enrichment worker pool
    enrichment_workers: int = 4
    enrichment_queue_size: int = 100
    enrichment_stale_minutes: int = 15

    # AWS
    aws_region: str = ""

    # Bearer token verification (any OIDC provider exposing a JWKS document)
    auth_jwks_url: str = ""
    auth_issuer: str = ""
    auth_audience: str = ""

    @property
    def resolved_database_url(self) -> str:
        """Get database URL, fetching from Secrets Manager if needed."""
        if self.database_url:
            return self.database_url
        if self.database_secret_arn:
            return get_database_url_from_aws(self.database_secret_arn, self.aws_region)
        return ""

    @property
    def resolved_gemini_api_key(self) -> str:
        """Get Gemini API key, fetching from Secrets Manager if needed."""
        if self.gemini_api_key:
            return self.gemini_api_key
        if self.gemini_api_key_secret_arn:
            return get_secret_from_aws(self.gemini_api_key_secret_arn, self.aws_region)
        return ""

    @property
    def resolved_llm_enrichment_model(self) -> str:
        """Get enrichment model.

        Raises:
            ValueError: If not configured.
        """
        if not self.llm_enrichment_model:
            raise ValueError("LLM_ENRICHMENT_MODEL must be set")
        return self.llm_enrichment_model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
