"""Environment-backed configuration for a migration run."""

import os
import re
from typing import Any, Dict, Literal, Mapping, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TRUTHY = ("true", "1", "yes", "on")


class DatabaseSettings(BaseModel):
    """Connection parameters and schema names for the record table."""

    host: str = "127.0.0.1"
    port: int = 3306
    username: str = "root"
    password: str = ""
    database: str
    table: str = "users"
    id_column: str = "id"
    payload_column: str = "profile_image_base64"
    address_column: str = "profile_image"

    @field_validator("table", "id_column", "payload_column", "address_column")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        # Identifiers are interpolated into SQL, so only plain names pass
        if not _IDENTIFIER.match(value):
            raise ValueError(f"invalid SQL identifier: {value!r}")
        return value


class ObjectStoreSettings(BaseModel):
    """Connection parameters and fixed upload policy for the object store."""

    bucket: str
    endpoint: str = ""
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    use_path_style_endpoint: bool = False
    key_prefix: str = "mybl-tests/"
    content_type: str = "image/png"
    acl: str = "public-read"

    @field_validator("bucket")
    @classmethod
    def _check_bucket(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("bucket must not be empty")
        return value.strip()

    @property
    def endpoint_url(self) -> Optional[str]:
        """Endpoint with an explicit scheme, or None for the AWS default."""
        if not self.endpoint:
            return None
        if "://" in self.endpoint:
            return self.endpoint.rstrip("/")
        return f"https://{self.endpoint.rstrip('/')}"

    def object_key(self, filename: str) -> str:
        """Join the configured prefix and a filename into an object key."""
        prefix = self.key_prefix
        if prefix and not prefix.endswith("/"):
            prefix = prefix + "/"
        return f"{prefix}{filename}"

    def object_url(self, key: str) -> str:
        """Externally resolvable address of an uploaded object."""
        quoted_key = quote(key, safe="/")
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{quoted_key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{quoted_key}"


class MigrationConfig(BaseModel):
    """Configuration for the migration job."""

    database: DatabaseSettings
    object_store: ObjectStoreSettings
    batch_size: int = Field(default=1000, ge=1)
    concurrency: int = Field(default=10, ge=1)
    start_after: int = Field(default=0, ge=0)
    output_dir: str = "./images"
    filename_template: str = "user_{id}.png"
    verify_images: bool = False
    processor: Literal["serial", "multithread"] = "multithread"
    debug: bool = False

    @field_validator("filename_template")
    @classmethod
    def _check_template(cls, value: str) -> str:
        if "{id}" not in value:
            raise ValueError("filename_template must contain '{id}'")
        if "/" in value or "\\" in value:
            raise ValueError("filename_template must be a bare file name")
        return value

    def filename_for(self, record_id: int) -> str:
        """Deterministic file name embedding the record ID."""
        return self.filename_template.format(id=record_id)


def _parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def load_config(
    environ: Optional[Mapping[str, str]] = None, **overrides: Any
) -> MigrationConfig:
    """
    Build a MigrationConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)
        **overrides: Top-level MigrationConfig fields (``None`` values are ignored)

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid
    """
    env = os.environ if environ is None else environ

    database: Dict[str, Any] = {
        "host": env.get("DB_HOST") or "127.0.0.1",
        "port": env.get("DB_PORT") or 3306,
        "username": env.get("DB_USERNAME") or "root",
        "password": env.get("DB_PASSWORD", ""),
        "database": env.get("DB_DATABASE", ""),
    }
    object_store: Dict[str, Any] = {
        "bucket": env.get("AWS_BUCKET", ""),
        "endpoint": env.get("AWS_ENDPOINT", ""),
        "region": _blank_to_none(env.get("AWS_DEFAULT_REGION")),
        "access_key_id": _blank_to_none(env.get("AWS_ACCESS_KEY_ID")),
        "secret_access_key": _blank_to_none(env.get("AWS_SECRET_ACCESS_KEY")),
        "use_path_style_endpoint": _parse_bool(env.get("AWS_USE_PATH_STYLE_ENDPOINT")),
    }

    if not database["database"]:
        raise ConfigurationError("DB_DATABASE is not set")
    if not object_store["bucket"]:
        raise ConfigurationError("AWS_BUCKET is not set")

    key_prefix = overrides.pop("key_prefix", None)
    if key_prefix is not None:
        object_store["key_prefix"] = key_prefix

    fields = {key: value for key, value in overrides.items() if value is not None}

    try:
        return MigrationConfig(
            database=DatabaseSettings(**database),
            object_store=ObjectStoreSettings(**object_store),
            **fields,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
