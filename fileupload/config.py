"""Storage configuration from the environment and .env files."""
import os
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError
from .models import (
    CredentialsConfiguration,
    PresignedUrlConfiguration,
    StorageConfiguration,
    StorageCredentials,
    StorageService,
)

ENV_SERVICE = "UPLOADER_SERVICE"
ENV_PROXY_URL = "UPLOADER_PROXY_URL"
ENV_BUCKET = "UPLOADER_BUCKET"
ENV_REGION = "UPLOADER_REGION"
ENV_PUBLIC_URL_BASE = "UPLOADER_PUBLIC_URL_BASE"
ENV_OWNER = "UPLOADER_OWNER"
ENV_SECRET_URL = "UPLOADER_SECRET_URL"
ENV_ACCESS_KEY_ID = "S3_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "S3_SECRET_ACCESS_KEY"
ENV_ENDPOINT = "S3_ENDPOINT"


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def load_env_file(path: Path, override: bool = False) -> None:
    """Export KEY=VALUE lines of a .env file into os.environ."""
    if not path.exists():
        raise ConfigurationError(f"env file not found: {path}")
    if not path.is_file():
        raise ConfigurationError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _get(environ: Mapping[str, str], name: str) -> str:
    return (environ.get(name) or "").strip()


def parse_service(value: str) -> StorageService:
    try:
        return StorageService(value.strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in StorageService)
        raise ConfigurationError(f"unknown storage service {value!r} (expected one of: {choices})")


def configuration_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[StorageConfiguration]:
    """
    Build a configuration snapshot from UPLOADER_* variables.

    Returns:
        Configuration, or None when UPLOADER_SERVICE is unset
    """
    environ = os.environ if environ is None else environ
    service = _get(environ, ENV_SERVICE)
    if not service:
        return None

    if parse_service(service) is StorageService.PRESIGNED_URL:
        return PresignedUrlConfiguration(proxy_base_url=_get(environ, ENV_PROXY_URL))

    return CredentialsConfiguration(
        bucket=_get(environ, ENV_BUCKET),
        region=_get(environ, ENV_REGION),
        public_url_base=_get(environ, ENV_PUBLIC_URL_BASE) or None,
    )


def credentials_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[StorageCredentials]:
    """Build credentials from S3_* variables; None when none of them is set."""
    environ = os.environ if environ is None else environ
    values = (
        _get(environ, ENV_ACCESS_KEY_ID),
        _get(environ, ENV_SECRET_ACCESS_KEY),
        _get(environ, ENV_ENDPOINT),
    )
    if not any(values):
        return None
    return StorageCredentials(*values)
