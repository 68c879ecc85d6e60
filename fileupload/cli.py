"""Command line interface for fileupload package."""
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.logging import RichHandler

from . import __version__
from .cli_progress import BatchProgressDisplay, render_configuration_summary, render_results
from .errors import ConfigurationError
from .config import (
    ENV_OWNER,
    ENV_SECRET_URL,
    configuration_from_env,
    credentials_from_env,
    load_env_file,
    parse_service,
    resolve_default_env_file,
)
from .models import (
    CredentialsConfiguration,
    PresignedUrlConfiguration,
    SourceFile,
    StorageConfiguration,
    StorageService,
)


DEFAULT_UPLOADER_KEY = "cli"


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


def _resolve_configuration(args: argparse.Namespace) -> StorageConfiguration:
    """Merge command line flags over the environment configuration."""
    base = configuration_from_env()

    if args.service:
        service = parse_service(args.service)
    elif base is not None:
        service = base.service
    else:
        raise CLIError("no storage service configured (use --service or UPLOADER_SERVICE)")

    if service is StorageService.PRESIGNED_URL:
        proxy_url = args.proxy_url
        if proxy_url is None and isinstance(base, PresignedUrlConfiguration):
            proxy_url = base.proxy_base_url
        return PresignedUrlConfiguration(proxy_base_url=proxy_url or "")

    env = base if isinstance(base, CredentialsConfiguration) else None
    return CredentialsConfiguration(
        bucket=args.bucket if args.bucket is not None else (env.bucket if env else ""),
        region=args.region if args.region is not None else (env.region if env else ""),
        public_url_base=(
            args.public_url_base if args.public_url_base is not None
            else (env.public_url_base if env else None)
        ),
    )


def _collect_files(paths: Sequence[Path]) -> List[SourceFile]:
    files = []
    for path in paths:
        path = Path(path).expanduser()
        if not path.is_file():
            raise CLIError(f"not a file: {path}")
        try:
            files.append(SourceFile.from_path(path))
        except OSError as exc:
            raise CLIError(f"could not read {path}: {exc}") from exc
    return files


async def _run_upload(
    files: List[SourceFile],
    configuration: StorageConfiguration,
    owner: str,
    uploader_key: str,
    secret_url: Optional[str],
) -> int:
    from .orchestrator import CHANGE_EVENT, UploadStore
    from .services import HTTPSecretProvider

    secret_provider = HTTPSecretProvider(secret_url) if secret_url else None

    async with UploadStore(
        owner=owner,
        credentials=credentials_from_env(),
        secret_provider=secret_provider,
    ) as store:
        uploader = store.get_or_create(uploader_key, configuration)
        if uploader is None:
            if configuration.service is StorageService.PRESIGNED_URL:
                raise CLIError("presigned-url service needs a proxy url (--proxy-url or UPLOADER_PROXY_URL)")
            raise CLIError(
                "credentials service needs S3_ACCESS_KEY_ID, S3_SECRET_ACCESS_KEY and S3_ENDPOINT"
            )

        display = BatchProgressDisplay()
        store.events.on(CHANGE_EVENT, display.on_change)

        keys = uploader.upload_files(files)
        await store.wait()

        snapshot = store.snapshot(uploader_key)
        records = [snapshot[key] for key in keys if key in snapshot]
        render_results(records)
        return 0 if all(record.success for record in records) else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileupload",
        description="Upload files to S3-compatible storage or through an upload proxy.",
    )
    parser.add_argument("paths", nargs="*", type=Path, help="Files to upload")
    parser.add_argument(
        "-u",
        "--uploader",
        default=DEFAULT_UPLOADER_KEY,
        help=f"Uploader name (default: {DEFAULT_UPLOADER_KEY})",
    )
    parser.add_argument(
        "-o",
        "--owner",
        default=None,
        help=f"Key prefix for uploaded objects (default from {ENV_OWNER} or the current user)",
    )
    parser.add_argument(
        "-s",
        "--service",
        default=None,
        help="Storage service: presigned-url or credentials (default from UPLOADER_SERVICE)",
    )
    parser.add_argument("--proxy-url", default=None, help="Upload proxy base URL")
    parser.add_argument("--bucket", default=None, help="Bucket for the credentials service")
    parser.add_argument("--region", default=None, help="Bucket region (default us-east-1)")
    parser.add_argument(
        "--public-url-base",
        default=None,
        help="Base URL that public object URLs are built from",
    )
    parser.add_argument(
        "--secret-url",
        default=None,
        help=f"Endpoint returning the proxy upload token (default from {ENV_SECRET_URL})",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fileupload {__version__}",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or resolve_default_env_file()
    if used_env_file is not None:
        try:
            load_env_file(Path(used_env_file))
        except ConfigurationError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if not args.paths:
        parser.print_help()
        return 0

    owner = args.owner or os.getenv(ENV_OWNER) or getpass.getuser()
    secret_url = args.secret_url or os.getenv(ENV_SECRET_URL)

    try:
        configuration = _resolve_configuration(args)
        files = _collect_files(args.paths)
    except (CLIError, ConfigurationError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    summary = {
        "Files": len(files),
        "Uploader": args.uploader,
        "Owner": owner,
        "Service": configuration.service.value,
    }
    if isinstance(configuration, PresignedUrlConfiguration):
        summary["Proxy"] = configuration.proxy_base_url or "(missing)"
        summary["Secret URL"] = secret_url or "-"
    else:
        summary["Bucket"] = configuration.bucket or "(missing)"
        summary["Region"] = configuration.region or "us-east-1"
        summary["Public URL Base"] = configuration.public_url_base or "(signed url)"
    summary["Env File"] = str(used_env_file) if used_env_file else "-"
    summary["Logging"] = effective_log_mode
    render_configuration_summary(summary)

    try:
        return asyncio.run(
            _run_upload(
                files=files,
                configuration=configuration,
                owner=owner,
                uploader_key=args.uploader,
                secret_url=secret_url,
            )
        )
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
