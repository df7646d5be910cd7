"""s3upload CLI - upload a local file tree to an S3 bucket.

The CLI is a thin wrapper around UploadEngine (see engine.py).
All upload logic lives in the library; the CLI validates arguments, resolves
settings and reports results.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn

import click

from s3upload.config import get_setting, list_settings, set_setting, unset_setting
from s3upload.constants import DEFAULT_MAX_WORKERS, DEFAULT_REGION
from s3upload.engine import UploadEngine
from s3upload.errors import ConfigParseError, InvalidArgumentError, UploaderError
from s3upload.json_output import ErrorDetail, error_envelope, success_envelope, upload_envelope
from s3upload.models import (
    EngineConfiguration,
    UploadResult,
    WorkItem,
    validate_max_workers,
    validate_region,
)
from s3upload.output import error, info, quiet, success, warn

OVERWRITE_WARNING = "WARNING: This will ALWAYS overwrite matching keys in the specified bucket"


def should_output_json(ctx: click.Context) -> bool:
    """Return True if the global --format option asked for JSON."""
    obj = ctx.find_root().obj or {}
    return obj.get("format", "text") == "json"


def output_json_envelope(envelope: Any) -> None:
    click.echo(envelope.to_json())


@click.group()
@click.version_option(package_name="s3upload")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, output_format: str, verbose: bool) -> None:
    """s3upload - Concurrently upload a local file tree to an S3 bucket."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(threadName)s %(name)s: %(message)s"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Upload command
# ─────────────────────────────────────────────────────────────────────────────


def _usage_error(ctx: click.Context, message: str, use_json: bool) -> NoReturn:
    """Report a validation failure with usage help and exit 2."""
    if use_json:
        envelope = error_envelope(
            "upload", [ErrorDetail(type="InvalidArgumentError", message=message)]
        )
        output_json_envelope(envelope)
    else:
        error(message)
        click.echo(ctx.get_help())
    raise SystemExit(2)


def _build_configuration(
    ctx: click.Context,
    *,
    source: str,
    bucket: str | None,
    credential: str | None,
    prefix: str | None,
    region: str | None,
    threads: str | None,
    recurse: bool,
    pretend: bool,
    delete: bool,
    create: bool,
    purge: bool,
    use_json: bool,
) -> EngineConfiguration:
    base_path = Path.cwd()
    try:
        bucket = get_setting("bucket", cli_value=bucket, base_path=base_path)
        credential = get_setting("credential", cli_value=credential, base_path=base_path)
        prefix = get_setting("prefix", cli_value=prefix, base_path=base_path)
        region = get_setting("region", cli_value=region, base_path=base_path)
        threads = get_setting("threads", cli_value=threads, base_path=base_path)
    except ConfigParseError as err:
        _usage_error(ctx, err.message, use_json)

    if not Path(source).exists():
        _usage_error(ctx, f"{source} does not exist.", use_json)
    if not bucket:
        _usage_error(ctx, "Missing option '--bucket'.", use_json)
    if not credential:
        _usage_error(ctx, "Missing option '--credential'.", use_json)
    if not Path(str(credential)).exists():
        _usage_error(ctx, f"{credential} does not exist.", use_json)

    try:
        max_workers = validate_max_workers(threads) if threads is not None else DEFAULT_MAX_WORKERS
        region_name = validate_region(str(region)) if region else DEFAULT_REGION
    except InvalidArgumentError as err:
        _usage_error(ctx, err.message, use_json)

    return EngineConfiguration(
        bucket_name=str(bucket),
        destination_prefix=str(prefix or ""),
        credential_path=str(credential),
        region=region_name,
        max_workers=max_workers,
        recurse=recurse,
        pretend=pretend,
        delete_after_upload=delete,
        create_bucket_if_missing=create,
        purge_bucket_before_upload=purge,
    )


def _print_upload_summary(result: UploadResult) -> None:
    message = (
        f"{result.files_uploaded} file(s) uploaded, {result.total_bytes / (1024 * 1024):.2f} MB "
        f"in {result.passes} pass(es)"
    )
    if result.success:
        success(message)
    else:
        error(f"{message}; {result.files_failed} failed")
        for path, err in result.errors:
            error(f"  {path}: {err}")
    if result.files_deleted:
        info(f"{result.files_deleted} local file(s) deleted")
    if result.files_skipped:
        warn(f"{result.files_skipped} item(s) skipped")
    if result.walk_errors:
        warn(f"{result.walk_errors} directory entr(ies) could not be read")


@cli.command()
@click.argument("source", type=click.Path(path_type=str))
@click.option("--bucket", "-b", default=None, help="Bucket to upload file(s) into.")
@click.option("--credential", "-c", default=None, help="AWS credentials file.")
@click.option("--prefix", "-p", default=None, help="Key prefix to prepend.")
@click.option("--region", default=None, help=f"AWS region (default: {DEFAULT_REGION}).")
@click.option("--recurse", "-r", is_flag=True, help="Recurse into sub-directories.")
@click.option(
    "--threads",
    "-t",
    default=None,
    help=f"Maximum upload threads (default: {DEFAULT_MAX_WORKERS}).",
)
@click.option("--delete", is_flag=True, help="Delete local files after upload.")
@click.option("--pretend", is_flag=True, help="Don't actually upload or delete the files.")
@click.option("--create", is_flag=True, help="Create the bucket if it does not exist.")
@click.option("--purge", is_flag=True, help="Purge bucket before uploading (not implemented).")
@click.pass_context
def upload(
    ctx: click.Context,
    source: str,
    bucket: str | None,
    credential: str | None,
    prefix: str | None,
    region: str | None,
    recurse: bool,
    threads: str | None,
    delete: bool,
    pretend: bool,
    create: bool,
    purge: bool,
) -> None:
    """Upload SOURCE (a file or directory) to a bucket.

    WARNING: This will ALWAYS overwrite matching keys in the specified bucket.

    --bucket, --credential, --prefix, --region and --threads fall back to
    S3UPLOAD_<KEY> environment variables and .s3upload/config.yaml.

    Examples:

        s3upload upload ./photos -b my-bucket -c ~/.aws/credentials -r

        s3upload upload ./logs -b archive -c creds.properties -p logs/2015 --delete

        s3upload --format json upload ./data -b my-bucket -c creds --pretend -r
    """
    use_json = should_output_json(ctx)
    config = _build_configuration(
        ctx,
        source=source,
        bucket=bucket,
        credential=credential,
        prefix=prefix,
        region=region,
        threads=threads,
        recurse=recurse,
        pretend=pretend,
        delete=delete,
        create=create,
        purge=purge,
        use_json=use_json,
    )

    engine = UploadEngine(config)
    try:
        if use_json:
            with quiet():
                engine.queue(WorkItem(str(Path(source).resolve())))
                result = engine.upload()
        else:
            warn(OVERWRITE_WARNING)
            engine.queue(WorkItem(str(Path(source).resolve())))
            result = engine.upload()
    except UploaderError as err:
        if use_json:
            output_json_envelope(error_envelope("upload", [ErrorDetail.from_exception(err)]))
        else:
            error(err.message)
        raise SystemExit(1) from err

    if use_json:
        output_json_envelope(upload_envelope(result, source=source, configuration=config))
    else:
        _print_upload_summary(result)

    if not result.success:
        raise SystemExit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Config commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Manage default settings stored in .s3upload/config.yaml."""


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY to VALUE in the config file."""
    use_json = should_output_json(ctx)
    try:
        if key == "threads":
            validate_max_workers(value)
        elif key == "region":
            validate_region(value)
        set_setting(Path.cwd(), key, value)
    except UploaderError as err:
        if use_json:
            output_json_envelope(error_envelope("config set", [ErrorDetail.from_exception(err)]))
        else:
            error(err.message)
        raise SystemExit(1) from err

    if use_json:
        output_json_envelope(success_envelope("config set", {"key": key, "value": value}))
    else:
        success(f"Set {key} = {value}")


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Show the resolved value of KEY."""
    use_json = should_output_json(ctx)
    settings = _load_settings_or_exit(ctx, "config get")
    entry = settings.get(key, {"value": None, "source": "default"})

    if use_json:
        output_json_envelope(success_envelope("config get", {"key": key, **entry}))
    elif entry["value"] is None:
        info(f"{key} is not set")
    else:
        info(f"{key} = {entry['value']} ({entry['source']})")


@config.command("list")
@click.pass_context
def config_list(ctx: click.Context) -> None:
    """List all configured settings and where they come from."""
    use_json = should_output_json(ctx)
    settings = _load_settings_or_exit(ctx, "config list")

    if use_json:
        output_json_envelope(success_envelope("config list", {"settings": settings}))
    elif not settings:
        info("No settings configured")
    else:
        for key, entry in settings.items():
            info(f"{key} = {entry['value']} ({entry['source']})")


@config.command("unset")
@click.argument("key")
@click.pass_context
def config_unset(ctx: click.Context, key: str) -> None:
    """Remove KEY from the config file."""
    use_json = should_output_json(ctx)
    try:
        removed = unset_setting(Path.cwd(), key)
    except ConfigParseError as err:
        error(err.message)
        raise SystemExit(1) from err

    if use_json:
        output_json_envelope(success_envelope("config unset", {"key": key, "removed": removed}))
    elif removed:
        success(f"Removed {key}")
    else:
        warn(f"{key} was not set")


def _load_settings_or_exit(ctx: click.Context, command: str) -> dict[str, dict[str, Any]]:
    try:
        return list_settings(Path.cwd())
    except ConfigParseError as err:
        if should_output_json(ctx):
            output_json_envelope(error_envelope(command, [ErrorDetail.from_exception(err)]))
        else:
            error(err.message)
        raise SystemExit(1) from err
