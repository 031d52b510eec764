from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from clientingest.adapters.request_schema import load_request_spec
from clientingest.app import ingest_api, ingest_csv, ingest_json
from clientingest.config import (
    ConfigurationError,
    configure_logging,
    get_ingestion_config,
    require_env_vars,
)
from clientingest.domain.curl import parse_curl
from clientingest.domain.errors import FormatError
from clientingest.domain.model import (
    ApiKeyLocation,
    AuthConfig,
    AuthType,
    DuplicatePolicy,
    KeyValue,
    RequestSpec,
)
from clientingest.domain.model.request import DEFAULT_API_KEY_NAME

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from clientingest.app import IngestionOutcome
    from clientingest.domain.pagination import PaginationState

log = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--duplicates",
        choices=[policy.value for policy in DuplicatePolicy],
        default=DuplicatePolicy.REPORT.value,
        help="report: duplicate names block the batch; exclude: keep the first occurrence",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate only, do not store clients",
    )


def _add_upload_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=str, help="File to read, or - for stdin")
    parser.add_argument(
        "--api-url",
        type=str,
        help="API URL stamped onto every client for later courier fetching",
    )
    parser.add_argument(
        "--request-file",
        type=str,
        help="JSON request document stored with every client",
    )
    _add_common_arguments(parser)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk-register clients")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    csv_parser = subparsers.add_parser("csv", help="Import clients from CSV text")
    _add_upload_arguments(csv_parser)

    json_parser = subparsers.add_parser("json", help="Import clients from JSON text")
    _add_upload_arguments(json_parser)

    api = subparsers.add_parser("api", help="Import clients from a paginated API")
    source = api.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", type=str, help="Endpoint returning the client list")
    source.add_argument("--curl", type=str, help="cURL command describing the request")
    source.add_argument("--request-file", type=str, help="JSON request document")
    api.add_argument("--method", type=str, default=None, help="HTTP method (default GET)")
    api.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra request header; may be repeated",
    )
    api.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra query parameter; may be repeated",
    )
    api.add_argument(
        "--auth",
        choices=[auth_type.value for auth_type in AuthType],
        default=None,
        help="Authentication scheme",
    )
    api.add_argument("--username", type=str, help="User name for basic authentication")
    api.add_argument(
        "--token-env",
        type=str,
        help="Environment variable holding the password, token or API key",
    )
    api.add_argument("--api-key-name", type=str, default=None, help="API key header/param name")
    api.add_argument(
        "--api-key-location",
        choices=[location.value for location in ApiKeyLocation],
        default=None,
        help="Send the API key as a header or a query parameter",
    )
    api.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Records requested per page (defaults to config)",
    )
    api.add_argument(
        "--page-cap",
        type=int,
        default=None,
        help="Maximum number of pages to fetch (defaults to config)",
    )
    _add_common_arguments(api)

    return parser.parse_args(list(argv))


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    file_path = Path(path)
    if not file_path.is_file():
        raise ValueError(f"No such file: {path}")
    return file_path.read_text(encoding="utf-8")


def _split_pair(raw: str, separator: str) -> KeyValue:
    key, found, value = raw.partition(separator)
    if not found or not key.strip():
        raise ValueError(f"Expected KEY{separator}VALUE, got {raw!r}")
    return KeyValue(key.strip(), value.strip())


def _credentials(args: argparse.Namespace) -> AuthConfig | None:
    if args.auth is None:
        return None
    auth_type = AuthType(args.auth)
    if auth_type is AuthType.NONE:
        return None
    if args.token_env is None:
        raise ValueError(f"--auth {auth_type} requires --token-env")
    secret = require_env_vars([args.token_env])[args.token_env]
    if auth_type is AuthType.BASIC:
        return AuthConfig(type=auth_type, username=args.username or "", password=secret)
    if auth_type is AuthType.APIKEY:
        return AuthConfig(
            type=auth_type,
            api_key=secret,
            api_key_name=args.api_key_name or DEFAULT_API_KEY_NAME,
            api_key_location=ApiKeyLocation(args.api_key_location or ApiKeyLocation.HEADER),
        )
    return AuthConfig(type=auth_type, token=secret)


def _request_spec(args: argparse.Namespace) -> RequestSpec:
    if args.curl:
        base = parse_curl(args.curl)
    elif args.request_file:
        base = load_request_spec(_read_text(args.request_file))
    else:
        base = RequestSpec(url=args.url)

    headers = tuple(_split_pair(raw, ":") for raw in args.header)
    params = {pair.key: pair.value for pair in (_split_pair(raw, "=") for raw in args.param)}
    spec = base.with_headers(headers)
    if params:
        spec = spec.with_query_params(params)
    auth = _credentials(args)
    return RequestSpec(
        url=spec.url,
        method=args.method or spec.method,
        headers=spec.headers,
        query_params=spec.query_params,
        body=spec.body,
        auth=auth or spec.auth,
    )


def _log_progress(state: PaginationState) -> None:
    total = state.total_pages if state.total_pages is not None else "?"
    log.info(
        "Page %s of %s: %d record(s) so far, %s",
        state.current_page,
        total,
        len(state.accumulated),
        state.status,
    )


def _run(args: argparse.Namespace) -> IngestionOutcome:
    policy = DuplicatePolicy(args.duplicates)
    submit = not args.dry_run

    if args.command in {"csv", "json"}:
        text = _read_text(args.path)
        request_config = None
        if args.request_file:
            request_config = load_request_spec(_read_text(args.request_file))
        ingest = ingest_csv if args.command == "csv" else ingest_json
        return ingest(
            text,
            api_url=args.api_url or (request_config.url if request_config else None),
            request_config=request_config,
            duplicate_policy=policy,
            submit=submit,
        )

    if args.command == "api":
        config = get_ingestion_config()
        if args.page_size is not None or args.page_cap is not None:
            config = replace(
                config,
                page_size=args.page_size if args.page_size is not None else config.page_size,
                page_cap=args.page_cap if args.page_cap is not None else config.page_cap,
            )
        spec = _request_spec(args)
        log.debug("Request: %s", spec.redacted())
        return ingest_api(
            spec,
            config=config,
            duplicate_policy=policy,
            submit=submit,
            on_progress=_log_progress,
        )

    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(verbose=parsed_args.verbose)

    try:
        outcome = _run(parsed_args)
    except (ValueError, FormatError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during ingestion")
        sys.exit(1)

    if not outcome.report.ok:
        sys.exit(2)
    log.info("Done: %d client(s) stored", outcome.stored)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
