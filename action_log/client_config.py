"""Client configuration — frozen dataclass loaded from environment variables."""

import argparse
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = "http://localhost:3000"
    default_stream: str = "user_actions"
    batch_size: int = 10
    batch_timeout_ms: int = 5000
    request_timeout: float = 10.0
    merge_mode: str = "append"
    actions_per_second: int = 5
    run_time: int = 30


def load_client_config(argv=None) -> ClientConfig:
    """Build ClientConfig from environment variables, then override with CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    env_base_url = os.environ.get("LOG_SERVER_URL", ClientConfig.base_url)
    env_default_stream = os.environ.get("DEFAULT_STREAM", ClientConfig.default_stream)
    env_batch_size = int(os.environ.get("BATCH_SIZE", ClientConfig.batch_size))
    env_batch_timeout_ms = int(
        os.environ.get("BATCH_TIMEOUT_MS", ClientConfig.batch_timeout_ms)
    )
    env_request_timeout = float(
        os.environ.get("REQUEST_TIMEOUT", ClientConfig.request_timeout)
    )
    env_merge_mode = os.environ.get("MERGE_MODE", ClientConfig.merge_mode)

    parser = argparse.ArgumentParser(description="Action Log Client")
    parser.add_argument("--base-url", type=str, default=None)
    parser.add_argument("--stream", type=str, default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--batch-timeout-ms", type=int, default=None)
    parser.add_argument("--merge-mode", choices=["append", "overwrite"], default=None)
    parser.add_argument("--actions-per-second", type=int, default=ClientConfig.actions_per_second)
    parser.add_argument("--run-time", type=int, default=ClientConfig.run_time)

    args = parser.parse_args(argv)

    return ClientConfig(
        base_url=args.base_url if args.base_url is not None else env_base_url,
        default_stream=args.stream if args.stream is not None else env_default_stream,
        batch_size=args.batch_size if args.batch_size is not None else env_batch_size,
        batch_timeout_ms=(
            args.batch_timeout_ms if args.batch_timeout_ms is not None else env_batch_timeout_ms
        ),
        request_timeout=env_request_timeout,
        merge_mode=args.merge_mode if args.merge_mode is not None else env_merge_mode,
        actions_per_second=args.actions_per_second,
        run_time=args.run_time,
    )
