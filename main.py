# main.py
"""
Build the S&P 100 symbol artifact.

Exit codes:
    0  success, artifact unchanged
    2  success, artifact rewritten (a wrapper may commit it)
    3  degraded: source failed, previous snapshot rewritten
    4  failure: source failed, no snapshot, seed list written
    5  failure: artifact could not be read or written
"""
import argparse
import sys

from config import config as default_config, load_config
from fetcher import fetch_document
from logger import log
from resiliency import RetryPolicy
from snapshot_store import JsonFileSnapshotStore
from symbol_loader import build_symbols


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv=None):
    # --config is read first so the YAML it names supplies the other defaults
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None,
                     help="YAML config file (default: $SP100_CONFIG or config.yaml)")
    known, _ = pre.parse_known_args(argv)
    cfg = load_config(known.config) if known.config else default_config

    parser = argparse.ArgumentParser(
        description="Build a sorted, deduplicated S&P 100 symbol list.", parents=[pre],
    )
    parser.add_argument("--url", default=cfg.source.url, help="Source document (JSON, CSV or HTML)")
    parser.add_argument("--output", default=cfg.output.path, help="Path of the JSON artifact")
    parser.add_argument("--min-symbols", type=positive_int, default=cfg.validation.min_symbols,
                        help="Fail the attempt below this many valid symbols")
    parser.add_argument("--separator", choices=[".", "/"], default=cfg.symbols.class_separator,
                        help="Class-share separator, e.g. BRK.B vs BRK/B")
    parser.add_argument("--attempts", type=positive_int, default=cfg.retry.attempts,
                        help="Total build attempts")
    args = parser.parse_args(argv)
    args.cfg = cfg
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = args.cfg
    log.info(f"Building symbol list from {args.url} -> {args.output}")

    result = build_symbols(
        url=args.url,
        store=JsonFileSnapshotStore(args.output),
        policy=RetryPolicy(
            attempts=args.attempts,
            factor=cfg.retry.backoff_factor,
            min_wait=cfg.retry.min_wait_seconds,
            max_wait=cfg.retry.max_wait_seconds,
        ),
        separator=args.separator,
        fetch=lambda url: fetch_document(
            url, timeout=cfg.source.timeout_seconds, user_agent=cfg.source.user_agent,
        ),
        min_symbols=args.min_symbols,
        must_have=cfg.validation.must_have,
        max_missing=cfg.validation.max_missing_must_have,
    )

    if result.changed:
        log.info(f"{args.output} updated")
    print(f"{result.outcome.name}: {result.message}")
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
