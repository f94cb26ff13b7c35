"""Aggregate a BEGIN/END framed trade stream from stdin.

Writes one JSON summary per market to stdout and a timing summary to stderr.

Usage:
    python run.py < trades.ndjson
    python run.py --workers 4 --skip-malformed < trades.ndjson
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from aggregationManager import AggregatorConfig, StreamAggregationManager
from aggregator import MarketTable, RunStats
from publisher import S3Publisher, StreamPublisher

logger = logging.getLogger("run")


def _parse_args(argv) -> AggregatorConfig:
    parser = argparse.ArgumentParser(description="Per-market trade aggregation over stdin")
    try:
        defaults = AggregatorConfig.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    parser.add_argument(
        "--workers", type=int, default=defaults.workers,
        help=f"decode/apply threads, 1 runs inline (default: {defaults.workers})",
    )
    parser.add_argument(
        "--strict-window", action="store_true", default=defaults.strict_window,
        help="ignore trade lines outside BEGIN/END",
    )
    parser.add_argument(
        "--skip-malformed", action="store_true", default=defaults.skip_malformed,
        help="skip undecodable trade lines instead of aborting",
    )
    parser.add_argument(
        "--s3-bucket", default=defaults.s3_bucket,
        help="also publish results to this S3 bucket",
    )
    parser.add_argument("--s3-prefix", default=defaults.s3_prefix)
    parser.add_argument("--log-level", default=defaults.log_level)
    args = parser.parse_args(argv)

    log_level = args.log_level.upper()
    if not isinstance(logging.getLevelName(log_level), int):
        parser.error(f"unknown log level {args.log_level!r}")

    try:
        return AggregatorConfig(
            workers=args.workers,
            strict_window=args.strict_window,
            skip_malformed=args.skip_malformed,
            s3_bucket=args.s3_bucket,
            s3_prefix=args.s3_prefix,
            log_level=log_level,
        )
    except ValueError as exc:
        parser.error(str(exc))


def build_publishers(config: AggregatorConfig, stdout):
    # stdout goes last so nothing is printed when an upload fails
    publishers = []
    if config.s3_bucket:
        publishers.append(S3Publisher(bucket=config.s3_bucket, prefix=config.s3_prefix))
    publishers.append(StreamPublisher(stdout))
    return publishers


def main(argv=None, stdin=None, stdout=None, stderr=None) -> int:
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr

    config = _parse_args(argv)
    logging.basicConfig(
        level=config.log_level,
        stream=stderr,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    stats = RunStats()
    manager = StreamAggregationManager.from_config(config, diagnostics=stderr)
    manager.create(
        publishers=build_publishers(config, stdout),
        market_data=MarketTable(),
        stats=stats,
    )

    try:
        manager.run(stdin)
    except Exception as exc:
        logger.error("Aggregation aborted: %s", exc)
        return 1
    finally:
        # Before exiting, print stats to stderr
        stderr.write(stats.summary() + "\n")
        stderr.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
