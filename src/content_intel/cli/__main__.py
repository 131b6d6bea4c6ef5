"""CLI entry point: python -m content_intel.cli <command>"""

import argparse
import asyncio
import json
import signal
import sys

import structlog

from content_intel.config.settings import get_settings
from content_intel.db.engine import dispose_engine, get_engine
from content_intel.db.session import get_session_factory
from content_intel.logging_config import configure_logging
from content_intel.matching.config import load_intelligence_config
from content_intel.models.base import Base
from content_intel.worker.orchestrator import (
    build_engines,
    load_cluster_articles,
    process_articles,
)


def _install_stop_handlers() -> asyncio.Event:
    """Return an event set on SIGTERM/SIGINT; batches stop between articles."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)
    return stop_event


def _emit(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run_command(args: argparse.Namespace) -> int:
    """Execute one CLI command; returns the process exit code."""
    log = structlog.get_logger()
    settings = get_settings()

    if args.command == "init-db":
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        log.info("database_initialized", database=settings.database_url.split("@")[-1])
        return 0

    config = load_intelligence_config(settings.intelligence_config_path)
    engines = build_engines(get_session_factory(), config)
    stop_event = _install_stop_handlers()

    if args.command == "match":
        result = await engines.matcher.match_batch(args.article_ids, args.rule_level, stop_event)
        _emit(result.as_dict())
        return 1 if result.errors else 0

    if args.command == "coherence":
        result = await engines.coherence.process_batch(args.article_ids, stop_event)
        _emit(result.as_dict())
        return 1 if result.errors else 0

    if args.command == "cluster":
        await engines.clustering.initialize()
        outcomes = []
        unclustered = []
        for article in await load_cluster_articles(engines.content, args.article_ids):
            if stop_event.is_set():
                break
            try:
                outcome = await engines.clustering.process_article(article)
            except Exception as e:
                log.warning("article_cluster_failed", article_id=article.id, error=str(e), exc_info=True)
                outcomes.append({"article_id": article.id, "action": "error", "error": str(e)})
                continue
            outcomes.append(
                {
                    "article_id": outcome.article_id,
                    "action": outcome.action,
                    "cluster_id": outcome.cluster_id,
                }
            )
            if outcome.action != "joined":
                unclustered.append(article)
        created, potential = await engines.clustering.create_clusters_from_batch(unclustered, stop_event)
        _emit(
            {
                "articles": outcomes,
                "clusters_created": [c.id for c in created],
                "errors": [{"article_id": a, "error": e} for a, e in potential.errors],
            }
        )
        failed = any(o["action"] == "error" for o in outcomes)
        return 1 if failed or potential.errors else 0

    if args.command == "deactivate":
        await engines.clustering.initialize()
        count = await engines.clustering.deactivate_old_clusters(args.days)
        _emit({"deactivated": count, "days_old": args.days})
        return 0

    if args.command == "run":
        result = await process_articles(args.article_ids, engines, args.rule_level, stop_event)
        _emit(result.as_dict())
        return 1 if result.errors else 0

    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content_intel.cli",
        description="Place matching, place coherence and story clustering",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create all tables (development databases)")

    match_parser = subparsers.add_parser("match", help="Match articles to gazetteer places")
    match_parser.add_argument("article_ids", type=int, nargs="+")
    match_parser.add_argument(
        "--rule-level",
        type=int,
        default=1,
        choices=range(0, 5),
        help="Matching rule level 0-4 (default: 1)",
    )

    coherence_parser = subparsers.add_parser("coherence", help="Re-score place candidates by coherence")
    coherence_parser.add_argument("article_ids", type=int, nargs="+")

    cluster_parser = subparsers.add_parser("cluster", help="Assign articles to story clusters")
    cluster_parser.add_argument("article_ids", type=int, nargs="+")

    deactivate_parser = subparsers.add_parser("deactivate", help="Deactivate stale story clusters")
    deactivate_parser.add_argument(
        "--days",
        type=int,
        default=7,
        help="Days since last update before a cluster is deactivated (default: 7)",
    )

    run_parser = subparsers.add_parser("run", help="Run matching, coherence and clustering")
    run_parser.add_argument("article_ids", type=int, nargs="+")
    run_parser.add_argument("--rule-level", type=int, default=1, choices=range(0, 5))

    return parser


async def _run(args: argparse.Namespace) -> int:
    try:
        return await run_command(args)
    finally:
        await dispose_engine()


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    settings = get_settings()
    configure_logging(json_output=settings.log_json, log_level=settings.log_level)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
