"""Application entrypoint for the article generator.

This script orchestrates the high-level flow:
1) load site and pipeline configuration
2) generate N articles (or only rebuild the derived pages)
3) publish to GitHub and notify (or dry-run)
"""

from __future__ import annotations

import argparse
from pathlib import Path

from dotenv import load_dotenv

from .orchestrator import Orchestrator, rebuild_from_store
from .output.github_client import GitHubPublisher
from .output.notifier import Notifier
from .processors.ai import create_image_clients, create_search_client, create_text_client
from .storage import ContentStore, ContentStoreError
from .utils.config_loader import ConfigError, load_site_config
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import PipelineConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Article generator: research, write, review and publish blog posts"
    )
    parser.add_argument(
        "--config",
        default="config/site.yaml",
        help="Path to site configuration file (YAML)",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Number of articles to generate (default: ARTICLES_PER_RUN, or 1 with --topic)",
    )
    parser.add_argument(
        "--topic",
        default=None,
        help="Write about this topic instead of researching one",
    )
    parser.add_argument(
        "--cooldown",
        type=float,
        default=None,
        help="Seconds to wait between articles (default: RUN_COOLDOWN_SECONDS)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate locally but do not push to GitHub or send mail",
    )
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="Skip the GitHub commit step",
    )
    parser.add_argument(
        "--rebuild-only",
        action="store_true",
        help="Only rebuild index, category pages and sitemap from stored records, then exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args()


def main() -> int:
    load_dotenv(override=False)
    args = parse_args()
    configure_logging(level=args.log_level)
    logger = get_logger("postgen.agent")

    config_path = Path(args.config)
    logger.info("Loading site configuration from %s", config_path)
    try:
        site = load_site_config(config_path)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    cfg = PipelineConfig()
    if args.cooldown is not None:
        cfg.cooldown_seconds = args.cooldown
    if args.no_publish:
        cfg.publish_enabled = False

    try:
        store = ContentStore(cfg.data_dir)
        if args.rebuild_only:
            written = rebuild_from_store(site, cfg, store)
            logger.info("Rebuilt %d files", len(written))
            return 0

        orch = Orchestrator(
            site,
            cfg,
            text_client=create_text_client(),
            image_clients=create_image_clients(),
            search_client=create_search_client(),
            store=store,
            publisher=GitHubPublisher(dry_run=args.dry_run),
            notifier=Notifier(site, dry_run=args.dry_run),
        )
    except (ContentStoreError, RuntimeError, ValueError, OSError) as exc:
        logger.error("Startup failed: %s", exc)
        return 1

    count = args.count if args.count is not None else (1 if args.topic else cfg.articles_per_run)
    report = orch.run(count, forced_topic=args.topic)
    logger.info("\n%s", report.to_markdown())
    return 0 if report.ok else 1


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
