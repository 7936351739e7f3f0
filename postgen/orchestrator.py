from __future__ import annotations

import random
import time
from datetime import date
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TypeVar

from .fetchers.http import is_reachable
from .models import ArticleRecord, FactCheckResult, SiteConfig, TopicRecord
from .output.github_client import GitHubPublisher
from .output.link_validator import LinkValidator
from .output.notifier import Notifier, article_email
from .output.page_builder import assemble_page
from .output.pipeline_reporter import PipelineReport
from .output.site_builder import rebuild_site
from .processors import (
    QualityGate,
    acquire_hero_image,
    fact_check,
    inject_product,
    read_time_minutes,
    research_topic,
    write_draft,
)
from .processors.ai import ImageGenerator, SearchClient, TextGenerator
from .processors.normalize import format_display_date
from .storage import ContentStore
from .utils.logging import get_logger
from .utils.pipeline_config import PipelineConfig

logger = get_logger("postgen.orchestrator")

T = TypeVar("T")

POST_TEMPLATE = "post.html"


def rebuild_from_store(
    site: SiteConfig, config: PipelineConfig, store: ContentStore, *, today: Optional[date] = None
) -> List[Path]:
    """Regenerate derived pages from the full store and clear the pending marker."""
    written = rebuild_site(
        site,
        store.read_all(),
        templates_dir=config.templates_dir,
        docs_dir=config.docs_dir,
        today=today,
    )
    store.clear_rebuild_pending()
    return written


class Orchestrator:
    """Runs the article pipeline: one article per :meth:`run_one`, N per :meth:`run`.

    External collaborators are injected; ``probe`` decides link reachability
    for fact-check sources, product links and the final link pass.
    """

    def __init__(
        self,
        site: SiteConfig,
        config: PipelineConfig,
        *,
        text_client: TextGenerator,
        image_clients: Sequence[ImageGenerator] = (),
        search_client: Optional[SearchClient] = None,
        store: Optional[ContentStore] = None,
        publisher: Optional[GitHubPublisher] = None,
        notifier: Optional[Notifier] = None,
        probe: Optional[Callable[[str], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], date] = date.today,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.site = site
        self.config = config
        self.text_client = text_client
        self.image_clients = list(image_clients)
        self.search_client = search_client
        self.store = store or ContentStore(config.data_dir)
        self.publisher = publisher
        self.notifier = notifier
        self.probe = probe or partial(is_reachable, timeout=config.probe_timeout)
        self.sleep = sleep
        self.clock = clock
        self.rng = rng
        self.link_validator = LinkValidator(self.probe)
        self.quality_gate = QualityGate(
            text_client,
            site,
            threshold=config.quality_threshold,
            max_attempts=config.quality_max_attempts,
        )

    # ---------------- Helpers -----------------
    def _degraded(self, stage: str, fn: Callable[[], T], default: T) -> T:
        try:
            return fn()
        except Exception as exc:  # noqa: BLE001 - optional stages never end the run
            logger.warning("%s failed, continuing without it: %s", stage, exc)
            return default

    def rebuild(self) -> List[Path]:
        return rebuild_from_store(self.site, self.config, self.store, today=self.clock())

    def _safe_rebuild(self) -> List[Path]:
        try:
            return self.rebuild()
        except Exception as exc:  # noqa: BLE001 - the appended record stays; marker retries later
            logger.error("Site rebuild failed, will retry on next run: %s", exc, exc_info=True)
            return []

    def resume_pending_rebuild(self) -> List[Path]:
        if not self.store.rebuild_pending:
            return []
        logger.info("Completing a rebuild left pending by an earlier run")
        return self._safe_rebuild()

    def _build_record(self, topic: TopicRecord, content: str, image_alt: str, today: date) -> ArticleRecord:
        return ArticleRecord(
            slug=topic.slug,
            title=topic.title,
            meta_description=topic.meta_description,
            category=topic.category,
            keywords=tuple(topic.keywords),
            date_iso=today.isoformat(),
            date_display=format_display_date(today, self.site.month_names),
            read_time=read_time_minutes(content),
            image_alt=image_alt or topic.title,
            content_type=topic.content_type.type,
        )

    def _publish(self, record: ArticleRecord, paths: Sequence[Path]) -> None:
        if self.publisher is None or not self.config.publish_enabled:
            logger.info("Publishing disabled")
            return
        self.publisher.commit_and_push(f"Neuer Artikel: {record.title}", paths)

    def _notify(self, record: ArticleRecord) -> None:
        recipients = self.config.notify_recipients
        if self.notifier is None or not recipients:
            return
        subject, body = article_email(self.site, record)
        for recipient in recipients:
            self.notifier.send(recipient, subject, body)

    # ---------------- Pipeline -----------------
    def run_one(self, forced_topic: Optional[str] = None) -> ArticleRecord:
        """Produce, persist and publish one article.

        Topic research, drafting and page assembly errors propagate; every
        other stage falls back to a safe default.
        """
        pending_paths = self.resume_pending_rebuild()
        today = self.clock()

        published = self.store.read_all()
        topic = research_topic(
            self.text_client,
            self.site,
            used_topics=self.store.read_used_topics(),
            recent_titles=[r.title for r in published],
            taken_slugs=[r.slug for r in published],
            forced_topic=forced_topic,
            today=today,
            rng=self.rng,
        )
        draft = write_draft(self.text_client, self.site, topic, published)

        facts = self._degraded(
            "Fact-check",
            lambda: fact_check(
                self.search_client,
                topic,
                draft.content,
                probe=self.probe,
                max_sources=self.config.factcheck_max_sources,
                max_chars=self.config.factcheck_max_chars,
            ),
            FactCheckResult.empty(),
        )

        content = self._degraded(
            "Quality gate",
            lambda: self.quality_gate.run(topic, draft.content, facts.corrections).content,
            draft.content,
        )
        content = self._degraded(
            "Product injection",
            lambda: inject_product(self.search_client, self.site, topic, content, probe=self.probe),
            content,
        )

        post_dir = self.config.docs_dir / "posts" / topic.slug
        hero = acquire_hero_image(self.image_clients, topic, post_dir)

        record = self._build_record(topic, content, draft.image_alt, today)
        template = (self.config.templates_dir / POST_TEMPLATE).read_text(encoding="utf-8")
        page = assemble_page(template, self.site, record, content, draft.faq, published=published, sources=facts.sources)
        page = self._degraded("Link validation", lambda: self.link_validator.validate(page), page)

        page_path = post_dir / "index.html"
        page_path.write_text(page, encoding="utf-8")

        self.store.mark_rebuild_pending()
        self.store.append_article(record)
        self.store.append_used_topic(topic.topic)
        derived = self._safe_rebuild()

        self._publish(
            record,
            [page_path, hero.path, self.store.posts_path, self.store.topics_path, *pending_paths, *derived],
        )
        self._degraded("Notification", lambda: self._notify(record), None)
        logger.info("Article done: %s/posts/%s/", self.site.site_url, record.slug)
        return record

    def run(self, count: int, *, forced_topic: Optional[str] = None) -> PipelineReport:
        """Run ``count`` articles sequentially with a cooldown in between.

        A forced topic applies to the first article only. Failed runs are
        logged and skipped, never retried.
        """
        report = PipelineReport()
        for index in range(1, count + 1):
            if index > 1 and self.config.cooldown_seconds > 0:
                logger.info("Cooling down %.0fs before the next article", self.config.cooldown_seconds)
                self.sleep(self.config.cooldown_seconds)
            report.attempted += 1
            logger.info("=== Article %d/%d ===", index, count)
            try:
                record = self.run_one(forced_topic=forced_topic if index == 1 else None)
            except Exception as exc:  # noqa: BLE001 - isolate per-article failures
                logger.exception("Article %d failed: %s", index, exc)
                report.failed.append((index, str(exc)))
                continue
            report.succeeded.append(record.slug)

        logger.info("Pipeline finished: %s articles published", report.summary())
        return report
