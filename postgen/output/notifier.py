from __future__ import annotations

import html
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Callable, Optional, Tuple

from ..models import ArticleRecord, SiteConfig
from ..utils.logging import get_logger

logger = get_logger("postgen.output.notify")


def article_email(site: SiteConfig, record: ArticleRecord) -> Tuple[str, str]:
    """Subject and HTML body announcing a freshly published article."""
    url = f"{site.site_url}/posts/{record.slug}/"
    body = (
        f"<h2>{html.escape(record.title)}</h2>"
        f"<p><strong>Kategorie:</strong> {html.escape(site.category_name(record.category))}</p>"
        f"<p><strong>Lesezeit:</strong> {record.read_time} Min.</p>"
        f'<p><a href="{url}" style="color:#1a5f7a;font-weight:bold;font-size:16px;">Artikel lesen &rarr;</a></p>'
    )
    return f"Neuer Artikel online: {record.title}", body


class Notifier:
    """HTML mail over SMTP with STARTTLS.

    Environment:
      - SMTP_HOST, SMTP_PORT (default 587)
      - SMTP_USER, SMTP_PASSWORD
      - SMTP_FROM (default: SMTP_USER)

    ``send`` never raises; it returns whether the message went out.
    """

    def __init__(
        self,
        site: SiteConfig,
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        dry_run: bool = False,
        smtp_factory: Callable[[str, int], smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.site = site
        self.host = host or os.environ.get("SMTP_HOST", "")
        self.port = port or int(os.environ.get("SMTP_PORT", "587"))
        self.user = user or os.environ.get("SMTP_USER", "")
        self.password = password or os.environ.get("SMTP_PASSWORD", "")
        self.sender = sender or os.environ.get("SMTP_FROM") or self.user
        self.dry_run = dry_run
        self._smtp_factory = smtp_factory

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _wrap(self, body: str) -> str:
        footer = (
            '<hr style="border:none;border-top:1px solid #ddd;margin:24px 0;">'
            '<p style="color:#1a5f7a;font-size:13px;">'
            f'<a href="{self.site.site_url}" style="color:#1a5f7a;font-weight:bold;">'
            f"{html.escape(self.site.site_name)}</a></p>"
        )
        return f'<div style="font-family:-apple-system,sans-serif;max-width:600px;margin:0 auto;">{body}{footer}</div>'

    def send(self, recipient: str, subject: str, body_html: str) -> bool:
        if self.dry_run:
            logger.info("[DRY-RUN] Would send mail to %s: %s", recipient, subject)
            return False
        if not self.configured:
            logger.info("SMTP not configured; skipping mail to %s", recipient)
            return False

        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(self._wrap(body_html), "html", "utf-8"))
        try:
            with self._smtp_factory(self.host, self.port) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Mail to %s failed: %s", recipient, exc)
            return False
        logger.info("Mail sent to %s: %s", recipient, subject)
        return True
