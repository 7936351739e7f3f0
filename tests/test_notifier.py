import smtplib
from unittest.mock import MagicMock

from postgen.output.notifier import Notifier, article_email

from conftest import make_record


def smtp_stub():
    server = MagicMock()
    factory = MagicMock()
    factory.return_value.__enter__.return_value = server
    return factory, server


def configured(site, factory, **kwargs):
    return Notifier(
        site,
        host="smtp.example.com",
        port=2525,
        user="bot@example.com",
        password="secret",
        smtp_factory=factory,
        **kwargs,
    )


class TestArticleEmail:
    def test_subject_and_link(self, site):
        subject, body = article_email(site, make_record("knoten", title="Knoten & Stiche"))

        assert subject == "Neuer Artikel online: Knoten & Stiche"
        assert "Knoten &amp; Stiche" in body
        assert "https://example.github.io/segeln-lernen/posts/knoten/" in body


class TestNotifier:
    def test_sends_over_starttls(self, site):
        factory, server = smtp_stub()

        assert configured(site, factory).send("leser@example.com", "Betreff", "<p>Hallo</p>")

        factory.assert_called_once_with("smtp.example.com", 2525)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "secret")
        msg = server.send_message.call_args.args[0]
        assert msg["To"] == "leser@example.com"
        assert msg["From"] == "bot@example.com"

    def test_unconfigured_skips(self, site, monkeypatch):
        for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD"):
            monkeypatch.delenv(name, raising=False)
        factory, _ = smtp_stub()

        notifier = Notifier(site, smtp_factory=factory)

        assert not notifier.configured
        assert not notifier.send("leser@example.com", "Betreff", "<p>x</p>")
        factory.assert_not_called()

    def test_dry_run_skips(self, site):
        factory, _ = smtp_stub()

        assert not configured(site, factory, dry_run=True).send("leser@example.com", "Betreff", "<p>x</p>")
        factory.assert_not_called()

    def test_smtp_error_returns_false(self, site):
        factory, server = smtp_stub()
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"denied")

        assert not configured(site, factory).send("leser@example.com", "Betreff", "<p>x</p>")
