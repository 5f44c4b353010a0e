"""
Tests for the SMTP email notifier.
"""
import smtplib
from unittest.mock import patch, MagicMock

from app.config import Settings
from app.services.notifications import EmailNotifier, approval_email, notify_all


def smtp_settings(**overrides):
    values = {
        "smtp_host": "smtp.test",
        "smtp_port": 2525,
        "smtp_user": "mailer",
        "smtp_password": "secret",
        "mail_from": "approvals@procurehub.test",
    }
    values.update(overrides)
    return Settings(**values)


class TestEmailNotifier:
    """Sending through SMTP."""

    def test_send_uses_tls_and_login(self):
        notifier = EmailNotifier(smtp_settings())
        with patch("app.services.notifications.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value

            assert notifier.send("alice@x.com", "Approval Required: Laptops", "<p>hi</p>") is True

        smtp.assert_called_once_with("smtp.test", 2525, timeout=10)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        message = server.send_message.call_args[0][0]
        assert message["To"] == "alice@x.com"
        assert message["From"] == "approvals@procurehub.test"
        assert message["Subject"] == "Approval Required: Laptops"

    def test_send_without_credentials_skips_login(self):
        notifier = EmailNotifier(smtp_settings(smtp_user=None, smtp_use_tls=False))
        with patch("app.services.notifications.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            notifier.send("alice@x.com", "s", "<p>hi</p>")

        server.starttls.assert_not_called()
        server.login.assert_not_called()

    def test_smtp_failure_returns_false(self):
        notifier = EmailNotifier(smtp_settings())
        with patch("app.services.notifications.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, b"busy")):
            assert notifier.send("alice@x.com", "s", "<p>hi</p>") is False

    def test_without_host_message_is_logged(self):
        notifier = EmailNotifier(smtp_settings(smtp_host=None))
        with patch("app.services.notifications.smtplib.SMTP") as smtp:
            assert notifier.send("alice@x.com", "s", "<p>hi</p>") is True
        smtp.assert_not_called()

    def test_send_many_dedupes_and_reports(self):
        notifier = EmailNotifier(smtp_settings(smtp_host=None))
        notifier.send = MagicMock(side_effect=lambda to, subject, html: to != "b@x.com")

        results = notifier.send_many(["a@x.com", "b@x.com", "a@x.com", ""], "s", "<p/>")

        assert results == {"a@x.com": True, "b@x.com": False}
        assert notifier.send.call_count == 2

    def test_send_many_survives_exceptions(self):
        notifier = EmailNotifier(smtp_settings(smtp_host=None))
        notifier.send = MagicMock(side_effect=RuntimeError("boom"))

        assert notify_all(notifier, ["a@x.com"], "s", "<p/>") == {"a@x.com": False}

    def test_send_many_empty(self):
        assert EmailNotifier(smtp_settings()).send_many([], "s", "<p/>") == {}


def test_approval_email_escapes_title():
    html = approval_email("Alice", "<script>x</script>", "http://a/ok", "http://a/no")
    assert "&lt;script&gt;" in html
    assert 'href="http://a/ok"' in html
    assert 'href="http://a/no"' in html
