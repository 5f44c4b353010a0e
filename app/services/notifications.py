"""
Email notifications.

Every send is best-effort: failures are logged and reported as ``False``,
never raised to the caller. Without an SMTP host configured the message is
logged instead of sent, which keeps approval links usable in development.
"""
import smtplib
from concurrent.futures import ThreadPoolExecutor
from email.message import EmailMessage
from html import escape
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import Settings, get_settings
from ..logging_config import mail_logger


class EmailNotifier:
    """Sends HTML email over SMTP."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.settings.smtp_host:
            mail_logger.info(
                "SMTP not configured, email logged only",
                to=to,
                subject=subject,
                body=html,
            )
            return True

        msg = EmailMessage()
        msg["From"] = self.settings.mail_from
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.mail_timeout,
            ) as server:
                if self.settings.smtp_use_tls:
                    server.starttls()
                if self.settings.smtp_user:
                    server.login(self.settings.smtp_user, self.settings.smtp_password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            mail_logger.error("Failed to send email", error=e, to=to, subject=subject)
            return False

        mail_logger.info("Email sent", to=to, subject=subject)
        return True

    def send_many(self, recipients: Iterable[str], subject: str, html: str) -> Dict[str, bool]:
        """Send the same message to several recipients in parallel."""
        recipients = list(dict.fromkeys(r for r in recipients if r))
        results = self.send_batch([(r, subject, html) for r in recipients])
        return dict(zip(recipients, results))

    def send_batch(self, messages: List[Tuple[str, str, str]]) -> List[bool]:
        """Send individually addressed (to, subject, html) messages in parallel."""
        if not messages:
            return []

        workers = min(self.settings.mail_max_workers, len(messages))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda m: self._send_quietly(*m), messages))

    def _send_quietly(self, to: str, subject: str, html: str) -> bool:
        try:
            return self.send(to, subject, html)
        except Exception as e:
            mail_logger.error("Unexpected error sending email", error=e, to=to)
            return False


_notifier: Optional[EmailNotifier] = None


def get_notifier() -> EmailNotifier:
    """FastAPI dependency returning the process-wide notifier."""
    global _notifier
    if _notifier is None:
        _notifier = EmailNotifier()
    return _notifier


# ============================================================
# MESSAGE TEMPLATES
# ============================================================

def approval_email(approver_name: str, request_title: str, approve_link: str, reject_link: str) -> str:
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>Approval Required</h2>
      <p>Hello {escape(approver_name)},</p>
      <p>You have been requested to approve the following request:</p>
      <p><strong>{escape(request_title)}</strong></p>
      <p>Please review the details and provide your decision.</p>
      <div style="margin: 30px 0; text-align: center;">
        <a href="{approve_link}" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; margin-right: 10px;">Review &amp; Approve</a>
        <a href="{reject_link}" style="background-color: #dc2626; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">Reject</a>
      </div>
      <p style="font-size: 12px; color: #666; margin-top: 30px;">
        If the buttons above don't work, open: {approve_link}
      </p>
    </div>
    """


def supplier_update_email(rfq_id: str, title: str) -> str:
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>RFQ Updated: {escape(rfq_id)}</h2>
      <p>The RFQ <strong>{escape(title)}</strong> has been modified. Please review the changes before submitting or revising your quote.</p>
    </div>
    """


def rfq_published_email(title: str, close_date: Optional[str], notes: str, quote_link: str) -> str:
    closing = f"<p>Closing: {escape(close_date)}</p>" if close_date else ""
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>New RFQ: {escape(title)}</h2>
      {closing}
      <p>{escape(notes or "")}</p>
      <p><a href="{quote_link}">Submit your quote</a></p>
    </div>
    """


def supplier_paused_email(title: str, performed_by: str, reason: Optional[str]) -> str:
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <p>The RFQ <strong>{escape(title)}</strong> has been paused by {escape(performed_by)}.</p>
      <p>Reason: {escape(reason or "Not specified")}.</p>
    </div>
    """


def supplier_resumed_email(title: str, performed_by: str) -> str:
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <p>The RFQ <strong>{escape(title)}</strong> has been resumed by {escape(performed_by)}.</p>
      <p>Please continue with bidding as applicable.</p>
    </div>
    """


def notify_all(notifier: EmailNotifier, recipients: List[str], subject: str, html: str) -> Dict[str, bool]:
    """Fan out a message; returns per-recipient success."""
    results = notifier.send_many(recipients, subject, html)
    failed = [r for r, ok in results.items() if not ok]
    if failed:
        mail_logger.warning("Some notifications failed", failed=failed, total=len(results))
    return results
