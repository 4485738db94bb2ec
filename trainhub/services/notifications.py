from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from datetime import date
from email.message import EmailMessage
from typing import Iterable

from trainhub.config import Settings
from trainhub.models import DaySession

log = logging.getLogger(__name__)

ABSENCE_SUBJECT = "Absence Notification"


def absence_body(day: date, day_session: DaySession) -> str:
    weekday = day.strftime("%A")
    return (
        f"You have been marked absent for {day.isoformat()}, {weekday}, "
        f"{DaySession(day_session).value} session. Please meet the HOD with your "
        "parents to get in for the next session."
    )


def batched(items: list[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


@dataclass
class DispatchReport:
    recipients: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "recipients": self.recipients,
            "batchesSent": self.batches_sent,
            "batchesFailed": self.batches_failed,
        }


class Mailer:
    """Sends templated mail over SMTP, one BCC message per recipient batch."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.batch_size = max(1, settings.MAIL_BATCH_SIZE)

    def build_message(self, recipients: list[str], subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.settings.MAIL_DEFAULT_SENDER
        message["To"] = self.settings.MAIL_DEFAULT_SENDER
        message["Bcc"] = ", ".join(recipients)
        message.set_content(body)
        return message

    def deliver(self, message: EmailMessage) -> None:
        if not self.settings.MAIL_ENABLED:
            log.info("Mail disabled; would send %r to %s", message["Subject"], message["Bcc"])
            return
        s = self.settings
        with smtplib.SMTP(s.MAIL_SERVER, s.MAIL_PORT, timeout=30) as smtp:
            if s.MAIL_USE_TLS:
                smtp.starttls()
            if s.MAIL_USERNAME:
                smtp.login(s.MAIL_USERNAME, s.MAIL_PASSWORD or "")
            smtp.send_message(message)

    def send_bulk(self, recipients: Iterable[str], subject: str, body: str) -> DispatchReport:
        """A failed batch is logged and counted; later batches still go out."""
        unique = list(dict.fromkeys(r.strip() for r in recipients if r and r.strip()))
        report = DispatchReport(recipients=len(unique))
        for batch in batched(unique, self.batch_size):
            try:
                self.deliver(self.build_message(batch, subject, body))
                report.batches_sent += 1
            except (smtplib.SMTPException, OSError) as e:
                report.batches_failed += 1
                report.errors.append(str(e))
                log.exception("Mail batch of %d recipients failed", len(batch))
        return report

    def send_absence_notifications(
        self, emails: Iterable[str], day: date, day_session: DaySession
    ) -> DispatchReport:
        report = self.send_bulk(emails, ABSENCE_SUBJECT, absence_body(day, day_session))
        if report.recipients:
            log.info(
                "Absence mail for %s %s: %d recipients, %d batches sent, %d failed",
                day, DaySession(day_session).value, report.recipients,
                report.batches_sent, report.batches_failed,
            )
        return report
