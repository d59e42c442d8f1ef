"""
Meeting notifications fanned out to every member.

Delivery is best effort: a failure for one member is logged and recorded,
and the remaining members are still notified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Protocol, Sequence

from ..domain.exceptions import NotificationError
from ..domain.models import Interval, Member

logger = logging.getLogger(__name__)

DATE_FORMAT = "dddd, MMMM D, YYYY"
TIME_FORMAT = "h:mm A"
SIGNATURE = "Regards,\nSquadSync"


class TemplateType(str, Enum):
    MEETING_INVITATION = "meeting_invitation"
    SCHEDULE_UPDATE = "schedule_update"
    REMINDER = "reminder"


class MailTransport(Protocol):
    """Protocol describing the delivery backend needed by the service."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        """Deliver one message or raise."""


@dataclass
class DeliveryReport:
    delivered: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def all_delivered(self) -> bool:
        return not self.failed


class NotificationService:
    """Formats meeting messages and hands them to a transport."""

    def __init__(self, transport: MailTransport):
        self._transport = transport

    def render(
        self,
        member: Member,
        interval: Interval,
        subject: str,
        message: str = "",
        template: TemplateType = TemplateType.MEETING_INVITATION
    ) -> str:
        """Build the message body for one member."""
        day = interval.start.format(DATE_FORMAT)
        start = interval.start.format(TIME_FORMAT)
        end = interval.end.format(TIME_FORMAT)

        lines = [f"Dear {member.name},", ""]

        if template is TemplateType.SCHEDULE_UPDATE:
            lines += [
                "The schedule for your study group has been updated.",
                "",
                f"Subject: {subject}",
                f"New Meeting Time: {day} at {start} - {end}",
                "",
            ]
        else:
            intro = (
                "This is a reminder for your upcoming study group meeting."
                if template is TemplateType.REMINDER
                else "You are invited to attend a study group meeting."
            )
            lines += [
                intro,
                "",
                f"Subject: {subject}",
                f"Date: {day}",
                f"Time: {start} - {end}",
                "",
            ]

        if message:
            lines += [f"Message: {message}", ""]

        if template is TemplateType.MEETING_INVITATION:
            lines += ["Please confirm your attendance.", ""]
        elif template is TemplateType.REMINDER:
            lines += ["We're looking forward to seeing you!", ""]

        lines.append(SIGNATURE)
        return "\n".join(lines)

    def send_invitations(
        self,
        members: Sequence[Member],
        interval: Interval,
        subject: str,
        message: str = "",
        template: TemplateType = TemplateType.MEETING_INVITATION
    ) -> DeliveryReport:
        """Send one message per member, continuing past individual failures."""
        report = DeliveryReport()

        for member in members:
            body = self.render(member, interval, subject, message, template)
            try:
                self._transport.send(member.email, subject, body)
            except (NotificationError, OSError) as exc:
                logger.warning("Could not notify %s: %s", member.email, exc)
                report.failed[member.email] = str(exc)
                continue
            except Exception as exc:
                # Remaining members still get their message
                logger.exception("Unexpected error notifying %s", member.email)
                report.failed[member.email] = str(exc) or type(exc).__name__
                continue

            report.delivered.append(member.email)

        logger.info(
            "Notified %d of %d member(s) about %s",
            len(report.delivered), len(members), interval
        )
        return report
