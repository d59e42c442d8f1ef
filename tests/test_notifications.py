"""
Tests for meeting notifications.
"""

from typing import List, Tuple

import pendulum
from rich.console import Console

from squadsync.adapters.console_mailer import ConsoleMailer
from squadsync.domain.exceptions import NotificationError
from squadsync.domain.models import Interval, Member
from squadsync.services.notifications import NotificationService, TemplateType

MEETING = Interval(
    start=pendulum.datetime(2025, 1, 1, 14, 0, tz="UTC"),
    end=pendulum.datetime(2025, 1, 1, 15, 30, tz="UTC"),
)


class FlakyTransport:
    """Transport stub that fails for selected recipients."""

    def __init__(self, failing: Tuple[str, ...] = ()):
        self.failing = failing
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        if recipient in self.failing:
            raise NotificationError(f"mailbox unavailable: {recipient}")
        self.sent.append((recipient, subject, body))


def _members() -> List[Member]:
    return [
        Member("alice", "alice@example.com"),
        Member("bob", "bob@example.com"),
        Member("carol", "carol@example.com"),
    ]


class TestRender:
    """Message formatting."""

    def test_invitation(self):
        body = NotificationService(FlakyTransport()).render(
            Member("alice", "alice@example.com"), MEETING, "Graphs", "Bring notes"
        )

        assert body.startswith("Dear alice,")
        assert "You are invited to attend a study group meeting." in body
        assert "Subject: Graphs" in body
        assert "Date: Wednesday, January 1, 2025" in body
        assert "Time: 2:00 PM - 3:30 PM" in body
        assert "Message: Bring notes" in body
        assert "Please confirm your attendance." in body

    def test_update_and_reminder(self):
        service = NotificationService(FlakyTransport())
        member = Member("alice", "alice@example.com")

        update = service.render(member, MEETING, "Graphs", template=TemplateType.SCHEDULE_UPDATE)
        reminder = service.render(member, MEETING, "Graphs", template=TemplateType.REMINDER)

        assert "New Meeting Time: Wednesday, January 1, 2025 at 2:00 PM - 3:30 PM" in update
        assert "Message:" not in update
        assert "This is a reminder" in reminder
        assert "We're looking forward to seeing you!" in reminder


class TestSendInvitations:
    """Best-effort fan-out."""

    def test_one_message_per_member(self):
        transport = FlakyTransport()

        report = NotificationService(transport).send_invitations(_members(), MEETING, "Graphs")

        assert report.all_delivered
        assert [recipient for recipient, _, _ in transport.sent] == [
            "alice@example.com", "bob@example.com", "carol@example.com"
        ]

    def test_failure_does_not_block_others(self):
        transport = FlakyTransport(failing=("bob@example.com",))

        report = NotificationService(transport).send_invitations(_members(), MEETING, "Graphs")

        assert report.delivered == ["alice@example.com", "carol@example.com"]
        assert list(report.failed) == ["bob@example.com"]
        assert not report.all_delivered

    def test_unexpected_transport_error_does_not_block_others(self):
        class BrokenTransport(FlakyTransport):
            def send(self, recipient: str, subject: str, body: str) -> None:
                if recipient == "alice@example.com":
                    raise RuntimeError("socket closed")
                super().send(recipient, subject, body)

        transport = BrokenTransport()

        report = NotificationService(transport).send_invitations(_members(), MEETING, "Graphs")

        assert report.delivered == ["bob@example.com", "carol@example.com"]
        assert report.failed == {"alice@example.com": "socket closed"}


def test_console_mailer_records_outbox():
    mailer = ConsoleMailer(Console(record=True, width=100))

    NotificationService(mailer).send_invitations(_members()[:1], MEETING, "Graphs")

    assert mailer.outbox[0][0] == "alice@example.com"
    assert mailer.outbox[0][1] == "Graphs"
