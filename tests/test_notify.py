"""
Tests for notifications and SMTP delivery
"""
import smtplib
from unittest.mock import MagicMock, Mock, patch

from sqlalchemy.exc import OperationalError

from app.models.models import Notification
from app.services.mail import MailService
from app.services.notify import NotificationService


class TestNotificationService:

    def test_booking_parties_excludes_sender(self, db, notifications, make_user, make_split_booking):
        alice, bob = make_user(), make_user()
        booking = make_split_booking(alice, bob)

        sent = notifications.notify_booking_parties(
            db, booking, "split_booking_cancelled", "Cancelled", "Session cancelled", sender_id=alice.id, exclude=alice.id
        )

        assert [n.user_id for n in sent] == [bob.id]
        assert db.query(Notification).count() == 1

    def test_emails_mirror_notifications_when_smtp_enabled(self, db, mailer, make_user, make_split_booking):
        mailer.enabled = True
        alice, bob = make_user(), make_user()
        booking = make_split_booking(alice, bob)

        NotificationService(mailer=mailer).notify_booking_parties(
            db, booking, "split_booking_paid", "Session Fully Paid", "Both shares paid"
        )

        assert mailer.send_notification_email.call_count == 2
        kwargs = mailer.send_notification_email.call_args_list[0].kwargs
        assert kwargs["to_email"] == alice.email
        assert kwargs["link"] == f"http://localhost:3000/dashboard/bookings/split/{booking.id}"

    def test_write_failure_is_swallowed(self, mailer):
        db = Mock()
        db.commit.side_effect = OperationalError("INSERT ...", {}, Exception("database is locked"))

        sent = NotificationService(mailer=mailer).notify_account_frozen(db, "user-1", "Frozen")

        assert sent == []
        db.rollback.assert_called_once()


class TestMailService:

    def test_disabled_without_host(self):
        service = MailService()
        service.host = None

        assert service.send_email(["a@example.com"], "Hi", "<p>Hi</p>") == {
            "success": False,
            "error": "SMTP not configured",
        }

    def test_send_notification_email(self):
        service = MailService()
        service.host = "smtp.example.com"
        service.encryption = "none"
        smtp = MagicMock()

        with patch("app.services.mail.smtplib.SMTP", return_value=smtp) as smtp_class:
            result = service.send_notification_email("bob@example.com", "Invite <b>", "Join us", link="https://x.example.com")

        assert result["success"] is True
        smtp_class.assert_called_once_with("smtp.example.com", service.port)
        sendmail = smtp.__enter__.return_value.sendmail
        sendmail.assert_called_once()
        assert "Invite &lt;b&gt;" in sendmail.call_args[0][2]

    def test_smtp_errors_are_reported(self):
        service = MailService()
        service.host = "smtp.example.com"
        service.encryption = "none"

        with patch("app.services.mail.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "busy")):
            result = service.send_email(["bob@example.com"], "Hi", "<p>Hi</p>")

        assert result["success"] is False
        assert result["error"] == "SMTP error occurred"
