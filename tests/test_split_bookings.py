"""
Tests for the split booking workflow: create, respond, pay and cancel
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import stripe

from app.models.models import Notification, SplitBooking
from app.schemas.split_booking import RequestedTalent, SplitBookingCreate
from app.services.split_bookings import SplitBookingService, is_user_in_split_booking, to_naive_utc
from tests.conftest import NOW


@pytest.fixture
def service(db, payments, notifications):
    return SplitBookingService(db, payments, notifications)


@pytest.fixture
def alice(make_user):
    return make_user(name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user(name="Bob")


def create_request(studio, alice, bob, **overrides) -> SplitBookingCreate:
    fields = {
        "studio_id": studio.id,
        "client_a_uid": alice.id,
        "client_b_uid": bob.id,
        "split_ratio": Decimal("0.6"),
        "scheduled_at": NOW + timedelta(days=5),
        "duration_minutes": 120,
        "total_cost": Decimal("150.00"),
    }
    fields.update(overrides)
    return SplitBookingCreate(**fields)


class TestCreateSplitBooking:

    def test_create_computes_shares_and_snapshots_studio(self, service, studio, alice, bob):
        booking = service.create_split_booking(create_request(studio, alice, bob), created_by=alice.id)

        assert booking.status == "pending"
        assert booking.client_a_share == Decimal("90.00")
        assert booking.client_b_share == Decimal("60.00")
        assert booking.client_a_share + booking.client_b_share == booking.total_cost
        assert booking.client_a_payment_status == "pending"
        assert booking.client_b_payment_status == "pending"
        assert booking.studio_name == "Blue Room"
        assert booking.studio_location == "Brooklyn, NY"
        assert booking.session_title == "Split Studio Session"

    def test_co_client_is_invited(self, service, studio, alice, bob, db):
        booking = service.create_split_booking(create_request(studio, alice, bob), created_by=alice.id)

        invite = db.query(Notification).filter(Notification.user_id == bob.id).one()
        assert invite.type == "split_booking_invite"
        assert invite.booking_id == booking.id
        assert invite.sender_id == alice.id
        assert invite.message == "Alice invited you to split a studio session at Blue Room. Your share: $60.00"
        assert db.query(Notification).filter(Notification.user_id == alice.id).count() == 0

    def test_client_b_can_create(self, service, studio, alice, bob, db):
        service.create_split_booking(create_request(studio, alice, bob), created_by=bob.id)

        invite = db.query(Notification).filter(Notification.user_id == alice.id).one()
        assert "Your share: $90.00" in invite.message

    def test_requested_talent_get_pending_status_and_requests(self, service, studio, alice, bob, make_user, db):
        producer = make_user(role="producer")
        engineer = make_user(role="engineer")
        data = create_request(
            studio, alice, bob,
            requested_talent=RequestedTalent(producer_id=producer.id, engineer_id=engineer.id),
        )

        booking = service.create_split_booking(data, created_by=alice.id)

        assert booking.talent_status == {"producer": "pending", "engineer": "pending"}
        requests = db.query(Notification).filter(Notification.type == "talent_request").all()
        assert sorted(n.user_id for n in requests) == sorted([producer.id, engineer.id])

    def test_unknown_studio_uses_placeholders(self, service, studio, alice, bob):
        booking = service.create_split_booking(
            create_request(studio, alice, bob, studio_id="missing-studio"),
            created_by=alice.id
        )

        assert booking.studio_name == "Unknown Studio"
        assert booking.studio_location == "Unknown Location"

    def test_aware_datetimes_are_stored_as_utc(self, service, studio, alice, bob):
        scheduled = datetime(2026, 3, 6, 9, 0, tzinfo=timezone(timedelta(hours=-5)))

        booking = service.create_split_booking(
            create_request(studio, alice, bob, scheduled_at=scheduled),
            created_by=alice.id
        )

        assert booking.scheduled_at == datetime(2026, 3, 6, 14, 0)

    @pytest.mark.parametrize("overrides,message", [
        ({"client_b_uid": ""}, "Studio ID and both client UIDs are required"),
        ({"split_ratio": Decimal("0")}, "Split ratio must be between 0 and 1"),
        ({"split_ratio": Decimal("1")}, "Split ratio must be between 0 and 1"),
        ({"total_cost": Decimal("0")}, "Total cost must be greater than 0"),
    ])
    def test_validation(self, service, studio, alice, bob, overrides, message):
        with pytest.raises(ValueError, match=message):
            service.create_split_booking(create_request(studio, alice, bob, **overrides), created_by=alice.id)

    def test_same_client_twice(self, service, studio, alice):
        with pytest.raises(ValueError, match="same user twice"):
            service.create_split_booking(create_request(studio, alice, alice), created_by=alice.id)

    def test_outsider_cannot_create(self, service, studio, alice, bob, make_user):
        outsider = make_user()

        with pytest.raises(ValueError, match="Only one of the two clients"):
            service.create_split_booking(create_request(studio, alice, bob), created_by=outsider.id)


class TestQueries:

    def test_bookings_for_user_include_talent_roles(self, service, alice, bob, make_user, make_split_booking):
        engineer = make_user(role="engineer")
        outsider = make_user()
        first = make_split_booking(alice, bob, scheduled_at=NOW + timedelta(days=2))
        second = make_split_booking(
            alice, outsider,
            scheduled_at=NOW + timedelta(days=9),
            requested_talent={"artist_id": None, "producer_id": None, "engineer_id": engineer.id},
        )

        assert [b.id for b in service.get_split_bookings_for_user(alice.id)] == [second.id, first.id]
        assert [b.id for b in service.get_split_bookings_for_user(bob.id)] == [first.id]
        assert [b.id for b in service.get_split_bookings_for_user(engineer.id)] == [second.id]

    def test_upcoming_window(self, service, alice, bob, make_split_booking):
        soon = make_split_booking(alice, bob, scheduled_at=NOW + timedelta(days=3))
        make_split_booking(alice, bob, scheduled_at=NOW + timedelta(days=45))
        make_split_booking(alice, bob, scheduled_at=NOW - timedelta(days=1))

        assert [b.id for b in service.get_upcoming_split_bookings(alice.id, now=NOW)] == [soon.id]

    def test_pending_and_studio_queries(self, service, studio, alice, bob, make_split_booking):
        pending = make_split_booking(alice, bob)
        make_split_booking(alice, bob, status="confirmed")

        assert [b.id for b in service.get_pending_split_bookings()] == [pending.id]
        assert len(service.get_split_bookings_for_studio(studio.id)) == 2

    def test_missing_ids_are_rejected(self, service):
        with pytest.raises(ValueError):
            service.get_split_booking_by_id("")
        with pytest.raises(ValueError):
            service.get_split_bookings_for_user("")

    def test_membership(self, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, requested_talent={"artist_id": "artist-1"})

        assert is_user_in_split_booking(booking, alice.id)
        assert is_user_in_split_booking(booking, "artist-1")
        assert not is_user_in_split_booking(booking, "someone-else")

    def test_naive_datetimes_pass_through(self):
        assert to_naive_utc(NOW) is NOW


class TestRespond:

    def test_co_client_accepts(self, service, alice, bob, make_split_booking, db):
        booking = make_split_booking(alice, bob)

        service.respond_to_split_booking(booking, bob.id, accept=True)

        assert booking.status == "confirmed"
        notice = db.query(Notification).filter(Notification.type == "split_booking_response").one()
        assert notice.user_id == alice.id

    def test_co_client_declines(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob)

        service.respond_to_split_booking(booking, bob.id, accept=False)

        assert booking.status == "cancelled"

    def test_creator_cannot_respond(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob)

        with pytest.raises(PermissionError):
            service.respond_to_split_booking(booking, alice.id, accept=True)

    def test_only_pending_bookings(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, status="confirmed")

        with pytest.raises(ValueError, match="confirmed"):
            service.respond_to_split_booking(booking, bob.id, accept=True)

    def test_talent_response(self, service, alice, bob, make_user, make_split_booking):
        artist = make_user(role="artist")
        booking = make_split_booking(
            alice, bob,
            requested_talent={"artist_id": artist.id},
            talent_status={"artist": "pending"},
        )

        service.respond_to_talent_request(booking, artist.id, "artist", accept=True)

        assert booking.talent_status == {"artist": "accepted"}

    def test_talent_must_match_role(self, service, alice, bob, make_user, make_split_booking):
        artist = make_user(role="artist")
        booking = make_split_booking(alice, bob, requested_talent={"artist_id": artist.id})

        with pytest.raises(PermissionError):
            service.respond_to_talent_request(booking, artist.id, "engineer", accept=True)


class TestPayments:

    def test_checkout_for_client_share(self, service, payments, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, status="confirmed")

        session = service.start_client_checkout(booking, bob.id, base_url="https://app.example.com")

        assert session == {
            "session_id": "cs_test_123",
            "url": "https://checkout.stripe.com/c/pay/cs_test_123",
            "amount_cents": 6000,
        }
        kwargs = payments.create_split_booking_checkout.call_args.kwargs
        assert kwargs["amount_cents"] == 6000
        assert kwargs["is_client_a"] is False
        assert kwargs["success_url"] == f"https://app.example.com/dashboard/bookings/split/{booking.id}?payment=success"
        assert booking.stripe_session_ids == {"clientB": "cs_test_123"}

    def test_checkout_requires_confirmation(self, service, payments, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob)

        with pytest.raises(ValueError, match="No payment is due"):
            service.start_client_checkout(booking, alice.id)
        payments.create_split_booking_checkout.assert_not_called()

    def test_checkout_for_outsider(self, service, alice, bob, make_user, make_split_booking):
        booking = make_split_booking(alice, bob, status="confirmed")

        with pytest.raises(PermissionError):
            service.start_client_checkout(booking, make_user().id)

    def test_mark_paid_is_idempotent_and_notifies_both_clients_once(self, service, alice, bob, make_split_booking, db):
        booking = make_split_booking(
            alice, bob,
            status="confirmed",
            client_a_payment_status="paid",
            stripe_session_ids={"clientA": "cs_a", "clientB": "cs_b"},
        )

        service.mark_client_paid(booking.id, "cs_b")
        service.mark_client_paid(booking.id, "cs_b")

        db.refresh(booking)
        assert booking.client_b_payment_status == "paid"
        assert db.query(Notification).filter(Notification.type == "split_booking_paid").count() == 2

    def test_mark_paid_falls_back_to_client_uid(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, status="confirmed")

        result = service.mark_client_paid(booking.id, "cs_unknown", client_uid=alice.id)

        assert result.client_a_payment_status == "paid"
        assert result.client_b_payment_status == "pending"

    def test_mark_paid_unknown_session(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, status="confirmed")

        assert service.mark_client_paid(booking.id, "cs_unknown") is None
        assert service.mark_client_paid("missing", "cs_unknown") is None

    def test_payment_on_cancelled_booking_is_refunded(self, service, payments, alice, bob, make_split_booking, db):
        booking = make_split_booking(
            alice, bob,
            status="cancelled",
            stripe_session_ids={"clientA": "cs_a"},
        )

        service.mark_client_paid(booking.id, "cs_a")
        service.mark_client_paid(booking.id, "cs_a")

        payments.refund_checkout_session.assert_called_once_with(
            "cs_a", reason="Split booking was cancelled before payment completed"
        )
        db.expire_all()
        stored = db.get(SplitBooking, booking.id)
        assert stored.client_a_payment_status == "refunded"
        assert stored.status == "cancelled"
        assert db.query(Notification).filter(Notification.type == "split_booking_paid").count() == 0


class TestCancel:

    def test_cancel_refunds_paid_shares(self, service, payments, alice, bob, make_split_booking):
        booking = make_split_booking(
            alice, bob,
            status="confirmed",
            client_a_payment_status="paid",
            stripe_session_ids={"clientA": "cs_a"},
            scheduled_at=NOW + timedelta(days=5),
        )

        service.cancel_split_booking(booking, bob.id, reason="Schedule clash", now=NOW)

        # 90.00 share, full refund less min(90 * 0.029 + 0.30, 9.00)
        payments.refund_checkout_session.assert_called_once_with(
            "cs_a", amount_cents=8709, reason="Schedule clash"
        )
        assert booking.status == "cancelled"
        assert booking.client_a_payment_status == "refunded"
        assert booking.client_b_payment_status == "pending"

    def test_late_cancel_has_nothing_to_refund(self, service, payments, alice, bob, make_split_booking):
        booking = make_split_booking(
            alice, bob,
            status="confirmed",
            client_a_payment_status="paid",
            stripe_session_ids={"clientA": "cs_a"},
            scheduled_at=NOW + timedelta(hours=3),
        )

        service.cancel_split_booking(booking, alice.id, now=NOW)

        payments.refund_checkout_session.assert_not_called()
        assert booking.status == "cancelled"
        assert booking.client_a_payment_status == "paid"

    def test_retry_after_failed_refund_does_not_refund_twice(self, service, payments, alice, bob, make_split_booking, db):
        booking = make_split_booking(
            alice, bob,
            status="confirmed",
            client_a_payment_status="paid",
            client_b_payment_status="paid",
            stripe_session_ids={"clientA": "cs_a", "clientB": "cs_b"},
            scheduled_at=NOW + timedelta(days=5),
        )
        refunded = {"refund_id": "re_1", "status": "succeeded", "amount_cents": 8709}
        payments.refund_checkout_session.side_effect = [
            refunded,
            stripe.APIConnectionError("Network error"),
        ]

        with pytest.raises(stripe.APIConnectionError):
            service.cancel_split_booking(booking, alice.id, now=NOW)

        db.rollback()
        stored = db.get(SplitBooking, booking.id)
        assert stored.client_a_payment_status == "refunded"
        assert stored.client_b_payment_status == "paid"
        assert stored.status == "confirmed"

        payments.refund_checkout_session.side_effect = None
        payments.refund_checkout_session.return_value = refunded
        service.cancel_split_booking(stored, alice.id, now=NOW)

        sessions = [call.args[0] for call in payments.refund_checkout_session.call_args_list]
        assert sessions == ["cs_a", "cs_b", "cs_b"]
        assert stored.status == "cancelled"
        assert stored.client_b_payment_status == "refunded"

    def test_cannot_cancel_twice(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, status="cancelled")

        with pytest.raises(ValueError):
            service.cancel_split_booking(booking, alice.id, now=NOW)

    def test_talent_cannot_cancel(self, service, alice, bob, make_split_booking):
        booking = make_split_booking(alice, bob, requested_talent={"artist_id": "artist-1"})

        with pytest.raises(PermissionError):
            service.cancel_split_booking(booking, "artist-1", now=NOW)

    def test_ledger_matches_stored_rows(self, alice, bob, make_split_booking, db):
        booking = make_split_booking(alice, bob)
        db.expire_all()

        stored = db.get(SplitBooking, booking.id)

        assert stored.client_a_share + stored.client_b_share == stored.total_cost
