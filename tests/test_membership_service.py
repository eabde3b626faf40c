"""
Membership status and membership-year rules

Tests for:
- active -> grace -> expired transitions, unpaid dominates
- membership year boundaries and renewal expiry
- summary of the current membership
"""

from datetime import date

from services.credentials import CredentialStatus, credential_status, summarize_credentials
from services.membership_service import (
    MembershipStatus,
    MembershipYear,
    calculate_membership_status,
    calculate_membership_year,
    can_renew,
    default_membership_expiry,
    renewal_expiry,
    summarize,
)


def make_membership(**overrides):
    membership = {
        "_id": "m-1",
        "user_id": "member-1",
        "start_date": "2024-04-01",
        "expiry_date": "2025-03-31",
        "grace_period_days": 30,
        "invoice_id": "inv-1",
    }
    membership.update(overrides)
    return membership


# ============================================================
# STATUS
# ============================================================

class TestMembershipStatus:

    def test_active_until_expiry_inclusive(self):
        assert calculate_membership_status(make_membership(), date(2025, 3, 31), "paid") == MembershipStatus.ACTIVE

    def test_grace_after_expiry(self):
        assert calculate_membership_status(make_membership(), date(2025, 4, 1), "paid") == MembershipStatus.GRACE
        assert calculate_membership_status(make_membership(), date(2025, 4, 30), "paid") == MembershipStatus.GRACE

    def test_expired_after_grace(self):
        assert calculate_membership_status(make_membership(), date(2025, 5, 1), "paid") == MembershipStatus.EXPIRED

    def test_unpaid_dominates(self):
        assert calculate_membership_status(make_membership(), date(2024, 6, 1), "pending") == MembershipStatus.UNPAID
        assert calculate_membership_status(make_membership(), date(2026, 1, 1), "overdue") == MembershipStatus.UNPAID

    def test_legacy_fee_flag_without_invoice(self):
        membership = make_membership(invoice_id=None, fee_paid=True)
        assert calculate_membership_status(membership, date(2024, 6, 1), None) == MembershipStatus.ACTIVE
        membership = make_membership(invoice_id=None)
        assert calculate_membership_status(membership, date(2024, 6, 1), None) == MembershipStatus.UNPAID

    def test_no_grace_period(self):
        membership = make_membership(grace_period_days=0)
        assert calculate_membership_status(membership, date(2025, 4, 1), "paid") == MembershipStatus.EXPIRED

    def test_can_renew(self):
        assert can_renew(MembershipStatus.GRACE)
        assert can_renew(MembershipStatus.UNPAID)
        assert not can_renew(MembershipStatus.EXPIRED)


# ============================================================
# MEMBERSHIP YEAR
# ============================================================

class TestMembershipYear:

    def test_year_containing_date_after_start(self):
        assert calculate_membership_year(MembershipYear(), date(2024, 6, 15)) == (date(2024, 4, 1), date(2025, 3, 31))

    def test_year_containing_date_before_start(self):
        assert calculate_membership_year(MembershipYear(), date(2025, 2, 1)) == (date(2024, 4, 1), date(2025, 3, 31))

    def test_calendar_year_config(self):
        config = MembershipYear(start_month=1, start_day=1, end_month=12, end_day=31)
        assert calculate_membership_year(config, date(2025, 7, 1)) == (date(2025, 1, 1), date(2025, 12, 31))

    def test_default_expiry(self):
        assert default_membership_expiry(MembershipYear(), date(2025, 4, 1)) == date(2026, 3, 31)

    def test_renewal_expiry_is_following_year_end(self):
        assert renewal_expiry(MembershipYear(), date(2025, 3, 31)) == date(2026, 3, 31)

    def test_end_day_clamped_to_month(self):
        config = MembershipYear(start_month=3, start_day=1, end_month=2, end_day=29)
        assert renewal_expiry(config, date(2024, 2, 29)) == date(2025, 2, 28)


# ============================================================
# SUMMARY
# ============================================================

class TestSummary:

    def test_current_is_newest_renewable(self):
        memberships = [
            make_membership(_id="m-2", start_date="2025-04-01", expiry_date="2026-03-31", invoice_id="inv-2"),
            make_membership(),
        ]
        summary = summarize(memberships, {"inv-1": "paid", "inv-2": "paid"}, date(2025, 5, 1))
        assert summary["current_membership"]["_id"] == "m-2"
        assert summary["status"] == "active"
        assert summary["days_until_expiry"] == 334
        assert summary["grace_period_remaining"] is None
        assert summary["can_renew"] is True
        assert len(summary["membership_history"]) == 2

    def test_grace_remaining(self):
        summary = summarize([make_membership()], {"inv-1": "paid"}, date(2025, 4, 10))
        assert summary["status"] == "grace"
        assert summary["grace_period_remaining"] == 20
        assert summary["days_until_expiry"] is None

    def test_no_memberships(self):
        summary = summarize([], {}, date(2025, 4, 10))
        assert summary["status"] == "none"
        assert summary["current_membership"] is None
        assert summary["can_renew"] is False

    def test_only_expired(self):
        summary = summarize([make_membership()], {"inv-1": "paid"}, date(2026, 1, 1))
        assert summary["status"] == "none"


# ============================================================
# PILOT CREDENTIALS
# ============================================================

class TestCredentials:

    def test_statuses(self):
        today = date(2025, 6, 1)
        assert credential_status(None, today) == CredentialStatus.UNKNOWN
        assert credential_status(date(2025, 5, 31), today) == CredentialStatus.EXPIRED
        assert credential_status(date(2025, 6, 1), today) == CredentialStatus.EXPIRING
        assert credential_status(date(2025, 6, 30), today) == CredentialStatus.EXPIRING
        assert credential_status(date(2025, 7, 1), today) == CredentialStatus.VALID

    def test_summary_covers_tracked_fields(self):
        member = {"medical_certificate_expiry": "2025-06-10", "BFR_due": "2024-12-01T11:00:00Z"}
        summary = {c["field"]: c for c in summarize_credentials(member, date(2025, 6, 1))}
        assert summary["medical_certificate_expiry"]["status"] == "expiring"
        assert summary["medical_certificate_expiry"]["days_remaining"] == 9
        assert summary["BFR_due"]["status"] == "expired"
        assert summary["BFR_due"]["expiry_date"] == "2024-12-01"
        assert summary["pilot_license_expiry"]["status"] == "unknown"
