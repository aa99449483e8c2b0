"""
Unit tests for the phone verification service.

Covers the NONE -> PENDING -> VERIFIED -> CONSUMED lifecycle, expiry, and
the end-to-end flows from sending a code to creating a profile.
"""

import pytest

from app.core.exceptions import ConfigurationError, DeliveryError, VerificationError
from app.core.verification import PhoneVerificationService, VerificationState
from app.crud import profile as profile_crud
from app.crud.phone_verification import SQLAlchemyVerificationStore
from app.models.phone_verification import PhoneVerification
from app.schemas.profile import ProfileCreateRequest
from app.services.sms_gateway import EmailToSMSGateway
from conftest import RecordingEmailTransport

PHONE = "+14155551234"


class TestSendCode:
    """Test issuing codes"""

    def test_send_code_creates_pending_record(self, service, user, email_transport):
        record = service.send_code(user.id, PHONE)

        assert record.verified is False
        assert record.consumed is False
        assert record.code in email_transport.sent[0]["text_body"]
        assert service.status(user.id, PHONE) == VerificationState.PENDING

    def test_not_configured(self, store, lookup_client, user, db_session):
        gateway = EmailToSMSGateway(lookup_client, RecordingEmailTransport(), "")
        service = PhoneVerificationService(store, gateway)

        with pytest.raises(ConfigurationError) as exc_info:
            service.send_code(user.id, PHONE)

        assert exc_info.value.status_code == 500
        assert db_session.query(PhoneVerification).count() == 0

    def test_failed_delivery_keeps_previous_code(self, store, lookup_client, user):
        transport = RecordingEmailTransport()
        service = PhoneVerificationService(store, EmailToSMSGateway(lookup_client, transport, "sms.example.com"))
        first = service.send_code(user.id, PHONE)
        first_code = first.code

        transport.succeed = False
        with pytest.raises(DeliveryError):
            service.send_code(user.id, PHONE)

        assert store.get(user.id, PHONE).code == first_code
        service.verify_code(user.id, PHONE, first_code)

    def test_each_send_issues_fresh_code(self, service, user, email_transport, monkeypatch):
        codes = iter(["111111", "222222"])
        monkeypatch.setattr("app.core.verification.generate_verification_code", lambda: next(codes))

        service.send_code(user.id, PHONE)
        service.send_code(user.id, PHONE)

        assert "111111" in email_transport.sent[0]["text_body"]
        assert "222222" in email_transport.sent[1]["text_body"]
        with pytest.raises(VerificationError):
            service.verify_code(user.id, PHONE, "111111")
        service.verify_code(user.id, PHONE, "222222")


class TestVerifyCode:
    """Test confirming codes"""

    def test_wrong_code_is_generic_error(self, service, user):
        record = service.send_code(user.id, PHONE)
        wrong = "100000" if record.code != "100000" else "100001"

        with pytest.raises(VerificationError) as exc_info:
            service.verify_code(user.id, PHONE, wrong)

        assert exc_info.value.message == "Invalid or expired verification code"
        assert exc_info.value.status_code == 400

    def test_reused_code_is_generic_error(self, service, user):
        record = service.send_code(user.id, PHONE)
        code = record.code
        service.verify_code(user.id, PHONE, code)

        with pytest.raises(VerificationError) as exc_info:
            service.verify_code(user.id, PHONE, code)

        assert exc_info.value.message == "Invalid or expired verification code"

    def test_status_transitions(self, service, user, clock):
        assert service.status(user.id, PHONE) == VerificationState.NONE

        service.send_code(user.id, PHONE)
        assert service.status(user.id, PHONE) == VerificationState.PENDING

        clock.advance(601)
        assert service.status(user.id, PHONE) == VerificationState.EXPIRED

        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)
        assert service.status(user.id, PHONE) == VerificationState.VERIFIED

        assert service.bind_to_profile(user.id, PHONE) is True
        assert service.status(user.id, PHONE) == VerificationState.CONSUMED


class TestBindToProfile:
    """Test claiming a verified code at profile creation"""

    def test_unverified_phone_is_advisory_by_default(self, service, user):
        service.send_code(user.id, PHONE)

        assert service.bind_to_profile(user.id, PHONE) is False
        assert service.status(user.id, PHONE) == VerificationState.PENDING

    def test_unverified_phone_rejected_when_required(self, store, gateway, user):
        service = PhoneVerificationService(store, gateway, require_verification=True)

        with pytest.raises(VerificationError):
            service.bind_to_profile(user.id, PHONE)

    def test_verified_phone_accepted_when_required(self, store, gateway, user):
        service = PhoneVerificationService(store, gateway, require_verification=True)
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)

        assert service.bind_to_profile(user.id, PHONE) is True

    def test_code_binds_only_once(self, service, user):
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)

        assert service.bind_to_profile(user.id, PHONE) is True
        assert service.bind_to_profile(user.id, PHONE) is False

    def test_other_users_code_does_not_bind(self, service, user, other_user):
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)

        assert service.bind_to_profile(other_user.id, PHONE) is False
        assert service.bind_to_profile(user.id, PHONE) is True

    def test_concurrent_binds_claim_code_once(self, service, store, user, monkeypatch):
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)

        rival = PhoneVerificationService(
            SQLAlchemyVerificationStore(store.db, clock=store.clock),
            service.gateway
        )
        results = {}
        real_consume = store.consume

        def consume_after_rival(user_id, phone_number, commit=True):
            # The rival request claims the code first
            results["rival"] = rival.bind_to_profile(user_id, phone_number)
            return real_consume(user_id, phone_number, commit=commit)

        monkeypatch.setattr(store, "consume", consume_after_rival)
        results["first"] = service.bind_to_profile(user.id, PHONE)

        assert results == {"rival": True, "first": False}
        assert service.status(user.id, PHONE) == VerificationState.CONSUMED

    def test_lost_race_rejected_when_required(self, store, gateway, user, monkeypatch):
        service = PhoneVerificationService(store, gateway, require_verification=True)
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)
        monkeypatch.setattr(store, "consume", lambda user_id, phone_number, commit=True: False)

        with pytest.raises(VerificationError):
            service.bind_to_profile(user.id, PHONE)

    def test_uncommitted_claim_rolls_back(self, service, store, user, db_session):
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)

        assert service.bind_to_profile(user.id, PHONE, commit=False) is True
        db_session.rollback()

        assert service.status(user.id, PHONE) == VerificationState.VERIFIED


class TestEndToEnd:
    """Full flows through generator, gateway, store and profile creation"""

    def test_scenario_mobile_number_verifies(self, service, store, user, clock):
        record = service.send_code(user.id, PHONE)
        assert (record.expires_at - record.created_at).total_seconds() == 600

        clock.advance(300)
        service.verify_code(user.id, PHONE, record.code)

        assert store.is_verified_unconsumed(user.id, PHONE) is True

    def test_scenario_voip_number_rejected(self, service, user, line_types, db_session, email_transport):
        line_types[PHONE] = "nonFixedVoip"

        with pytest.raises(DeliveryError) as exc_info:
            service.send_code(user.id, PHONE)

        assert exc_info.value.message == "VOIP numbers are not allowed; use a mobile number"
        assert db_session.query(PhoneVerification).count() == 0
        assert email_transport.sent == []

    def test_scenario_expired_code_fails(self, service, store, user, clock):
        record = service.send_code(user.id, PHONE)
        code = record.code

        clock.advance(601)
        with pytest.raises(VerificationError) as exc_info:
            service.verify_code(user.id, PHONE, code)

        assert exc_info.value.message == "Invalid or expired verification code"
        assert store.get(user.id, PHONE).verified is False

    def test_scenario_profile_creation_consumes_code(self, service, store, user, db_session, sample_profile_data):
        record = service.send_code(user.id, PHONE)
        service.verify_code(user.id, PHONE, record.code)

        phone_verified = service.bind_to_profile(user.id, PHONE)
        request = ProfileCreateRequest(**sample_profile_data, phoneNumber=PHONE)
        profile = profile_crud.create(db_session, user.id, request, phone_verified=phone_verified)

        assert profile.phone_verified is True
        assert profile.phone_number == PHONE
        assert store.is_verified_unconsumed(user.id, PHONE) is False
