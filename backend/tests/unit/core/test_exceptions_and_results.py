from fastapi import HTTPException

from picadero.core.enums import RejectionReason
from picadero.core.exceptions import (
    BookingRejection,
    NotFoundException,
    ValidationException,
    rejection_status,
)
from picadero.schemas.lesson import CreditBalance
from picadero.schemas.results import OperationResult


class TestBookingRejection:
    def test_reason_is_stored_as_plain_code(self):
        exc = BookingRejection(RejectionReason.TEACHER_UNAVAILABLE, "busy")
        assert exc.reason == "TEACHER_UNAVAILABLE"
        assert exc.code == "TEACHER_UNAVAILABLE"
        assert isinstance(exc, ValidationException)

    def test_http_translation_uses_reason_status(self):
        http = BookingRejection(RejectionReason.LESSON_NOT_FOUND, "missing").to_http_exception()
        assert isinstance(http, HTTPException)
        assert http.status_code == 404
        assert http.detail["code"] == "LESSON_NOT_FOUND"

    def test_status_mapping(self):
        assert rejection_status(RejectionReason.USER_NOT_FOUND) == 404
        assert rejection_status("USER_BLOCKED") == 403
        assert rejection_status(RejectionReason.STORE_ERROR) == 500
        assert rejection_status(RejectionReason.INVALID_TIME_RANGE) == 400
        assert rejection_status(RejectionReason.PAYMENT_PENDING) == 422

    def test_not_found_exception(self):
        assert NotFoundException("x").to_http_exception().status_code == 404


class TestOperationResult:
    def test_fail_normalizes_enum_reason(self):
        result = OperationResult.fail(RejectionReason.NO_ACTIVE_PLAN, "No active plan")
        assert result.success is False
        assert result.reason == "NO_ACTIVE_PLAN"
        assert result.to_response() == {
            "success": False,
            "reason": "NO_ACTIVE_PLAN",
            "message": "No active plan",
            "details": {},
        }

    def test_from_exception_keeps_details(self):
        exc = BookingRejection(
            RejectionReason.PAYMENT_PENDING, "pending", details={"owed_month": 3, "owed_year": 2024}
        )
        result = OperationResult.from_exception(exc)
        assert result.reason == "PAYMENT_PENDING"
        assert result.details == {"owed_month": 3, "owed_year": 2024}

    def test_ok_response_dumps_models(self):
        result = OperationResult.ok({"balance": CreditBalance(included=8, used=2, available=6)})
        assert result.to_response() == {
            "success": True,
            "data": {"balance": {"included": 8, "used": 2, "available": 6}},
        }
