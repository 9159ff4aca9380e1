from datetime import datetime, timezone
from decimal import Decimal

import pytest

from application.dtos.payments import minor_to_major
from domain.common.exceptions import DomainValidationException
from domain.order.entity import OrderRecord, OrderPaymentStatus, OrderStatus
from domain.payment import GatewayEventType, PaymentRecord, PaymentStatus, PaymentMethod, RefundStatus
from shared.codes.payment_codes import normalize_payment_method


def _payment(**kwargs) -> PaymentRecord:
    return PaymentRecord(id=1, gateway_order_id="O1", amount=Decimal("1500.00"), **kwargs)


def test_completed_never_regresses_to_attempted():
    payment = _payment()
    assert payment.mark_completed("R1", "upi") is True
    assert payment.mark_attempted("R1", "card") is False
    assert payment.status == PaymentStatus.COMPLETED
    assert payment.payment_method == PaymentMethod.UPI


def test_refunded_is_terminal():
    payment = _payment(status=PaymentStatus.REFUNDED)
    assert payment.mark_completed("R1") is False
    assert payment.mark_failed("R1", reason="late") is False
    assert payment.status == PaymentStatus.REFUNDED


def test_failed_is_terminal():
    payment = _payment()
    assert payment.mark_failed("R0", "card", reason="BAD_REQUEST_ERROR") is True
    assert payment.mark_completed("R1", "upi") is False
    assert payment.mark_attempted("R1", "upi") is False
    assert payment.status == PaymentStatus.FAILED
    assert payment.failure_reason == "BAD_REQUEST_ERROR"
    assert payment.gateway_payment_id == "R0"
    assert payment.paid_at is None


def test_repeated_capture_is_noop():
    first_paid_at = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    payment = _payment()
    assert payment.mark_completed("R1", "upi", paid_at=first_paid_at) is True
    updated_at = payment.updated_at

    assert payment.mark_completed("R2", "card") is False
    assert payment.paid_at == first_paid_at
    assert payment.gateway_payment_id == "R1"
    assert payment.payment_method == PaymentMethod.UPI
    assert payment.updated_at == updated_at


def test_repeated_failure_is_noop():
    payment = _payment()
    payment.mark_failed("R0", reason="first")
    assert payment.mark_failed("R0", reason="second") is False
    assert payment.failure_reason == "first"


def test_mark_completed_uses_given_paid_at():
    paid_at = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    payment = _payment()
    payment.mark_completed("R1", None, paid_at=paid_at)
    assert payment.paid_at == paid_at
    # 未给出方式时保持原值
    assert payment.payment_method == PaymentMethod.OTHER


def test_record_refund_last_write_wins():
    payment = _payment(status=PaymentStatus.COMPLETED)
    payment.record_refund("rfnd_1", Decimal("500.00"))
    payment.record_refund("rfnd_2", Decimal("200.00"))
    assert payment.refund_id == "rfnd_2"
    assert payment.refund_amount == Decimal("200.00")
    assert payment.refund_status == RefundStatus.PENDING


def test_finalize_refund_requires_recorded_refund_id():
    payment = _payment(status=PaymentStatus.COMPLETED)
    with pytest.raises(DomainValidationException):
        payment.finalize_refund("rfnd_1")
    payment.record_refund("rfnd_1", Decimal("500.00"))
    with pytest.raises(DomainValidationException):
        payment.finalize_refund("rfnd_other")


def test_finalize_refund_moves_completed_to_refunded():
    payment = _payment(status=PaymentStatus.COMPLETED)
    payment.record_refund("rfnd_1", Decimal("500.00"))
    assert payment.finalize_refund("rfnd_1") is True
    assert payment.status == PaymentStatus.REFUNDED
    assert payment.refund_status == RefundStatus.PROCESSED
    assert payment.refunded_at is not None


def test_finalize_refund_on_uncaptured_payment_keeps_status():
    payment = _payment(status=PaymentStatus.ATTEMPTED)
    payment.record_refund("rfnd_1", Decimal("1.00"))
    assert payment.finalize_refund("rfnd_1") is False
    assert payment.status == PaymentStatus.ATTEMPTED
    assert payment.refund_status == RefundStatus.PROCESSED


def test_merge_metadata_keeps_existing_keys_and_new_values_win():
    payment = _payment(metadata={"source": "checkout", "webhook_processed_at": "old"})
    payment.merge_metadata(webhook_processed_at="new", razorpay_data={"method": "upi"})
    assert payment.metadata == {
        "source": "checkout",
        "webhook_processed_at": "new",
        "razorpay_data": {"method": "upi"},
    }


def test_invalid_payment_record_rejected():
    with pytest.raises(DomainValidationException):
        PaymentRecord(id=None, gateway_order_id="", amount=Decimal("1"))
    with pytest.raises(DomainValidationException):
        PaymentRecord(id=None, gateway_order_id="O1", amount=Decimal("-1"))


def test_naive_timestamps_are_treated_as_utc():
    payment = _payment(paid_at=datetime(2024, 1, 1, 12, 0, 0))
    assert payment.paid_at.tzinfo == timezone.utc


def test_order_transitions():
    order = OrderRecord(id=1)
    order.mark_paid()
    assert (order.payment_status, order.status) == (OrderPaymentStatus.PAID, OrderStatus.CONFIRMED)
    assert order.paid_at is not None
    order.mark_refunded()
    assert (order.payment_status, order.status) == (OrderPaymentStatus.REFUNDED, OrderStatus.REFUNDED)
    order.mark_payment_failed()
    assert (order.payment_status, order.status) == (OrderPaymentStatus.FAILED, OrderStatus.PAYMENT_FAILED)


@pytest.mark.parametrize(
    "raw,expected",
    [("upi", "upi"), ("UPI", "upi"), ("card", "card"), ("emi", "other"), ("paylater", "other"), (None, None), ("", None)],
)
def test_normalize_payment_method(raw, expected):
    assert normalize_payment_method(raw) == expected


def test_event_type_parse():
    assert GatewayEventType.parse("refund.processed") is GatewayEventType.REFUND_PROCESSED
    assert GatewayEventType.parse("subscription.activated") is None
    assert GatewayEventType.parse(None) is None


def test_minor_to_major():
    assert minor_to_major(150000) == Decimal("1500.00")
    assert minor_to_major(12345) == Decimal("123.45")
    assert minor_to_major(1) == Decimal("0.01")
    assert minor_to_major(None) is None
