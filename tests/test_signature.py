import hashlib
import hmac

import pytest

from factories import WEBHOOK_SECRET, notification, payment_entity, sign
from infrastructure.external.payments import RazorpayWebhookVerifier, get_webhook_verifier
from infrastructure.external.payments.exceptions import PaymentSignatureError


def test_signature_matches_hmac_sha256_hex(verifier):
    body = notification("payment.captured", payment=payment_entity())
    expected = hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
    assert verifier.signature_for(body) == expected
    assert verifier.verify(body, expected) is True


def test_any_byte_change_fails_verification(verifier):
    body = notification("payment.captured", payment=payment_entity())
    signature = sign(body)
    tampered = body.replace(b"150000", b"150001")
    assert tampered != body
    assert verifier.verify(tampered, signature) is False
    # 签名本身被改动一位
    flipped = ("0" if signature[0] != "0" else "1") + signature[1:]
    assert verifier.verify(body, flipped) is False


def test_signature_from_other_secret_is_rejected(verifier):
    body = b'{"event":"payment.captured","payload":{}}'
    assert verifier.verify(body, sign(body, secret="another_secret")) is False


@pytest.mark.parametrize(
    "body,signature",
    [
        (b"", "abc"),
        (b"{}", ""),
        (b"{}", None),
    ],
)
def test_missing_inputs_fail_verification(verifier, body, signature):
    assert verifier.verify(body, signature) is False


@pytest.mark.parametrize("signature", ["é" * 64, "\xe9abc", "签名"])
def test_non_ascii_signature_fails_verification(verifier, signature):
    assert verifier.verify(b'{"event":"payment.captured"}', signature) is False


def test_padded_signature_fails_verification(verifier):
    body = notification("payment.captured", payment=payment_entity())
    assert verifier.verify(body, "  " + sign(body) + " \t") is False
    assert verifier.verify(body, sign(body) + "\n") is False


def test_uppercase_hex_fails_verification(verifier):
    body = b'{"event":"order.paid"}'
    assert verifier.verify(body, sign(body).upper()) is False


@pytest.mark.parametrize("secret", ["", None])
def test_verify_without_secret_raises(secret):
    with pytest.raises(PaymentSignatureError):
        RazorpayWebhookVerifier(secret).verify(b"{}", "abc")


def test_signature_for_without_secret_raises():
    with pytest.raises(PaymentSignatureError) as exc_info:
        RazorpayWebhookVerifier(None).signature_for(b"{}")
    assert exc_info.value.details == {"provider": "razorpay"}


def test_factory_uses_explicit_secret():
    gw = get_webhook_verifier("whsec_other")
    assert isinstance(gw, RazorpayWebhookVerifier)
    body = b'{"event":"order.paid"}'
    assert gw.verify(body, sign(body, secret="whsec_other")) is True
