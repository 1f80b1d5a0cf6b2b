from kairopay.notify.webhook import create_event, sign_event
from kairopay.utils.crypto import (
    generate_webhook_signature,
    hash_api_key,
    verify_api_key,
    verify_webhook_signature,
)
from kairopay.utils.ids import generate_api_key


def test_api_key_hash_roundtrip():
    key = generate_api_key()
    hashed = hash_api_key(key)
    assert hashed != key
    assert key not in hashed
    assert verify_api_key(key, hashed)


def test_api_key_hash_is_salted():
    key = generate_api_key()
    assert hash_api_key(key) != hash_api_key(key)


def test_verify_rejects_other_key():
    hashed = hash_api_key(generate_api_key())
    assert not verify_api_key(generate_api_key(), hashed)


def test_verify_rejects_malformed_hash():
    assert not verify_api_key(generate_api_key(), "not-a-hash")
    assert not verify_api_key(generate_api_key(), "")
    assert not verify_api_key("", hash_api_key(generate_api_key()))


def test_webhook_signature_is_deterministic_hex():
    payload = {"event": "order.created", "order_id": "ord_1"}
    first = generate_webhook_signature(payload, "secret")
    assert first == generate_webhook_signature(dict(payload), "secret")
    assert len(first) == 64
    int(first, 16)
    assert first != generate_webhook_signature(payload, "other")


def test_receiver_can_verify_delivered_body():
    event = create_event(
        "order.pending",
        order_id="ord_1",
        tx_hash="0xabc",
        chain="base",
        asset="USDC",
        amount=25,
        merchant_id="m_1",
        app_id="app_1",
    )
    signature = sign_event(event, "secret")
    body = {**event, "signature": signature}

    assert signature.startswith("sha256=")
    assert verify_webhook_signature(body, signature, "secret")
    assert not verify_webhook_signature(body, signature, "wrong")
    assert not verify_webhook_signature({**body, "amount": 26}, signature, "secret")
