from conftest import bearer, create_app, create_order, register_merchant, run_db, submit_tx
from kairopay.constants import TransactionStatus
from kairopay.services.transaction_service import mark_transaction_status


def complete(client, app_data, order_id):
    return client.post(
        f"/api/apps/{app_data['app_id']}/orders/{order_id}/complete",
        headers=bearer(app_data["api_key"]),
    )


def test_complete_without_confirmed_transaction(client, merchant_app):
    order_id = create_order(client, merchant_app)["order_id"]
    submit_tx(client, order_id)

    response = complete(client, merchant_app, order_id)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "NO_CONFIRMED_TRANSACTION"


def test_complete_unknown_order(client, merchant_app):
    response = complete(client, merchant_app, "ord_missing")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ORDER_NOT_FOUND"


def test_complete_ignores_failed_transactions(client, session_factory, merchant_app):
    order_id = create_order(client, merchant_app)["order_id"]
    submit_tx(client, order_id, tx_hash="0xbad")
    run_db(session_factory, lambda db: mark_transaction_status(db, "0xbad", TransactionStatus.FAILED))

    assert complete(client, merchant_app, order_id).status_code == 400


def test_checkout_flow_end_to_end(client, session_factory, webhooks):
    register_merchant(client, "did:test:1")
    app_data = create_app(
        client, "did:test:1", name="Shop", webhook_url="https://merchant.test/hook"
    )
    order_id = create_order(client, app_data, amount_usd=25.00)["order_id"]

    assert submit_tx(client, order_id, tx_hash="0xabc", amount=25).status_code == 200
    run_db(session_factory, lambda db: mark_transaction_status(db, "0xabc", TransactionStatus.CONFIRMED))

    response = complete(client, app_data, order_id)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "order_id": order_id,
        "status": "verified",
        "message": "Order marked as complete",
    }

    order = client.get(
        f"/api/apps/{app_data['app_id']}/orders/{order_id}", headers=bearer(app_data["api_key"])
    ).json()["data"]
    assert order["status"] == "verified"
    assert [tx["status"] for tx in order["transactions"]] == ["confirmed"]

    assert [event["event"] for _, event in webhooks.events] == [
        "order.created",
        "order.pending",
        "order.complete",
    ]
    (completed,) = webhooks.of_type("order.complete")
    assert completed["tx_hash"] == "0xabc"
    assert completed["order_id"] == order_id

    # verified is terminal
    again = complete(client, app_data, order_id)
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "INVALID_ORDER_STATUS"
    assert len(webhooks.of_type("order.complete")) == 1
