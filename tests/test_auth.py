import datetime
import threading

from conftest import (
    bearer,
    create_app,
    make_session_token,
    make_verifier,
    register_merchant,
    run_db,
)
import kairopay.auth.credentials as credentials
from kairopay.auth.credentials import (
    ApiKeyCredential,
    AuthFailure,
    SessionCredential,
    authenticate,
    classify_token,
    extract_bearer_token,
)


def test_classify_token():
    assert isinstance(classify_token("sk" + "a" * 48), ApiKeyCredential)
    assert isinstance(classify_token("eyJhbGciOiJFUzI1NiJ9.x.y"), SessionCredential)


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("Basic abc") is None
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token(None) is None


def test_missing_header_is_unauthorized(client, merchant_app):
    response = client.get(f"/api/apps/{merchant_app['app_id']}/orders")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


def test_api_key_for_own_app(client, merchant_app):
    response = client.get(
        f"/api/apps/{merchant_app['app_id']}/orders", headers=bearer(merchant_app["api_key"])
    )
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_api_key_rejected_for_other_app(client, merchant_app):
    other = create_app(client, name="Other")
    response = client.get(
        f"/api/apps/{other['app_id']}/orders", headers=bearer(merchant_app["api_key"])
    )
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "API key does not belong to this app"


def test_unknown_and_malformed_api_keys(client, merchant_app):
    url = f"/api/apps/{merchant_app['app_id']}/orders"

    response = client.get(url, headers=bearer("sk" + "a" * 48))
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid API key"

    response = client.get(url, headers=bearer("skshort"))
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid API key format"


def test_resolve_api_key_without_expected_app(client, session_factory, merchant_app):
    result = run_db(
        session_factory,
        lambda db: authenticate(db, f"Bearer {merchant_app['api_key']}", make_verifier()),
    )
    assert result.ok
    assert result.context.app_id == merchant_app["app_id"]
    assert result.context.privy_did == "did:privy:alice"


def test_session_token_for_own_app(client, merchant_app):
    token = make_session_token("did:privy:alice")
    response = client.get(f"/api/apps/{merchant_app['app_id']}/orders", headers=bearer(token))
    assert response.status_code == 200


def test_session_token_for_foreign_app(client, merchant_app):
    register_merchant(client, "did:privy:bob")
    token = make_session_token("did:privy:bob")
    response = client.get(f"/api/apps/{merchant_app['app_id']}/orders", headers=bearer(token))
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "App not found for this merchant"


def test_expired_session_token(client, merchant_app):
    token = make_session_token("did:privy:alice", expires_in=datetime.timedelta(minutes=-5))
    response = client.get(f"/api/apps/{merchant_app['app_id']}/orders", headers=bearer(token))
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Session token has expired"


def test_session_token_with_wrong_audience(client, merchant_app):
    token = make_session_token("did:privy:alice", aud="someone-else")
    response = client.get(f"/api/apps/{merchant_app['app_id']}/orders", headers=bearer(token))
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid session token"


def test_session_token_for_unknown_merchant(client, session_factory):
    token = make_session_token("did:privy:nobody")
    result = run_db(session_factory, lambda db: authenticate(db, f"Bearer {token}", make_verifier()))
    assert not result.ok
    assert result.error.reason is AuthFailure.MERCHANT_NOT_FOUND


def test_session_token_defaults_to_first_app(client, session_factory):
    register_merchant(client)
    first = create_app(client, name="First")
    create_app(client, name="Second")
    token = make_session_token("did:privy:alice")

    result = run_db(session_factory, lambda db: authenticate(db, f"Bearer {token}", make_verifier()))
    assert result.ok
    assert result.context.app_id == first["app_id"]


def test_session_token_for_merchant_without_apps(client, session_factory):
    register_merchant(client)
    token = make_session_token("did:privy:alice")
    result = run_db(session_factory, lambda db: authenticate(db, f"Bearer {token}", make_verifier()))
    assert result.error.reason is AuthFailure.APP_NOT_FOUND


def test_api_key_hash_check_runs_off_the_event_loop(client, session_factory, merchant_app, monkeypatch):
    threads = []
    real_verify = credentials.verify_api_key

    def recording_verify(token, hashed):
        threads.append(threading.get_ident())
        return real_verify(token, hashed)

    monkeypatch.setattr(credentials, "verify_api_key", recording_verify)

    async def resolve(db):
        loop_thread = threading.get_ident()
        result = await authenticate(db, f"Bearer {merchant_app['api_key']}", make_verifier())
        return result, loop_thread

    result, loop_thread = run_db(session_factory, resolve)
    assert result.ok
    assert threads
    assert loop_thread not in threads
