from datetime import datetime, timedelta

from digital_house.models.otp import Otp
from digital_house.models.user import User, UserStatus
from digital_house.services import email_services
from digital_house.services.otp_service import generate_otp, hash_email_otp


def _registration(**overrides):
    payload = {
        "fullName": "Gopal Krishnan",
        "email": "Gopal@Example.com",
        "mobile": "9876543210",
        "location": "Chennai",
        "kulam": "Semba Vattuar",
        "community": "Vettuvar",
        "gender": "Male",
        "dob": "1990-04-12",
    }
    payload.update(overrides)
    return payload


def _request_code(client, outbox, email):
    response = client.post("/auth/login-request", json={"email": email})
    assert response.status_code == 200, response.json()
    return outbox[-1]["otp"]


def test_register_creates_pending_user(client, db):
    response = client.post("/auth/register", json=_registration())

    assert response.status_code == 201
    payload = response.json()
    assert payload["ok"] is True
    assert payload["user"]["status"] == "PENDING"
    assert payload["user"]["email"] == "gopal@example.com"
    assert "admin verification" in payload["message"]

    user = db.query(User).filter(User.email == "gopal@example.com").one()
    assert user.status == UserStatus.PENDING.value
    assert user.dob.isoformat() == "1990-04-12"


def test_register_rejects_duplicate_email_and_mobile(client):
    assert client.post("/auth/register", json=_registration()).status_code == 201

    duplicate_email = client.post("/auth/register", json=_registration(mobile="9000000000"))
    assert duplicate_email.status_code == 400
    assert duplicate_email.json()["ok"] is False

    duplicate_mobile = client.post("/auth/register", json=_registration(email="other@example.com"))
    assert duplicate_mobile.status_code == 400


def test_register_validation_error_shape(client):
    response = client.post("/auth/register", json={"email": "not-an-email"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["ok"] is False
    assert payload["message"] == "Validation error"
    fields = {error["field"] for error in payload["errors"]}
    assert {"email", "fullName", "mobile"} <= fields


def test_login_request_blocks_unknown_pending_and_rejected(client, make_user):
    assert client.post("/auth/login-request", json={"email": "ghost@example.com"}).status_code == 404

    pending = make_user(status=UserStatus.PENDING)
    response = client.post("/auth/login-request", json={"email": pending.email})
    assert response.status_code == 403
    assert "under verification" in response.json()["message"]

    rejected = make_user(status=UserStatus.REJECTED)
    response = client.post("/auth/login-request", json={"email": rejected.email})
    assert response.status_code == 403
    assert "not approved" in response.json()["message"]


def test_login_request_sends_code_and_honours_cooldown(client, make_user, outbox, db):
    user = make_user()

    first = client.post("/auth/login-request", json={"email": user.email.upper()})
    assert first.status_code == 200
    assert first.json()["sent"] is True
    assert len(outbox) == 1
    assert outbox[0]["to"] == user.email
    assert len(outbox[0]["otp"]) == 6

    second = client.post("/auth/login-request", json={"email": user.email})
    assert second.status_code == 200
    assert second.json()["sent"] is False
    assert second.json()["message"].startswith("OTP recently sent")
    assert len(outbox) == 1
    assert db.query(Otp).filter(Otp.user_id == user.id).count() == 1


def test_stored_code_is_hashed(client, make_user, outbox, db):
    user = make_user()
    code = _request_code(client, outbox, user.email)

    row = db.query(Otp).filter(Otp.user_id == user.id).one()
    assert row.otp_hash != code
    assert len(row.otp_hash) == 64


def test_mail_failure_leaves_no_code_and_no_cooldown(client, make_user, outbox, db, monkeypatch):
    user = make_user()
    capture = email_services.send_otp_email

    def _fail(*args, **kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(email_services, "send_otp_email", _fail)
    response = client.post("/auth/login-request", json={"email": user.email})
    assert response.status_code == 503
    assert response.json()["ok"] is False
    assert db.query(Otp).filter(Otp.user_id == user.id).count() == 0

    monkeypatch.setattr(email_services, "send_otp_email", capture)
    retry = client.post("/auth/login-request", json={"email": user.email})
    assert retry.status_code == 200
    assert retry.json()["sent"] is True


def test_verify_otp_issues_token_once(client, make_user, outbox):
    user = make_user()
    code = _request_code(client, outbox, user.email)

    response = client.post("/auth/verify-otp", json={"email": user.email, "otp": code})
    assert response.status_code == 200
    payload = response.json()
    assert payload["user"]["id"] == user.id
    token = payload["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == user.email

    replay = client.post("/auth/verify-otp", json={"email": user.email, "otp": code})
    assert replay.status_code == 400
    assert "already used" in replay.json()["message"]


def test_verify_otp_failure_kinds(client, make_user, outbox, db):
    user = make_user()

    missing = client.post("/auth/verify-otp", json={"email": user.email, "otp": "123456"})
    assert missing.status_code == 400

    code = _request_code(client, outbox, user.email)
    wrong = "000000" if code != "000000" else "111111"
    invalid = client.post("/auth/verify-otp", json={"email": user.email, "otp": wrong})
    assert invalid.status_code == 400
    assert invalid.json()["message"] != missing.json()["message"]

    row = db.query(Otp).filter(Otp.user_id == user.id).one()
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.commit()
    expired = client.post("/auth/verify-otp", json={"email": user.email, "otp": code})
    assert expired.status_code == 400
    assert "expired" in expired.json()["message"].lower()


def test_verify_otp_unknown_email_and_bad_format(client):
    assert client.post("/auth/verify-otp", json={"email": "ghost@example.com", "otp": "123456"}).status_code == 404
    assert client.post("/auth/verify-otp", json={"email": "ghost@example.com", "otp": "12ab"}).status_code == 400


def test_new_code_supersedes_older_one(client, make_user, outbox, db):
    user = make_user()
    old_code = _request_code(client, outbox, user.email)

    # Move the first code outside the cooldown window.
    row = db.query(Otp).filter(Otp.user_id == user.id).one()
    row.created_at = datetime.utcnow() - timedelta(minutes=2)
    db.commit()

    new_code = _request_code(client, outbox, user.email)
    db.expire_all()
    rows = db.query(Otp).filter(Otp.user_id == user.id).order_by(Otp.id).all()
    assert len(rows) == 2
    assert rows[0].is_used is True
    assert rows[1].is_used is False

    if old_code != new_code:
        stale = client.post("/auth/verify-otp", json={"email": user.email, "otp": old_code})
        assert stale.status_code == 400
    fresh = client.post("/auth/verify-otp", json={"email": user.email, "otp": new_code})
    assert fresh.status_code == 200


def test_me_requires_approved_user(client, make_user, auth_headers):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    pending = make_user(status=UserStatus.PENDING)
    response = client.get("/auth/me", headers=auth_headers(pending))
    assert response.status_code == 403
    assert response.json() == {"ok": False, "message": "Account not approved"}


def test_otp_codes_are_six_digits():
    codes = {generate_otp() for _ in range(50)}
    assert all(len(code) == 6 and code.isdigit() and code[0] != "0" for code in codes)


def test_otp_hash_binds_email_case_insensitively():
    assert hash_email_otp("Gopal@Example.com ", "123456") == hash_email_otp("gopal@example.com", "123456")
    assert hash_email_otp("gopal@example.com", "123456") != hash_email_otp("other@example.com", "123456")
    assert hash_email_otp("gopal@example.com", "123456") != hash_email_otp("gopal@example.com", "123457")
