import json

import pytest

from digital_house.models.user import User, UserStatus
from digital_house.models.user_profile import PendingProfileUpdate, ReviewStatus, UserProfile
from digital_house.services import profile_review_service, profile_service, storage_service
from digital_house.services.profile_service import mask_email, mask_mobile
from digital_house.utils.errors import NotFound, NotPending


def test_masking_helpers():
    assert mask_mobile("9876543210") == "XXXXXX3210"
    assert mask_mobile("123") == "XXXX"
    assert mask_mobile(None) == "-"
    assert mask_email("gopal@gmail.com") == "go****@gmail.com"
    assert mask_email("ab@gmail.com") == "****@gmail.com"
    assert mask_email("broken") == "-"


def test_get_profile_creates_profile_lazily(client, make_user, auth_headers, db):
    user = make_user(gender="Male")
    assert db.query(UserProfile).filter(UserProfile.user_id == user.id).count() == 0

    response = client.get("/profile/me", headers=auth_headers(user))

    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == user.id
    assert payload["verified"] is True
    assert payload["personal_info"]["masked_mobile"].startswith("XXXXXX")
    assert "@" in payload["personal_info"]["masked_email"]
    assert payload["pending_matrimony"] is None
    assert payload["show_matrimony"] is False
    assert 0 <= payload["completion_percentage"] <= 100
    assert db.query(UserProfile).filter(UserProfile.user_id == user.id).count() == 1

    alias = client.get("/profile", headers=auth_headers(user))
    assert alias.status_code == 200
    assert alias.json()["id"] == user.id


def test_update_profile_applies_fields_without_status_change(client, make_user, auth_headers, db):
    user = make_user()

    response = client.put(
        "/profile/me",
        json={"city": " Erode ", "job_title": "Engineer", "skills": ""},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["personal_info"]["city"] == "Erode"
    assert payload["professional_info"]["job_title"] == "Engineer"
    db.expire_all()
    refreshed = db.get(User, user.id)
    assert refreshed.status == UserStatus.APPROVED.value
    assert refreshed.skills is None


def test_update_profile_rejects_identity_fields(client, make_user, auth_headers):
    user = make_user()

    response = client.put("/profile/me", json={"status": "APPROVED"}, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_immediate_section_merges_allowed_keys(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    client.patch(
        "/profile/me/sections/community",
        json={"kulam": "Other", "nativeVillage": "Erode", "isAdmin": True},
        headers=headers,
    )
    response = client.put("/profile/community", json={"nativeTaluk": "Bhavani"}, headers=headers)

    assert response.status_code == 200
    community = response.json()["sections"]["community"]
    assert community == {"kulam": "Other", "nativeVillage": "Erode", "nativeTaluk": "Bhavani"}


def test_section_rejects_nested_values_and_unknown_section(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    nested = client.patch("/profile/me/sections/personal", json={"hobbies": ["chess"]}, headers=headers)
    assert nested.status_code == 400

    unknown = client.patch("/profile/me/sections/secret", json={"x": 1}, headers=headers)
    assert unknown.status_code == 400


def test_basic_section_edits_user_columns(client, make_user, auth_headers, db):
    user = make_user()
    other = make_user()
    headers = auth_headers(user)

    response = client.patch(
        "/profile/me/sections/basic",
        json={"full_name": "  New Name ", "date_of_birth": "1992-03-04T00:00:00Z", "gender": ""},
        headers=headers,
    )
    assert response.status_code == 200
    basic = response.json()["sections"]["basic"]
    assert basic["full_name"] == "New Name"
    assert basic["date_of_birth"] == "1992-03-04"
    assert basic["gender"] is None

    taken = client.patch("/profile/me/sections/basic", json={"mobile": other.mobile}, headers=headers)
    assert taken.status_code == 400

    empty_name = client.patch("/profile/me/sections/basic", json={"full_name": "  "}, headers=headers)
    assert empty_name.status_code == 400
    db.expire_all()
    assert db.get(User, user.id).full_name == "New Name"


def test_restricted_section_is_staged_not_applied(client, make_user, auth_headers, db):
    user = make_user()
    headers = auth_headers(user)

    response = client.patch(
        "/profile/me/sections/matrimony",
        json={"matrimonyProfileActive": True, "rashi": "Mesha", "unknown": "x"},
        headers=headers,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Changes submitted for admin approval."
    assert payload["sections"]["matrimony"] is None
    assert payload["pending_matrimony"] == {"status": "PENDING", "admin_remarks": None}

    staged = db.query(PendingProfileUpdate).filter(PendingProfileUpdate.user_id == user.id).one()
    assert staged.section == "MATRIMONY"
    assert staged.data == {"matrimonyProfileActive": True, "rashi": "Mesha"}


def test_restricted_edits_coalesce_into_one_pending_row(client, make_user, auth_headers, db):
    user = make_user()
    headers = auth_headers(user)

    client.patch("/profile/me/sections/business", json={"businessName": "Gopal Stores"}, headers=headers)
    client.put("/profile/business", json={"businessType": "Retail", "businessName": "Gopal Traders"}, headers=headers)

    rows = db.query(PendingProfileUpdate).filter(PendingProfileUpdate.user_id == user.id).all()
    assert len(rows) == 1
    assert rows[0].data == {"businessName": "Gopal Traders", "businessType": "Retail"}


def test_approving_staged_update_replaces_live_section(client, make_user, auth_headers, admin_headers, db):
    user = make_user()
    headers = auth_headers(user)
    profile = profile_service.get_or_create_profile(db, user.id)
    profile.matrimony = {"matrimonyProfileActive": True, "rashi": "Old", "dosham": "No"}
    db.commit()

    client.patch("/profile/me/sections/matrimony", json={"rashi": "Mesha"}, headers=headers)
    queue = client.get("/admin/pending-updates", headers=admin_headers).json()["updates"]
    assert len(queue) == 1
    assert queue[0]["data"] == {"rashi": "Mesha"}
    assert queue[0]["current_data"]["rashi"] == "Old"
    assert queue[0]["user"]["email"] == user.email

    response = client.post(
        "/admin/approve-update", json={"updateId": queue[0]["id"], "remarks": "Looks good"}, headers=admin_headers
    )
    assert response.status_code == 200

    live = client.get("/profile/me", headers=headers).json()
    # Full replace: keys absent from the staged data are gone.
    assert live["sections"]["matrimony"] == {"rashi": "Mesha"}
    assert live["pending_matrimony"] == {"status": "APPROVED", "admin_remarks": None}

    again = client.post("/admin/approve-update", json={"updateId": queue[0]["id"]}, headers=admin_headers)
    assert again.status_code == 409
    assert again.json()["message"] == "Update is not pending"
    assert client.get("/admin/pending-updates", headers=admin_headers).json()["updates"] == []


def test_rejecting_staged_update_keeps_live_section(client, make_user, auth_headers, admin_headers, db):
    user = make_user()
    headers = auth_headers(user)

    client.patch("/profile/me/sections/business", json={"businessName": "Gopal Stores"}, headers=headers)
    update_id = db.query(PendingProfileUpdate).one().id

    response = client.post(
        "/admin/reject-update", json={"updateId": update_id, "remarks": "Add address"}, headers=admin_headers
    )
    assert response.status_code == 200

    live = client.get("/profile/me", headers=headers).json()
    assert live["sections"]["business"] is None
    assert live["pending_business"] == {"status": "REJECTED", "admin_remarks": "Add address"}

    # A new edit after rejection opens a fresh pending row.
    client.patch("/profile/me/sections/business", json={"businessAddress": "Main road"}, headers=headers)
    db.expire_all()
    statuses = [row.status for row in db.query(PendingProfileUpdate).order_by(PendingProfileUpdate.id)]
    assert statuses == [ReviewStatus.REJECTED.value, ReviewStatus.PENDING.value]
    fresh = db.query(PendingProfileUpdate).filter(PendingProfileUpdate.status == "PENDING").one()
    assert fresh.data == {"businessAddress": "Main road"}


def test_review_guards(make_user, db):
    with pytest.raises(NotFound):
        profile_review_service.approve_profile_update(db, 999, "admin")

    user = make_user()
    pending = profile_service.stage_restricted_update(db, user.id, "business", {"businessName": "X"})
    rejected = profile_review_service.reject_profile_update(db, pending.id, "admin", "   ")
    assert rejected.admin_remarks == "Rejected by admin"
    assert rejected.reviewed_by == "admin"

    with pytest.raises(NotPending):
        profile_review_service.reject_profile_update(db, pending.id, "admin", "again")


def test_legacy_string_rows_are_read_and_cleaned(client, make_user, auth_headers, db):
    user = make_user()
    profile = profile_service.get_or_create_profile(db, user.id)
    profile.personal = json.dumps({"occupation": "Farmer", "0": "{"})
    db.commit()

    response = client.patch("/profile/me/sections/personal", json={"hobbies": "Chess"}, headers=auth_headers(user))

    assert response.json()["sections"]["personal"] == {"occupation": "Farmer", "hobbies": "Chess"}
    db.expire_all()
    assert db.get(UserProfile, profile.id).personal == {"occupation": "Farmer", "hobbies": "Chess"}


def test_horoscope_upload_url(client, make_user, auth_headers, monkeypatch):
    user = make_user()
    monkeypatch.setattr(storage_service, "get_presigned_put_url", lambda key, content_type: f"https://upload/{key}")
    monkeypatch.setattr(storage_service, "get_cdn_public_url", lambda key: f"https://cdn/{key}")

    response = client.post(
        "/profile/me/horoscope-upload-url",
        json={"fileName": "chart.pdf", "fileType": "application/pdf", "fileSize": 2048},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    assert response.json()["public_url"].startswith(f"https://cdn/digital-house/profile/{user.id}/horoscope/")

    too_big = client.post(
        "/profile/me/horoscope-upload-url",
        json={"fileName": "chart.pdf", "fileType": "application/pdf", "fileSize": 11 * 1024 * 1024},
        headers=auth_headers(user),
    )
    assert too_big.status_code == 400


def test_profile_requires_approved_member(client, make_user, auth_headers):
    pending = make_user(status=UserStatus.PENDING)

    assert client.get("/profile/me").status_code == 401
    assert client.get("/profile/me", headers=auth_headers(pending)).status_code == 403


def test_reject_update_with_blank_remarks_uses_default(client, make_user, auth_headers, admin_headers, db):
    user = make_user()
    client.patch("/profile/me/sections/business", json={"businessName": "Gopal Stores"}, headers=auth_headers(user))
    update_id = db.query(PendingProfileUpdate).one().id

    response = client.post(
        "/admin/reject-update", json={"updateId": update_id, "remarks": "   "}, headers=admin_headers
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(PendingProfileUpdate, update_id).admin_remarks == "Rejected by admin"
