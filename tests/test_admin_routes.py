from visa_portal.models.activity_log import ActivityLog
from visa_portal.models.user import User


def _seed_users(make_user):
    make_user(phone="+919000000001", name="Ravi Kumar", email="ravi@example.com", payment_status="completed")
    make_user(phone="+919000000002", name="Meena Iyer", email="meena@example.com", payment_status="pending")
    make_user(phone="+919000000003", name="Arjun Das", email="arjun@example.com", payment_status="completed")


def test_list_users_paginates(client, make_admin, make_user, auth_header):
    admin = make_admin()
    _seed_users(make_user)

    response = client.get("/api/admin/users?page=1&limit=2", headers=auth_header(admin.id, "admin"))

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["users"]) == 2
    assert data["pagination"] == {
        "page": 1,
        "limit": 2,
        "total_count": 3,
        "total_pages": 2,
        "has_next": True,
        "has_prev": False,
    }


def test_list_users_filters_by_status_and_search(client, make_admin, make_user, auth_header):
    admin = make_admin()
    _seed_users(make_user)
    headers = auth_header(admin.id, "admin")

    completed = client.get("/api/admin/users?payment_status=completed", headers=headers).json()["data"]
    searched = client.get("/api/admin/users?search=meena", headers=headers).json()["data"]

    assert {user["phone"] for user in completed["users"]} == {"+919000000001", "+919000000003"}
    assert [user["name"] for user in searched["users"]] == ["Meena Iyer"]


def test_list_users_rejects_oversized_limit(client, make_admin, auth_header):
    admin = make_admin()

    response = client.get("/api/admin/users?limit=500", headers=auth_header(admin.id, "admin"))

    assert response.status_code == 400


def test_admin_upload_replaces_existing_slip(client, make_admin, make_user, auth_header, db_session):
    admin = make_admin()
    user = make_user(payment_status="completed", appointment_slip_path="appointment-slips/previous.pdf")

    response = client.post(
        "/api/admin/upload-slip",
        data={"userId": str(user.id), "notes": "issued by clinic"},
        files={"appointmentSlip": ("slip.pdf", b"%PDF-1.4 admin", "application/pdf")},
        headers=auth_header(admin.id, "admin"),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["replaced_existing"] is True
    assert data["file"]["filename"].startswith(f"admin_upload_{user.id}_")

    db_session.expire_all()
    assert db_session.get(User, user.id).appointment_slip_path == data["file"]["path"]
    log = db_session.query(ActivityLog).one()
    assert log.admin_id == admin.id
    assert log.details["replaced_existing"] is True


def test_admin_upload_still_requires_payment(client, make_admin, make_user, auth_header):
    admin = make_admin()
    user = make_user(payment_status="pending")

    response = client.post(
        "/api/admin/upload-slip",
        data={"userId": str(user.id)},
        files={"appointmentSlip": ("slip.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_header(admin.id, "admin"),
    )

    assert response.status_code == 400
    assert "Payment must be completed" in response.json()["error"]


def test_admin_upload_for_unknown_user(client, make_admin, auth_header):
    admin = make_admin()

    response = client.post(
        "/api/admin/upload-slip",
        data={"userId": "4040"},
        files={"appointmentSlip": ("slip.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_header(admin.id, "admin"),
    )

    assert response.status_code == 404
