def test_profile_update(client, auth_headers, student):
    headers = auth_headers(student)

    response = client.patch(
        "/api/users/me", json={"first_name": "Carla", "student_id": "24-0001"}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["first_name"] == "Carla"
    assert client.get("/api/auth/me", headers=headers).json()["user"]["student_id"] == "24-0001"


def test_profile_update_rejects_bad_student_id(client, auth_headers, student):
    response = client.patch(
        "/api/users/me", json={"student_id": "240001"}, headers=auth_headers(student)
    )
    assert response.status_code == 400


def test_role_request_approval_flow(client, auth_headers, student, admin):
    student_h = auth_headers(student)
    admin_h = auth_headers(admin)

    response = client.post("/api/users/me/role-request", headers=student_h)
    assert response.json()["requested_role"] == "class-representative"

    requests = client.get("/api/users/role-requests", headers=admin_h).json()
    assert [u["user_id"] for u in requests] == [student.user_id]

    response = client.post(
        f"/api/users/{student.user_id}/role-request/approve", headers=admin_h
    )
    assert response.status_code == 200
    assert response.json()["role"] == "class-representative"

    dashboard = client.get("/api/dashboard", headers=student_h).json()
    assert dashboard["kind"] == "class-representative"


def test_role_request_rejection(client, auth_headers, student, admin):
    client.post("/api/users/me/role-request", headers=auth_headers(student))
    admin_h = auth_headers(admin)

    response = client.post(
        f"/api/users/{student.user_id}/role-request/reject", headers=admin_h
    )
    assert response.json()["role"] == "student"
    assert response.json()["requested_role"] is None

    again = client.post(f"/api/users/{student.user_id}/role-request/approve", headers=admin_h)
    assert again.status_code == 409


def test_deciding_unknown_user(client, auth_headers, admin):
    response = client.post(
        "/api/users/user-missing/role-request/approve", headers=auth_headers(admin)
    )
    assert response.status_code == 404


def test_admin_endpoints_are_admin_only(client, auth_headers, class_rep):
    headers = auth_headers(class_rep)
    assert client.get("/api/users", headers=headers).status_code == 403
    assert client.get("/api/users/role-requests", headers=headers).status_code == 403


def test_admin_lists_users_without_hashes(client, auth_headers, admin, student):
    users = client.get("/api/users", headers=auth_headers(admin)).json()
    assert {u["user_id"] for u in users} == {admin.user_id, student.user_id}
    assert all("password_hash" not in u for u in users)
