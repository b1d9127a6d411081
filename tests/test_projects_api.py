from app.models import Project, Task, Account


def test_admin_crud_project(client, admin_headers, account, vendor):
    created = client.post(
        "/api/projects",
        json={"name": "CRM rollout", "account_id": str(account.id), "vendor_id": str(vendor.id)},
        headers=admin_headers,
    )
    assert created.status_code == 201
    project_id = created.json()["id"]
    assert created.json()["status"] == "active"

    updated = client.patch(f"/api/projects/{project_id}", json={"status": "on_hold"}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "on_hold"

    assert client.get(f"/api/projects?status=on_hold", headers=admin_headers).json()[0]["id"] == project_id
    assert client.get(f"/api/projects?status=active", headers=admin_headers).json() == []

    assert client.delete(f"/api/projects/{project_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/projects/{project_id}", headers=admin_headers).status_code == 404


def test_project_rejects_foreign_account(client, db, admin_headers, other_org):
    foreign = Account(org_id=other_org.id, name="Not ours")
    db.add(foreign)
    db.commit()
    response = client.post("/api/projects", json={"name": "x", "account_id": str(foreign.id)}, headers=admin_headers)
    assert response.status_code == 404


def test_project_rejects_inverted_dates(client, admin_headers):
    response = client.post(
        "/api/projects",
        json={"name": "x", "start_date": "2026-05-01T00:00:00", "end_date": "2026-04-01T00:00:00"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_projects_are_scoped_by_membership(client, db, org, project, vendor_user, client_user, auth_headers, admin_headers):
    unrelated = Project(org_id=org.id, name="Internal tooling")
    db.add(unrelated)
    db.commit()

    admin_ids = {p["id"] for p in client.get("/api/projects", headers=admin_headers).json()}
    client_ids = {p["id"] for p in client.get("/api/projects", headers=auth_headers(client_user)).json()}
    vendor_ids = {p["id"] for p in client.get("/api/projects", headers=auth_headers(vendor_user)).json()}

    assert admin_ids == {str(project.id), str(unrelated.id)}
    assert client_ids == {str(project.id)}
    assert vendor_ids == {str(project.id)}
    assert client.get(f"/api/projects/{unrelated.id}", headers=auth_headers(client_user)).status_code == 404


def test_clients_and_vendors_cannot_create_projects(client, client_user, vendor_user, auth_headers):
    for user in (client_user, vendor_user):
        response = client.post("/api/projects", json={"name": "Nope"}, headers=auth_headers(user))
        assert response.status_code == 403


def test_rows_of_other_org_are_not_found(client, project, make_member, other_org, auth_headers):
    outsider = make_member(other_org, "admin", "internal", "root@other.test")
    headers = auth_headers(outsider)
    assert client.get(f"/api/projects/{project.id}", headers=headers).status_code == 404
    assert client.patch(f"/api/projects/{project.id}", json={"name": "hijack"}, headers=headers).status_code == 404
    assert client.get(f"/api/accounts/{project.account_id}", headers=headers).status_code == 404
    assert client.get(f"/api/vendors/{project.vendor_id}", headers=headers).status_code == 404
    assert client.get("/api/projects", headers=headers).json() == []


def test_task_filters(client, db, org, project, admin, admin_headers):
    client.post("/api/tasks", json={"title": "Kickoff", "project_id": str(project.id), "assignee_id": str(admin.id)}, headers=admin_headers)
    client.post("/api/tasks", json={"title": "Invoice", "status": "completed", "priority": "high"}, headers=admin_headers)

    by_project = client.get(f"/api/tasks?project_id={project.id}", headers=admin_headers).json()
    assert [t["title"] for t in by_project] == ["Kickoff"]
    by_assignee = client.get(f"/api/tasks?assignee_id={admin.id}", headers=admin_headers).json()
    assert [t["title"] for t in by_assignee] == ["Kickoff"]
    completed = client.get("/api/tasks?status=completed", headers=admin_headers).json()
    assert [t["title"] for t in completed] == ["Invoice"]
    assert completed[0]["priority"] == "high"


def test_task_assignee_must_belong_to_org(client, project, admin_headers, make_member, other_org):
    outsider = make_member(other_org, "admin", "internal", "x@other.test")
    response = client.post(
        "/api/tasks",
        json={"title": "Secret", "project_id": str(project.id), "assignee_id": str(outsider.id)},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_vendor_updates_task_on_own_project(client, db, org, project, vendor_user, auth_headers):
    task = Task(org_id=org.id, project_id=project.id, title="Design mockups")
    hidden = Task(org_id=org.id, title="Pricing review")
    db.add_all([task, hidden])
    db.commit()
    headers = auth_headers(vendor_user)

    visible = [t["title"] for t in client.get("/api/tasks", headers=headers).json()]
    assert visible == ["Design mockups"]

    response = client.patch(f"/api/tasks/{task.id}", json={"status": "in_progress"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"

    assert client.patch(f"/api/tasks/{hidden.id}", json={"status": "review"}, headers=headers).status_code == 404
    assert client.delete(f"/api/tasks/{task.id}", headers=headers).status_code == 403


def test_client_sees_only_own_account(client, db, org, account, client_user, auth_headers):
    other = Account(org_id=org.id, name="Initech")
    db.add(other)
    db.commit()
    headers = auth_headers(client_user)

    listed = client.get("/api/accounts", headers=headers).json()
    assert [a["id"] for a in listed] == [str(account.id)]
    assert client.get(f"/api/accounts/{other.id}", headers=headers).status_code == 404
    assert client.patch(f"/api/accounts/{account.id}", json={"name": "Mine now"}, headers=headers).status_code == 403


def test_account_crud(client, admin_headers):
    created = client.post("/api/accounts", json={"name": "Umbrella", "plan": "retainer"}, headers=admin_headers)
    assert created.status_code == 201
    account_id = created.json()["id"]
    updated = client.patch(f"/api/accounts/{account_id}", json={"status": "churned"}, headers=admin_headers)
    assert updated.json()["status"] == "churned"
    assert client.get("/api/accounts?status=churned", headers=admin_headers).json()[0]["id"] == account_id
    assert client.delete(f"/api/accounts/{account_id}", headers=admin_headers).status_code == 204


def test_contact_filters(client, account, vendor, admin_headers):
    client.post("/api/contacts", json={"name": "Ann", "email": "ANN@globex.test", "account_id": str(account.id)}, headers=admin_headers)
    client.post(
        "/api/contacts",
        json={"name": "Vic", "email": "vic@pixel.test", "vendor_id": str(vendor.id), "contact_type": "vendor"},
        headers=admin_headers,
    )

    by_account = client.get(f"/api/contacts?account_id={account.id}", headers=admin_headers).json()
    assert [c["email"] for c in by_account] == ["ann@globex.test"]
    vendors = client.get("/api/contacts?contact_type=vendor", headers=admin_headers).json()
    assert [c["name"] for c in vendors] == ["Vic"]
    by_vendor = client.get(f"/api/contacts?vendor_id={vendor.id}", headers=admin_headers).json()
    assert [c["name"] for c in by_vendor] == ["Vic"]

    duplicate = client.post(
        "/api/contacts",
        json={"name": "Ann again", "email": "ann@globex.test", "account_id": str(account.id)},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409


def test_vendor_crud_and_skill_filter(client, admin_headers):
    created = client.post(
        "/api/vendors",
        json={"name": "Copy Co", "skills": ["Copywriting", "SEO"], "daily_rate": 450.5},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assert created.json()["daily_rate"] == 450.5
    vendor_id = created.json()["id"]

    assert [v["id"] for v in client.get("/api/vendors?skill=seo", headers=admin_headers).json()] == [vendor_id]
    assert client.get("/api/vendors?skill=video", headers=admin_headers).json() == []

    updated = client.patch(f"/api/vendors/{vendor_id}", json={"availability": "busy"}, headers=admin_headers)
    assert updated.json()["availability"] == "busy"
    assert client.delete(f"/api/vendors/{vendor_id}", headers=admin_headers).status_code == 204


def test_vendor_role_cannot_list_vendors(client, vendor_user, auth_headers):
    assert client.get("/api/vendors", headers=auth_headers(vendor_user)).status_code == 403


def test_only_internal_roles_assign_tasks(client, project, admin, client_user, auth_headers):
    headers = auth_headers(client_user)
    created = client.post("/api/tasks", json={"title": "Share logins", "project_id": str(project.id)}, headers=headers)
    assert created.status_code == 201
    task_id = created.json()["id"]

    assign = client.patch(f"/api/tasks/{task_id}", json={"assignee_id": str(admin.id)}, headers=headers)
    assert assign.status_code == 403
    response = client.post("/api/tasks", json={"title": "x", "assignee_id": str(admin.id)}, headers=headers)
    assert response.status_code == 403

    # Untouched assignee does not need the assign permission
    same = client.patch(f"/api/tasks/{task_id}", json={"assignee_id": None, "title": "Share logins today"}, headers=headers)
    assert same.status_code == 200
