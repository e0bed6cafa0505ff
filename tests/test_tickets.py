import pytest
from sqlalchemy.exc import OperationalError

from models.ticket import Ticket
from tickets import service as ticket_service


# -- create ------------------------------------------------------------------


def test_create_ticket_is_owned_by_caller(client, employee, create_ticket):
    ticket = create_ticket(employee)
    assert ticket["employeeId"] == employee["id"]
    assert ticket["status"] == "open"
    assert ticket["adminComment"] is None
    assert ticket["employee"]["name"] == "Alice Employee"


def test_create_ignores_owner_in_body(client, employee, other_employee, db):
    r = client.post(
        "/tickets",
        json={
            "issueType": "software",
            "priority": "low",
            "description": "vpn drops",
            "employeeId": other_employee["id"],
        },
        headers=employee["headers"],
    )
    assert r.status_code == 201
    assert r.json()["employeeId"] == employee["id"]
    assert db.get(Ticket, r.json()["id"]).employee_id == employee["id"]


def test_create_trims_description(client, employee, create_ticket):
    ticket = create_ticket(employee, description="   screen flickers   ")
    assert ticket["description"] == "screen flickers"


@pytest.mark.parametrize(
    "overrides",
    [
        {"priority": "urgent"},
        {"description": "x" * 201},
        {"description": "   "},
        {"issueType": ""},
    ],
)
def test_create_rejects_invalid_payload(client, employee, overrides):
    body = {"issueType": "hardware", "priority": "high", "description": "printer jam"}
    body.update(overrides)
    r = client.post("/tickets", json=body, headers=employee["headers"])
    assert r.status_code == 422


def test_create_rejects_missing_fields(client, employee):
    r = client.post("/tickets", json={"issueType": "hardware"}, headers=employee["headers"])
    assert r.status_code == 422


def test_description_at_limit_is_accepted(client, employee, create_ticket):
    ticket = create_ticket(employee, description="y" * 200)
    assert len(ticket["description"]) == 200


def test_create_requires_token(client):
    r = client.post("/tickets", json={"issueType": "hardware", "priority": "high", "description": "x"})
    assert r.status_code == 401


# -- list --------------------------------------------------------------------


def test_employee_sees_only_own_tickets(client, employee, other_employee, admin, create_ticket):
    mine = [create_ticket(employee)["id"] for _ in range(2)]
    create_ticket(other_employee)

    r = client.get("/tickets", headers=employee["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["totalTickets"] == 2
    assert sorted(t["id"] for t in body["tickets"]) == sorted(mine)

    everyone = client.get("/tickets", headers=admin["headers"]).json()
    assert everyone["totalTickets"] == 3


def test_list_is_paginated_newest_first(client, employee, create_ticket):
    ids = [create_ticket(employee, description=f"issue {i}")["id"] for i in range(5)]

    first = client.get("/tickets?limit=2&page=1", headers=employee["headers"]).json()
    last = client.get("/tickets?limit=2&page=3", headers=employee["headers"]).json()

    assert first["currentPage"] == 1
    assert first["totalPages"] == 3
    assert first["totalTickets"] == 5
    assert [t["id"] for t in first["tickets"]] == [ids[4], ids[3]]
    assert [t["id"] for t in last["tickets"]] == [ids[0]]


def test_page_past_the_end_is_empty(client, employee, create_ticket):
    create_ticket(employee)
    body = client.get("/tickets?limit=10&page=4", headers=employee["headers"]).json()
    assert body["tickets"] == []
    assert body["totalTickets"] == 1


def test_list_rejects_bad_pagination(client, employee):
    assert client.get("/tickets?limit=0", headers=employee["headers"]).status_code == 422
    assert client.get("/tickets?page=0", headers=employee["headers"]).status_code == 422


def test_list_sorts_priority_by_rank(client, employee, create_ticket):
    for level in ("med", "critical", "low", "high"):
        create_ticket(employee, priority=level)

    asc = client.get("/tickets?sort=priority:asc", headers=employee["headers"]).json()
    desc = client.get("/tickets?sort=priority:desc", headers=employee["headers"]).json()

    assert [t["priority"] for t in asc["tickets"]] == ["low", "med", "high", "critical"]
    assert [t["priority"] for t in desc["tickets"]] == ["critical", "high", "med", "low"]


def test_list_sorts_by_owner_name(client, employee, other_employee, admin, create_ticket):
    create_ticket(other_employee)
    create_ticket(employee)

    body = client.get("/tickets?sort=employee.name:asc", headers=admin["headers"]).json()
    assert [t["employee"]["name"] for t in body["tickets"]] == ["Alice Employee", "Bob Employee"]


def test_list_filters(client, employee, create_ticket):
    create_ticket(employee, priority="low", issueType="software")
    create_ticket(employee, priority="high", issueType="hardware")

    low = client.get("/tickets?priority=low", headers=employee["headers"]).json()
    hw = client.get("/tickets?issueType=hardware", headers=employee["headers"]).json()
    closed = client.get("/tickets?status=closed", headers=employee["headers"]).json()

    assert [t["priority"] for t in low["tickets"]] == ["low"]
    assert [t["issueType"] for t in hw["tickets"]] == ["hardware"]
    assert closed["totalTickets"] == 0


@pytest.mark.parametrize("sort", ["password:asc", "priority:sideways", "nonsense"])
def test_list_rejects_unknown_sort(client, employee, sort):
    r = client.get("/tickets", params={"sort": sort}, headers=employee["headers"])
    assert r.status_code == 400


# -- get ---------------------------------------------------------------------


def test_owner_and_admin_can_read_ticket(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    for user in (employee, admin):
        r = client.get(f"/tickets/{ticket['id']}", headers=user["headers"])
        assert r.status_code == 200
        assert r.json()["employee"]["email"] == employee["email"]


def test_other_employee_cannot_read_ticket(client, employee, other_employee, create_ticket):
    ticket = create_ticket(employee)
    r = client.get(f"/tickets/{ticket['id']}", headers=other_employee["headers"])
    assert r.status_code == 403


def test_unknown_ticket_is_not_found(client, admin):
    assert client.get("/tickets/9999", headers=admin["headers"]).status_code == 404


# -- admin comment -------------------------------------------------------------


def test_admin_comment_keeps_status(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(
        f"/tickets/{ticket['id']}/comment",
        json={"adminComment": "  replaced toner  "},
        headers=admin["headers"],
    )
    assert r.status_code == 200
    updated = r.json()["ticket"]
    assert updated["adminComment"] == "replaced toner"
    assert updated["status"] == "open"


def test_admin_comment_overwrites_previous(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    url = f"/tickets/{ticket['id']}/comment"
    client.put(url, json={"adminComment": "first"}, headers=admin["headers"])
    r = client.put(url, json={"adminComment": "second"}, headers=admin["headers"])
    assert r.json()["ticket"]["adminComment"] == "second"


def test_employee_cannot_comment(client, employee, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(
        f"/tickets/{ticket['id']}/comment",
        json={"adminComment": "self-service"},
        headers=employee["headers"],
    )
    assert r.status_code == 403


def test_admin_comment_length_is_bounded(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    url = f"/tickets/{ticket['id']}/comment"
    assert client.put(url, json={"adminComment": "z" * 500}, headers=admin["headers"]).status_code == 200
    assert client.put(url, json={"adminComment": "z" * 501}, headers=admin["headers"]).status_code == 422


def test_comment_on_unknown_ticket_is_not_found(client, admin):
    r = client.put("/tickets/9999/comment", json={"adminComment": "hi"}, headers=admin["headers"])
    assert r.status_code == 404


# -- close -------------------------------------------------------------------


def test_owner_closes_ticket(client, employee, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(f"/tickets/{ticket['id']}/close", headers=employee["headers"])
    assert r.status_code == 200
    assert r.json()["ticket"]["status"] == "closed"


def test_closing_twice_is_harmless(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    url = f"/tickets/{ticket['id']}/close"
    client.put(url, headers=admin["headers"])
    r = client.put(url, headers=admin["headers"])
    assert r.status_code == 200
    assert r.json()["ticket"]["status"] == "closed"


def test_other_employee_cannot_close(client, employee, other_employee, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(f"/tickets/{ticket['id']}/close", headers=other_employee["headers"])
    assert r.status_code == 403

    still_open = client.get(f"/tickets/{ticket['id']}", headers=employee["headers"]).json()
    assert still_open["status"] == "open"


def test_close_unknown_ticket_is_not_found(client, employee):
    assert client.put("/tickets/9999/close", headers=employee["headers"]).status_code == 404


# -- status lifecycle -----------------------------------------------------------


def test_status_moves_forward(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    url = f"/tickets/{ticket['id']}/status"
    for step in ("pending", "resolved", "closed"):
        r = client.put(url, json={"status": step}, headers=admin["headers"])
        assert r.status_code == 200
        assert r.json()["ticket"]["status"] == step


def test_status_cannot_move_backwards(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    url = f"/tickets/{ticket['id']}/status"
    client.put(url, json={"status": "resolved"}, headers=admin["headers"])

    r = client.put(url, json={"status": "open"}, headers=admin["headers"])
    assert r.status_code == 400


def test_closed_is_terminal(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    client.put(f"/tickets/{ticket['id']}/close", headers=employee["headers"])

    r = client.put(f"/tickets/{ticket['id']}/status", json={"status": "pending"}, headers=admin["headers"])
    assert r.status_code == 400


def test_same_status_is_a_no_op(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(f"/tickets/{ticket['id']}/status", json={"status": "open"}, headers=admin["headers"])
    assert r.status_code == 200
    assert r.json()["ticket"]["status"] == "open"


def test_status_change_is_admin_only(client, employee, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(f"/tickets/{ticket['id']}/status", json={"status": "pending"}, headers=employee["headers"])
    assert r.status_code == 403


def test_status_rejects_unknown_value(client, employee, admin, create_ticket):
    ticket = create_ticket(employee)
    r = client.put(f"/tickets/{ticket['id']}/status", json={"status": "archived"}, headers=admin["headers"])
    assert r.status_code == 422


# -- per-employee listing -------------------------------------------------------


def test_employee_ticket_listing(client, employee, other_employee, admin, create_ticket):
    first = create_ticket(employee)
    second = create_ticket(employee)
    create_ticket(other_employee)

    own = client.get(f"/tickets/employee/{employee['id']}", headers=employee["headers"])
    assert own.status_code == 200
    assert [t["id"] for t in own.json()] == [second["id"], first["id"]]

    by_admin = client.get(f"/tickets/employee/{employee['id']}", headers=admin["headers"])
    assert len(by_admin.json()) == 2

    snooping = client.get(f"/tickets/employee/{employee['id']}", headers=other_employee["headers"])
    assert snooping.status_code == 403


# -- attachments -------------------------------------------------------------


def test_owner_uploads_attachment(client, employee, create_ticket, tmp_path):
    ticket = create_ticket(employee)
    r = client.post(
        f"/tickets/{ticket['id']}/attachment",
        files={"file": ("screenshot.png", b"\x89PNG fake", "image/png")},
        headers=employee["headers"],
    )
    assert r.status_code == 200
    stored = r.json()["ticket"]["attachmentPath"]
    assert stored.endswith("-screenshot.png")
    assert (tmp_path / "uploads" / stored).read_bytes() == b"\x89PNG fake"


def test_attachment_name_loses_client_directories(client, employee, create_ticket, tmp_path):
    ticket = create_ticket(employee)
    r = client.post(
        f"/tickets/{ticket['id']}/attachment",
        files={"file": ("..\\..\\evil.txt", b"x", "text/plain")},
        headers=employee["headers"],
    )
    assert r.status_code == 200
    stored = r.json()["ticket"]["attachmentPath"]
    assert "/" not in stored and "\\" not in stored
    assert (tmp_path / "uploads" / stored).exists()


def test_other_employee_cannot_attach(client, employee, other_employee, create_ticket):
    ticket = create_ticket(employee)
    r = client.post(
        f"/tickets/{ticket['id']}/attachment",
        files={"file": ("a.txt", b"x", "text/plain")},
        headers=other_employee["headers"],
    )
    assert r.status_code == 403


# -- end to end ----------------------------------------------------------------


def test_ticket_lifecycle_end_to_end(client, make_user):
    alice = make_user("employee", name="Alice")
    admin = make_user("admin", name="Admin")

    created = client.post(
        "/tickets",
        json={"issueType": "hardware", "subIssue": "laptop", "priority": "critical", "description": "won't boot"},
        headers=alice["headers"],
    ).json()

    commented = client.put(
        f"/tickets/{created['id']}/comment",
        json={"adminComment": "swapped battery"},
        headers=admin["headers"],
    ).json()["ticket"]
    assert commented["status"] == "open"

    closed = client.put(f"/tickets/{created['id']}/close", headers=alice["headers"]).json()["ticket"]
    assert closed["status"] == "closed"
    assert closed["adminComment"] == "swapped battery"

    listing = client.get("/tickets", headers=alice["headers"]).json()
    assert listing["totalTickets"] == 1
    assert listing["tickets"][0]["status"] == "closed"


def test_admin_triage_hides_ticket_from_other_employees(client, employee, other_employee, admin, create_ticket):
    ticket = create_ticket(employee, priority="high", description="printer jam")
    url = f"/tickets/{ticket['id']}"

    assert client.get(url, headers=admin["headers"]).status_code == 200
    client.put(f"{url}/comment", json={"adminComment": "dispatched technician"}, headers=admin["headers"])
    client.put(f"{url}/close", headers=admin["headers"])

    fetched = client.get(url, headers=employee["headers"]).json()
    assert fetched["status"] == "closed"
    assert fetched["adminComment"] == "dispatched technician"

    assert client.get(url, headers=other_employee["headers"]).status_code == 403
    assert client.get("/tickets", headers=other_employee["headers"]).json()["tickets"] == []


# -- failure modes -------------------------------------------------------------


def test_list_rejects_page_beyond_limit(client, employee):
    r = client.get("/tickets", params={"page": "99999999999999999999"}, headers=employee["headers"])
    assert r.status_code == 422

    r = client.get("/tickets", params={"page": 1_000_000}, headers=employee["headers"])
    assert r.status_code == 200
    assert r.json()["tickets"] == []


def test_storage_failure_is_logged_and_hidden(client, employee, monkeypatch, log_records):
    def _broken(*args, **kwargs):
        raise OperationalError("SELECT * FROM tickets", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ticket_service, "list_tickets", _broken)

    r = client.get("/tickets", headers=employee["headers"])

    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}
    assert "disk" not in r.text and "SELECT" not in r.text
    errors = [rec for rec in log_records.records if rec.levelname == "ERROR"]
    assert len(errors) == 1
    assert "/tickets" in errors[0].getMessage()
    assert errors[0].exc_info is not None
