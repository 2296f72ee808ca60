from datetime import datetime

import pytest

from crm_backend.models import Deal
from crm_backend.seed import seed_database


@pytest.fixture
def board(crm):
    """Two owners, the standard stages, and a handful of committed deals."""
    alice = crm.user("Alice")
    bob = crm.user("Bob")
    stages = crm.standard_stages()
    now = datetime.now()
    deals = {
        "lead_small": crm.deal(stages["Lead"], alice, 100, updated_at=now),
        "lead_big": crm.deal(stages["Lead"], bob, 900, updated_at=now),
        "won": crm.deal(stages["Closed Won"], alice, 300, updated_at=now),
    }
    data = {
        "alice": alice.id,
        "bob": bob.id,
        "stages": {name: stage.id for name, stage in stages.items()},
        "deals": {key: deal.id for key, deal in deals.items()},
        "contact": deals["won"].contact_id,
    }
    crm.session.commit()
    return data


# ============================================================================
# Health / users
# ============================================================================


class TestUsersApi:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_current_user_from_header(self, client, board):
        resp = client.get("/api/users/current", headers={"X-User-Id": str(board["bob"])})

        assert resp.status_code == 200
        assert resp.json()["name"] == "Bob"

    def test_current_user_from_cookie(self, client, board):
        resp = client.get(
            "/api/users/current",
            headers={"Cookie": f"session_user_id={board['alice']}"},
        )

        assert resp.json()["name"] == "Alice"

    def test_unknown_current_user(self, client):
        resp = client.get("/api/users/current", headers={"X-User-Id": "404"})

        assert resp.status_code == 404

    def test_users_listed_by_name(self, client, board):
        users = client.get("/api/users").json()["users"]

        assert [u["name"] for u in users] == ["Alice", "Bob"]


# ============================================================================
# Dashboard
# ============================================================================


class TestDashboardApi:
    def test_metrics(self, client, board):
        body = client.get("/api/dashboard/metrics").json()

        assert body["totalRevenue"] == 300
        assert body["activeDeals"] == 2
        assert set(body) >= {
            "totalRevenueChange",
            "activeDealsChange",
            "conversionRate",
            "conversionRateChange",
            "newContacts",
            "newContactsChange",
        }

    def test_sales_performance_defaults_to_monthly(self, client, board):
        data = client.get("/api/dashboard/sales-performance").json()["salesData"]

        assert len(data) == 8
        assert data[-1]["value"] == 300

    @pytest.mark.parametrize("period, buckets", [("quarterly", 4), ("yearly", 5)])
    def test_sales_performance_periods(self, client, period, buckets):
        resp = client.get("/api/dashboard/sales-performance", params={"period": period})

        assert resp.status_code == 200
        assert len(resp.json()["salesData"]) == buckets

    def test_sales_performance_bad_period(self, client):
        resp = client.get("/api/dashboard/sales-performance", params={"period": "hourly"})

        assert resp.status_code == 400

    def test_secondary_charts(self, client, board):
        stages = client.get("/api/dashboard/deals-by-stage").json()
        sources = client.get("/api/dashboard/lead-sources").json()
        performers = client.get("/api/dashboard/top-sales").json()["performers"]

        assert stages[0] == {"name": "Lead", "value": 2, "color": stages[0]["color"]}
        assert sum(s["value"] for s in sources) == 3
        assert performers[0]["name"] == "Bob"


# ============================================================================
# Pipeline
# ============================================================================


class TestPipelineApi:
    def test_overview(self, client, board):
        stages = client.get("/api/pipeline/overview").json()["stages"]

        assert len(stages) == 6
        assert stages[0]["totalValue"] == 1000

    def test_board_sorted_and_filtered(self, client, board):
        body = client.get(
            "/api/pipeline", params={"user": str(board["alice"]), "sort": "value-desc"}
        ).json()

        lead = body["stages"][0]
        assert [d["id"] for d in lead["deals"]] == [board["deals"]["lead_small"]]
        assert lead["totalValue"] == 100
        assert {u["name"] for u in body["users"]} == {"Alice", "Bob"}

    def test_board_all_users(self, client, board):
        body = client.get("/api/pipeline", params={"user": "all", "sort": "value"}).json()

        values = [d["value"] for d in body["stages"][0]["deals"]]
        assert values == [900, 100]

    def test_board_rejects_non_numeric_user(self, client):
        assert client.get("/api/pipeline", params={"user": "alice"}).status_code == 400


# ============================================================================
# Deals
# ============================================================================


class TestDealsApi:
    def test_create(self, client, board):
        resp = client.post(
            "/api/deals",
            json={
                "name": "Renewal",
                "value": 1500,
                "stageId": board["stages"]["Qualified"],
                "contactId": board["contact"],
                "ownerId": board["alice"],
            },
        )

        assert resp.status_code == 201
        assert resp.json()["value"] == 1500
        assert resp.json()["probability"] == 50

    def test_create_rejects_negative_value(self, client, board):
        resp = client.post(
            "/api/deals",
            json={
                "name": "Refund",
                "value": -1,
                "stageId": board["stages"]["Lead"],
                "contactId": board["contact"],
                "ownerId": board["alice"],
            },
        )

        assert resp.status_code == 422

    def test_move_stage(self, client, board, session):
        deal_id = board["deals"]["lead_small"]
        target = board["stages"]["Proposal"]

        resp = client.patch(f"/api/deals/{deal_id}/stage", json={"stageId": target})

        assert resp.status_code == 200
        assert resp.json()["deal"]["stage_id"] == target
        assert session.get(Deal, deal_id, populate_existing=True).stage_id == target

    def test_move_stage_requires_stage_id(self, client, board):
        deal_id = board["deals"]["lead_small"]

        assert client.patch(f"/api/deals/{deal_id}/stage", json={}).status_code == 400

    def test_move_unknown_deal(self, client, board):
        resp = client.patch("/api/deals/9999/stage", json={"stageId": board["stages"]["Lead"]})

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Deal not found"


# ============================================================================
# Tasks
# ============================================================================


class TestTasksApi:
    def test_create_defaults_assignee_to_caller(self, client, board):
        resp = client.post(
            "/api/tasks",
            json={"title": "Call back", "dueDate": datetime.now().isoformat()},
            headers={"X-User-Id": str(board["bob"])},
        )

        assert resp.status_code == 201
        assert resp.json()["assigned_to"] == board["bob"]

    def test_today_for_caller(self, client, board):
        client.post(
            "/api/tasks",
            json={
                "title": "Send proposal",
                "dueDate": datetime.now().isoformat(),
                "time": "2:00 PM",
                "assignedTo": board["alice"],
                "relatedToType": "contact",
                "relatedToId": board["contact"],
            },
        )

        mine = client.get("/api/tasks/today", headers={"X-User-Id": str(board["alice"])})
        theirs = client.get("/api/tasks/today", headers={"X-User-Id": str(board["bob"])})

        assert [t["title"] for t in mine.json()["tasks"]] == ["Send proposal"]
        assert mine.json()["tasks"][0]["relatedTo"]["type"] == "contact"
        assert theirs.json()["tasks"] == []

    def test_toggle(self, client, board):
        task_id = client.post(
            "/api/tasks", json={"title": "Prep demo", "assignedTo": board["alice"]}
        ).json()["id"]

        resp = client.patch(f"/api/tasks/{task_id}/toggle")

        assert resp.status_code == 200
        assert resp.json()["task"]["completed"] is True

    def test_toggle_missing(self, client):
        assert client.patch("/api/tasks/123456/toggle").status_code == 404

    def test_update_and_delete(self, client, board):
        task_id = client.post(
            "/api/tasks", json={"title": "Prep demo", "assignedTo": board["alice"]}
        ).json()["id"]

        patched = client.patch(f"/api/tasks/{task_id}", json={"priority": "high"})
        deleted = client.delete(f"/api/tasks/{task_id}")

        assert patched.json()["priority"] == "high"
        assert deleted.status_code == 204
        assert client.get(f"/api/tasks/{task_id}").status_code == 404
        assert client.delete(f"/api/tasks/{task_id}").status_code == 404


# ============================================================================
# Contacts
# ============================================================================


class TestContactsApi:
    def test_crud(self, client):
        created = client.post(
            "/api/contacts",
            json={"name": "Priya Nair", "email": "priya@hooli.com", "avatarUrl": "x.png"},
        )
        contact_id = created.json()["id"]

        assert created.status_code == 201
        assert created.json()["avatar_url"] == "x.png"

        patched = client.patch(f"/api/contacts/{contact_id}", json={"status": "customer"})
        assert patched.json()["status"] == "customer"

        detail = client.get(f"/api/contacts/{contact_id}").json()
        assert detail["deals"] == []

        assert client.delete(f"/api/contacts/{contact_id}").status_code == 204
        assert client.get(f"/api/contacts/{contact_id}").status_code == 404

    def test_invalid_email(self, client):
        resp = client.post("/api/contacts", json={"name": "Bad", "email": "not-an-email"})

        assert resp.status_code == 422

    def test_missing_contact_mutations(self, client):
        assert client.patch("/api/contacts/999", json={"name": "Ghost"}).status_code == 404
        assert client.delete("/api/contacts/999").status_code == 404

    def test_search_and_recent(self, client, board):
        found = client.get("/api/contacts", params={"search": "contact"}).json()["contacts"]
        recent = client.get("/api/contacts/recent").json()["contacts"]

        assert len(found) == 3
        assert len(recent) == 3


# ============================================================================
# Activities
# ============================================================================


class TestActivitiesApi:
    def test_log_and_read_back(self, client, board):
        resp = client.post(
            "/api/activities",
            json={
                "type": "call",
                "title": "Intro call",
                "userId": board["alice"],
                "relatedToType": "deal",
                "relatedToId": board["deals"]["won"],
                "metadata": {"duration": 15},
            },
        )

        assert resp.status_code == 201
        assert resp.json()["metadata"] == {"duration": 15}

        recent = client.get("/api/activities/recent").json()["activities"]
        assert recent[0]["title"] == "Intro call"
        assert recent[0]["user"]["name"] == "Alice"
        assert recent[0]["metadata"] == {"duration": 15}
        assert recent[0]["relatedTo"]["id"] == board["deals"]["won"]


class TestTeamsApi:
    def test_current_user_memberships(self, client, session):
        seed_database(session)
        session.commit()

        teams = client.get("/api/users/current/teams", headers={"X-User-Id": "1"}).json()["teams"]
        all_teams = client.get("/api/teams").json()

        assert [(t["name"], t["isAdmin"]) for t in teams] == [("Sales", True)]
        assert [t["name"] for t in all_teams] == ["Marketing", "Sales", "Support"]


# ============================================================================
# Task list filters / active state
# ============================================================================


@pytest.fixture
def task_board(crm):
    alice = crm.user("Alice")
    bob = crm.user("Bob")
    rows = {
        "late_high": crm.task(alice, priority="high", due_date=datetime(2026, 3, 20)),
        "soon_low": crm.task(bob, priority="low", due_date=datetime(2026, 3, 16)),
        "done_high": crm.task(alice, priority="high", completed=True,
                              due_date=datetime(2026, 3, 18)),
        "undated": crm.task(bob, priority="medium"),
    }
    data = {"alice": alice.id, "bob": bob.id, **{k: t.id for k, t in rows.items()}}
    crm.session.commit()
    return data


def _ids(resp):
    assert resp.status_code == 200
    return [t["id"] for t in resp.json()["tasks"]]


class TestTaskListApi:
    def test_ordered_by_due_date_undated_last(self, client, task_board):
        ids = _ids(client.get("/api/tasks"))

        assert ids == [
            task_board["soon_low"],
            task_board["done_high"],
            task_board["late_high"],
            task_board["undated"],
        ]

    def test_priority_filter(self, client, task_board):
        ids = _ids(client.get("/api/tasks", params={"priority": "high"}))

        assert ids == [task_board["done_high"], task_board["late_high"]]

    def test_assignee_filter(self, client, task_board):
        ids = _ids(client.get("/api/tasks", params={"assignedTo": str(task_board["bob"])}))

        assert ids == [task_board["soon_low"], task_board["undated"]]

    def test_active_filter(self, client, task_board):
        active = _ids(client.get("/api/tasks", params={"isActive": "true"}))
        inactive = _ids(client.get("/api/tasks", params={"isActive": "false"}))

        assert task_board["done_high"] not in active
        assert len(active) == 3
        assert inactive == [task_board["done_high"]]

    def test_all_means_unfiltered(self, client, task_board):
        ids = _ids(
            client.get(
                "/api/tasks",
                params={"priority": "all", "assignedTo": "all", "isActive": "all"},
            )
        )

        assert len(ids) == 4

    def test_filters_combine(self, client, task_board):
        ids = _ids(
            client.get(
                "/api/tasks",
                params={
                    "priority": "high",
                    "assignedTo": str(task_board["alice"]),
                    "isActive": "true",
                },
            )
        )

        assert ids == [task_board["late_high"]]

    @pytest.mark.parametrize("params", [{"assignedTo": "bob"}, {"isActive": "maybe"}])
    def test_bad_filter_values(self, client, params):
        assert client.get("/api/tasks", params=params).status_code == 400

    def test_mark_inactive_then_active(self, client, task_board):
        task_id = task_board["late_high"]

        closed = client.patch(f"/api/tasks/{task_id}/inactive")
        again = client.patch(f"/api/tasks/{task_id}/inactive")
        reopened = client.patch(f"/api/tasks/{task_id}/active")

        assert closed.status_code == 200
        assert closed.json()["completed"] is True
        assert again.json()["completed"] is True
        assert reopened.json()["completed"] is False

    @pytest.mark.parametrize("state", ["active", "inactive"])
    def test_mark_missing_task(self, client, state):
        resp = client.patch(f"/api/tasks/8080/{state}")

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Task not found"


# ============================================================================
# Partial updates cannot null required columns
# ============================================================================


class TestNullUpdates:
    @pytest.mark.parametrize(
        "body",
        [{"title": None}, {"priority": None}, {"completed": None}, {"assignedTo": None}],
    )
    def test_task_required_fields(self, client, task_board, body):
        resp = client.patch(f"/api/tasks/{task_board['late_high']}", json=body)

        assert resp.status_code == 422

    def test_task_nullable_field_can_be_cleared(self, client, task_board):
        resp = client.patch(f"/api/tasks/{task_board['late_high']}", json={"dueDate": None})

        assert resp.status_code == 200
        assert resp.json()["due_date"] is None

    @pytest.mark.parametrize(
        "body",
        [{"name": None}, {"email": None}, {"name": None, "email": None}, {"status": None}],
    )
    def test_contact_required_fields(self, client, body):
        contact_id = client.post(
            "/api/contacts", json={"name": "Ada", "email": "ada@example.com"}
        ).json()["id"]

        resp = client.patch(f"/api/contacts/{contact_id}", json=body)

        assert resp.status_code == 422
        assert client.get(f"/api/contacts/{contact_id}").json()["name"] == "Ada"

    def test_contact_nullable_field_can_be_cleared(self, client):
        contact_id = client.post(
            "/api/contacts",
            json={"name": "Ada", "email": "ada@example.com", "phone": "555-0100"},
        ).json()["id"]

        resp = client.patch(f"/api/contacts/{contact_id}", json={"phone": None})

        assert resp.status_code == 200
        assert resp.json()["phone"] is None


# ============================================================================
# Feeds with rows written outside the API
# ============================================================================


class TestUnknownRelatedType:
    def test_today_feed_still_renders(self, client, crm):
        me = crm.user()
        crm.task(me, due_date=datetime.now(), related_to_type="invoice", related_to_id=3)
        crm.session.commit()

        resp = client.get("/api/tasks/today", headers={"X-User-Id": str(me.id)})

        assert resp.status_code == 200
        assert resp.json()["tasks"][0]["relatedTo"] is None

    def test_activity_feed_still_renders(self, client, crm):
        me = crm.user()
        crm.activity(me, related_to_type="invoice", related_to_id=3)
        crm.session.commit()

        resp = client.get("/api/activities/recent")

        assert resp.status_code == 200
        assert resp.json()["activities"][0]["relatedTo"] is None
