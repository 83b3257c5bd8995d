"""
API tests for ownership-gated CRUD routes
"""

import json
from unittest.mock import patch
from uuid import UUID

import pytest

from sheetdash.auth import Identity
from sheetdash.db.models import Chart, Dashboard, Project, Spreadsheet
from sheetdash.models import ProjectCreate
from sheetdash.services import project_service, spreadsheet_service
from sheetdash.sheets import Sheet, Workbook


class TestAuthentication:
    """Test cases for callers without an identity or user record"""

    def test_unauthenticated(self, client):
        response = client.get("/api/v1/projects")
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    def test_unknown_user(self, client, login, make_user, db):
        ghost = make_user("user_ghost", "Ghost")
        login(ghost)
        db.delete(ghost)
        db.commit()
        response = client.get("/api/v1/projects")
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    def test_current_user(self, client, login, alice):
        login(alice)
        response = client.get("/api/v1/users/me")
        assert response.status_code == 200
        assert response.json()["clerk_id"] == "user_alice"

    def test_profile_upsert_for_other_user_is_rejected(self, client, login, alice):
        login(alice)
        response = client.put("/api/v1/users/me", json={"clerk_id": "user_bob", "name": "Bob"})
        assert response.status_code == 403


class TestProjects:
    """Test cases for project routes"""

    def test_create_and_list_newest_first(self, client, login, alice):
        login(alice)
        client.post("/api/v1/projects", json={"name": "First"})
        client.post("/api/v1/projects", json={"name": "Second", "description": "d"})
        names = [p["name"] for p in client.get("/api/v1/projects").json()]
        assert set(names) == {"First", "Second"}

    def test_projects_are_private(self, client, login, alice, bob):
        login(alice)
        client.post("/api/v1/projects", json={"name": "Mine"})
        login(bob)
        assert client.get("/api/v1/projects").json() == []

    def test_foreign_update_is_rejected_and_record_unchanged(self, client, login, alice, bob, db):
        login(alice)
        project_id = client.post("/api/v1/projects", json={"name": "Mine"}).json()["id"]
        login(bob)
        response = client.put(f"/api/v1/projects/{project_id}", json={"name": "Stolen"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to update this project"
        db.expire_all()
        assert db.query(Project).one().name == "Mine"

    def test_delete_missing_project(self, client, login, alice):
        login(alice)
        response = client.delete("/api/v1/projects/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["detail"] == "Project not found"

    def test_delete_cascades_to_spreadsheets(self, client, login, alice, db, make_spreadsheet):
        login(alice)
        spreadsheet = make_spreadsheet(alice)
        response = client.delete(f"/api/v1/projects/{spreadsheet.project_id}")
        assert response.status_code == 204
        db.expire_all()
        assert db.query(Spreadsheet).count() == 0

    @pytest.mark.asyncio
    async def test_service_create_sets_owner(self, db, alice):
        project = await project_service.create_project(
            db, Identity(subject=alice.clerk_id), ProjectCreate(name="Direct")
        )
        assert db.get(Project, project.id).owner_id == alice.id


class TestSpreadsheets:
    """Test cases for spreadsheet routes"""

    @pytest.mark.asyncio
    async def test_service_get_of_missing_is_none(self, db, alice):
        missing = UUID("00000000-0000-0000-0000-000000000000")
        assert await spreadsheet_service.get_spreadsheet(db, Identity(subject=alice.clerk_id), missing) is None

    def test_create_in_own_project(self, client, login, alice):
        login(alice)
        project_id = client.post("/api/v1/projects", json={"name": "P"}).json()["id"]
        response = client.post("/api/v1/spreadsheets", json={"project_id": project_id, "name": "Sheet"})
        assert response.status_code == 201
        data = json.loads(response.json()["data"])
        assert data[0]["name"] == "Sheet1"

        listed = client.get("/api/v1/spreadsheets", params={"project_id": project_id}).json()
        assert [s["name"] for s in listed] == ["Sheet"]

    def test_create_in_foreign_project(self, client, login, alice, bob):
        login(alice)
        project_id = client.post("/api/v1/projects", json={"name": "P"}).json()["id"]
        login(bob)
        response = client.post("/api/v1/spreadsheets", json={"project_id": project_id, "name": "x"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to create spreadsheet in this project"

    def test_get_missing_is_404(self, client, login, alice):
        login(alice)
        response = client.get("/api/v1/spreadsheets/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

    def test_get_foreign_is_403(self, client, login, alice, bob, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(bob)
        assert client.get(f"/api/v1/spreadsheets/{spreadsheet.id}").status_code == 403

    def test_foreign_data_update_leaves_document(self, client, login, alice, bob, db, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        before = spreadsheet.data
        login(bob)
        response = client.put(f"/api/v1/spreadsheets/{spreadsheet.id}/data", json={"data": "[]"})
        assert response.status_code == 403
        db.expire_all()
        assert db.get(Spreadsheet, spreadsheet.id).data == before

    def test_rename(self, client, login, alice, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        response = client.put(f"/api/v1/spreadsheets/{spreadsheet.id}/name", json={"name": "Renamed"})
        assert response.json()["name"] == "Renamed"

    def test_csv_import_then_export(self, client, login, alice, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        client.post(f"/api/v1/spreadsheets/{spreadsheet.id}/csv", json={"csv": "Name,Age\nAlice,30"})
        response = client.get(f"/api/v1/spreadsheets/{spreadsheet.id}/csv")
        assert response.json() == {"csv": "Name,Age\nAlice,30"}

    def test_marker(self, client, login, alice, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        response = client.post(f"/api/v1/spreadsheets/{spreadsheet.id}/marker", json={})
        assert response.json() == {"sheet_name": "Sheet1", "row": 0}

    def test_table_and_stats(self, client, login, alice, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        table = client.post(
            f"/api/v1/spreadsheets/{spreadsheet.id}/tables",
            json={"headers": ["Name", "Salary"], "num_rows": 2}
        ).json()
        assert table["range"] == "A1:B3"

        stats = client.post(
            f"/api/v1/spreadsheets/{spreadsheet.id}/stats",
            json={"column_name": "salary", "operation": "sum"}
        )
        assert stats.status_code == 200
        assert stats.json()["result"] == 55000 + 62000
        assert stats.json()["count"] == 2

    def test_stats_on_unknown_column(self, client, login, alice, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        response = client.post(
            f"/api/v1/spreadsheets/{spreadsheet.id}/stats",
            json={"column_name": "missing", "operation": "sum"}
        )
        assert response.status_code == 400


class TestCharts:
    """Test cases for chart routes"""

    @pytest.fixture
    def spreadsheet(self, make_spreadsheet, alice):
        sheet = Sheet(name="Data")
        sheet.set(0, 0, "Month")
        sheet.set(0, 1, "Sales")
        sheet.set(1, 0, "Jan")
        sheet.set(1, 1, "5")
        return make_spreadsheet(alice, Workbook(sheets=[sheet]))

    def test_create_and_read_data(self, client, login, alice, spreadsheet):
        login(alice)
        chart = client.post("/api/v1/charts", json={
            "spreadsheet_id": str(spreadsheet.id),
            "type": "bar",
            "range": "a1:b2",
            "sheet_name": "Data",
        }).json()
        assert chart["range"] == "A1:B2"

        data = client.get(f"/api/v1/charts/{chart['id']}/data").json()
        assert data["data"] == [["Month", "Sales"], ["Jan", 5]]

    def test_invalid_type(self, client, login, alice, spreadsheet):
        login(alice)
        response = client.post("/api/v1/charts", json={
            "spreadsheet_id": str(spreadsheet.id), "type": "scatter", "range": "A1:B2"
        })
        assert response.status_code == 422

    @pytest.mark.parametrize("bad_range", ["A1:", "1:2", "AAAA1", "A0:B2", "whole sheet"])
    def test_invalid_range(self, client, login, alice, spreadsheet, bad_range):
        login(alice)
        response = client.post("/api/v1/charts", json={
            "spreadsheet_id": str(spreadsheet.id), "type": "bar", "range": bad_range
        })
        assert response.status_code == 422

    def test_delete_missing_chart_is_noop(self, client, login, alice):
        login(alice)
        response = client.delete("/api/v1/charts/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 204

    def test_foreign_delete_is_rejected(self, client, login, alice, bob, db, spreadsheet):
        chart = Chart(spreadsheet_id=spreadsheet.id, owner_id=alice.id, type="pie", range="A1:B2")
        db.add(chart)
        db.commit()
        login(bob)
        assert client.delete(f"/api/v1/charts/{chart.id}").status_code == 403
        db.expire_all()
        assert db.query(Chart).count() == 1


class TestDashboards:
    """Test cases for dashboard and widget routes"""

    def test_widget_counts_and_order(self, client, login, alice, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        dashboard = client.post("/api/v1/dashboards", json={
            "spreadsheet_id": str(spreadsheet.id), "name": "KPIs"
        }).json()
        assert dashboard["widgets_data"] == "[]"
        assert dashboard["widgets"] == []

        for widget in (
            {"type": "chart", "title": "Sales", "chart_type": "line", "range": "A1:B5"},
            {"type": "metric", "title": "Total", "metric_value": "42"},
            {"type": "chart", "title": "Costs", "chart_type": "bar"},
        ):
            response = client.post(f"/api/v1/dashboards/{dashboard['id']}/widgets", json=widget)
            assert response.status_code == 201

        listed = client.get("/api/v1/dashboards", params={"spreadsheet_id": str(spreadsheet.id)}).json()
        assert listed[0]["chart_count"] == 2
        assert listed[0]["metric_count"] == 1

        full = client.get(f"/api/v1/dashboards/{dashboard['id']}").json()
        assert sorted(w["title"] for w in full["widgets"]) == ["Costs", "Sales", "Total"]
        assert all(w["position"] == {"x": 0, "y": 0, "width": 4, "height": 3} for w in full["widgets"])

    def test_delete_widget_touches_dashboard(self, client, login, alice, db, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        dashboard = client.post("/api/v1/dashboards", json={
            "spreadsheet_id": str(spreadsheet.id), "name": "KPIs"
        }).json()
        widget = client.post(f"/api/v1/dashboards/{dashboard['id']}/widgets", json={
            "type": "text", "title": "Note"
        }).json()
        before = db.get(Dashboard, UUID(dashboard["id"])).updated_at

        assert client.delete(f"/api/v1/dashboards/widgets/{widget['id']}").status_code == 204
        db.expire_all()
        refreshed = client.get(f"/api/v1/dashboards/{dashboard['id']}").json()
        assert refreshed["widgets"] == []
        assert db.get(Dashboard, UUID(dashboard["id"])).updated_at >= before

    def test_update_foreign_dashboard(self, client, login, alice, bob, make_spreadsheet):
        spreadsheet = make_spreadsheet(alice)
        login(alice)
        dashboard = client.post("/api/v1/dashboards", json={
            "spreadsheet_id": str(spreadsheet.id), "name": "KPIs"
        }).json()
        login(bob)
        response = client.put(f"/api/v1/dashboards/{dashboard['id']}", json={"name": "Mine now"})
        assert response.status_code == 403

    def test_get_missing_dashboard(self, client, login, alice):
        login(alice)
        assert client.get("/api/v1/dashboards/00000000-0000-0000-0000-000000000000").status_code == 404


class TestAgents:
    """Test cases for agent routes"""

    def test_defaults_are_created_once(self, client, login, alice):
        login(alice)
        first = client.post("/api/v1/agents/defaults").json()
        second = client.post("/api/v1/agents/defaults").json()
        assert [a["provider"] for a in first] == ["openai", "anthropic", "google"]
        assert {a["id"] for a in first} == {a["id"] for a in second}

    def test_create_update_delete(self, client, login, alice):
        login(alice)
        agent = client.post("/api/v1/agents", json={
            "name": "Mistral", "provider": "mistral", "model_name": "mistral-large-latest"
        }).json()
        assert agent["is_active"] is True

        updated = client.put(f"/api/v1/agents/{agent['id']}", json={"is_active": False}).json()
        assert updated["is_active"] is False

        assert client.delete(f"/api/v1/agents/{agent['id']}").status_code == 204
        assert client.get("/api/v1/agents").json() == []

    def test_unknown_provider(self, client, login, alice):
        login(alice)
        response = client.post("/api/v1/agents", json={
            "name": "X", "provider": "acme", "model_name": "m"
        })
        assert response.status_code == 422


class TestServiceEndpoints:
    """Test cases for health and root endpoints"""

    def test_health(self, client):
        with patch("sheetdash.db.session.engine") as engine:
            response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert engine.connect.called

    def test_health_degraded(self, client):
        with patch("sheetdash.db.session.engine") as engine:
            engine.connect.side_effect = RuntimeError("down")
            response = client.get("/health")
        assert response.json()["status"] == "degraded"
        assert response.json()["dependencies"] == {"database": "unhealthy"}

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"
