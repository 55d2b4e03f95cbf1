"""
HTTP API tests through FastAPI's TestClient against a temporary SQLite
database.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

import app as app_module
from bills_graphs.ingest import SAMPLE_MARKUP
from bills_reasoning.client import ReasoningAnswer, ReasoningHTTPError, ReasoningTimeout

API = "/api/v1"


@pytest.fixture
def client(bills_db):
    app_module.app.dependency_overrides[app_module.get_db] = lambda: bills_db
    with TestClient(app_module.app) as c:
        yield c
    app_module.app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    resp = client.post(f"{API}/graph/sessions", json={"source": "sample", "seed": 3})
    assert resp.status_code == 200
    return resp.json()["session_id"]


class TestDashboard:

    def test_health(self, client):
        assert client.get(f"{API}/health").json()["status"] == "ok"

    def test_dashboard_widgets(self, client):
        body = client.get(f"{API}/dashboard").json()
        assert set(body) == {"summary", "approval_times", "rejections", "status_table"}
        assert body["summary"]["error"] is None
        assert body["summary"]["data"]["total_bills"] == 5

    def test_stats_endpoints(self, client):
        rej = client.get(f"{API}/stats/rejections").json()
        assert {r["name"]: r["value"] for r in rej} == {"Health": 2, "Transport": 1}
        appr = client.get(f"{API}/stats/approval_times").json()
        assert {r["name"]: r["days"] for r in appr} == {"Education": 111, "Transport": 90}
        assert client.get(f"{API}/stats/summary").json()["approval_rate"] == 40.0

    def test_bills_explorer(self, client):
        body = client.get(f"{API}/bills", params={"q": "nhs"}).json()
        assert body["total"] == 1
        assert body["items"][0]["policyArea"] == "Health"

        assert client.get(f"{API}/bills/count", params={"is_act": "false"}).json() == {"count": 3}
        table = client.get(f"{API}/bills/status_table", params={"limit": 2}).json()
        assert [r["status"] for r in table] == ["Approved", "Approved"]

    def test_all_bills(self, client):
        rows = client.get(f"{API}/bills/all").json()
        assert [r["id"] for r in rows] == ["B1", "B2", "B3", "B4", "B5"]
        assert rows[4]["title"] == "NHS Staffing Bill"
        assert rows[4]["is_act"] is False

    def test_charts(self, client):
        for name in ("rejections.png", "approval_times.png"):
            resp = client.get(f"{API}/charts/{name}")
            assert resp.status_code == 200
            assert resp.headers["content-type"] == "image/png"
            assert resp.content.startswith(b"\x89PNG")


class TestReasoning:

    def test_answer(self, client, monkeypatch):
        monkeypatch.setattr(
            app_module.reasoning_client, "ask",
            lambda q: ReasoningAnswer(answer="42", policy_area="Health", question=q),
        )
        resp = client.get(f"{API}/reasoning", params={"question": "why?"})
        assert resp.status_code == 200
        assert resp.json() == {"answer": "42", "policy_area": "Health", "question": "why?"}

    def test_timeout_is_504(self, client, monkeypatch):
        def slow(q):
            raise ReasoningTimeout("too slow")

        monkeypatch.setattr(app_module.reasoning_client, "ask", slow)
        resp = client.get(f"{API}/reasoning", params={"question": "why?"})
        assert resp.status_code == 504
        assert resp.json() == {"error": "timeout"}

    def test_upstream_failure_is_502(self, client, monkeypatch):
        def broken(q):
            raise ReasoningHTTPError("HTTP 500", 500)

        monkeypatch.setattr(app_module.reasoning_client, "ask", broken)
        assert client.get(f"{API}/reasoning", params={"question": "why?"}).status_code == 502

    def test_empty_question_is_400(self, client):
        assert client.get(f"{API}/reasoning", params={"question": "  "}).status_code == 400


class TestGraphSessions:

    def test_create_reports_stats(self, client):
        body = client.post(f"{API}/graph/sessions", json={"source": "bills", "include_act_flag": True}).json()
        assert body["state"] == "running"
        assert body["categories"]["bill"] == 5
        assert body["diagnostics"] == []

    def test_unknown_source(self, client):
        assert client.post(f"{API}/graph/sessions", json={"source": "ftp"}).status_code == 400

    def test_frames_advance(self, client, session_id):
        frame = client.get(f"{API}/graph/sessions/{session_id}/frame", params={"steps": 5}).json()
        assert frame["state"] == "running"
        assert frame["tick"] == 5
        assert len(frame["nodes"]) == 10
        assert len(frame["edges"]) == 14

    def test_pause_and_resume(self, client, session_id):
        base = f"{API}/graph/sessions/{session_id}"
        assert client.post(f"{base}/pause").json() == {"state": "paused"}
        assert client.get(f"{base}/frame", params={"steps": 3}).json()["tick"] == 0
        assert client.post(f"{base}/resume").json() == {"state": "running"}
        assert client.get(f"{base}/frame", params={"steps": 3}).json()["tick"] == 3

    def test_hover_and_pin(self, client, session_id):
        base = f"{API}/graph/sessions/{session_id}"
        assert client.post(f"{base}/hover", json={"node_id": "Bill1919"}).json() == {
            "highlighted": "Bill1919"
        }
        assert client.post(f"{base}/hover", json={"node_id": "nope"}).status_code == 404
        assert client.post(f"{base}/nodes/Lords/pin").json() == {"node_id": "Lords", "pinned": True}
        assert client.post(f"{base}/nodes/nope/pin").status_code == 404

    def test_drag(self, client, session_id):
        base = f"{API}/graph/sessions/{session_id}"
        client.post(f"{base}/drag/start", json={"node_id": "Education"})
        moved = client.post(f"{base}/drag/move", json={"x": 5000, "y": 100}).json()
        assert (moved["x"], moved["y"]) == (800.0, 100.0)
        client.post(f"{base}/drag/end")

        frame = client.get(f"{base}/frame", params={"steps": 10}).json()
        edu = next(n for n in frame["nodes"] if n["id"] == "Education")
        assert edu["pinned"] is True
        assert (edu["x"], edu["y"]) == (800.0, 100.0)

    def test_render_png(self, client, session_id):
        resp = client.get(f"{API}/graph/sessions/{session_id}/render.png")
        assert resp.status_code == 200
        assert resp.content.startswith(b"\x89PNG")

    def test_dispose(self, client, session_id):
        assert client.delete(f"{API}/graph/sessions/{session_id}").status_code == 200
        assert client.get(f"{API}/graph/sessions/{session_id}/frame").status_code == 404
        assert client.delete(f"{API}/graph/sessions/{session_id}").status_code == 404

    def test_upload(self, client):
        files = {"file": ("bills.ttl", SAMPLE_MARKUP.encode(), "text/turtle")}
        body = client.post(f"{API}/graph/sessions/upload", files=files).json()
        assert body["stats"]["n_nodes"] == 10

        bad = "    ns1:orphan ns1:x .\nns1:Bill1 ns1:belongsTo ns1:Health .\n"
        files = {"file": ("bad.ttl", bad.encode(), "text/turtle")}
        body = client.post(f"{API}/graph/sessions/upload", files=files).json()
        assert body["diagnostics"][0]["reason"] == "continuation line without a subject"
        assert body["stats"]["n_nodes"] == 2

    def test_upload_json_with_scalar_fields(self, client):
        files = {"file": ("g.json", b'{"nodes": 5, "edges": "x"}', "application/json")}
        resp = client.post(f"{API}/graph/sessions/upload", files=files)
        assert resp.status_code == 200
        body = resp.json()
        assert body["stats"]["n_nodes"] == 0
        assert [d["reason"] for d in body["diagnostics"]] == [
            '"nodes" is not a list',
            '"edges" is not a list',
        ]

    def test_stream(self, client, session_id):
        url = f"{API}/graph/sessions/{session_id}/stream?fps=0&max_frames=3"
        with client.websocket_connect(url) as ws:
            ticks = [ws.receive_json()["tick"] for _ in range(3)]
        assert ticks == [1, 2, 3]

    def test_stream_unknown_session(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"{API}/graph/sessions/nope/stream"):
                pass

    def test_second_stream_on_same_session_is_rejected(self, client, session_id):
        url = f"{API}/graph/sessions/{session_id}/stream"
        with client.websocket_connect(f"{url}?fps=5&max_frames=3") as ws:
            assert ws.receive_json()["tick"] == 1
            with pytest.raises(WebSocketDisconnect) as info:
                with client.websocket_connect(f"{url}?fps=0&max_frames=3"):
                    pass
            assert info.value.code == 4409
            ticks = [ws.receive_json()["tick"] for _ in range(2)]
        assert ticks == [2, 3]
