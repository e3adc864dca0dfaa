"""Tests for the /api/import endpoints."""

from datetime import date

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from kakeibo.database import get_db, get_session_factory
from kakeibo.main import app
from kakeibo.routers.import_excel import ExecuteRequest, execute_import, get_upload_dir

from .helpers import add_transaction, parse_ndjson, stored

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client(session_factory, upload_dir):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_upload_dir] = lambda: upload_dir
    yield TestClient(app)
    app.dependency_overrides.clear()


def post_analyze(client, path):
    with open(path, "rb") as f:
        return client.post("/api/import/analyze", files={"file": (path.name, f, XLSX)})


class TestAnalyzeEndpoint:
    def test_streams_ndjson(self, client, sample_workbook, upload_dir):
        resp = post_analyze(client, sample_workbook)

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/x-ndjson")
        events = parse_ndjson(resp.text)
        assert events[0]["type"] == "progress"
        assert events[-1]["type"] == "complete"
        token = events[-1]["data"]["token"]
        assert (upload_dir / token).exists()
        assert [d["sheet"] for d in events[-1]["data"]["summary"]["daily"]] == ["2022年12月", "2023年4月"]

    def test_no_file(self, client):
        resp = client.post("/api/import/analyze", data={"note": "no file"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No file uploaded"

    def test_empty_file(self, client):
        resp = client.post("/api/import/analyze", files={"file": ("empty.xlsx", b"", XLSX)})
        assert resp.status_code == 400

    def test_garbage_file_streams_error(self, client, upload_dir):
        resp = client.post("/api/import/analyze", files={"file": ("x.xlsx", b"not excel", XLSX)})
        events = parse_ndjson(resp.text)
        assert events[-1]["type"] == "error"
        assert list(upload_dir.iterdir()) == []


class TestExecuteEndpoint:
    def _token(self, client, path):
        return parse_ndjson(post_analyze(client, path).text)[-1]["data"]["token"]

    def test_full_flow(self, client, sample_workbook, upload_dir, db):
        token = self._token(client, sample_workbook)

        resp = client.post("/api/import/execute", json={"token": token})

        assert resp.status_code == 200
        events = parse_ndjson(resp.text)
        assert events[-1] == {"type": "complete", "results": {"daily": 5, "fixed": 7}}
        assert len(stored(db)) == 12
        assert list(upload_dir.iterdir()) == []

    def test_target_year_as_string(self, client, sample_workbook, db):
        add_transaction(db, date(2022, 12, 5), 100, 12345)
        token = self._token(client, sample_workbook)

        resp = client.post("/api/import/execute", json={"token": token, "targetYear": "2023"})

        assert parse_ndjson(resp.text)[-1]["results"] == {"daily": 3, "fixed": 5}
        assert stored(db, "2022-12") == [("2022-12", 100, 12345)]

    def test_blank_target_year_means_all(self, client, sample_workbook):
        token = self._token(client, sample_workbook)
        resp = client.post("/api/import/execute", json={"token": token, "targetYear": ""})
        assert parse_ndjson(resp.text)[-1]["results"] == {"daily": 5, "fixed": 7}

    def test_second_execute_is_not_found(self, client, sample_workbook):
        token = self._token(client, sample_workbook)
        assert client.post("/api/import/execute", json={"token": token}).status_code == 200

        resp = client.post("/api/import/execute", json={"token": token})
        assert resp.status_code == 404

    def test_missing_token(self, client):
        assert client.post("/api/import/execute", json={}).status_code == 400

    @pytest.mark.parametrize("token", ["does-not-exist.xlsx", "../ledger.xlsx", "/etc/passwd"])
    def test_bad_token(self, client, token):
        assert client.post("/api/import/execute", json={"token": token}).status_code == 404

    def test_unread_response_still_discards_workbook(self, client, sample_workbook, upload_dir):
        token = self._token(client, sample_workbook)
        tasks = BackgroundTasks()

        resp = execute_import(ExecuteRequest(token=token), tasks, lambda: None, upload_dir)

        assert resp.status_code == 200
        assert [p.name for p in upload_dir.iterdir()] == [token + ".claimed"]
        for task in tasks.tasks:
            task.func(*task.args, **task.kwargs)
        assert list(upload_dir.iterdir()) == []
