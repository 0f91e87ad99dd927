import pytest
from datetime import datetime
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from resumatch.middleware.error_handlers import ExceptionHandlerMiddleware
from resumatch.services.auth import get_current_user
from resumatch.services.embeddings import generate_embedding
from resumatch.services.idempotency import idempotency_cache

USER = {"id": "u1", "name": "Jane Doe", "email": "jane@example.com", "role": "USER"}
RECRUITER = {"id": "r1", "name": "Rita Recruiter", "email": "rita@corp.com", "role": "RECRUITER"}

STORED = {
    "id": "res-1",
    "user_id": "u1",
    "filename": "jane.txt",
    "text": "Jane Doe jane@example.com 555-123-4567 React developer",
    "pii": {"emails": ["jane@example.com"], "phones": ["555-123-4567"], "names": ["Jane Doe"]},
    "created_at": datetime(2024, 1, 1),
}


@pytest.fixture
def test_app():
    from resumatch.routers import resumes

    app = FastAPI()
    app.add_middleware(ExceptionHandlerMiddleware)
    app.include_router(resumes.router, prefix="/api")
    return app


@pytest.fixture(autouse=True)
def clear_idempotency_cache():
    idempotency_cache._entries.clear()
    yield
    idempotency_cache._entries.clear()


@pytest.fixture
def as_user(test_app):
    def _as(user):
        test_app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(test_app)
    return _as


def page_cursor(mock_coll, docs, total):
    mock_coll.count_documents = AsyncMock(return_value=total)
    mock_coll.find.return_value.sort.return_value.skip.return_value.limit.return_value.to_list = AsyncMock(return_value=docs)


class TestUploadResumes:
    """POST /api/resumes"""

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_upload_txt(self, mock_resumes_coll, as_user):
        mock_resumes_coll.insert_one = AsyncMock()

        response = as_user(USER).post(
            "/api/resumes",
            files=[("resumes", ("jane.txt", b"Jane Doe jane@example.com React", "text/plain"))],
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Successfully uploaded 1 resume(s)"
        assert data["resumes"][0]["filename"] == "jane.txt"
        assert data["resumes"][0]["textLength"] == len("Jane Doe jane@example.com React")

        stored = mock_resumes_coll.insert_one.call_args[0][0]
        assert stored["user_id"] == "u1"
        assert len(stored["embedding"]) == 384
        assert stored["pii"]["emails"] == ["jane@example.com"]

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_unparseable_file_is_skipped(self, mock_resumes_coll, as_user):
        mock_resumes_coll.insert_one = AsyncMock()

        response = as_user(USER).post(
            "/api/resumes",
            files=[
                ("resumes", ("broken.docx", b"not a docx", "application/octet-stream")),
                ("resumes", ("ok.txt", b"Python", "text/plain")),
            ],
        )

        assert response.status_code == 201
        assert [r["filename"] for r in response.json()["resumes"]] == ["ok.txt"]
        assert mock_resumes_coll.insert_one.await_count == 1

    def test_invalid_file_type(self, as_user):
        response = as_user(USER).post(
            "/api/resumes", files=[("resumes", ("photo.png", b"\x89PNG", "image/png"))],
        )
        assert response.status_code == 400
        assert response.json()["error"]["error_code"] == "VALIDATION_ERROR"

    def test_too_many_files(self, as_user):
        files = [("resumes", (f"{i}.txt", b"x", "text/plain")) for i in range(11)]
        response = as_user(USER).post("/api/resumes", files=files)
        assert response.status_code == 400

    def test_oversized_file(self, as_user):
        with patch('resumatch.routers.resumes.MAX_UPLOAD_BYTES', 4):
            response = as_user(USER).post(
                "/api/resumes", files=[("resumes", ("big.txt", b"too big", "text/plain"))],
            )
        assert response.status_code == 400

    def test_recruiters_cannot_upload(self, as_user):
        response = as_user(RECRUITER).post(
            "/api/resumes", files=[("resumes", ("a.txt", b"x", "text/plain"))],
        )
        assert response.status_code == 403

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_idempotent_replay_from_cache(self, mock_resumes_coll, as_user):
        mock_resumes_coll.insert_one = AsyncMock()
        mock_resumes_coll.find.return_value.to_list = AsyncMock(return_value=[])
        client = as_user(USER)
        files = [("resumes", ("jane.txt", b"React", "text/plain"))]

        first = client.post("/api/resumes", files=files, headers={"Idempotency-Key": "k1"})
        second = client.post("/api/resumes", files=files, headers={"Idempotency-Key": "k1"})

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json() == first.json()
        assert mock_resumes_coll.insert_one.await_count == 1
        stored = mock_resumes_coll.insert_one.call_args[0][0]
        assert stored["idempotency_key"] == "k1"

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_idempotent_replay_from_database(self, mock_resumes_coll, as_user):
        mock_resumes_coll.insert_one = AsyncMock()
        mock_resumes_coll.find.return_value.to_list = AsyncMock(
            return_value=[{"id": "res-1", "filename": "jane.txt", "text": "React"}]
        )

        response = as_user(USER).post(
            "/api/resumes",
            files=[("resumes", ("jane.txt", b"React", "text/plain"))],
            headers={"Idempotency-Key": "k2"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Resume already uploaded (idempotent)"
        assert data["resumes"] == [{"id": "res-1", "filename": "jane.txt", "textLength": 5}]
        mock_resumes_coll.insert_one.assert_not_called()


class TestListResumes:
    """GET /api/resumes and GET /api/resumes/{id}"""

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_user_sees_own_redacted(self, mock_resumes_coll, as_user):
        page_cursor(mock_resumes_coll, [dict(STORED)], total=1)

        response = as_user(USER).get("/api/resumes")

        assert response.status_code == 200
        data = response.json()
        item = data["items"][0]
        assert "jane@example.com" not in item["text"]
        assert "[EMAIL REDACTED]" in item["text"]
        assert "[PHONE REDACTED]" in item["text"]
        assert item["pii"] is None
        assert data["next_offset"] is None
        mock_resumes_coll.count_documents.assert_awaited_once_with({"user_id": "u1"})

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_recruiter_sees_all_with_pii(self, mock_resumes_coll, as_user):
        page_cursor(mock_resumes_coll, [dict(STORED)], total=25)

        response = as_user(RECRUITER).get("/api/resumes?limit=10&offset=0&q=react.js")

        assert response.status_code == 200
        data = response.json()
        assert data["items"][0]["text"] == STORED["text"]
        assert data["items"][0]["pii"]["emails"] == ["jane@example.com"]
        assert data["next_offset"] == 10
        query = mock_resumes_coll.count_documents.call_args[0][0]
        assert query == {"text": {"$regex": r"react\.js", "$options": "i"}}

    def test_limit_bounds(self, as_user):
        assert as_user(USER).get("/api/resumes?limit=0").status_code == 422
        assert as_user(USER).get("/api/resumes?limit=101").status_code == 422

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_get_missing(self, mock_resumes_coll, as_user):
        mock_resumes_coll.find_one = AsyncMock(return_value=None)
        response = as_user(USER).get("/api/resumes/nope")
        assert response.status_code == 404

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_get_other_users_resume(self, mock_resumes_coll, as_user):
        mock_resumes_coll.find_one = AsyncMock(return_value={**STORED, "user_id": "someone-else"})
        response = as_user(USER).get("/api/resumes/res-1")
        assert response.status_code == 403

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_get_own_resume(self, mock_resumes_coll, as_user):
        mock_resumes_coll.find_one = AsyncMock(return_value=dict(STORED))
        response = as_user(USER).get("/api/resumes/res-1")
        assert response.status_code == 200
        assert response.json()["id"] == "res-1"


class TestAsk:
    """POST /api/ask"""

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_user_snippets_are_redacted(self, mock_resumes_coll, as_user):
        doc = {**STORED, "embedding": generate_embedding("React developer")}
        mock_resumes_coll.find = MagicMock()
        mock_resumes_coll.find.return_value.to_list = AsyncMock(return_value=[doc])

        response = as_user(USER).post("/api/ask", json={"query": "React developer"})

        assert response.status_code == 200
        snippets = response.json()["snippets"]
        assert [s["resume_id"] for s in snippets] == ["res-1"]
        assert "jane@example.com" not in snippets[0]["text"]
        assert mock_resumes_coll.find.call_args[0][0] == {"user_id": "u1"}

    @patch('resumatch.routers.resumes.resumes_coll')
    def test_recruiter_searches_everything(self, mock_resumes_coll, as_user):
        mock_resumes_coll.find.return_value.to_list = AsyncMock(return_value=[])

        response = as_user(RECRUITER).post("/api/ask", json={"query": "anything", "k": 3})

        assert response.status_code == 200
        assert response.json() == {"snippets": []}
        assert mock_resumes_coll.find.call_args[0][0] == {}

    def test_empty_query_rejected(self, as_user):
        assert as_user(USER).post("/api/ask", json={"query": ""}).status_code == 422
