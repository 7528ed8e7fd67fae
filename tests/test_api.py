import httpx
import pytest
import pytest_asyncio

from datetime import timedelta

from conftest import all_correct, create_project
from core.security import create_session_token
from models.base import utcnow
from db.session import get_db, get_redis
from api.main import app


def auth(profile_id):
    return {"X-Auth-Token": create_session_token(profile_id)}


@pytest_asyncio.fixture
async def client(db, fake_redis):
    async def override_db():
        yield db

    async def override_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_redis] = override_redis
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_me(client, doer):
    response = await client.get("/api/me", headers=auth(doer.profile_id))
    assert response.status_code == 200
    body = response.json()
    assert body["doer_id"] == doer.id
    assert body["supervisor_id"] is None


@pytest.mark.asyncio
async def test_missing_or_bad_token_is_401(client, doer):
    assert (await client.get(f"/api/doers/{doer.id}/activation")).status_code == 401
    response = await client.get(f"/api/doers/{doer.id}/activation", headers={"X-Auth-Token": "1:2:bad"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_bearer_token_is_accepted(client, doer):
    token = create_session_token(doer.profile_id)
    response = await client.get(
        f"/api/doers/{doer.id}/activation", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_forbidden_and_not_found(client, doer, other_doer):
    response = await client.get(f"/api/doers/{doer.id}/activation", headers=auth(other_doer.profile_id))
    assert response.status_code == 403
    assert response.json() == {"detail": "Permission denied"}

    response = await client.get("/api/projects/9999", headers=auth(doer.profile_id))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_quiz_questions_hide_answer_key(client, doer, quiz_questions):
    response = await client.get("/api/quiz/questions", headers=auth(doer.profile_id))
    assert response.status_code == 200
    questions = response.json()
    assert len(questions) == 5
    for question in questions:
        assert "correct_option_ids" not in question
        assert {"id", "label"} == set(question["options"][0])


@pytest.mark.asyncio
async def test_quiz_submission_flow(client, trained_doer, quiz_questions):
    headers = auth(trained_doer.profile_id)
    answers = {str(k): v for k, v in all_correct(quiz_questions).items()}

    response = await client.post(
        f"/api/doers/{trained_doer.id}/quiz/attempts", json={"answers": answers}, headers=headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["passed"] is True
    assert body["rate_limited"] is False
    assert body["attempt"]["score_percentage"] == 100.0

    step = await client.get(f"/api/doers/{trained_doer.id}/activation/step", headers=headers)
    assert step.json()["current_step"] == "bank_details"


@pytest.mark.asyncio
async def test_quiz_before_training_is_conflict(client, doer, quiz_questions):
    response = await client.post(
        f"/api/doers/{doer.id}/quiz/attempts", json={"answers": {}}, headers=auth(doer.profile_id)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_bank_details_are_422(client, trained_doer):
    response = await client.post(
        f"/api/doers/{trained_doer.id}/bank-details",
        json={"account_holder_name": "X1", "account_number": "12", "ifsc_code": "bad"},
        headers=auth(trained_doer.profile_id),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_project_listing_by_category(client, db, doer):
    await create_project(db, "Draft chapter", doer_id=doer.id, status="in_progress")
    await create_project(db, "Delivered", doer_id=doer.id, status="completed")
    headers = auth(doer.profile_id)

    response = await client.get(f"/api/doers/{doer.id}/projects", params={"category": "active"}, headers=headers)
    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == ["Draft chapter"]

    response = await client.get(f"/api/doers/{doer.id}/projects", params={"category": "archived"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deliverable_upload_and_read(client, db, doer, supervisor):
    project = await create_project(db, "Thesis", doer_id=doer.id, supervisor_id=supervisor.id, status="in_progress")
    response = await client.post(
        f"/api/projects/{project.id}/deliverables",
        json={"doer_id": doer.id, "file_name": "v1.pdf", "file_url": "s3://files/v1.pdf"},
        headers=auth(doer.profile_id),
    )
    assert response.status_code == 200
    deliverable = response.json()
    assert deliverable["version"] == 1

    response = await client.get(f"/api/deliverables/{deliverable['id']}", headers=auth(supervisor.profile_id))
    assert response.status_code == 200
    assert response.json()["file_name"] == "v1.pdf"


@pytest.mark.asyncio
async def test_analysis_endpoints(client, doer):
    headers = auth(doer.profile_id)
    payload = {"content": "Studies have shown that i recieve alot of mail."}

    ai = await client.post("/api/analysis/ai", json=payload, headers=headers)
    assert ai.status_code == 200
    assert ai.json()["overall_verdict"] in ("human", "ai_generated", "mixed")
    assert "analysis_timestamp" in ai.json()

    plagiarism = await client.post("/api/analysis/plagiarism", json=payload, headers=headers)
    assert plagiarism.json()["sources_found"] == 1

    grammar = await client.post("/api/analysis/grammar", json=payload, headers=headers)
    assert grammar.json()["score"] < 100


@pytest.mark.asyncio
async def test_analysis_requires_auth_and_content(client, doer):
    assert (await client.post("/api/analysis/ai", json={"content": "hello"})).status_code == 401
    response = await client.post("/api/analysis/ai", json={"content": ""}, headers=auth(doer.profile_id))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_analysis_rate_limit(client, doer, fake_redis):
    headers = auth(doer.profile_id)
    fake_redis.store[f"rl:analysis:{doer.profile_id}"] = 10
    response = await client.post("/api/analysis/grammar", json={"content": "hello"}, headers=headers)
    assert response.status_code == 429


@pytest.mark.asyncio
async def test_category_listing_keeps_search_and_sort(client, db, doer):
    await create_project(db, "Essay draft", doer_id=doer.id, status="in_progress")
    await create_project(db, "Another essay", doer_id=doer.id, status="assigned")
    await create_project(db, "Lab report", doer_id=doer.id, status="in_progress")
    await create_project(db, "Old essay", doer_id=doer.id, status="completed")

    response = await client.get(
        f"/api/doers/{doer.id}/projects",
        params={"category": "active", "search": "essay", "sort": "title", "ascending": "false"},
        headers=auth(doer.profile_id),
    )
    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == ["Essay draft", "Another essay"]


@pytest.mark.asyncio
async def test_active_projects_count(client, db, doer, other_doer):
    await create_project(db, "A", doer_id=doer.id, status="in_progress")
    await create_project(db, "B", doer_id=doer.id, status="in_revision")
    await create_project(db, "C", doer_id=doer.id, status="completed")

    response = await client.get(f"/api/doers/{doer.id}/projects/active-count", headers=auth(doer.profile_id))
    assert response.status_code == 200
    assert response.json() == {"doer_id": doer.id, "active_count": 2}

    response = await client.get(f"/api/doers/{doer.id}/projects/active-count", headers=auth(other_doer.profile_id))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_close_deadline_is_reported_urgent(client, db, doer):
    soon = await create_project(db, "Due soon", doer_id=doer.id, status="in_progress", deadline=utcnow() + timedelta(hours=2))
    later = await create_project(db, "Due later", doer_id=doer.id, status="in_progress", deadline=utcnow() + timedelta(days=4))
    headers = auth(doer.profile_id)

    assert (await client.get(f"/api/projects/{soon.id}", headers=headers)).json()["is_urgent"] is True
    assert (await client.get(f"/api/projects/{later.id}", headers=headers)).json()["is_urgent"] is False
