import pytest

from conftest import create_doer, create_project
from core.exceptions import AuthenticationError, ForbiddenError, NotFoundError
from models.project import ProjectDeliverable
from services.access_guard import (
    guarded,
    verify_child_ownership,
    verify_doer_ownership,
    verify_project_access,
    verify_project_assignment,
    verify_supervisor_ownership,
)


@pytest.mark.asyncio
async def test_doer_owner_passes(db, doer):
    await verify_doer_ownership(db, doer.profile_id, doer.id)


@pytest.mark.asyncio
async def test_doer_other_caller_is_forbidden(db, doer, other_doer):
    with pytest.raises(ForbiddenError):
        await verify_doer_ownership(db, other_doer.profile_id, doer.id)


@pytest.mark.asyncio
async def test_missing_doer_is_not_found(db, doer):
    with pytest.raises(NotFoundError):
        await verify_doer_ownership(db, doer.profile_id, 9999)


@pytest.mark.asyncio
async def test_missing_caller_fails_before_lookup(db):
    # Resource does not exist either; authentication is checked first
    with pytest.raises(AuthenticationError):
        await verify_doer_ownership(db, None, 9999)
    with pytest.raises(AuthenticationError):
        await verify_project_access(db, None, 9999)


@pytest.mark.asyncio
async def test_supervisor_ownership(db, supervisor, doer):
    await verify_supervisor_ownership(db, supervisor.profile_id, supervisor.id)
    with pytest.raises(ForbiddenError):
        await verify_supervisor_ownership(db, doer.profile_id, supervisor.id)


@pytest.mark.asyncio
async def test_project_access_for_doer_and_supervisor(db, doer, other_doer, supervisor):
    project = await create_project(db, "Essay", doer_id=doer.id, supervisor_id=supervisor.id, status="assigned")

    await verify_project_access(db, doer.profile_id, project.id)
    await verify_project_access(db, supervisor.profile_id, project.id)
    with pytest.raises(ForbiddenError):
        await verify_project_access(db, other_doer.profile_id, project.id)


@pytest.mark.asyncio
async def test_unassigned_project_is_forbidden_to_doers(db, doer):
    project = await create_project(db, "Open task")
    with pytest.raises(ForbiddenError):
        await verify_project_access(db, doer.profile_id, project.id)


@pytest.mark.asyncio
async def test_project_assignment(db, doer, other_doer):
    project = await create_project(db, "Report", doer_id=doer.id, status="in_progress")
    await verify_project_assignment(db, doer.profile_id, project.id, doer.id)

    with pytest.raises(ForbiddenError):
        await verify_project_assignment(db, other_doer.profile_id, project.id, other_doer.id)
    with pytest.raises(NotFoundError):
        await verify_project_assignment(db, doer.profile_id, 9999, doer.id)


@pytest.mark.asyncio
async def test_child_guard_follows_parent(db, doer, other_doer):
    project = await create_project(db, "Thesis", doer_id=doer.id, status="in_progress")
    deliverable = ProjectDeliverable(
        project_id=project.id, uploaded_by=doer.id, file_name="draft.docx", file_url="s3://bucket/draft.docx"
    )
    db.add(deliverable)
    await db.commit()

    guard = verify_child_ownership(ProjectDeliverable, "project_id", verify_project_access)
    await guard(db, doer.profile_id, deliverable.id)
    with pytest.raises(ForbiddenError):
        await guard(db, other_doer.profile_id, deliverable.id)
    with pytest.raises(NotFoundError):
        await guard(db, doer.profile_id, 9999)
    with pytest.raises(AuthenticationError):
        await guard(db, None, deliverable.id)


class Resource:
    def __init__(self, db, caller_id):
        self.db = db
        self.caller_id = caller_id
        self.calls = 0

    @guarded(verify_doer_ownership, "doer_id")
    async def read(self, doer_id, extra=None):
        self.calls += 1
        return doer_id


@pytest.mark.asyncio
async def test_guarded_runs_guard_before_body(db, doer, other_doer):
    owner = Resource(db, doer.profile_id)
    assert await owner.read(doer.id) == doer.id
    assert await owner.read(doer_id=doer.id, extra=1) == doer.id

    intruder = Resource(db, other_doer.profile_id)
    with pytest.raises(ForbiddenError):
        await intruder.read(doer.id)
    assert intruder.calls == 0


def test_guarded_rejects_unknown_argument():
    with pytest.raises(TypeError):
        @guarded(verify_doer_ownership, "missing")
        async def method(self, doer_id):
            return doer_id


def test_guarded_records_stacked_guards():
    @guarded(verify_project_access, "project_id")
    @guarded(verify_doer_ownership, "doer_id")
    async def method(self, project_id, doer_id):
        return None

    assert method.__guards__ == (verify_project_access, verify_doer_ownership)


@pytest.mark.asyncio
async def test_guards_never_cache_decisions(db):
    doer = await create_doer(db, "erin@example.com")
    await verify_doer_ownership(db, doer.profile_id, doer.id)

    await db.delete(doer)
    await db.commit()
    with pytest.raises(NotFoundError):
        await verify_doer_ownership(db, doer.profile_id, doer.id)
