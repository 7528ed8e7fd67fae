import pytest
from sqlalchemy import select

from core.exceptions import AuthenticationError, ForbiddenError
from models.activation import DoerActivation
from models.profile import Doer, Supervisor
from services.profile_service import ProfileService


@pytest.mark.asyncio
async def test_new_doer_gets_doer_and_open_activation(db):
    profile, created = await ProfileService(db).get_or_create_profile("new@example.com", full_name="New Doer")
    assert created
    assert profile.role == "doer"

    doer = (await db.execute(select(Doer).filter(Doer.profile_id == profile.id))).scalar_one()
    activation = (await db.execute(select(DoerActivation).filter(DoerActivation.doer_id == doer.id))).scalar_one()
    assert not activation.training_completed
    assert not activation.quiz_passed
    assert not activation.bank_details_added
    assert not activation.is_fully_activated
    assert activation.total_quiz_attempts == 0


@pytest.mark.asyncio
async def test_existing_profile_is_returned(db):
    service = ProfileService(db)
    first, _ = await service.get_or_create_profile("same@example.com")
    second, created = await service.get_or_create_profile("same@example.com", full_name="Later Name")
    assert not created
    assert second.id == first.id
    assert second.full_name == "Later Name"


@pytest.mark.asyncio
async def test_new_supervisor(db):
    profile, _ = await ProfileService(db).get_or_create_profile("boss@example.com", role="supervisor")
    supervisor = (await db.execute(select(Supervisor).filter(Supervisor.profile_id == profile.id))).scalar_one()
    me = await ProfileService(db, profile.id).get_me()
    assert me["supervisor_id"] == supervisor.id
    assert me["doer_id"] is None


@pytest.mark.asyncio
async def test_get_me_requires_caller(db):
    with pytest.raises(AuthenticationError):
        await ProfileService(db).get_me()


@pytest.mark.asyncio
async def test_update_only_editable_fields(db, doer, other_doer):
    service = ProfileService(db, doer.profile_id)
    updated = await service.update_doer_profile(
        doer.id, qualification="MSc Physics", bio="Tutor", is_activated=True, total_earnings=9999
    )
    assert updated.qualification == "MSc Physics"
    assert updated.bio == "Tutor"
    assert not updated.is_activated
    assert updated.total_earnings == 0.0

    with pytest.raises(ForbiddenError):
        await ProfileService(db, other_doer.profile_id).update_doer_profile(doer.id, bio="hacked")
