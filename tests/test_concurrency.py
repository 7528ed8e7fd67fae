"""
Two callers interleaved on separate connections to one database file.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from conftest import ACTIVATED_FLAGS, NOW, create_doer, create_project
from core.exceptions import DataStoreError, NotFoundError
from models.activation import DoerActivation
from models.project import Project
from models.quiz import QuizAttempt, QuizQuestion
from services.activation_service import ActivationService
from services.project_service import ProjectService


@pytest.mark.asyncio
async def test_only_one_doer_wins_a_pool_task(session_factory):
    async with session_factory() as first, session_factory() as second:
        alice = await create_doer(first, "alice@example.com", **ACTIVATED_FLAGS)
        bob = await create_doer(first, "bob@example.com", **ACTIVATED_FLAGS)
        task = await create_project(first, "Open task")

        # Alice's session has already seen the task as open
        seen = await first.get(Project, task.id)
        assert seen.doer_id is None

        won = await ProjectService(second, bob.profile_id).accept_pool_task(task.id, bob.id)
        assert won.doer_id == bob.id

        with pytest.raises(NotFoundError):
            await ProjectService(first, alice.profile_id).accept_pool_task(task.id, alice.id)

    async with session_factory() as check:
        stored = await check.get(Project, task.id)
        assert stored.doer_id == bob.id
        assert stored.status == "assigned"


@pytest.mark.asyncio
async def test_racing_quiz_submissions_never_share_an_attempt_number(session_factory, monkeypatch):
    async with session_factory() as first, session_factory() as second:
        learner = await create_doer(first, "carol@example.com", training_completed=True, training_completed_at=NOW)
        first.add(QuizQuestion(
            target_role="doer",
            question_text="Question?",
            options=[{"id": 1, "label": "Right"}, {"id": 2, "label": "Wrong"}],
            correct_option_ids=[1],
        ))
        await first.commit()

        rival = ActivationService(second, learner.profile_id)
        real_flush = first.flush

        # The rival lands its attempt after this submission picked its number
        async def flush_after_rival(*args, **kwargs):
            await rival.submit_quiz_attempt(learner.id, {}, now=NOW)
            return await real_flush(*args, **kwargs)

        monkeypatch.setattr(first, "flush", flush_after_rival)
        with pytest.raises(DataStoreError):
            await ActivationService(first, learner.profile_id).submit_quiz_attempt(learner.id, {}, now=NOW)

    async with session_factory() as check:
        numbers = (await check.execute(
            select(QuizAttempt.attempt_number).filter(QuizAttempt.profile_id == learner.profile_id)
        )).scalars().all()
        assert numbers == [1]

        activation = (await check.execute(
            select(DoerActivation).filter(DoerActivation.doer_id == learner.id)
        )).scalar_one()
        assert activation.total_quiz_attempts == 1


@pytest.mark.asyncio
async def test_attempt_numbers_are_unique_per_profile(db, doer, other_doer):
    def attempt(profile_id, number):
        return QuizAttempt(
            profile_id=profile_id,
            attempt_number=number,
            score_percentage=0,
            correct_answers=0,
            total_questions=1,
            passing_score=80,
            is_passed=False,
            answers={},
        )

    # Same number for different profiles is fine
    db.add_all([attempt(doer.profile_id, 1), attempt(other_doer.profile_id, 1)])
    await db.commit()

    db.add(attempt(doer.profile_id, 1))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()
