from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError

from core.config import settings
from core.exceptions import ActivationStateError, DataStoreError, NotFoundError
from db.utils import commit_or_raise
from core.logger import logger
from models.activation import DoerActivation
from models.base import utcnow
from models.profile import Doer
from models.quiz import QuizAttempt, QuizQuestion
from models.training import TrainingModule, TrainingProgress
from schemas.activation import BankDetails
from schemas.quiz import QuizQuestionKey, QuizQuestionPublic
from services.access_guard import guarded, verify_doer_ownership
from services.activation_flow import ActivationStep, check_rate_limit, complete_step, current_step
from services.scoring import calculate_score, is_passed, remaining_attempts


@dataclass
class QuizSubmission:
    attempt: Optional[QuizAttempt] = None
    passed: bool = False
    rate_limited: bool = False
    retry_after_minutes: Optional[int] = None
    remaining_attempts: int = 0


class ActivationService:
    """Doer onboarding: training, activation quiz and bank details."""

    def __init__(self, db: AsyncSession, caller_id: Optional[int] = None):
        self.db = db
        self.caller_id = caller_id

    async def _get_activation(self, doer_id: int) -> Optional[DoerActivation]:
        result = await self.db.execute(select(DoerActivation).filter(DoerActivation.doer_id == doer_id))
        return result.scalar_one_or_none()

    async def _require_activation(self, doer_id: int) -> DoerActivation:
        activation = await self._get_activation(doer_id)
        if activation is None:
            raise NotFoundError("Activation record not found")
        return activation

    async def _profile_id(self, doer_id: int) -> int:
        result = await self.db.execute(select(Doer.profile_id).filter(Doer.id == doer_id))
        return result.scalar_one()

    # --- Activation record ---

    @guarded(verify_doer_ownership, "doer_id")
    async def get_activation_status(self, doer_id: int) -> Optional[DoerActivation]:
        try:
            return await self._get_activation(doer_id)
        except SQLAlchemyError as e:
            logger.error("Error fetching activation status", doer_id=doer_id, error=str(e))
            return None

    @guarded(verify_doer_ownership, "doer_id")
    async def create_activation(self, doer_id: int) -> DoerActivation:
        existing = await self._get_activation(doer_id)
        if existing:
            return existing

        activation = DoerActivation(
            doer_id=doer_id,
            training_completed=False,
            quiz_passed=False,
            total_quiz_attempts=0,
            bank_details_added=False,
            is_fully_activated=False,
        )
        self.db.add(activation)
        await commit_or_raise(self.db, "Error creating activation", doer_id=doer_id)
        await self.db.refresh(activation)
        logger.info("Activation record created", doer_id=doer_id)
        return activation

    @guarded(verify_doer_ownership, "doer_id")
    async def get_current_step(self, doer_id: int) -> ActivationStep:
        try:
            activation = await self._get_activation(doer_id)
        except SQLAlchemyError as e:
            logger.error("Error fetching activation step", doer_id=doer_id, error=str(e))
            activation = None
        if activation is None:
            return ActivationStep.TRAINING
        return current_step(activation)

    @guarded(verify_doer_ownership, "doer_id")
    async def is_fully_activated(self, doer_id: int) -> bool:
        try:
            activation = await self._get_activation(doer_id)
        except SQLAlchemyError as e:
            logger.error("Error fetching activation flag", doer_id=doer_id, error=str(e))
            return False
        return bool(activation and activation.is_fully_activated)

    # --- Training ---

    async def get_training_modules(self) -> List[TrainingModule]:
        try:
            result = await self.db.execute(
                select(TrainingModule)
                .filter(TrainingModule.is_active == True)
                .order_by(TrainingModule.sequence_order.asc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching training modules", error=str(e))
            return []

    @guarded(verify_doer_ownership, "doer_id")
    async def get_training_progress(self, doer_id: int) -> List[TrainingProgress]:
        try:
            profile_id = await self._profile_id(doer_id)
            result = await self.db.execute(
                select(TrainingProgress).filter(TrainingProgress.profile_id == profile_id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching training progress", doer_id=doer_id, error=str(e))
            return []

    @guarded(verify_doer_ownership, "doer_id")
    async def update_training_progress(
        self, doer_id: int, module_id: int, status: str, progress_percentage: int = 0
    ) -> TrainingProgress:
        module = await self.db.get(TrainingModule, module_id)
        if module is None or not module.is_active:
            raise NotFoundError("Training module not found")

        profile_id = await self._profile_id(doer_id)
        result = await self.db.execute(
            select(TrainingProgress).filter(
                TrainingProgress.profile_id == profile_id,
                TrainingProgress.module_id == module_id,
            )
        )
        progress = result.scalar_one_or_none()
        if progress is None:
            progress = TrainingProgress(profile_id=profile_id, module_id=module_id)
            self.db.add(progress)

        progress.status = status
        progress.progress_percentage = 100 if status == "completed" else progress_percentage
        if status == "completed" and progress.completed_at is None:
            progress.completed_at = utcnow()

        await commit_or_raise(self.db, "Error updating training progress", doer_id=doer_id, module_id=module_id)
        await self.db.refresh(progress)
        return progress

    @guarded(verify_doer_ownership, "doer_id")
    async def complete_training(self, doer_id: int) -> DoerActivation:
        activation = await self._require_activation(doer_id)
        profile_id = await self._profile_id(doer_id)

        mandatory = await self.db.execute(
            select(TrainingModule.id).filter(
                TrainingModule.is_active == True,
                TrainingModule.is_mandatory == True,
            )
        )
        completed = await self.db.execute(
            select(TrainingProgress.module_id).filter(
                TrainingProgress.profile_id == profile_id,
                TrainingProgress.status == "completed",
            )
        )
        missing = set(mandatory.scalars().all()) - set(completed.scalars().all())
        if missing:
            raise ActivationStateError("Complete all mandatory training modules first")

        if complete_step(activation, ActivationStep.TRAINING, utcnow()):
            await commit_or_raise(self.db, "Error completing training", doer_id=doer_id)
            logger.info("Training completed", doer_id=doer_id)
        return activation

    # --- Quiz ---

    async def get_quiz_questions(self, target_role: Optional[str] = None) -> List[QuizQuestionPublic]:
        """Active questions without their answer key."""
        role = target_role or settings.QUIZ_TARGET_ROLE
        try:
            result = await self.db.execute(
                select(
                    QuizQuestion.id,
                    QuizQuestion.target_role,
                    QuizQuestion.question_text,
                    QuizQuestion.question_type,
                    QuizQuestion.options,
                    QuizQuestion.explanation,
                    QuizQuestion.points,
                    QuizQuestion.sequence_order,
                )
                .filter(QuizQuestion.is_active == True, QuizQuestion.target_role == role)
                .order_by(QuizQuestion.sequence_order.asc())
            )
            return [QuizQuestionPublic.model_validate(dict(row._mapping)) for row in result.all()]
        except SQLAlchemyError as e:
            logger.error("Error fetching quiz questions", error=str(e))
            return []

    async def _load_answer_key(self, target_role: str) -> List[QuizQuestionKey]:
        result = await self.db.execute(
            select(QuizQuestion.id, QuizQuestion.options, QuizQuestion.correct_option_ids)
            .filter(QuizQuestion.is_active == True, QuizQuestion.target_role == target_role)
        )
        try:
            return [QuizQuestionKey.model_validate(dict(row._mapping)) for row in result.all()]
        except ValidationError as e:
            logger.error("Stored quiz answer key is invalid", target_role=target_role, error=str(e))
            raise DataStoreError() from e

    @guarded(verify_doer_ownership, "doer_id")
    async def get_quiz_attempts(self, doer_id: int) -> List[QuizAttempt]:
        try:
            profile_id = await self._profile_id(doer_id)
            result = await self.db.execute(
                select(QuizAttempt)
                .filter(QuizAttempt.profile_id == profile_id)
                .order_by(QuizAttempt.started_at.desc(), QuizAttempt.attempt_number.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching quiz attempts", doer_id=doer_id, error=str(e))
            return []

    @guarded(verify_doer_ownership, "doer_id")
    async def submit_quiz_attempt(self, doer_id: int, answers: Dict[int, int], now=None) -> QuizSubmission:
        """
        Score a quiz submission on the server and record the attempt.

        Any score the client computed is ignored. Failed attempts are kept
        too, and the attempt number grows regardless of outcome.
        """
        now = now or utcnow()
        activation = await self._require_activation(doer_id)
        if current_step(activation) == ActivationStep.TRAINING:
            raise ActivationStateError("Complete training before taking the quiz")

        profile_id = await self._profile_id(doer_id)
        window = timedelta(minutes=settings.QUIZ_RATE_LIMIT_WINDOW_MINUTES)
        recent = await self.db.execute(
            select(QuizAttempt.started_at).filter(
                QuizAttempt.profile_id == profile_id,
                QuizAttempt.started_at >= now - window,
            )
        )
        recent_times = list(recent.scalars().all())

        decision = check_rate_limit(
            recent_times,
            now,
            max_attempts=settings.QUIZ_MAX_ATTEMPTS,
            window_minutes=settings.QUIZ_RATE_LIMIT_WINDOW_MINUTES,
        )
        if decision.rate_limited:
            logger.warning("Quiz rate limit exceeded", doer_id=doer_id, retry_after=decision.retry_after_minutes)
            return QuizSubmission(rate_limited=True, retry_after_minutes=decision.retry_after_minutes)

        role = settings.QUIZ_TARGET_ROLE
        score = calculate_score(await self._load_answer_key(role), answers)
        passed = is_passed(score.percentage, settings.QUIZ_PASSING_SCORE)

        last_number = await self.db.execute(
            select(func.max(QuizAttempt.attempt_number)).filter(QuizAttempt.profile_id == profile_id)
        )
        attempt = QuizAttempt(
            profile_id=profile_id,
            target_role=role,
            attempt_number=(last_number.scalar() or 0) + 1,
            score_percentage=score.percentage,
            correct_answers=score.correct_count,
            total_questions=score.total_questions,
            passing_score=settings.QUIZ_PASSING_SCORE,
            is_passed=passed,
            answers={str(question_id): option_id for question_id, option_id in answers.items()},
            started_at=now,
            completed_at=now,
        )
        self.db.add(attempt)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Error submitting quiz attempt", doer_id=doer_id, error=str(e))
            raise DataStoreError() from e

        activation.total_quiz_attempts += 1
        if passed and complete_step(activation, ActivationStep.QUIZ, now):
            activation.quiz_attempt_id = attempt.id

        await commit_or_raise(self.db, "Error submitting quiz attempt", doer_id=doer_id)
        logger.info(
            "Quiz attempt recorded",
            doer_id=doer_id,
            attempt_number=attempt.attempt_number,
            percentage=score.percentage,
            passed=passed,
        )
        return QuizSubmission(
            attempt=attempt,
            passed=passed,
            remaining_attempts=remaining_attempts(len(recent_times) + 1, settings.QUIZ_MAX_ATTEMPTS),
        )

    # --- Bank details ---

    @guarded(verify_doer_ownership, "doer_id")
    async def submit_bank_details(self, doer_id: int, details: BankDetails) -> DoerActivation:
        activation = await self._require_activation(doer_id)
        # Raises before anything is written if the quiz is not passed yet
        complete_step(activation, ActivationStep.BANK_DETAILS, utcnow())

        doer = await self.db.get(Doer, doer_id)
        doer.bank_account_name = details.account_holder_name
        doer.bank_account_number = details.account_number
        doer.bank_ifsc_code = details.ifsc_code
        doer.bank_name = details.bank_name
        doer.upi_id = details.upi_id
        doer.is_activated = activation.is_fully_activated

        await commit_or_raise(self.db, "Error saving bank details", doer_id=doer_id)
        logger.info("Bank details saved", doer_id=doer_id, activated=activation.is_fully_activated)
        return activation
