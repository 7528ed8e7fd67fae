import asyncio
import json
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError

from db.session import AsyncSessionLocal
from models.quiz import QuizQuestion
from models.training import TrainingModule
from schemas.quiz import QuizQuestionKey
from core.logger import logger, setup_logging

DATA_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "activation.json")


def load_seed_file(path: str) -> dict:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    # Reject answer keys that point at options the question does not have
    for index, question in enumerate(data.get("quiz_questions", [])):
        QuizQuestionKey.model_validate({"id": index + 1, **question})
    return data


async def seed_activation_content(path: str = DATA_FILE):
    try:
        data = load_seed_file(path)
    except (OSError, ValueError, ValidationError) as e:
        print(f"❌ Could not read seed file {path}: {e}")
        return

    async with AsyncSessionLocal() as session:
        try:
            existing_titles = set((await session.execute(select(TrainingModule.title))).scalars().all())
            modules_added = 0
            for order, module in enumerate(data.get("training_modules", []), start=1):
                if module["title"] in existing_titles:
                    continue
                session.add(TrainingModule(sequence_order=order, **module))
                modules_added += 1

            existing_questions = set((await session.execute(select(QuizQuestion.question_text))).scalars().all())
            questions_added = 0
            for order, question in enumerate(data.get("quiz_questions", []), start=1):
                if question["question_text"] in existing_questions:
                    continue
                session.add(QuizQuestion(sequence_order=order, **question))
                questions_added += 1

            await session.commit()
            print(f"✅ Added {modules_added} training modules and {questions_added} quiz questions.")
            logger.info("Activation content seeded", modules=modules_added, questions=questions_added)

        except SQLAlchemyError as e:
            await session.rollback()
            print(f"❌ Error seeding activation content: {e}")
            logger.error("Error seeding activation content", error=str(e))

if __name__ == "__main__":
    setup_logging()
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(seed_activation_content(sys.argv[1] if len(sys.argv) > 1 else DATA_FILE))
