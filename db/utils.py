from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DataStoreError
from core.logger import logger


async def commit_or_raise(db: AsyncSession, event: str, **context):
    """Commit, or roll back and raise DataStoreError so callers know the write did not happen."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(event, error=str(e), **context)
        raise DataStoreError() from e
