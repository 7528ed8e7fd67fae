"""
Ownership checks run before every data access.

Each guard has the signature ``await guard(db, caller_id, resource_id)`` and
either returns None or raises:

- AuthenticationError when there is no caller (checked before any lookup)
- NotFoundError when the resource does not exist
- ForbiddenError when the caller does not own the resource

Decisions are never cached; every call goes back to the database.
"""
import functools
import inspect
from typing import Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import AuthenticationError, ForbiddenError, NotFoundError
from core.logger import logger
from models.profile import Doer, Supervisor
from models.project import Project

Guard = Callable[[AsyncSession, Optional[int], int], Awaitable[None]]


def require_caller(caller_id: Optional[int]) -> int:
    if caller_id is None:
        raise AuthenticationError()
    return caller_id


async def verify_doer_ownership(db: AsyncSession, caller_id: Optional[int], doer_id: int) -> None:
    caller_id = require_caller(caller_id)
    result = await db.execute(select(Doer.profile_id).filter(Doer.id == doer_id))
    owner_id = result.scalar_one_or_none()
    if owner_id is None:
        raise NotFoundError()
    if owner_id != caller_id:
        logger.warning("Doer ownership check failed", doer_id=doer_id, caller_id=caller_id)
        raise ForbiddenError()


async def verify_supervisor_ownership(db: AsyncSession, caller_id: Optional[int], supervisor_id: int) -> None:
    caller_id = require_caller(caller_id)
    result = await db.execute(select(Supervisor.profile_id).filter(Supervisor.id == supervisor_id))
    owner_id = result.scalar_one_or_none()
    if owner_id is None:
        raise NotFoundError()
    if owner_id != caller_id:
        logger.warning("Supervisor ownership check failed", supervisor_id=supervisor_id, caller_id=caller_id)
        raise ForbiddenError()


async def verify_project_access(db: AsyncSession, caller_id: Optional[int], project_id: int) -> None:
    """The assigned doer and the project's supervisor may both access a project."""
    caller_id = require_caller(caller_id)
    query = (
        select(
            Project.id,
            Doer.profile_id.label("doer_profile_id"),
            Supervisor.profile_id.label("supervisor_profile_id"),
        )
        .outerjoin(Doer, Doer.id == Project.doer_id)
        .outerjoin(Supervisor, Supervisor.id == Project.supervisor_id)
        .filter(Project.id == project_id)
    )
    row = (await db.execute(query)).one_or_none()
    if row is None:
        raise NotFoundError()
    if caller_id not in (row.doer_profile_id, row.supervisor_profile_id):
        logger.warning("Project access check failed", project_id=project_id, caller_id=caller_id)
        raise ForbiddenError()


async def verify_project_assignment(db: AsyncSession, caller_id: Optional[int], project_id: int, doer_id: int) -> None:
    """Nested writes under a project must come from the doer assigned to it."""
    await verify_doer_ownership(db, caller_id, doer_id)
    result = await db.execute(select(Project.doer_id).filter(Project.id == project_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError()
    if row.doer_id != doer_id:
        logger.warning("Project assignment check failed", project_id=project_id, doer_id=doer_id)
        raise ForbiddenError()


def verify_child_ownership(model, parent_field: str, parent_guard: Guard) -> Guard:
    """
    Build a guard for a record owned through a foreign key: load the child,
    then apply the parent's guard to the referenced parent id.
    """
    parent_column = getattr(model, parent_field)

    async def guard(db: AsyncSession, caller_id: Optional[int], record_id: int) -> None:
        require_caller(caller_id)
        result = await db.execute(select(parent_column).filter(model.id == record_id))
        row = result.one_or_none()
        if row is None:
            raise NotFoundError()
        await parent_guard(db, caller_id, row[0])

    guard.__name__ = f"verify_{model.__tablename__}_ownership"
    return guard


def guarded(guard: Guard, arg_name: str):
    """
    Run ``guard`` before the wrapped service method.

    The method must live on an object with ``db`` and ``caller_id``
    attributes; ``arg_name`` names the parameter holding the resource id.
    """
    def decorator(func):
        signature = inspect.signature(func)
        if arg_name not in signature.parameters:
            raise TypeError(f"{func.__qualname__} has no parameter '{arg_name}'")

        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            bound = signature.bind(self, *args, **kwargs)
            await guard(self.db, self.caller_id, bound.arguments[arg_name])
            return await func(self, *args, **kwargs)

        wrapper.__guards__ = (guard,) + getattr(func, "__guards__", ())
        return wrapper

    return decorator
