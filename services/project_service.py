from typing import Iterable, List, Optional

from sqlalchemy import select, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ActivationStateError, DataStoreError, NotFoundError
from db.utils import commit_or_raise
from core.logger import logger
from models.activation import DoerActivation
from models.base import utcnow
from models.profile import Doer
from models.project import (
    ACTIVE_STATUSES,
    COMPLETED_STATUSES,
    REVIEW_STATUSES,
    Project,
    ProjectDeliverable,
)
from schemas.project import DoerStats
from services.access_guard import (
    guarded,
    verify_child_ownership,
    verify_doer_ownership,
    verify_project_access,
    verify_project_assignment,
    verify_supervisor_ownership,
)

STATUS_CATEGORIES = {
    "active": ACTIVE_STATUSES,
    "review": REVIEW_STATUSES,
    "completed": COMPLETED_STATUSES,
}

SORT_FIELDS = {
    "deadline": Project.deadline,
    "doer_payout": Project.doer_payout,
    "created_at": Project.created_at,
    "title": Project.title,
}

verify_deliverable_access = verify_child_ownership(ProjectDeliverable, "project_id", verify_project_access)


class ProjectService:
    def __init__(self, db: AsyncSession, caller_id: Optional[int] = None):
        self.db = db
        self.caller_id = caller_id

    @guarded(verify_doer_ownership, "doer_id")
    async def get_doer_projects(
        self,
        doer_id: int,
        statuses: Optional[Iterable[str]] = None,
        search: Optional[str] = None,
        sort_field: str = "deadline",
        ascending: bool = True,
    ) -> List[Project]:
        query = select(Project).filter(Project.doer_id == doer_id)
        if statuses:
            query = query.filter(Project.status.in_(list(statuses)))
        if search:
            query = query.filter(Project.title.ilike(f"%{search}%"))

        column = SORT_FIELDS.get(sort_field, Project.deadline)
        query = query.order_by(column.asc() if ascending else column.desc(), Project.id.asc())

        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching doer projects", doer_id=doer_id, error=str(e))
            return []

    async def get_projects_by_category(self, doer_id: int, category: str, **filters) -> List[Project]:
        """Projects in one tab (active, review, completed); search and sort options pass through."""
        statuses = STATUS_CATEGORIES.get(category)
        if statuses is None:
            raise ValueError(f"Unknown project category: {category}")
        return await self.get_doer_projects(doer_id, statuses=statuses, **filters)

    @guarded(verify_supervisor_ownership, "supervisor_id")
    async def get_supervisor_projects(self, supervisor_id: int) -> List[Project]:
        try:
            result = await self.db.execute(
                select(Project)
                .filter(Project.supervisor_id == supervisor_id)
                .order_by(Project.deadline.asc(), Project.id.asc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching supervisor projects", supervisor_id=supervisor_id, error=str(e))
            return []

    @guarded(verify_project_access, "project_id")
    async def get_project(self, project_id: int) -> Project:
        return await self.db.get(Project, project_id)

    @guarded(verify_project_access, "project_id")
    async def get_project_deliverables(self, project_id: int) -> List[ProjectDeliverable]:
        try:
            result = await self.db.execute(
                select(ProjectDeliverable)
                .filter(ProjectDeliverable.project_id == project_id)
                .order_by(ProjectDeliverable.version.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching deliverables", project_id=project_id, error=str(e))
            return []

    @guarded(verify_deliverable_access, "deliverable_id")
    async def get_deliverable(self, deliverable_id: int) -> ProjectDeliverable:
        return await self.db.get(ProjectDeliverable, deliverable_id)

    @guarded(verify_project_access, "project_id")
    async def update_project_status(self, project_id: int, status: str) -> Project:
        project = await self.db.get(Project, project_id)
        now = utcnow()
        project.status = status
        if status == "submitted_for_qc":
            project.submitted_at = now
        elif status in COMPLETED_STATUSES:
            project.completed_at = now

        await commit_or_raise(self.db, "Error updating project status", project_id=project_id)
        logger.info("Project status updated", project_id=project_id, status=status)
        return project

    async def get_open_pool_tasks(self) -> List[Project]:
        """Paid projects nobody has picked up yet."""
        try:
            result = await self.db.execute(
                select(Project)
                .filter(Project.doer_id == None, Project.status == "paid")
                .order_by(Project.deadline.asc(), Project.id.asc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching open pool tasks", error=str(e))
            return []

    @guarded(verify_doer_ownership, "doer_id")
    async def accept_pool_task(self, project_id: int, doer_id: int) -> Project:
        activated = await self.db.execute(
            select(DoerActivation.is_fully_activated).filter(DoerActivation.doer_id == doer_id)
        )
        if not activated.scalar_one_or_none():
            raise ActivationStateError("Finish activation before accepting projects")

        # Claim in one conditional UPDATE so two doers cannot both win the task
        claim = (
            update(Project)
            .where(Project.id == project_id, Project.doer_id.is_(None), Project.status == "paid")
            .values(doer_id=doer_id, status="assigned", doer_assigned_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(claim)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Error accepting pool task", project_id=project_id, doer_id=doer_id, error=str(e))
            raise DataStoreError() from e

        if result.rowcount != 1:
            await self.db.rollback()
            logger.info("Pool task already taken", project_id=project_id, doer_id=doer_id)
            raise NotFoundError("Project is no longer available")

        await commit_or_raise(self.db, "Error accepting pool task", project_id=project_id, doer_id=doer_id)
        logger.info("Pool task accepted", project_id=project_id, doer_id=doer_id)
        return await self.db.get(Project, project_id, populate_existing=True)

    @guarded(verify_project_access, "project_id")
    @guarded(verify_doer_ownership, "doer_id")
    async def add_deliverable(
        self,
        project_id: int,
        doer_id: int,
        file_name: str,
        file_url: str,
        file_type: Optional[str] = None,
        file_size_bytes: Optional[int] = None,
    ) -> ProjectDeliverable:
        """Record a deliverable already uploaded to object storage."""
        await verify_project_assignment(self.db, self.caller_id, project_id, doer_id)

        latest = await self.db.execute(
            select(func.max(ProjectDeliverable.version)).filter(ProjectDeliverable.project_id == project_id)
        )
        deliverable = ProjectDeliverable(
            project_id=project_id,
            uploaded_by=doer_id,
            file_name=file_name,
            file_url=file_url,
            file_type=file_type,
            file_size_bytes=file_size_bytes,
            version=(latest.scalar() or 0) + 1,
            qc_status="pending",
        )
        self.db.add(deliverable)
        await commit_or_raise(self.db, "Error creating deliverable", project_id=project_id)
        await self.db.refresh(deliverable)
        logger.info("Deliverable added", project_id=project_id, version=deliverable.version)
        return deliverable

    @guarded(verify_doer_ownership, "doer_id")
    async def get_active_projects_count(self, doer_id: int) -> int:
        try:
            result = await self.db.execute(
                select(func.count(Project.id)).filter(
                    Project.doer_id == doer_id,
                    Project.status.in_(ACTIVE_STATUSES),
                )
            )
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Error counting active projects", doer_id=doer_id, error=str(e))
            return 0

    @guarded(verify_doer_ownership, "doer_id")
    async def get_doer_stats(self, doer_id: int) -> DoerStats:
        try:
            counts = await self.db.execute(
                select(
                    func.count(Project.id).filter(Project.status.in_(ACTIVE_STATUSES)).label("active"),
                    func.count(Project.id).filter(Project.status.in_(COMPLETED_STATUSES)).label("completed"),
                ).filter(Project.doer_id == doer_id)
            )
            row = counts.one()
            doer = await self.db.get(Doer, doer_id)
        except SQLAlchemyError as e:
            logger.error("Error fetching doer stats", doer_id=doer_id, error=str(e))
            return DoerStats()

        return DoerStats(
            active_count=row.active or 0,
            completed_count=row.completed or 0,
            total_earnings=doer.total_earnings or 0.0,
            average_rating=doer.average_rating or 0.0,
        )
