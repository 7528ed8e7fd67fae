from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import AuthenticationError, NotFoundError
from db.utils import commit_or_raise
from core.logger import logger
from models.activation import DoerActivation
from models.profile import Doer, Profile, Supervisor
from services.access_guard import guarded, require_caller, verify_doer_ownership

EDITABLE_DOER_FIELDS = ("qualification", "bio")


class ProfileService:
    def __init__(self, db: AsyncSession, caller_id: Optional[int] = None):
        self.db = db
        self.caller_id = caller_id

    async def get_or_create_profile(self, email: str, role: str = "doer", **kwargs) -> tuple[Profile, bool]:
        """
        Provision a profile on first sign-in. New doers get a doer record and
        an activation record with every step still open.
        """
        result = await self.db.execute(select(Profile).filter(Profile.email == email))
        profile = result.scalar_one_or_none()

        if profile:
            if kwargs.get("full_name") and not profile.full_name:
                profile.full_name = kwargs["full_name"]
                await commit_or_raise(self.db, "Error updating profile", profile_id=profile.id)
            return profile, False

        profile = Profile(email=email, role=role, full_name=kwargs.get("full_name"), is_active=True)
        self.db.add(profile)
        await self.db.flush()

        if role == "doer":
            doer = Doer(profile_id=profile.id)
            self.db.add(doer)
            await self.db.flush()
            self.db.add(DoerActivation(doer_id=doer.id))
        elif role == "supervisor":
            self.db.add(Supervisor(profile_id=profile.id))

        await commit_or_raise(self.db, "Error provisioning profile", email=email)
        await self.db.refresh(profile)
        logger.info("New profile provisioned", profile_id=profile.id, role=role)
        return profile, True

    async def get_me(self) -> dict:
        """Identity summary for the caller: profile plus doer/supervisor ids."""
        caller_id = require_caller(self.caller_id)
        profile = await self.db.get(Profile, caller_id)
        if profile is None or not profile.is_active:
            raise AuthenticationError()

        doer_id = (await self.db.execute(select(Doer.id).filter(Doer.profile_id == caller_id))).scalar_one_or_none()
        supervisor_id = (
            await self.db.execute(select(Supervisor.id).filter(Supervisor.profile_id == caller_id))
        ).scalar_one_or_none()
        return {
            "profile_id": profile.id,
            "email": profile.email,
            "full_name": profile.full_name,
            "role": profile.role,
            "doer_id": doer_id,
            "supervisor_id": supervisor_id,
        }

    @guarded(verify_doer_ownership, "doer_id")
    async def get_doer(self, doer_id: int) -> Doer:
        return await self.db.get(Doer, doer_id)

    @guarded(verify_doer_ownership, "doer_id")
    async def update_doer_profile(self, doer_id: int, **kwargs) -> Doer:
        doer = await self.db.get(Doer, doer_id)
        if doer is None:
            raise NotFoundError()
        updated = []
        for key, value in kwargs.items():
            if key in EDITABLE_DOER_FIELDS and value is not None:
                setattr(doer, key, value)
                updated.append(key)
        await commit_or_raise(self.db, "Error updating doer profile", doer_id=doer_id)
        logger.info("Doer profile updated", doer_id=doer_id, fields=updated)
        return doer
