import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DataStoreError
from core.logger import logger, setup_logging
from core.security import create_session_token
from db.session import AsyncSessionLocal
from services.profile_service import ProfileService

USAGE = "Usage: python scripts/provision_profile.py <email> [doer|supervisor] [full name]"
ROLES = ("doer", "supervisor")


async def provision_profile(session: AsyncSession, email: str, role: str = "doer", full_name: str = None):
    """
    Create the profile (plus doer/supervisor row and activation record) if
    it does not exist yet, and mint a session token for it.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    profile, created = await ProfileService(session).get_or_create_profile(email, role=role, full_name=full_name)
    return profile, created, create_session_token(profile.id)


async def main(argv):
    if not argv or len(argv) > 3:
        print(USAGE)
        return

    email = argv[0]
    role = argv[1] if len(argv) > 1 else "doer"
    full_name = argv[2] if len(argv) > 2 else None

    async with AsyncSessionLocal() as session:
        try:
            profile, created, token = await provision_profile(session, email, role, full_name)
        except (ValueError, DataStoreError) as e:
            print(f"❌ Could not provision {email}: {e}")
            logger.error("Profile provisioning failed", email=email, error=str(e))
            return

    print(f"{'✅ Created' if created else 'ℹ️  Found'} {profile.role} profile #{profile.id} ({profile.email})")
    print(f"X-Auth-Token: {token}")

if __name__ == "__main__":
    setup_logging()
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main(sys.argv[1:]))
