import asyncio
import logging
import os
import uuid
from sqlalchemy.future import select
from dotenv import load_dotenv

from hospitality_hub.database import init_db, async_session
from hospitality_hub.models.user import User, UserRole
from hospitality_hub.security import get_password_hash

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def create_platform_admin():
    email = os.getenv("PLATFORM_ADMIN_EMAIL")
    password = os.getenv("PLATFORM_ADMIN_PASSWORD")
    if not email or not password:
        logger.info("PLATFORM_ADMIN_EMAIL / PLATFORM_ADMIN_PASSWORD not set, skipping platform admin.")
        return

    async with async_session() as session:
        stmt = select(User).where(User.email == email.lower())
        result = await session.execute(stmt)
        if result.scalar_one_or_none() is None:
            admin = User(
                auth_id=str(uuid.uuid4()),
                email=email.lower(),
                full_name="Platform Admin",
                hashed_password=get_password_hash(password),
                role=UserRole.owner,
                is_platform_admin=True,
            )
            session.add(admin)
            await session.commit()
            logger.info("Platform admin user created.")
        else:
            logger.info("Platform admin user already exists.")

async def main():
    await init_db()
    await create_platform_admin()


if __name__ == "__main__":
    logger.info("Initializing database and creating the platform admin user...")
    asyncio.run(main())
