from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from promoscreen.config import DATABASE_URL
from promoscreen.models import Base

engine = create_async_engine(DATABASE_URL, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def get_db():
    async with async_session() as session:
        yield session
