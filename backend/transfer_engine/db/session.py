"""Schema Bootstrap — creates tables from ORM metadata outside Alembic.

Invariants:
    - Every model module is imported before create_all runs
    - Meant for development start-up and test fixtures; production uses Alembic
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from transfer_engine.db.base import Base


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables registered on Base.metadata."""
    import transfer_engine.models  # noqa: F401  (registers tables)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
