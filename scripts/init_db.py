#!/usr/bin/env python3
"""
Initialize the document table used by the database storage backend
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from standup_agent.config import get_settings
from standup_agent.database import build_engine
from standup_agent.models.base import Base


async def init_database():
    """Create all tables"""
    settings = get_settings()
    engine = build_engine(settings)

    print("🗄️  Initializing database...")
    print(f"Database: {settings.database_url}")
    print(f"Creating tables: {', '.join([t.name for t in Base.metadata.sorted_tables])}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()

    print("✅ Database initialized successfully!")


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(init_database())
