"""
System check script to verify the service is configured correctly

Run this after setup, before starting the API.

Usage:
    python scripts/check_system.py [--ping-llm]
"""

import sys
sys.path.append('.')

import asyncio
from sqlalchemy import text
from sqlmodel import Session

from chattyagent.core.config import settings
from chattyagent.db.database import engine
from chattyagent.api.deps import get_llm_gateway
from chattyagent.core.errors import UpstreamFailure
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def check_database():
    """Check database connection"""
    print("\n🧪 Checking Database Connection...")
    try:
        with Session(engine) as session:
            session.exec(text("SELECT 1"))
        print("  ✅ Database connection successful")
        return True
    except Exception as e:
        print(f"  ❌ Database connection failed: {e}")
        return False


def check_settings():
    """Check required settings are configured"""
    print("\n🧪 Checking Settings...")

    checks = [
        ("DATABASE_URL", settings.DATABASE_URL),
        ("SECRET_KEY", settings.SECRET_KEY),
        ("OPENAI_API_KEY", settings.OPENAI_API_KEY),
    ]

    all_good = True
    for name, value in checks:
        if value and len(str(value)) > 10:
            print(f"  ✅ {name} configured")
        else:
            print(f"  ❌ {name} missing or invalid")
            all_good = False

    return all_good


async def check_llm():
    """Send one tiny completion through the gateway"""
    print("\n🧪 Checking LLM Gateway...")
    try:
        reply = await get_llm_gateway().complete(
            "You are a health check.", [{"role": "user", "content": "Say 'test ok'"}]
        )
        print(f"  ✅ LLM answered: {reply[:40]}")
        return True
    except UpstreamFailure as e:
        print(f"  ❌ LLM call failed: {e.message}")
        return False


def main():
    results = [check_database(), check_settings()]
    if "--ping-llm" in sys.argv:
        results.append(asyncio.run(check_llm()))

    print("\n" + ("✅ All checks passed" if all(results) else "❌ Some checks failed"))
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
