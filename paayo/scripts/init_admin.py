"""Create the first admin user.

Usage:
    python -m paayo.scripts.init_admin

Reads ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME from the environment (or
.env). Creates an active admin plus a credential account with a bcrypt hash.
Does nothing when a user with that email already exists.
"""

import asyncio
import sys

from paayo.config import settings
from paayo.core.database import close_db, get_db_context
from paayo.core.logging import setup_logging
from paayo.modules.auth.service import seed_admin


async def main() -> int:
    setup_logging()

    if not settings.admin_email or not settings.admin_password:
        print("❌ ADMIN_EMAIL and ADMIN_PASSWORD must be set", file=sys.stderr)
        return 1

    print("=" * 60)
    print("Admin bootstrap")
    print("=" * 60)

    try:
        async with get_db_context() as db:
            user = await seed_admin(db)
    finally:
        await close_db()

    if user is None:
        print(f"  ⏭️  User already exists: {settings.admin_email}")
    else:
        print(f"  ✅ Created admin: {user.email}")
        print()
        print("⚠️  Change the password after the first sign-in.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
