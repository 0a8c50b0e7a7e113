#!/usr/bin/env python3
"""
Database Reset Script
Clears the event journal and prints a bearer token for a development admin
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from zkcred.config import get_settings
from zkcred.security.auth import create_access_token
from zkcred.storage.database import DatabaseManager


def reset_database(admin: str = "admin@example.com"):
    """Reset database and issue a token for admin"""
    settings = get_settings()
    print(f"🔄 Resetting {settings.database_url} ...")

    db = DatabaseManager(settings.database_url)

    print("  ⚠️  Dropping all tables...")
    db.drop_tables()

    print("  ✨ Creating tables...")
    db.create_tables()

    token, expires = create_access_token(admin)
    print(f"  🔑 Token for {admin} (expires {expires.isoformat()}):")
    print(f"     {token}")
    print("✅ Done")


if __name__ == "__main__":
    reset_database(*sys.argv[1:2])
