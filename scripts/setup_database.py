#!/usr/bin/env python3
"""
Database setup script for SessionVault.

Creates the session store (namespace, table and index) for SQLite or
PostgreSQL, based on DATABASE_URL.
"""

import sys

from sqlalchemy.engine import make_url

from sessionvault.core.config import settings
from sessionvault.core.utils.database_helpers import check_database_health, get_database_info
from sessionvault.db.init_db import init_database
from sessionvault.db.session import create_session_engine
from sessionvault.sessions.store import SessionStoreError


def main():
    """Initialize the session store based on configuration"""
    print("🗄️  SessionVault Database Setup")
    print("=" * 40)

    print(f"Database URL: {make_url(settings.DATABASE_URL).render_as_string(hide_password=True)}")
    print(f"Session table: {settings.SESSION_DATABASE}.{settings.SESSION_TABLE}")

    engine = create_session_engine(settings.DATABASE_URL)

    db_info = get_database_info(engine)
    print(f"Database Type: {db_info['type']}")
    print(f"Connected: {db_info['connected']}")

    if db_info['error']:
        print(f"❌ Connection Error: {db_info['error']}")
        return False

    if db_info['version']:
        print(f"Database Version: {db_info['version']}")

    print(f"Existing Tables: {len(db_info['tables'])}")
    for table in sorted(db_info['tables']):
        print(f"  - {table}")

    print("\n🔧 Initializing session store...")

    try:
        init_database(settings, engine)
    except SessionStoreError as e:
        print(f"❌ Session store initialization failed: {e}")
        return False

    print("✅ Session store initialized successfully!")

    health = check_database_health(engine)
    print(f"Health Status: {health['status']}")
    if health['status'] != 'healthy':
        print(f"⚠️  Warning: {health['last_error']}")

    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
