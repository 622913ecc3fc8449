#!/usr/bin/env python
"""
Bring the local cart storage database up to date.

Usage: python run_migrations.py [revision]   (default: head)
"""

import subprocess
import sys
import os


def run_migrations(revision: str = "head"):
    """Run alembic upgrade against DATABASE_URL"""

    # Load environment from .env if exists
    if os.path.exists('.env'):
        from dotenv import load_dotenv
        load_dotenv()

    database_url = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./storefront.db")
    print(f"Upgrading {database_url} to {revision}...")

    try:
        subprocess.run(['alembic', 'upgrade', revision], check=True)
        print("✅ Cart storage is up to date")
        return 0
    except subprocess.CalledProcessError as e:
        print(f"❌ Migration failed with error: {e}")
        return 1
    except FileNotFoundError:
        print("❌ Alembic not found. Install with: pip install alembic")
        return 1


if __name__ == "__main__":
    sys.exit(run_migrations(*sys.argv[1:2]))
