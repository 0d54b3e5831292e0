#!/usr/bin/env python
"""
Apply database migrations before starting the server (release step).

Runs `flask db upgrade` programmatically inside an app context, after
checking that DATABASE_URL is set and the database answers.
"""
import sys
import os
import traceback

from dotenv import load_dotenv

load_dotenv()

print("=" * 60)
print("PAYHUB MIGRATIONS")
print("=" * 60)

db_url = os.getenv('DATABASE_URL')
if not db_url:
    print("ERROR: DATABASE_URL environment variable is not set!")
    sys.exit(1)

print(f"✓ DATABASE_URL is set (database: {db_url.rsplit('/', 1)[-1] if '/' in db_url else 'unknown'})")

try:
    from payhub import create_app
    from payhub.extensions import db
    from flask_migrate import upgrade, current

    app = create_app()
    with app.app_context():
        with db.engine.connect():
            print("✓ Database connection successful")

        try:
            current()
        except Exception:
            print("No migration version found - this is a fresh database")

        upgrade()
        print("✓ Migrations completed successfully!")
except Exception as e:
    print(f"✗ Migration failed: {e}")
    traceback.print_exc()
    sys.exit(1)

print("=" * 60)
