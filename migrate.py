#!/usr/bin/env python
import os
import time
from flask_migrate import upgrade as flask_upgrade
from sportclub import create_app
from config import config

MAX_RETRIES = 5
RETRY_DELAY = 5  # seconds


def run_migrations():
    """Apply pending Alembic migrations, retrying while the database comes up."""
    print("Starting database migration process...")

    env = os.getenv('FLASK_ENV', 'production')
    app = create_app(config[env])

    with app.app_context():
        for attempt in range(MAX_RETRIES):
            try:
                print(f"Migration attempt {attempt + 1} of {MAX_RETRIES}")
                flask_upgrade()
                print("Database migration completed successfully!")
                return True
            except Exception as e:
                print(f"Migration attempt {attempt + 1} failed with error: {str(e)}")
                if attempt < MAX_RETRIES - 1:
                    print(f"Retrying in {RETRY_DELAY} seconds...")
                    time.sleep(RETRY_DELAY)
                else:
                    print("Maximum retry attempts reached. Migration failed.")
                    raise


if __name__ == "__main__":
    run_migrations()
