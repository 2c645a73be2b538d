# scripts/setup/init_db.py
"""
Initialize database: creates all tables and the first admin account.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py --admin-email admin@example.com --admin-password secret123
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from carrental.database import SessionLocal, create_tables, engine
from carrental.config import settings
from carrental.models.user import User
from carrental.utils.passwords import hash_password


def seed_admin(email: str, password: str, name: str = "Administrator") -> bool:
    """Create the admin account unless a user with that email exists. Returns True if created."""
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            return False
        db.add(User(name=name, email=email, password_hash=hash_password(password), role="admin"))
        db.commit()
        return True
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create tables and seed the admin account")
    parser.add_argument("--admin-email", default="admin@carrental.local")
    parser.add_argument("--admin-password", required=True)
    args = parser.parse_args()

    print("Car Rental DB Initialization")
    print("=" * 40)
    print(f"Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")
    except Exception as e:
        print(f"Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    print("\nCreating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   - {t}")

    if seed_admin(args.admin_email, args.admin_password):
        print(f"\nAdmin account created: {args.admin_email}")
    else:
        print(f"\nAdmin account {args.admin_email} already exists, left unchanged")

    print("\nDatabase ready! You can now start the backend:")
    print(f"   uvicorn carrental.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
