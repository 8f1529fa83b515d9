#!/usr/bin/env python3
"""
Wrangler Seed Script
Creates the first wrangler organization so someone can log in and
set up projects, expectations and reporting links.

Usage:
    python -m scripts.seed_wrangler <email> <name>

Example:
    python -m scripts.seed_wrangler wrangler@example.org "Data Team"
"""
import sys
import os
from uuid import uuid4

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from report_tracker.database import SessionLocal, init_db
from report_tracker.models.db_models import OrganizationDB


def create_wrangler(email: str, name: str) -> bool:
    """Create a wrangler organization, or promote an existing one."""
    # Ensure tables exist
    init_db()

    db: Session = SessionLocal()
    try:
        existing = db.query(OrganizationDB).filter(
            func.lower(OrganizationDB.email) == email.lower()
        ).first()

        if existing:
            if existing.is_wrangler:
                print(f"Organization '{email}' is already a wrangler.")
                return False
            existing.is_wrangler = True
            db.commit()
            print(f"Promoted existing organization '{email}' to wrangler.")
            return True

        wrangler = OrganizationDB(
            id=str(uuid4()),
            name=name,
            email=email.lower(),
            is_wrangler=True,
        )

        db.add(wrangler)
        db.commit()

        print("Wrangler created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {name}")
        return True

    except SQLAlchemyError as e:
        print(f"Error creating wrangler: {e}")
        db.rollback()
        return False
    finally:
        db.close()


def main():
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)

    email = sys.argv[1]
    name = sys.argv[2]

    if "@" not in email:
        print("Error: Invalid email format.")
        sys.exit(1)

    success = create_wrangler(email, name)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
