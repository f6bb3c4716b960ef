"""
Database Setup Script
Creates all tables and seeds demo users, budget categories and venues
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from finance_portal.config.database import Base, SessionLocal, engine
from finance_portal.models.user import User, UserRole
from finance_portal.models.venue import Venue
from finance_portal.models.bookable import Bookable  # noqa: F401
from finance_portal.models.budget import BudgetCategory, BudgetLine  # noqa: F401
from finance_portal.models.approval import BudgetApproval  # noqa: F401
from finance_portal.models.expense import Expense  # noqa: F401
from finance_portal.models.notification import Notification  # noqa: F401
from finance_portal.models.audit_log import AuditLog  # noqa: F401
from finance_portal.utils.security import create_access_token


DEMO_USERS = [
    ("admin@financeportal.com", "System Administrator", UserRole.ADMIN),
    ("events.lead@financeportal.com", "Events Team Lead", UserRole.EVENT_TEAM_LEAD),
    ("workshops.lead@financeportal.com", "Workshops Team Lead", UserRole.WORKSHOP_TEAM_LEAD),
    ("finance@financeportal.com", "Finance Reviewer", UserRole.FINANCE_TEAM),
    ("facilities@financeportal.com", "Facilities Manager", UserRole.FACILITIES_TEAM),
    ("events.coordinator@financeportal.com", "Events Coordinator", UserRole.EVENT_COORDINATOR),
    ("workshops.coordinator@financeportal.com", "Workshops Coordinator", UserRole.WORKSHOP_COORDINATOR),
]

DEMO_CATEGORIES = [
    ("Venue", "Hall rental and setup"),
    ("Catering", "Food and beverages"),
    ("Marketing", "Posters, banners and promotion"),
    ("Logistics", "Transport and equipment"),
    ("Speakers", "Honorarium and travel for speakers"),
    ("Miscellaneous", None),
]

DEMO_VENUES = [
    ("Main Auditorium", 500, "Block A, Ground Floor", "Stage, projector, sound system"),
    ("Seminar Hall 1", 120, "Block B, First Floor", "Projector, whiteboard"),
    ("Conference Room", 30, "Admin Block", "Video conferencing"),
]


def create_tables():
    """Create all database tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Database tables created successfully")


def create_initial_users():
    """Create one demo user per role"""
    print("\nCreating initial users...")
    db = SessionLocal()

    try:
        if db.query(User).first():
            print("✓ Users already exist, skipping...")
            return

        for email, full_name, role in DEMO_USERS:
            db.add(User(email=email, full_name=full_name, role=role, is_active=True))
        db.commit()
        print(f"✓ Initial users created successfully ({len(DEMO_USERS)} users)")

    except Exception as e:
        db.rollback()
        print(f"✗ Error creating initial users: {str(e)}")
        raise
    finally:
        db.close()


def create_budget_categories():
    """Create the default budget categories in display order"""
    print("\nCreating budget categories...")
    db = SessionLocal()

    try:
        if db.query(BudgetCategory).first():
            print("✓ Budget categories already exist, skipping...")
            return

        for order, (name, description) in enumerate(DEMO_CATEGORIES, start=1):
            db.add(BudgetCategory(name=name, description=description, order=order))
        db.commit()
        print(f"✓ Budget categories created successfully ({len(DEMO_CATEGORIES)} categories)")

    except Exception as e:
        db.rollback()
        print(f"✗ Error creating budget categories: {str(e)}")
        raise
    finally:
        db.close()


def create_venues():
    """Create demo venues"""
    print("\nCreating venues...")
    db = SessionLocal()

    try:
        if db.query(Venue).first():
            print("✓ Venues already exist, skipping...")
            return

        for name, capacity, location, facilities in DEMO_VENUES:
            db.add(Venue(name=name, capacity=capacity, location=location, facilities=facilities))
        db.commit()
        print(f"✓ Venues created successfully ({len(DEMO_VENUES)} venues)")

    except Exception as e:
        db.rollback()
        print(f"✗ Error creating venues: {str(e)}")
        raise
    finally:
        db.close()


def print_setup_summary():
    """Print demo accounts with development bearer tokens"""
    print("\n" + "=" * 70)
    print("DEMO ACCOUNTS (send as 'Authorization: Bearer <token>')")
    print("=" * 70)
    db = SessionLocal()
    try:
        for user in db.query(User).order_by(User.id).all():
            token = create_access_token({"sub": str(user.id)})
            print(f"  • {user.role.value:<22} {user.email}")
            print(f"    {token}")
    finally:
        db.close()
    print("\n" + "=" * 70 + "\n")


def main():
    """Main setup function"""
    print("=" * 70)
    print("FINANCE PORTAL - DATABASE SETUP")
    print("=" * 70)

    try:
        create_tables()
        create_initial_users()
        create_budget_categories()
        create_venues()
        print_setup_summary()

    except Exception as e:
        print(f"\n✗ Database setup failed: {str(e)}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
