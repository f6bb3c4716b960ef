"""
Shared test fixtures
SQLite test database, one user per role and helpers to build bookables
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before settings are loaded
os.environ.setdefault('SECRET_KEY', 'test-secret-key-for-finance-portal')
os.environ['DATABASE_URL'] = 'sqlite:///./test.db'
os.environ['SMTP_USERNAME'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['LOG_FILE'] = 'logs/test.log'

import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from finance_portal.main import app
from finance_portal.config.database import Base, get_db
from finance_portal.models.bookable import Bookable, BookableKind, BookableStatus
from finance_portal.models.budget import BudgetCategory
from finance_portal.models.user import User, UserRole
from finance_portal.models.venue import Venue
from finance_portal.utils.security import create_access_token

# Test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(scope="function")
def db():
    """Create test database and yield a session for arranging data"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


def make_user(db, role: UserRole, email: str, full_name: str = None, is_active: bool = True) -> User:
    user = User(email=email, full_name=full_name or email.split("@")[0].title(), role=role, is_active=is_active)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def users(db):
    """One active user per role, keyed by role value"""
    return {
        role.value: make_user(db, role, f"{role.value}@test.com", role.value.replace("_", " ").title())
        for role in UserRole
    }


def auth_headers(user: User) -> dict:
    """Bearer header for a user, as issued by the identity provider"""
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def categories(db):
    """Catering and Venue budget categories"""
    catering = BudgetCategory(name="Catering", order=1)
    hall = BudgetCategory(name="Venue", order=2)
    db.add_all([catering, hall])
    db.commit()
    db.refresh(catering)
    db.refresh(hall)
    return {"catering": catering, "venue": hall}


@pytest.fixture
def venue(db):
    hall = Venue(name="Main Auditorium", capacity=300)
    db.add(hall)
    db.commit()
    db.refresh(hall)
    return hall


def make_bookable(
    db,
    creator: User,
    kind: BookableKind = BookableKind.EVENT,
    status: BookableStatus = BookableStatus.PENDING,
    start: date = None,
    end: date = None,
    venue: Venue = None,
    coordinator: User = None,
    title: str = "Tech Fest"
) -> Bookable:
    bookable = Bookable(
        kind=kind,
        title=title,
        status=status,
        creator_id=creator.id,
        coordinator_id=coordinator.id if coordinator else None,
        venue_id=venue.id if venue else None,
        start_date=start,
        end_date=end
    )
    db.add(bookable)
    db.commit()
    db.refresh(bookable)
    return bookable
