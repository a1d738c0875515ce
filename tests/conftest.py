"""
Test configuration and fixtures
"""

import os

# Set test environment variables BEFORE importing gateway_storage modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gateway_storage.domain.entities import EUI64, Gateway, GPSPoint
from gateway_storage.models import metadata
from gateway_storage.repositories import GatewayRepository

# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_engine():
    """Fresh gateway table for each test"""
    metadata.drop_all(bind=engine)
    metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_conn(db_engine):
    """Connection with an open transaction, rolled back after the test"""
    with db_engine.connect() as conn:
        try:
            yield conn
        finally:
            conn.rollback()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """ORM session on the test database"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def repository():
    return GatewayRepository()


@pytest.fixture
def gateway_id():
    return EUI64(bytes([29, 238, 8, 208, 182, 145, 209, 73]))


@pytest.fixture
def gateway(gateway_id):
    """Gateway with only an id and a location set."""
    return Gateway(
        gateway_id=gateway_id,
        location=GPSPoint(latitude=1.23456789, longitude=4.56789012),
    )
