# tests/conftest.py
"""Shared fixtures: an in-memory SQLite session with every table created."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import Base
from app.models import Alert, Location  # noqa


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False},
                           poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def location(db):
    loc = Location(name="Forest Station 7", region="North",
                   thingspeak_channel_id="123456", thingspeak_read_key="READKEY")
    db.add(loc)
    db.commit()
    db.refresh(loc)
    return loc
