"""Pytest fixtures for the bond wizard tests."""

from datetime import date

import pytest

from src.chatbot.modes.guided import GuidedMode
from src.chatbot.state_manager import StateManager
from src.database.postgres import PostgresDB
from src.database.redis import RedisCache
from src.integrations.clients.csv_records import CsvBondLookupClient, parse_bond_csv

TODAY = date(2026, 3, 2)

SAMPLE_CSV = """state,city,bond_limit,name,premium
Illinois,Chicago,50000,City of Chicago,500
IL,Springfield,25000,Sangamon County,
Texas,Austin,100000,Travis County,1250
"""


@pytest.fixture
def db():
    """In-memory PostgresDB stub for tests."""
    return PostgresDB()


@pytest.fixture
def records():
    return parse_bond_csv(SAMPLE_CSV)


@pytest.fixture
def lookup(records):
    return CsvBondLookupClient(records)


@pytest.fixture
def state_manager():
    return StateManager(RedisCache())


@pytest.fixture
def wizard(state_manager, lookup, db):
    return GuidedMode(state_manager, lookup, db, today=lambda: TODAY)


@pytest.fixture
def session_id(state_manager):
    return state_manager.create_session("user-1")
