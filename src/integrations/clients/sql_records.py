"""
SQL Bond Records Client.

Answers lookups with one equality query against the hosted `bond_records`
table (see PostgresDB.find_bond_record). Query failures are logged and
reported as "no match".
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.integrations.contracts.bond_lookup import BondLookupClient, BondLookupQuery, BondRecord

logger = logging.getLogger(__name__)


class SqlBondLookupClient(BondLookupClient):
    def __init__(self, db) -> None:
        self.db = db

    @property
    def source(self) -> str:
        return "sql"

    async def find_exact(self, query: BondLookupQuery) -> Optional[BondRecord]:
        try:
            return self.db.find_bond_record(query)
        except SQLAlchemyError as e:
            logger.error("Bond record query failed: %s", e)
            return None
