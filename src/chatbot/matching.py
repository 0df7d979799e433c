"""
Exact-match lookup of bond records against the qualifying answers.

Matching is case-insensitive, whitespace-trimmed string equality on state
(abbreviations expanded), city and requester name, plus numeric equality on the
bond limit. No ranking: the first matching record wins.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from src.chatbot.validation import numeric, state_from_input
from src.integrations.contracts.bond_lookup import BondLookupQuery, BondRecord

logger = logging.getLogger(__name__)

# question id -> lookup key
ANSWER_KEYS = {
    "q1": "state",
    "q2": "city",
    "q3": "bond_limit",
    "q4": "name",
}


def _norm(value: Any) -> str:
    return ("" if value is None else str(value)).strip().lower()


def build_query(answers: Dict[str, Any]) -> Optional[BondLookupQuery]:
    """Build the lookup query from collected answers.

    Returns None when any mapped answer is missing or the bond limit does not
    parse; callers treat that as "no match" without querying.
    """
    state = state_from_input(answers.get("q1"))
    city = str(answers.get("q2") or "").strip()
    name = str(answers.get("q4") or "").strip()
    bond_limit = numeric(answers.get("q3"))

    if not state or not city or not name or bond_limit is None:
        return None
    return BondLookupQuery(state=state, city=city, bond_limit=bond_limit, name=name)


def record_matches(record: BondRecord, query: BondLookupQuery) -> bool:
    if _norm(state_from_input(record.state)) != _norm(query.state):
        return False
    if _norm(record.city) != _norm(query.city):
        return False
    if _norm(record.name) != _norm(query.name):
        return False
    return numeric(record.bond_limit) == query.bond_limit


def find_exact_match(records: Iterable[BondRecord], query: BondLookupQuery) -> Optional[BondRecord]:
    for record in records:
        if record_matches(record, query):
            return record
    logger.info("No exact bond match for state=%s city=%s limit=%s", query.state, query.city, query.bond_limit)
    return None
