"""
Integrations layer.
This package contains all code used to look up bond records, wherever they live:
- CSV records loaded from a file or uploaded through the API
- A remote lookup service reached over HTTP
- The bond_records table in Postgres

Key rule:
- Chatbot flows MUST NOT read records or call the lookup service directly.
- Flows should call a BondLookupClient (under src/integrations/clients).

Switching implementations:
- The selection of the record source happens in ONE place (src/api/main.py).
"""

from .contracts.bond_lookup import (
    BondLookupClient,
    BondLookupQuery,
    BondRecord,
    IntegrationResponseError,
    normalize_bond_record,
)

__all__ = [
    "BondLookupClient",
    "BondLookupQuery",
    "BondRecord",
    "IntegrationResponseError",
    "normalize_bond_record",
]
