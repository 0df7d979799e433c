"""
Real HTTP integration clients.

These clients communicate with external systems via HTTP, e.g. the remote
bond lookup service (POST {state, city, bond_limit, name} -> {"match": ...}).

Important:
- Must implement the same BondLookupClient interface as the local clients
- Must return data shaped according to src/integrations/contracts/*

Switching:
The selection of the record source happens in src/api/main.py only.
"""
