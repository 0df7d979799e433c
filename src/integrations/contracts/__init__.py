"""
Contracts (data models).

This folder defines the request/response shapes for bond lookups:
- The lookup query built from the wizard answers
- The bond record returned by any record source

Both the local (CSV, SQL) and the remote HTTP clients use these contracts.
"""
