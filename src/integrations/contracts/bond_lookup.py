"""
Bond lookup contracts.

Defines the record and query shapes shared by every bond record source:
- clients/csv_records.py (records parsed from an uploaded CSV, filtered in memory)
- clients/real_http/bond_lookup.py (remote lookup endpoint)
- clients/sql_records.py (hosted bond_records table)

Flows only ever see `BondRecord` instances (or None), whatever the source.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class BondRecord(BaseModel):
    """One row of the bond table."""

    model_config = ConfigDict(extra="ignore")

    state: str
    city: str
    bond_limit: Union[float, str]
    name: str
    premium: Optional[Union[float, str]] = None

    @field_validator("state", "city", "name", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("premium", mode="before")
    @classmethod
    def _blank_premium(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class BondLookupQuery(BaseModel):
    """Normalized lookup parameters; this is also the wire body of POST /query-bond."""

    state: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    bond_limit: float
    name: str = Field(..., min_length=1)


class BondLookupClient(ABC):
    """Every bond record source must implement this interface."""

    @property
    @abstractmethod
    def source(self) -> str:
        """Short name of the record source (csv, http, sql)."""

    @abstractmethod
    async def find_exact(self, query: BondLookupQuery) -> Optional[BondRecord]:
        """Return the first record matching `query` exactly, or None."""


def normalize_bond_record(raw: Any) -> Optional[BondRecord]:
    """Turn a lookup payload's `match` value into a BondRecord.

    None / empty payloads mean "no match"; anything else that does not fit the
    record shape raises IntegrationResponseError.
    """
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise IntegrationResponseError("Bond lookup match must be an object.", payload={"match": raw})
    try:
        return BondRecord(**raw)
    except ValidationError as e:
        raise IntegrationResponseError(f"Bond lookup match is malformed: {e}", payload=raw) from e


__all__ = [
    "BondLookupClient",
    "BondLookupQuery",
    "BondRecord",
    "IntegrationResponseError",
    "normalize_bond_record",
]
