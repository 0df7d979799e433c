"""
APIRouter for bond records: CSV upload and the exact-match lookup endpoint.

Endpoints:
- POST /records/csv   (multipart upload; replaces the in-memory CSV records)
- GET  /records       (what the active record source holds)
- POST /query-bond    (single exact-match lookup, replies {"match": {...} | null})
"""

from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from pydantic import BaseModel

from src.chatbot.matching import build_query
from src.error_handler import ErrorHandler
from src.integrations.clients.csv_records import CsvBondLookupClient, CsvFormatError, decode_csv_bytes
from src.integrations.contracts.bond_lookup import BondLookupClient

logger = logging.getLogger(__name__)

api = APIRouter()

# Will be set by main.py after import
bond_lookup: BondLookupClient = None


class QueryBondRequest(BaseModel):
    state: str
    city: str
    bond_limit: Union[float, str]
    name: str


@api.post("/records/csv", tags=["Records"])
async def upload_bond_csv(file: UploadFile = File(...)):
    """Load bond records from a CSV with headers state, city, bond_limit, name (premium optional)."""
    if not isinstance(bond_lookup, CsvBondLookupClient):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Record source is '{bond_lookup.source}'; CSV upload is only available for the csv source",
        )
    content = await file.read()
    try:
        count = bond_lookup.load_text(decode_csv_bytes(content))
    except CsvFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info("Loaded %d bond record(s) from %s", count, file.filename)
    return {"status": "loaded", "filename": file.filename, "records": count}


@api.get("/records", tags=["Records"])
async def describe_records():
    info = {"source": bond_lookup.source}
    if isinstance(bond_lookup, CsvBondLookupClient):
        info["records"] = len(bond_lookup.records)
    return info


@api.post("/query-bond", tags=["Records"])
async def query_bond(body: QueryBondRequest):
    query = build_query({"q1": body.state, "q2": body.city, "q3": body.bond_limit, "q4": body.name})
    if query is None:
        return {"match": None}
    try:
        record = await bond_lookup.find_exact(query)
    except Exception as e:
        ErrorHandler().handle_lookup_failure(e, {"source": bond_lookup.source, "endpoint": "query-bond"})
        return {"match": None}
    return {"match": record.model_dump() if record else None}
