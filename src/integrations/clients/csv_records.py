"""
CSV Bond Records Client.

Purpose:
- Holds bond records parsed from an uploaded CSV in memory
- Answers exact-match lookups with a linear filter (first match wins)

Expected headers: state, city, bond_limit, name (premium optional). Header names
are trimmed and lower-cased; rows missing a required value are skipped.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

from src.chatbot.matching import find_exact_match
from src.integrations.contracts.bond_lookup import BondLookupClient, BondLookupQuery, BondRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("state", "city", "bond_limit", "name")


class CsvFormatError(ValueError):
    """Raised when CSV content cannot be turned into bond records."""


def decode_csv_bytes(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def parse_bond_csv(text: str) -> List[BondRecord]:
    """Parse CSV text into bond records.

    Raises:
        CsvFormatError: if the header row is missing a required column.
    """
    if not text or not text.strip():
        raise CsvFormatError("The CSV file is empty.")

    sample = text[:2048]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel

    reader = csv.DictReader(io.StringIO(text), dialect=dialect)
    if not reader.fieldnames:
        raise CsvFormatError("Could not detect a header row in the CSV file.")

    reader.fieldnames = [(h or "").strip().lower() for h in reader.fieldnames]
    missing = [c for c in REQUIRED_COLUMNS if c not in reader.fieldnames]
    if missing:
        raise CsvFormatError(f"CSV is missing required column(s): {', '.join(missing)}")

    records: List[BondRecord] = []
    for row_idx, row in enumerate(reader, start=2):
        values = {k: (v or "").strip() for k, v in row.items() if k}
        if not all(values.get(c) for c in REQUIRED_COLUMNS):
            logger.debug("Skipping CSV row %d: missing required value", row_idx)
            continue
        try:
            records.append(BondRecord(**values))
        except ValidationError as e:
            logger.warning("Skipping CSV row %d: %s", row_idx, e)
    logger.info("Parsed %d bond record(s) from CSV", len(records))
    return records


class CsvBondLookupClient(BondLookupClient):
    """In-memory record source, replaced wholesale on each upload."""

    def __init__(self, records: Optional[Iterable[BondRecord]] = None) -> None:
        self._records: List[BondRecord] = list(records or [])

    @property
    def source(self) -> str:
        return "csv"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "CsvBondLookupClient":
        with open(path, "rb") as f:
            return cls(parse_bond_csv(decode_csv_bytes(f.read())))

    @property
    def records(self) -> List[BondRecord]:
        return list(self._records)

    def load_text(self, text: str) -> int:
        self._records = parse_bond_csv(text)
        return len(self._records)

    async def find_exact(self, query: BondLookupQuery) -> Optional[BondRecord]:
        return find_exact_match(self._records, query)
