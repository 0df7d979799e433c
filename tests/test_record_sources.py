"""
Bond record sources: CSV parsing, the remote lookup client and the SQL table.

Run:
    pytest tests/test_record_sources.py -q
"""

import json

import httpx
import pytest

from src.database.postgres_real import PostgresDB as SqlDB
from src.integrations.clients.csv_records import (
    CsvBondLookupClient,
    CsvFormatError,
    decode_csv_bytes,
    parse_bond_csv,
)
from src.integrations.clients.real_http.bond_lookup import HttpBondLookupClient
from src.integrations.clients.sql_records import SqlBondLookupClient
from src.integrations.contracts.bond_lookup import BondLookupQuery, BondRecord

QUERY = BondLookupQuery(state="Illinois", city="Chicago", bond_limit=50000, name="City of Chicago")


# --- CSV ---------------------------------------------------------------------


def test_parse_csv_normalizes_headers_and_skips_incomplete_rows():
    text = " State , CITY,Bond_Limit,name,Premium\nIllinois,Chicago,50000,City of Chicago,500\nIllinois,,1,Nobody,\n"
    records = parse_bond_csv(text)
    assert len(records) == 1
    assert records[0].city == "Chicago"
    assert records[0].premium == "500"


def test_parse_csv_premium_is_optional():
    records = parse_bond_csv("state,city,bond_limit,name\nTexas,Austin,100000,Travis County\n")
    assert records[0].premium is None


def test_parse_csv_missing_required_column_raises():
    with pytest.raises(CsvFormatError) as exc:
        parse_bond_csv("state,city,name\nTexas,Austin,Travis County\n")
    assert "bond_limit" in str(exc.value)


def test_parse_csv_empty_raises():
    with pytest.raises(CsvFormatError):
        parse_bond_csv("   ")


def test_decode_csv_bytes_handles_bom_and_latin1():
    assert decode_csv_bytes("﻿state".encode("utf-8")) == "state"
    assert decode_csv_bytes("Québec".encode("latin-1")) == "Québec"


@pytest.mark.asyncio
async def test_csv_client_find_exact_and_reload(records):
    client = CsvBondLookupClient(records)
    assert client.source == "csv"
    assert (await client.find_exact(QUERY)).name == "City of Chicago"

    assert client.load_text("state,city,bond_limit,name\nTexas,Austin,100000,Travis County\n") == 1
    assert await client.find_exact(QUERY) is None


def test_csv_client_from_path(tmp_path):
    path = tmp_path / "bonds.csv"
    path.write_text("state,city,bond_limit,name,premium\nIL,Chicago,50000,City of Chicago,500\n", encoding="utf-8")
    client = CsvBondLookupClient.from_path(path)
    assert len(client.records) == 1


# --- Remote lookup -------------------------------------------------------------


@pytest.mark.asyncio
async def test_http_client_posts_query_and_reads_match():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"match": {"state": "Illinois", "city": "Chicago", "bond_limit": 50000, "name": "City of Chicago", "premium": 500}},
        )

    client = HttpBondLookupClient(
        url="https://lookup.example.com/api/query-bond",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )
    record = await client.find_exact(QUERY)

    assert isinstance(record, BondRecord)
    assert record.premium == 500
    assert seen["body"] == {"state": "Illinois", "city": "Chicago", "bond_limit": 50000.0, "name": "City of Chicago"}
    assert seen["auth"] == "Bearer secret"


@pytest.mark.asyncio
async def test_http_client_null_match_is_no_match():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"match": None}))
    client = HttpBondLookupClient(url="https://lookup.example.com", api_key="", transport=transport)
    assert await client.find_exact(QUERY) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"match": {"state": "Illinois"}}),
    ],
)
async def test_http_client_errors_degrade_to_no_match(response):
    transport = httpx.MockTransport(lambda request: response)
    client = HttpBondLookupClient(url="https://lookup.example.com", api_key="", transport=transport)
    assert await client.find_exact(QUERY) is None


@pytest.mark.asyncio
async def test_http_client_transport_error_degrades_to_no_match():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    client = HttpBondLookupClient(url="https://lookup.example.com", api_key="", transport=httpx.MockTransport(handler))
    assert await client.find_exact(QUERY) is None


@pytest.mark.asyncio
async def test_http_client_requires_url(monkeypatch):
    monkeypatch.delenv("BOND_LOOKUP_URL", raising=False)
    with pytest.raises(ValueError):
        await HttpBondLookupClient(url="", api_key="").find_exact(QUERY)


# --- SQL table ------------------------------------------------------------------


@pytest.fixture
def sql_db(tmp_path, records):
    db = SqlDB(f"sqlite:///{tmp_path / 'bonds.db'}")
    db.create_tables()
    db.add_bond_records(records)
    return db


@pytest.mark.asyncio
async def test_sql_client_case_insensitive_equality(sql_db):
    client = SqlBondLookupClient(sql_db)
    query = BondLookupQuery(state="Illinois", city="CHICAGO", bond_limit=50000, name="city of chicago")
    record = await client.find_exact(query)
    assert record.name == "City of Chicago"
    assert record.premium == 500.0


@pytest.mark.asyncio
async def test_sql_client_matches_stored_abbreviation(sql_db):
    query = BondLookupQuery(state="Illinois", city="Springfield", bond_limit=25000, name="Sangamon County")
    record = await SqlBondLookupClient(sql_db).find_exact(query)
    assert record.state == "IL"


@pytest.mark.asyncio
async def test_sql_client_no_match(sql_db):
    query = BondLookupQuery(state="Illinois", city="Chicago", bond_limit=50001, name="City of Chicago")
    assert await SqlBondLookupClient(sql_db).find_exact(query) is None


def test_sql_db_stores_inquiries_and_payment_links(sql_db):
    inquiry = sql_db.create_inquiry(session_id="s-1", answers={"q1": "Illinois"})
    assert [i.id for i in sql_db.list_inquiries(status="open")] == [inquiry.id]

    req = sql_db.create_payment_link_request(
        session_id="s-1", channel="email", destination="jane@example.com", consent=True
    )
    stored = sql_db.get_payment_link_request(req.id)
    assert stored.destination == "jane@example.com"
    assert stored.consent is True
