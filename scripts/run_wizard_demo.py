#!/usr/bin/env python3
"""
Walk the whole bond wizard (qa → summary → purchase → consent → delivery → done)
against a CSV of bond records and print each stage to the terminal.

Usage (from repo root):
  python scripts/run_wizard_demo.py
  python scripts/run_wizard_demo.py --csv data/sample_bonds.csv --channel text
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.chatbot.modes.guided import GuidedMode
from src.chatbot.state_manager import StateManager
from src.chatbot.validation import FormValidationError
from src.database.postgres import PostgresDB
from src.database.redis import RedisCache
from src.integrations.clients.csv_records import CsvBondLookupClient


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data: dict | list | str):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


async def main(csv_path: Path, channel: str):
    setup_logging()
    db = PostgresDB()
    state_manager = StateManager(RedisCache())
    wizard = GuidedMode(state_manager, CsvBondLookupClient.from_path(csv_path), db)

    session_id = state_manager.create_session("demo-user")
    result = await wizard.start(session_id)
    print_stage("QA: first question", result["response"])

    inputs = [
        "IL",
        "Chicago",
        "$50,000",
        "City of Chicago",
        (date.today() + timedelta(days=30)).isoformat(),
        {"action": "yes"},
        "Acme Paving LLC",
        "Jane Demo",
        "123 Main St, Chicago, IL 60601",
        "(312) 555-0100",
        "jane@example.com",
        {"action": "agree"},
        {"channel": channel},
        {"action": "submit"},
    ]
    for user_input in inputs:
        print_stage("USER INPUT", user_input)
        try:
            result = await wizard.process(user_input, session_id)
        except FormValidationError as e:
            print_stage("VALIDATION ERROR", e.field_errors)
            return
        print_stage(f"{result['flow'].upper()} (step {result['step']})", result["response"])
        if result["flow"] == "summary" and result["response"]["type"] == "inquiry":
            print_stage("NO MATCH", "Inquiry recorded for a service rep.")
            return

    print_stage("COLLECTED DATA", state_manager.get_collected_data(session_id))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the bond wizard end to end")
    parser.add_argument("--csv", type=Path, default=Path(__file__).resolve().parent.parent / "data" / "sample_bonds.csv")
    parser.add_argument("--channel", choices=["text", "email"], default="email")
    args = parser.parse_args()
    asyncio.run(main(args.csv, args.channel))
