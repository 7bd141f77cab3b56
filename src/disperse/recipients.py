"""
Recipient list files.

Reads CSV or JSON files into the parallel recipient/amount lists the
distributor takes. Amounts are integers in base units.
"""

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple


@dataclass
class Recipient:
    """A single row of a recipient file."""

    address: str
    amount: int
    label: str = ""  # optional label/note


def _parse_amount(raw, where: str) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"{where}: invalid amount {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise ValueError(f"{where}: invalid amount '{raw}'") from e


def parse_recipients_csv(filepath: str | Path) -> List[Recipient]:
    """
    Parse a CSV file of recipients.

    Expected format:
        address,amount[,label]
        0x1111111111111111111111111111111111111111,100,Alice
        0x2222222222222222222222222222222222222222,250,Bob
    """
    recipients = []
    filepath = Path(filepath)

    with open(filepath, "r", newline="") as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None:
            raise ValueError("CSV file is empty or has no headers")

        for row_num, row in enumerate(reader, start=2):
            # Normalize keys
            normalized = {
                (k or "").strip().lower(): (v or "").strip()
                for k, v in row.items()
            }

            address = normalized.get("address", "")
            if not address:
                raise ValueError(f"Row {row_num}: missing address")

            recipients.append(Recipient(
                address=address,
                amount=_parse_amount(normalized.get("amount", ""), f"Row {row_num}"),
                label=normalized.get("label", normalized.get("name", "")),
            ))

    return recipients


def parse_recipients_json(filepath: str | Path) -> List[Recipient]:
    """
    Parse a JSON file of recipients.

    Expected format:
        [
            {"address": "0x1111...", "amount": 100, "label": "Alice"},
            {"address": "0x2222...", "amount": 250}
        ]
    """
    filepath = Path(filepath)
    with open(filepath, "r") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("JSON must contain a list of recipient objects")

    recipients = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Entry {i}: must be an object")
        if "address" not in entry:
            raise ValueError(f"Entry {i}: missing 'address' field")
        if "amount" not in entry:
            raise ValueError(f"Entry {i}: missing 'amount' field")

        recipients.append(Recipient(
            address=str(entry["address"]),
            amount=_parse_amount(entry["amount"], f"Entry {i}"),
            label=str(entry.get("label", "")),
        ))

    return recipients


def parse_recipients(filepath: str | Path) -> List[Recipient]:
    """Detect the file format from its suffix and parse recipients."""
    filepath = Path(filepath)
    if filepath.suffix.lower() == ".json":
        return parse_recipients_json(filepath)
    return parse_recipients_csv(filepath)


def split_recipients(recipients: List[Recipient]) -> Tuple[List[str], List[int]]:
    """Split recipient rows into parallel address and amount lists."""
    return [r.address for r in recipients], [r.amount for r in recipients]
