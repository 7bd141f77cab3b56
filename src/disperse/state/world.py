"""
World state - one execution environment.

Bundles the journal, the native account book and the token ledgers that
share it, and converts the whole thing to and from JSON snapshots.
"""

import json
from pathlib import Path
from typing import Dict, Optional

import structlog

from disperse.ledger.memory import InMemoryLedger
from disperse.ledger.native import NativeAccounts
from disperse.state.journal import Journal

logger = structlog.get_logger(__name__)


class World:
    """
    Native balances and named token ledgers over a single journal.

    Snapshot layout:
        {
            "native": {"0xabc...": 100},
            "tokens": {
                "USDC": {
                    "balances": {"0xabc...": 500},
                    "allowances": {"0xabc...": {"0xd15e...": 500}}
                }
            }
        }
    """

    def __init__(self, journal: Optional[Journal] = None):
        self.journal = journal or Journal()
        self.native = NativeAccounts(self.journal)
        self.tokens: Dict[str, InMemoryLedger] = {}

    def token(self, symbol: str) -> InMemoryLedger:
        """Get a token ledger by symbol, creating it if missing."""
        if symbol not in self.tokens:
            self.tokens[symbol] = InMemoryLedger(symbol, self.journal)
        return self.tokens[symbol]

    @classmethod
    def from_dict(cls, data: dict) -> "World":
        """
        Build a world from a snapshot dictionary.

        Raises:
            ValueError: If the snapshot is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("World state must be a JSON object")

        world = cls()
        for account, amount in _int_map(data.get("native", {}), "native").items():
            world.native.mint(account, amount)

        tokens = data.get("tokens", {})
        if not isinstance(tokens, dict):
            raise ValueError("'tokens' must be an object keyed by symbol")
        for symbol, entry in tokens.items():
            if not isinstance(entry, dict):
                raise ValueError(f"Token {symbol}: must be an object")
            ledger = world.token(symbol)
            for account, amount in _int_map(entry.get("balances", {}), f"{symbol}.balances").items():
                ledger.mint(account, amount)
            allowances = entry.get("allowances", {})
            if not isinstance(allowances, dict):
                raise ValueError(f"Token {symbol}: 'allowances' must be an object")
            for owner, spenders in allowances.items():
                for spender, amount in _int_map(spenders, f"{symbol}.allowances.{owner}").items():
                    ledger.approve(owner, spender, amount)

        return world

    def to_dict(self) -> dict:
        """Convert to a snapshot dictionary."""
        return {
            "native": self.native.balances(),
            "tokens": {
                symbol: {
                    "balances": ledger.balances(),
                    "allowances": ledger.allowances(),
                }
                for symbol, ledger in sorted(self.tokens.items())
            },
        }

    @classmethod
    def load(cls, filepath: str | Path) -> "World":
        """Load a world from a JSON snapshot file."""
        filepath = Path(filepath)
        with open(filepath, "r") as f:
            data = json.load(f)
        world = cls.from_dict(data)
        logger.debug("world_loaded", path=str(filepath), tokens=len(world.tokens))
        return world

    def dump(self, filepath: str | Path) -> None:
        """Write the world to a JSON snapshot file."""
        filepath = Path(filepath)
        tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, sort_keys=True)
            f.write("\n")
        tmp_path.replace(filepath)
        logger.debug("world_saved", path=str(filepath))


def _int_map(data, where: str) -> Dict[str, int]:
    if not isinstance(data, dict):
        raise ValueError(f"'{where}' must be an object")
    result = {}
    for account, amount in data.items():
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"'{where}.{account}' must be a non-negative integer, got {amount!r}")
        result[str(account)] = amount
    return result
