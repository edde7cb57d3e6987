"""SQLite storage for the settlement timestamp ledger."""

import logging
import aiosqlite
from datetime import datetime
from typing import Dict, Optional
from pathlib import Path

from funding_monitor.config import get_config


logger = logging.getLogger(__name__)

# exchange -> symbol -> last next-settlement timestamp (epoch ms)
LedgerData = Dict[str, Dict[str, Optional[int]]]


class LedgerDatabase:
    """SQLite database manager for the settlement ledger."""
    
    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize database.

        Args:
            db_path: Path to SQLite database file (default: MonitorConfig.ledger_db_path)
        """
        self.db_path = db_path or get_config().monitor.ledger_db_path
        self._connection: Optional[aiosqlite.Connection] = None
    
    @property
    def is_connected(self) -> bool:
        return self._connection is not None
    
    async def connect(self) -> None:
        """Connect to database and create tables if needed."""
        # Ensure directory exists
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)
        
        logger.info(f"Connecting to ledger database: {self.db_path}")
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        try:
            await self._create_tables()
        except Exception:
            await self.close()
            raise
    
    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
    
    async def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        async with self._connection.cursor() as cursor:
            await cursor.execute("""
                CREATE TABLE IF NOT EXISTS settlement_ledger (
                    exchange TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    next_settlement_ms INTEGER,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (exchange, symbol)
                )
            """)
            await self._connection.commit()
    
    async def load_ledger(self) -> LedgerData:
        """Read the whole ledger."""
        ledger: LedgerData = {}
        async with self._connection.cursor() as cursor:
            await cursor.execute(
                "SELECT exchange, symbol, next_settlement_ms FROM settlement_ledger"
            )
            rows = await cursor.fetchall()
        
        for row in rows:
            ledger.setdefault(row["exchange"], {})[row["symbol"]] = row["next_settlement_ms"]
        
        logger.info(
            f"Loaded ledger: {sum(len(s) for s in ledger.values())} entries "
            f"across {len(ledger)} exchanges"
        )
        return ledger
    
    async def save_ledger(self, ledger: LedgerData) -> int:
        """
        Upsert every ledger entry.
        
        Entries are never deleted; the ledger only grows or changes.
        
        Returns:
            Number of entries written
        """
        now = datetime.utcnow().isoformat()
        rows = [
            (exchange, symbol, ts, now)
            for exchange, symbols in ledger.items()
            for symbol, ts in symbols.items()
        ]
        
        async with self._connection.cursor() as cursor:
            await cursor.executemany(
                """
                INSERT INTO settlement_ledger (exchange, symbol, next_settlement_ms, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (exchange, symbol) DO UPDATE SET
                    next_settlement_ms = excluded.next_settlement_ms,
                    updated_at = excluded.updated_at
                """,
                rows,
            )
        await self._connection.commit()
        
        return len(rows)

