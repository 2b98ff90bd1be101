"""
Database operations for the leaderboard.

Every public method is a single round trip: it opens a connection, runs its
statements and commits. Nothing is cached, so callers re-list after a
mutation to see the current state.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List

import aiosqlite
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AlreadyExists, NotFound, StoreUnavailable
from .models import LeaderboardEntry
from .ranking import calculate_ranks_with_ties

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = "id, player_name, score, created_at, updated_at"

# Seconds a writer waits on a locked database before giving up
BUSY_TIMEOUT = 10.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LeaderboardStore:
    """Gateway to the leaderboard and admin_users tables."""

    def __init__(
        self,
        db_path: str,
    ) -> None:
        self.db_path = db_path

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Open a connection, turning driver errors into StoreUnavailable.

        @return: Active database connection
        """
        try:
            async with aiosqlite.connect(self.db_path, timeout=BUSY_TIMEOUT) as db:
                await db.execute("PRAGMA journal_mode=WAL")
                yield db
        except aiosqlite.Error as e:
            logger.error("Store error on %s: %s", self.db_path, e)
            raise StoreUnavailable("The leaderboard store is unavailable") from e

    async def init_db(self) -> None:
        """
        Initialize the SQLite database with schema and indexes.

        Creates tables and indexes if they do not exist yet.
        """
        async with self._connect() as db:
            await db.execute("PRAGMA synchronous=NORMAL")

            await db.execute("""
                CREATE TABLE IF NOT EXISTS leaderboard (
                    id TEXT PRIMARY KEY,
                    player_name TEXT NOT NULL CHECK (length(player_name) > 0),
                    score INTEGER NOT NULL CHECK (score >= 0),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_leaderboard_score
                ON leaderboard(score DESC, created_at ASC)
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS admin_users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            await db.commit()

    async def list_all(self) -> List[LeaderboardEntry]:
        """
        Get every entry, highest score first.

        Ties keep creation order so the listing is stable between requests.

        @return: List of entries, empty if the table is empty
        """
        async with self._connect() as db:
            cursor = await db.execute(f"""
                SELECT {ENTRY_COLUMNS}
                FROM leaderboard
                ORDER BY score DESC, created_at ASC, id ASC
            """)
            rows = await cursor.fetchall()

        return [LeaderboardEntry.from_row(row) for row in rows]

    async def get_entry(
        self,
        entry_id: str,
    ) -> LeaderboardEntry:
        """
        Get a single entry.

        @param entry_id: Identifier of the entry
        @return: The entry
        @raise NotFound: If no entry has this id
        """
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {ENTRY_COLUMNS} FROM leaderboard WHERE id = ?",
                (entry_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            raise NotFound(f"Entry {entry_id} not found")
        return LeaderboardEntry.from_row(row)

    async def insert(
        self,
        player_name: str,
        score: int,
    ) -> LeaderboardEntry:
        """
        Add an entry. Input is expected to be validated already.

        @param player_name: Name of the player
        @param score: Numeric score value
        @return: The new entry with its store-assigned id
        """
        timestamp = _now()
        entry = LeaderboardEntry(
            id=str(uuid.uuid4()),
            player_name=player_name,
            score=score,
            created_at=timestamp,
            updated_at=timestamp,
        )

        async with self._connect() as db:
            await db.execute(
                f"INSERT INTO leaderboard ({ENTRY_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    entry.id,
                    entry.player_name,
                    entry.score,
                    entry.created_at,
                    entry.updated_at,
                ),
            )
            await db.commit()

        logger.info("Added entry %s: %s with score %d", entry.id, player_name, score)
        return entry

    async def update(
        self,
        entry_id: str,
        player_name: str,
        score: int,
    ) -> LeaderboardEntry:
        """
        Change an entry's name and score.

        @param entry_id: Identifier of the entry
        @param player_name: New player name
        @param score: New score
        @return: The updated entry
        @raise NotFound: If no entry has this id
        """
        async with self._connect() as db:
            await db.execute(
                "UPDATE leaderboard SET player_name = ?, score = ?, updated_at = ? "
                "WHERE id = ?",
                (player_name, score, _now(), entry_id),
            )
            # Read back inside the same transaction, before the commit
            cursor = await db.execute(
                f"SELECT {ENTRY_COLUMNS} FROM leaderboard WHERE id = ?",
                (entry_id,),
            )
            row = await cursor.fetchone()
            await db.commit()

        if row is None:
            raise NotFound(f"Entry {entry_id} not found")

        logger.info("Updated entry %s: %s with score %d", entry_id, player_name, score)
        return LeaderboardEntry.from_row(row)

    async def delete_one(
        self,
        entry_id: str,
    ) -> None:
        """
        Delete an entry. Deleting an unknown id is a no-op.

        @param entry_id: Identifier of the entry
        """
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM leaderboard WHERE id = ?", (entry_id,)
            )
            await db.commit()
            deleted = cursor.rowcount

        if deleted:
            logger.info("Deleted entry %s", entry_id)
        else:
            logger.debug("Delete of unknown entry %s ignored", entry_id)

    async def delete_all(self) -> int:
        """
        Remove every entry. This cannot be undone.

        @return: Number of entries removed
        """
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM leaderboard")
            await db.commit()
            deleted = cursor.rowcount

        logger.warning("Leaderboard cleared, %d entries removed", deleted)
        return deleted

    async def admin_exists(self) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("SELECT 1 FROM admin_users LIMIT 1")
            row = await cursor.fetchone()
        return row is not None

    async def verify_credentials(
        self,
        username: str,
        password: str,
    ) -> bool:
        """
        Check a username/password pair against the stored salted hash.

        @param username: Admin username
        @param password: Password to check
        @return: True only if the user exists and the password matches
        """
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT password_hash FROM admin_users WHERE username = ?",
                (username,),
            )
            row = await cursor.fetchone()

        if row is None:
            return False
        return check_password_hash(row[0], password)

    async def create_admin_credential(
        self,
        username: str,
        password: str,
    ) -> str:
        """
        Create the admin account.

        Only one admin may exist. The insert is conditional on the table
        being empty and the username column is UNIQUE, so two concurrent
        attempts cannot both succeed.

        @param username: Admin username
        @param password: Clear password, stored only as a salted hash
        @return: Identifier of the new admin
        @raise AlreadyExists: If the username is taken or an admin exists
        """
        admin_id = str(uuid.uuid4())
        password_hash = generate_password_hash(password)

        async with self._connect() as db:
            try:
                cursor = await db.execute(
                    """
                    INSERT INTO admin_users (id, username, password_hash, created_at)
                    SELECT ?, ?, ?, ?
                    WHERE NOT EXISTS (SELECT 1 FROM admin_users)
                """,
                    (admin_id, username, password_hash, _now()),
                )
                await db.commit()
            except aiosqlite.IntegrityError:
                raise AlreadyExists(
                    "Username already exists. Please choose a different username."
                ) from None
            created = cursor.rowcount

        if created == 0:
            raise AlreadyExists("Admin setup is disabled. Admin users already exist.")

        logger.info("Created admin user %s", username)
        return admin_id

    async def print_full_leaderboard(self) -> None:
        """
        Print the complete leaderboard to console.

        Displays every entry with its rank in a formatted console output.
        """
        print("\n" + "=" * 50)
        print("COMPLETE LEADERBOARD")
        print("=" * 50)

        entries = await self.list_all()
        if not entries:
            print("Leaderboard is empty")
            return

        for row in calculate_ranks_with_ties(entries):
            tie_indicator = " (tie)" if row["is_tied"] else ""
            print(
                f"{row['rank']:2d}. {row['player_name']:<20} "
                f"Score: {row['score']:6d} ({row['created_at'][:19]}){tie_indicator}"
            )
