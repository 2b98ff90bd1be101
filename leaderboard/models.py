"""
Record types stored in the leaderboard database.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Sequence


@dataclass(frozen=True)
class LeaderboardEntry:
    """One row of the leaderboard table. Rank is never stored here."""

    id: str
    player_name: str
    score: int
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "LeaderboardEntry":
        """
        Build an entry from a ``SELECT id, player_name, score, created_at, updated_at`` row.

        @param row: Database row tuple
        @return: LeaderboardEntry instance
        """
        entry_id, player_name, score, created_at, updated_at = row
        return cls(
            id=entry_id,
            player_name=player_name,
            score=int(score),
            created_at=created_at,
            updated_at=updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
