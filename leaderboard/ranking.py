"""
Rank computation for leaderboard entries.
"""

from typing import Any, Dict, List, Sequence


RANK_CLASSES = {1: "gold", 2: "silver", 3: "bronze"}
RANK_LABELS = {1: "1st", 2: "2nd", 3: "3rd"}


def _score_of(entry: Any) -> int:
    if isinstance(entry, dict):
        return entry["score"]
    return entry.score


def assign_ranks(scores: Sequence[int]) -> List[int]:
    """
    Compute ranks for scores already sorted from highest to lowest.

    Tied scores share a rank and the next distinct score gets the following
    rank number, whatever the size of the tie group: [100, 100, 90] ranks
    as [1, 1, 2].

    @param scores: Scores in descending order
    @return: Rank for each score, in the same order
    """
    ranks = []
    current_rank = 1

    for i, score in enumerate(scores):
        if i > 0 and score != scores[i - 1]:
            current_rank += 1
        ranks.append(current_rank)

    return ranks


def calculate_ranks_with_ties(
    leaderboard_data: Sequence[Any],
) -> List[Dict[str, Any]]:
    """
    Attach rank information to entries sorted by score descending.

    The input is not re-sorted. Each entry (a LeaderboardEntry or a dict)
    becomes a dict carrying its own fields plus ``rank``, ``rank_class``,
    ``rank_label`` and ``is_tied``.

    @param leaderboard_data: Entries ordered by score, highest first
    @return: List of dictionaries with ranking information and tie indicators
    """
    if not leaderboard_data:
        return []

    scores = [_score_of(entry) for entry in leaderboard_data]
    ranks = assign_ranks(scores)

    ranked_data = []
    for i, entry in enumerate(leaderboard_data):
        row = dict(entry) if isinstance(entry, dict) else entry.to_dict()

        is_tied = (i > 0 and scores[i - 1] == scores[i]) or (
            i < len(scores) - 1 and scores[i + 1] == scores[i]
        )

        row["rank"] = ranks[i]
        row["rank_class"] = RANK_CLASSES.get(ranks[i], "")
        row["rank_label"] = RANK_LABELS.get(ranks[i], f"#{ranks[i]}")
        row["is_tied"] = is_tied
        ranked_data.append(row)

    return ranked_data
