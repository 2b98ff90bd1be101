"""
Input checks performed before any store call.
"""

from typing import Any, Tuple

from .errors import ValidationError

MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 100
# Largest value an SQLite INTEGER column can hold
MAX_SCORE = 2**63 - 1


def validate_player_name(name: Any) -> str:
    """
    Trim and check a player name.

    @param name: Raw value from the form
    @return: Trimmed player name
    """
    player_name = name.strip() if isinstance(name, str) else ""

    if not player_name:
        raise ValidationError("Player name cannot be empty")
    if len(player_name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Player name too long (max {MAX_NAME_LENGTH} characters)"
        )
    return player_name


def validate_score(score: Any) -> int:
    """
    Parse a score as a non-negative integer.

    @param score: Raw value from the form (string or int)
    @return: Parsed score
    """
    if isinstance(score, bool):
        raise ValidationError("Score must be a valid non-negative number")

    try:
        value = int(str(score).strip())
    except (TypeError, ValueError):
        raise ValidationError("Score must be a valid non-negative number") from None

    if value < 0:
        raise ValidationError("Score must be a valid non-negative number")
    if value > MAX_SCORE:
        raise ValidationError(f"Score too large (max {MAX_SCORE})")
    return value


def validate_entry(name: Any, score: Any) -> Tuple[str, int]:
    return validate_player_name(name), validate_score(score)


def validate_new_admin(
    username: Any,
    password: Any,
    confirm_password: Any,
    min_length: int = MIN_PASSWORD_LENGTH,
) -> Tuple[str, str]:
    """
    Check a username/password pair for the first admin account.

    @param username: Requested username
    @param password: Requested password
    @param confirm_password: Password typed a second time
    @param min_length: Minimum password length (never below 8)
    @return: Trimmed username and the password
    """
    username = username.strip() if isinstance(username, str) else ""
    password = password if isinstance(password, str) else ""
    confirm_password = confirm_password if isinstance(confirm_password, str) else ""
    min_length = max(min_length, MIN_PASSWORD_LENGTH)

    if not username:
        raise ValidationError("Username cannot be empty")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < min_length:
        raise ValidationError(
            f"Password must be at least {min_length} characters long"
        )
    return username, password
