import pytest

from leaderboard.errors import ValidationError
from leaderboard.validation import MAX_SCORE, validate_entry, validate_new_admin


def test_valid_entry_is_trimmed_and_parsed():
    assert validate_entry("  Alice ", " 42 ") == ("Alice", 42)
    assert validate_entry("Bob", 0) == ("Bob", 0)


@pytest.mark.parametrize("name", ["", "   ", None, "x" * 101])
def test_bad_player_name(name):
    with pytest.raises(ValidationError):
        validate_entry(name, 10)


@pytest.mark.parametrize("score", ["", "abc", "-1", "1.5", None, True])
def test_bad_score(score):
    with pytest.raises(ValidationError):
        validate_entry("Alice", score)


def test_new_admin_minimum_length_never_below_eight():
    with pytest.raises(ValidationError):
        validate_new_admin("admin", "seven77", "seven77", min_length=4)

    assert validate_new_admin("admin", "eight888", "eight888") == ("admin", "eight888")


def test_new_admin_password_mismatch():
    with pytest.raises(ValidationError, match="do not match"):
        validate_new_admin("admin", "password123", "password321")


def test_score_must_fit_a_64_bit_integer():
    assert validate_entry("Alice", str(MAX_SCORE)) == ("Alice", MAX_SCORE)

    with pytest.raises(ValidationError, match="too large"):
        validate_entry("Alice", "99999999999999999999")
