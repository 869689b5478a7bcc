"""Tests for the password checksum and identifier helpers."""

import re
from datetime import UTC, datetime

import pytest

from site_accounts.core.security import (
    checksum,
    generate_account_id,
    rolling_hash,
    to_base36,
    utf16_length,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("a", 97),
        ("abc", 96354),
        ("hello", 99162322),
        # Wraps exactly onto the most negative 32-bit value.
        ("polygenelubricants", -2147483648),
    ],
)
def test_rolling_hash_known_values(text, expected):
    """Test the polynomial hash against well-known string hash values."""
    assert rolling_hash(text) == expected


def test_rolling_hash_uses_utf16_code_units():
    """Test characters outside the BMP hash as a surrogate pair."""
    assert rolling_hash("\U0001f600") == 0xD83D * 31 + 0xDE00


def test_checksum_is_deterministic():
    """Test the same input always yields the same checksum."""
    assert checksum("secret1", "salt") == checksum("secret1", "salt")


def test_checksum_differs_for_different_inputs():
    """Test distinct passwords produce distinct checksums."""
    values = {checksum(f"password-{i}", "salt") for i in range(200)}

    assert len(values) == 200


def test_checksum_depends_on_salt():
    """Test the salt feeds into the second pass."""
    assert checksum("secret1", "salt-a") != checksum("secret1", "salt-b")


def test_checksum_is_hexadecimal():
    """Test output only contains hex digits and an optional leading sign."""
    for password in ["secret1", "", "pässwörd", "\U0001f600\U0001f600", "x" * 500]:
        assert re.fullmatch(r"-?[0-9a-f]+", checksum(password, "ilovexxh_salt_2025"))


def test_checksum_of_empty_password_with_empty_salt():
    """Test the two-pass construction on the smallest input."""
    # First pass gives 0, so the second pass hashes the string "0".
    assert checksum("", "") == "30"


def test_checksum_renders_negative_values_with_sign():
    """Test negative hashes keep their sign in base 16."""
    salt = ""
    password = next(
        p for p in (f"pw{i}" for i in range(1000)) if rolling_hash(str(rolling_hash(p))) < 0
    )

    assert checksum(password, salt).startswith("-")


def test_to_base36():
    """Test base-36 rendering."""
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    assert to_base36(1295) == "zz"


def test_generate_account_id():
    """Test identifiers start with the base-36 millisecond timestamp."""
    now = datetime(2025, 1, 1, tzinfo=UTC)

    account_id = generate_account_id(now)

    prefix = to_base36(1735689600000)
    assert account_id.startswith(prefix)
    assert len(account_id) == len(prefix) + 13
    assert re.fullmatch(r"[0-9a-z]+", account_id)
    assert generate_account_id(now) != account_id


def test_utf16_length_counts_surrogate_pairs():
    """Test characters outside the BMP count as two code units."""
    assert utf16_length("") == 0
    assert utf16_length("secret") == 6
    assert utf16_length("密码") == 2
    assert utf16_length("\U0001f600" * 3) == 6
