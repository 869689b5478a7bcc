"""Password checksum and identifier helpers.

The checksum here is NOT a password hash. It is a 32-bit polynomial string
hash applied twice with a fixed salt, so stored records never contain the
plaintext password. It offers no protection against brute force or
rainbow tables and must not be used where real security is expected.
"""

import secrets
import string
from datetime import datetime

from site_accounts.config import settings

_BASE36_ALPHABET = string.digits + string.ascii_lowercase

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def rolling_hash(text: str) -> int:
    """
    Compute the classic ``h = h * 31 + c`` string hash as a signed 32-bit int.

    Characters are consumed as UTF-16 code units so non-BMP characters hash
    the same way a browser would hash them.

    Args:
        text: Input string

    Returns:
        Signed 32-bit hash value
    """
    data = text.encode("utf-16-le")
    value = 0
    for index in range(0, len(data), 2):
        code_unit = data[index] | (data[index + 1] << 8)
        value = (value * 31 + code_unit) & _INT32_MASK

    if value & _INT32_SIGN:
        return value - (1 << 32)
    return value


def utf16_length(text: str) -> int:
    """Length of ``text`` in UTF-16 code units, as a browser counts it."""
    return len(text.encode("utf-16-le")) // 2


def checksum(password: str, salt: str | None = None) -> str:
    """
    Derive the stored checksum for a password.

    Args:
        password: Plaintext password
        salt: Constant salt appended after the first pass (defaults to settings)

    Returns:
        Base-16 string, with a leading ``-`` for negative values
    """
    if salt is None:
        salt = settings.checksum_salt

    salted = f"{rolling_hash(password)}{salt}"
    return format(rolling_hash(salted), "x")


def to_base36(value: int) -> str:
    """Render a non-negative integer in base 36."""
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def random_base36(length: int = 13) -> str:
    """Generate a random lowercase base-36 string."""
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(length))


def generate_account_id(now: datetime) -> str:
    """
    Generate an account identifier.

    Args:
        now: Current time, used for the sortable prefix

    Returns:
        Base-36 millisecond timestamp followed by 13 random base-36 characters
    """
    millis = int(now.timestamp() * 1000)
    return to_base36(millis) + random_base36()
