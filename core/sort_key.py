"""Fractional sort keys for manually ordered sibling lists.

A key is an integer part followed by an optional fraction, both written in
base-62 digits. The head character of the integer part encodes its length
(``a``..``z`` for 2..27 characters, ``Z``..``A`` for 2..27 characters of the
negative range), so keys grow only logarithmically under repeated appends
and prepends. Plain string comparison orders keys correctly.

Pure domain logic: no I/O, no shared state.
"""

from typing import List, Optional

BASE_62_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

DEFAULT_KEY = "a0"
_ZERO = BASE_62_DIGITS[0]
_SMALLEST_INTEGER = "A" + _ZERO * 26


class OrderingInvariantViolation(Exception):
    """Raised when key bounds are out of order, equal, or not valid keys.

    Signals corrupted ordering upstream; callers must not swallow it.
    """

    def __init__(self, message: str, before: Optional[str] = None, after: Optional[str] = None):
        super().__init__(message)
        self.before = before
        self.after = after


def _midpoint(a: str, b: Optional[str]) -> str:
    """Fraction strictly between ``a`` and ``b`` (``None`` = 1)."""
    if b is not None and a >= b:
        raise OrderingInvariantViolation(f"{a!r} >= {b!r}", a, b)
    if a.endswith(_ZERO) or (b is not None and b.endswith(_ZERO)):
        raise OrderingInvariantViolation("fraction has trailing zero", a, b)
    if b:
        # Shared prefix (a padded with zeros) is carried over unchanged.
        n = 0
        while (a[n] if n < len(a) else _ZERO) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + _midpoint(a[n:], b[n:])
    digit_a = BASE_62_DIGITS.index(a[0]) if a else 0
    digit_b = BASE_62_DIGITS.index(b[0]) if b is not None else len(BASE_62_DIGITS)
    if digit_b - digit_a > 1:
        return BASE_62_DIGITS[(digit_a + digit_b + 1) // 2]
    if b and len(b) > 1:
        return b[:1]
    return BASE_62_DIGITS[digit_a] + _midpoint(a[1:], None)


def _integer_length(head: str) -> int:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    raise OrderingInvariantViolation(f"invalid key head: {head!r}")


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    if length > len(key):
        raise OrderingInvariantViolation(f"invalid key: {key!r}")
    return key[:length]


def validate_key(key: str) -> None:
    if not key:
        raise OrderingInvariantViolation("empty key")
    if key == _SMALLEST_INTEGER:
        raise OrderingInvariantViolation(f"invalid key: {key!r}")
    integer = _integer_part(key)
    if any(ch not in BASE_62_DIGITS for ch in key[1:]):
        raise OrderingInvariantViolation(f"invalid key: {key!r}")
    if key[len(integer):].endswith(_ZERO):
        raise OrderingInvariantViolation(f"invalid key: {key!r}")


def is_valid_key(key: str) -> bool:
    try:
        validate_key(key)
    except OrderingInvariantViolation:
        return False
    return True


def _increment_integer(value: str) -> Optional[str]:
    head, digits = value[0], list(value[1:])
    carry = True
    for i in reversed(range(len(digits))):
        d = BASE_62_DIGITS.index(digits[i]) + 1
        if d == len(BASE_62_DIGITS):
            digits[i] = _ZERO
        else:
            digits[i] = BASE_62_DIGITS[d]
            carry = False
            break
    if not carry:
        return head + "".join(digits)
    if head == "Z":
        return "a" + _ZERO
    if head == "z":
        return None
    new_head = chr(ord(head) + 1)
    if new_head > "a":
        digits.append(_ZERO)
    else:
        digits.pop()
    return new_head + "".join(digits)


def _decrement_integer(value: str) -> Optional[str]:
    head, digits = value[0], list(value[1:])
    borrow = True
    for i in reversed(range(len(digits))):
        d = BASE_62_DIGITS.index(digits[i]) - 1
        if d == -1:
            digits[i] = BASE_62_DIGITS[-1]
        else:
            digits[i] = BASE_62_DIGITS[d]
            borrow = False
            break
    if not borrow:
        return head + "".join(digits)
    if head == "a":
        return "Z" + BASE_62_DIGITS[-1]
    if head == "A":
        return None
    new_head = chr(ord(head) - 1)
    if new_head < "Z":
        digits.append(BASE_62_DIGITS[-1])
    else:
        digits.pop()
    return new_head + "".join(digits)


def key_between(before: Optional[str], after: Optional[str]) -> str:
    """Return a key strictly between ``before`` and ``after``.

    Either bound may be ``None`` (list boundary). Both ``None`` yields the
    canonical midpoint key.

    Raises:
        OrderingInvariantViolation: if ``before >= after`` or a bound is not a valid key.
    """
    if before is not None:
        validate_key(before)
    if after is not None:
        validate_key(after)
    if before is not None and after is not None and before >= after:
        raise OrderingInvariantViolation(
            f"sort key bounds out of order: {before!r} >= {after!r}", before, after
        )

    if before is None:
        if after is None:
            return DEFAULT_KEY
        int_after = _integer_part(after)
        frac_after = after[len(int_after):]
        if int_after == _SMALLEST_INTEGER:
            return int_after + _midpoint("", frac_after)
        if int_after < after:
            return int_after
        result = _decrement_integer(int_after)
        if result is None:
            raise OrderingInvariantViolation("cannot decrement below the smallest key", before, after)
        return result

    int_before = _integer_part(before)
    frac_before = before[len(int_before):]
    if after is None:
        result = _increment_integer(int_before)
        return int_before + _midpoint(frac_before, None) if result is None else result

    int_after = _integer_part(after)
    frac_after = after[len(int_after):]
    if int_before == int_after:
        return int_before + _midpoint(frac_before, frac_after)
    result = _increment_integer(int_before)
    if result is None:
        raise OrderingInvariantViolation("cannot increment above the largest key", before, after)
    if result < after:
        return result
    return int_before + _midpoint(frac_before, None)


def key_after(last: Optional[str]) -> str:
    return key_between(last, None)


def keys_between(before: Optional[str], after: Optional[str], count: int) -> List[str]:
    """Return ``count`` distinct ordered keys strictly between the bounds."""
    if count < 0:
        raise ValueError("count must be non-negative")
    if count == 0:
        return []
    if count == 1:
        return [key_between(before, after)]
    if after is None:
        keys = [key_between(before, None)]
        for _ in range(count - 1):
            keys.append(key_between(keys[-1], None))
        return keys
    if before is None:
        keys = [key_between(None, after)]
        for _ in range(count - 1):
            keys.append(key_between(None, keys[-1]))
        keys.reverse()
        return keys
    mid = count // 2
    pivot = key_between(before, after)
    return keys_between(before, pivot, mid) + [pivot] + keys_between(pivot, after, count - mid - 1)


def rebalance(count: int) -> List[str]:
    """Fresh evenly spread keys for a sibling scope whose stored keys collided."""
    return keys_between(None, None, count)


__all__ = [
    "BASE_62_DIGITS",
    "DEFAULT_KEY",
    "OrderingInvariantViolation",
    "validate_key",
    "is_valid_key",
    "key_between",
    "key_after",
    "keys_between",
    "rebalance",
]
