"""
CIN Census UPN Check Digit

A unique pupil number is 13 characters: a check letter, a three-digit LA
code, eight more digits (together an 11-digit middle) and a final
character that is a digit or a letter.

Letters map to numbers through a 19-letter alphabet that skips I, O, Q,
S and U:

    A-H -> 0-7    J-N -> 8-12    P-R -> 13-15    T-Z -> 16-22

The check letter's index must equal
    (sum((d_i * (i + 1)) mod 23 for i in 1..11) + (final * 13) mod 23) mod 23
"""
from __future__ import annotations

from typing import Optional

UPN_LENGTH = 13

# (first letter, last letter, offset from 'A' to the mapped value)
_LETTER_BANDS = (
    ("A", "H", 0),
    ("J", "N", 1),
    ("P", "R", 2),
    ("T", "Z", 3),
)

# Characters 2-4 (the LA code) must fall in one of these ranges or values
LA_CODE_RANGES = (
    ("001", "005"), ("201", "213"), ("301", "320"), ("330", "336"),
    ("340", "344"), ("350", "359"), ("370", "373"), ("380", "384"),
    ("390", "394"), ("660", "681"), ("701", "708"), ("800", "803"),
    ("805", "808"), ("810", "813"), ("820", "823"), ("835", "837"),
    ("838", "839"), ("850", "852"), ("855", "857"), ("865", "896"),
    ("935", "938"), ("940", "941"),
)
LA_CODES = frozenset({
    "420", "815", "816", "825", "826", "830", "831", "840", "841", "845",
    "846", "860", "861", "908", "909", "916", "919", "921", "925", "926",
    "928", "929", "931", "933",
})


def letter_index(char: str) -> Optional[int]:
    """Banded index of a check-alphabet letter, None if unmappable."""
    char = char.upper()
    for first, last, offset in _LETTER_BANDS:
        if first <= char <= last:
            return ord(char) - ord("A") - offset
    return None


def initial_index(code: str) -> Optional[int]:
    """Index of the check letter (character 1)."""
    return letter_index(code[0]) if code else None


def final_code(code: str) -> Optional[int]:
    """Value of the final character: a digit, or a banded letter index."""
    if not code:
        return None
    final = code[-1]
    if "0" <= final <= "9":
        return ord(final) - ord("0")
    return letter_index(final)


def checksum(code: str) -> Optional[int]:
    """
    Weighted checksum of characters 2-13.

    Returns:
        The checksum, or None when the code is the wrong length, the middle
        is not all digits, or the final character cannot be mapped
    """
    if len(code) != UPN_LENGTH:
        return None
    middle = code[1:12]
    if not (middle.isascii() and middle.isdigit()):
        return None
    final = final_code(code)
    if final is None:
        return None
    total = sum((int(d) * (i + 1)) % 23 for i, d in enumerate(middle, start=1))
    total += (final * 13) % 23
    return total % 23


def is_valid_upn(code: Optional[str]) -> bool:
    """True when the check letter matches the checksum."""
    if not code:
        return False
    index = initial_index(code)
    total = checksum(code)
    return index is not None and total is not None and index == total


def has_recognised_la_code(code: str) -> bool:
    """Characters 2-4 are a recognised LA code."""
    la_code = code[1:4]
    if la_code in LA_CODES:
        return True
    return any(low <= la_code <= high for low, high in LA_CODE_RANGES)


def has_numeric_middle(code: str) -> bool:
    """Characters 2-12 are all digits."""
    middle = code[1:12]
    return bool(middle) and middle.isascii() and middle.isdigit()


def has_valid_final(code: str) -> bool:
    """The final character is a digit or a check-alphabet letter."""
    return final_code(code) is not None
