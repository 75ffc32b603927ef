"""Approximate rhyme detection with double metaphone encodings.

Two words are considered to rhyme when one of their double metaphone codes
agree after the leading sound is dropped ("Mary" ``MR`` and "Berry" ``PR``
both end in ``R``). This is a coarse approximation: it misses rhymes whose
encodings differ in length, such as "Fred" (``FRT``) and "red" (``RT``).
"""

from typing import Tuple

from metaphone import doublemetaphone


def phonetic_codes(word: str) -> Tuple[str, ...]:
    """Non-empty double metaphone codes of ``word``."""
    return tuple(code for code in doublemetaphone(word) if code)


def rhymes(first: str, second: str) -> bool:
    """Whether ``first`` and ``second`` rhyme according to their encodings.

    Examples
    --------
    >>> rhymes("mary", "berry")
    True
    >>> rhymes("mary", "marge")
    False
    """
    if not first.strip() or not second.strip():
        return False

    first_endings = {code[1:] for code in phonetic_codes(first)}
    second_endings = {code[1:] for code in phonetic_codes(second)}
    return bool(first_endings & second_endings)
