"""Parser for the line-based constraint specification language.

Each non-blank line describes one or more positions:

``OBS:HID``
    One position whose observed constraint is parsed from ``OBS`` and whose
    hidden constraint is parsed from ``HID``.
``SPEC*N``
    ``N`` positions sharing the constraint parsed from ``SPEC`` on both the
    observed and the hidden side.

Atoms:

========== ==========================================
``SW(x)``  starts with the letter ``x``
``RW(w)``  rhymes with the word ``w``
``NC``     no constraint
other      matches the text exactly, ignoring case
========== ==========================================

Example
-------
A four word sentence starting with "t", ending with the noun "red"::

    SW(t):NNP
    NC*2
    red:NN

Unrecognized atoms are not rejected: they silently become exact-match
constraints, so a typo such as ``Sw(t)`` matches the literal text "sw(t)".
"""

import re
from typing import List, Tuple

from ..exceptions import ConstraintSpecError
from .constraint import Constraint, Empty, Matches, RhymesWith, StartsWithLetter

STARTS_WITH_RE = re.compile(r"^SW\((.*)\)")
RHYMES_WITH_RE = re.compile(r"^RW\((.*)\)")
EMPTY_RE = re.compile(r"^NC")

REPEAT_SEPARATOR = "*"
PAIR_SEPARATOR = ":"


def parse_atom(text: str) -> Constraint:
    """
    Build a single constraint from an atom of the specification language.

    Parameters
    ----------
    text : str
        Atom such as ``"SW(t)"``, ``"RW(red)"``, ``"NC"`` or ``"NNP"``

    Returns
    -------
    Constraint
        Parsed constraint; unknown atoms fall back to :class:`Matches`

    Raises
    ------
    ConstraintSpecError
        If ``SW()`` is given no letter
    """
    match = STARTS_WITH_RE.match(text)
    if match:
        argument = match.group(1)
        if not argument:
            raise ConstraintSpecError(f"Atom {text!r} needs a letter")
        return StartsWithLetter(argument[0])

    match = RHYMES_WITH_RE.match(text)
    if match:
        return RhymesWith(match.group(1))

    if EMPTY_RE.match(text):
        return Empty()

    return Matches(text)


def parse_constraint_spec(spec: str) -> Tuple[List[Constraint], List[Constraint]]:
    """
    Parse a multi-line specification into positional constraint lists.

    Parameters
    ----------
    spec : str
        Specification text, one position group per line

    Returns
    -------
    Tuple[List[Constraint], List[Constraint]]
        ``(hidden_constraints, observed_constraints)``, always of equal length

    Raises
    ------
    ConstraintSpecError
        If a line is neither ``OBS:HID`` nor ``SPEC*N``, or ``N`` is not a
        non-negative integer
    """
    hidden_constraints: List[Constraint] = []
    observed_constraints: List[Constraint] = []

    for line_number, raw_line in enumerate(spec.split("\n"), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if REPEAT_SEPARATOR in line:
            constraint, count = _parse_repeat(line, line_number)
            hidden_constraints.extend([constraint] * count)
            observed_constraints.extend([constraint] * count)
        elif PAIR_SEPARATOR in line:
            observed, hidden = line.split(PAIR_SEPARATOR, 1)
            observed_constraints.append(parse_atom(observed.strip()))
            hidden_constraints.append(parse_atom(hidden.strip()))
        else:
            raise ConstraintSpecError(
                f"Line {line_number}: expected 'OBS{PAIR_SEPARATOR}HID' or "
                f"'SPEC{REPEAT_SEPARATOR}N', got {line!r}"
            )

    return hidden_constraints, observed_constraints


def _parse_repeat(line: str, line_number: int) -> Tuple[Constraint, int]:
    atom, count_text = line.split(REPEAT_SEPARATOR, 1)
    try:
        count = int(count_text.strip())
    except ValueError:
        raise ConstraintSpecError(
            f"Line {line_number}: repeat count {count_text!r} is not an integer"
        ) from None
    if count < 0:
        raise ConstraintSpecError(f"Line {line_number}: repeat count must not be negative")
    return parse_atom(atom.strip()), count
