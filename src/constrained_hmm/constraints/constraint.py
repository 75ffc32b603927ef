"""Predicates restricting the labels and words allowed at a sequence position.

Constraints form a closed set of immutable value types:

- :class:`Empty` accepts everything
- :class:`Matches` accepts one string, ignoring case
- :class:`StartsWithLetter` accepts strings starting with a letter, ignoring case
- :class:`RhymesWith` accepts words that rhyme with a target word
- :class:`Multi` combines child constraints with ANY_OF or ALL_OF

Being frozen dataclasses they compare and hash by value, so two separately
parsed ``SW(t)`` atoms are equal.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Tuple, Union

from .phonetics import rhymes


@dataclass(frozen=True)
class Empty:
    """No constraint."""

    def is_satisfied_by(self, candidate: str) -> bool:
        return True


@dataclass(frozen=True)
class Matches:
    """Candidate must equal ``target`` case-insensitively."""
    target: str

    def __post_init__(self):
        object.__setattr__(self, 'target', self.target.lower())

    def is_satisfied_by(self, candidate: str) -> bool:
        return candidate.lower() == self.target


@dataclass(frozen=True)
class StartsWithLetter:
    """Candidate must start with ``letter`` case-insensitively."""
    letter: str

    def __post_init__(self):
        if len(self.letter) != 1:
            raise ValueError(f"Expected a single letter, got {self.letter!r}")

    def is_satisfied_by(self, candidate: str) -> bool:
        if not candidate:
            return False
        return candidate[0].lower() == self.letter.lower()


@dataclass(frozen=True)
class RhymesWith:
    """Candidate must rhyme with ``target``.

    Attributes
    ----------
    target : str
        Word to rhyme with, stored lowercased
    oracle : Callable[[str, str], bool]
        Rhyme test applied to ``(target, candidate.lower())``. Defaults to
        the double metaphone approximation in :mod:`.phonetics`, which can
        miss true rhymes. Not part of equality.
    """
    target: str
    oracle: Callable[[str, str], bool] = field(default=rhymes, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'target', self.target.lower())

    def is_satisfied_by(self, candidate: str) -> bool:
        if not candidate:
            return False
        return self.oracle(self.target, candidate.lower())


class MultiMode(Enum):
    """How :class:`Multi` combines its children."""
    ANY_OF = 'any_of'
    ALL_OF = 'all_of'


@dataclass(frozen=True)
class Multi:
    """Boolean combination of child constraints.

    ANY_OF is false for no children and ALL_OF is true for no children.
    """
    children: Tuple['Constraint', ...]
    mode: MultiMode = MultiMode.ANY_OF

    def __post_init__(self):
        object.__setattr__(self, 'children', tuple(self.children))

    def is_satisfied_by(self, candidate: str) -> bool:
        if self.mode is MultiMode.ALL_OF:
            return all(child.is_satisfied_by(candidate) for child in self.children)
        return any(child.is_satisfied_by(candidate) for child in self.children)


Constraint = Union[Empty, Matches, StartsWithLetter, RhymesWith, Multi]


def any_of(*children: Constraint) -> Multi:
    """Constraint satisfied when at least one child is."""
    return Multi(children, MultiMode.ANY_OF)


def all_of(*children: Constraint) -> Multi:
    """Constraint satisfied when every child is."""
    return Multi(children, MultiMode.ALL_OF)
