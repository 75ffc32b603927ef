"""Token handling for ``surface:hidden`` corpora.

A token pairs an observed surface form with its hidden label, e.g.
``"Fred:NNP"``. Higher-order models group consecutive tokens into
non-overlapping windows whose labels and surface forms are joined by
single spaces, e.g. the window ``["Mary:NNP", "likes:VBZ"]`` has hidden key
``"NNP VBZ"`` and surface key ``"Mary likes"``.
"""

from typing import Iterable, Iterator, List, Sequence, Tuple

from ..exceptions import CorpusFormatError

START_TOKEN = "<<START>>"
TOKEN_SEPARATOR = ":"


def split_token(token: str) -> Tuple[str, str]:
    """Split a ``surface:hidden`` token into ``(surface, hidden)``.

    Parameters
    ----------
    token : str
        Token text. The sentinel :data:`START_TOKEN` maps to
        ``(START_TOKEN, START_TOKEN)``.

    Returns
    -------
    Tuple[str, str]
        Surface form and hidden label. Either part may be empty.

    Raises
    ------
    CorpusFormatError
        If the token does not contain exactly one separator.

    Examples
    --------
    >>> split_token("Fred:NNP")
    ('Fred', 'NNP')
    >>> split_token("Fred:")
    ('Fred', '')
    """
    if token == START_TOKEN:
        return START_TOKEN, START_TOKEN

    if token.count(TOKEN_SEPARATOR) != 1:
        raise CorpusFormatError(
            f"Token {token!r} must have the form 'surface{TOKEN_SEPARATOR}hidden'"
        )

    surface, hidden = token.split(TOKEN_SEPARATOR)
    return surface, hidden


def join_token(surface: str, hidden: str) -> str:
    """Inverse of :func:`split_token`."""
    return f"{surface}{TOKEN_SEPARATOR}{hidden}"


def start_context(order: int) -> str:
    """Context key preceding the first window of every sequence."""
    return " ".join([START_TOKEN] * order)


def iter_windows(tokens: Sequence[str], order: int) -> Iterator[List[str]]:
    """Yield consecutive non-overlapping windows of ``order`` tokens.

    A trailing window with fewer than ``order`` tokens is dropped.
    """
    for start in range(0, len(tokens) - order + 1, order):
        yield list(tokens[start:start + order])


def window_keys(window: Iterable[str]) -> Tuple[str, str]:
    """Return ``(hidden_key, surface_key)`` for a window of tokens."""
    surfaces = []
    hiddens = []
    for token in window:
        surface, hidden = split_token(token)
        surfaces.append(surface)
        hiddens.append(hidden)
    return " ".join(hiddens), " ".join(surfaces)


def tokens_from_keys(hidden_key: str, surface_key: str) -> List[str]:
    """Pair the labels of a hidden key with the forms of a surface key.

    Examples
    --------
    >>> tokens_from_keys("NNP VBZ", "Mary likes")
    ['Mary:NNP', 'likes:VBZ']
    """
    return [join_token(surface, hidden)
            for surface, hidden in zip(surface_key.split(" "), hidden_key.split(" "))]


def check_corpus_line(tokens: Iterable[str]) -> None:
    """Reject the reserved sentinel inside corpus data."""
    for token in tokens:
        if token == START_TOKEN:
            raise CorpusFormatError(
                f"Corpus tokens may not use the reserved sentinel {START_TOKEN!r}"
            )
