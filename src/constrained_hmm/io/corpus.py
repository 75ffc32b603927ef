"""Reading training corpora and writing generated sequences."""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union

logger = logging.getLogger(__name__)


def read_corpus(path: Union[str, Path]) -> str:
    """Read a UTF-8 training corpus.

    Parameters
    ----------
    path : Union[str, Path]
        File with one example per line of ``surface:hidden`` tokens

    Returns
    -------
    str
        Full corpus text, ready for :meth:`HiddenMarkovModel.train`

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    logger.info("Read corpus %s (%d characters)", path, len(text))
    return text


def write_sequences(sequences: Iterable[str], path: Union[str, Path]) -> Path:
    """Write one sequence per line, creating parent directories as needed.

    Returns
    -------
    Path
        The written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    n_written = 0
    with open(path, 'w', encoding="utf-8") as f:
        for sequence in sequences:
            f.write(sequence + "\n")
            n_written += 1

    logger.info("Wrote %d sequences to %s", n_written, path)
    return path


def print_sequences(sequences: Iterable[str], stream: Optional[TextIO] = None) -> None:
    """Print one sequence per line to ``stream`` (standard output by default)."""
    stream = stream if stream is not None else sys.stdout
    for sequence in sequences:
        print(sequence, file=stream)
