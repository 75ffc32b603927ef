"""Command-line interface for training constrained models and generating sequences.

Sub-commands:

``generate``
    Train on the configured corpus and print or write sampled sequences.
``score``
    Print the constrained-model probability of given sequences.
``benchmark``
    Measure training and sampling time on synthetic corpora.
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .analysis.timing import save_timings, time_alphabet_sizes, time_sequence_lengths
from .config.random_state import SEED_ENVIRONMENT_VARIABLE, get_environment_seed
from .config.settings import DEFAULT_CONFIG_FILE, Settings
from .constraints.parser import parse_constraint_spec
from .core.constrained_markov import ConstrainedHiddenMarkovModel, build_constrained_model
from .core.hidden_markov import train_base_model
from .core.sampling import sample_sequences
from .exceptions import (ConfigurationError, ConstrainedHMMError, CorpusFormatError,
                         ProbabilityLookupError)
from .io.corpus import print_sequences, read_corpus, write_sequences

LOG_DIR = Path("logs")

DEFAULT_ALPHABET_SIZES = list(range(5, 101))
DEFAULT_SEQUENCE_LENGTHS = list(range(50, 10001, 50))

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """Configure root logger to log to stderr and a log file.

    Args:
        verbose: If ``True`` set console log level to ``DEBUG`` else ``INFO``.
        log_file: Optional path to a log file. If ``None`` a timestamped file is
            created under ``logs/``.
    """
    if log_file is None:
        LOG_DIR.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = LOG_DIR / f"cli_{timestamp}.log"
    else:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    handlers = []

    # Console handler; stdout is reserved for sequences and tables
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(console_handler)

    # File handler (always DEBUG for maximum detail)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    logging.debug("Logging initialised. Log file: %s", log_file)


def _load_settings(args: argparse.Namespace) -> Settings:
    """Load the config file and apply command-line overrides."""
    settings = Settings.from_file(args.config)
    settings = settings.update(
        training_file=getattr(args, 'file', None),
        markov_order=getattr(args, 'order', None),
        n_sequences=getattr(args, 'sequences', None),
        output_file=getattr(args, 'output', None),
        random_seed=getattr(args, 'seed', None),
        n_workers=getattr(args, 'workers', None),
    )
    if settings.random_seed is None:
        settings = settings.update(random_seed=get_environment_seed())
    return settings


def _train_model(settings: Settings) -> ConstrainedHiddenMarkovModel:
    """Train the base model and condition it on the configured constraints."""
    if not settings.training_file:
        raise ConfigurationError("No training file configured (use 'training_file' or -f)")
    if not settings.constraints:
        raise ConfigurationError("No constraints configured (use 'constraints')")

    start = time.perf_counter()
    corpus = read_corpus(settings.training_file)
    hidden_constraints, observed_constraints = parse_constraint_spec(settings.constraints)
    logger.info("Data length: %d, sequence length: %d", len(corpus), len(hidden_constraints))

    base_model = train_base_model(settings.markov_order, corpus)
    model = build_constrained_model(base_model, len(hidden_constraints),
                                    hidden_constraints, observed_constraints)
    model.train()
    logger.info("Training time elapsed: %.2f s", time.perf_counter() - start)
    return model


# -----------------------------------------------------------------------------
# Sub-command implementations
# -----------------------------------------------------------------------------

def _cmd_generate(args: argparse.Namespace) -> int:
    """Entry point for the ``generate`` sub-command."""
    logger.info("Generating sequences, config: %s", args.config)

    try:
        settings = _load_settings(args)
        model = _train_model(settings)
        if not model.is_satisfiable:
            logger.error("Constraints cannot be satisfied by the training corpus")
            return 1

        start = time.perf_counter()
        sequences = sample_sequences(model, settings.n_sequences,
                                     seed=settings.random_seed,
                                     n_workers=settings.n_workers,
                                     progress=args.progress)
        logger.info("Generation time elapsed: %.2f s", time.perf_counter() - start)

        if settings.output_file:
            write_sequences(sequences, settings.output_file)
        else:
            print_sequences(sequences)
    except (ConstrainedHMMError, OSError) as exc:
        logger.error("Generation failed: %s", exc)
        return 1
    return 0


def _cmd_score(args: argparse.Namespace) -> int:
    """Entry point for the ``score`` sub-command."""
    try:
        settings = _load_settings(args)
        model = _train_model(settings)
    except (ConstrainedHMMError, OSError) as exc:
        logger.error("Training failed: %s", exc)
        return 1

    n_invalid = 0
    for sequence in args.queries:
        try:
            probability = model.sequence_probability(sequence)
        except ProbabilityLookupError as exc:
            logger.debug("Undefined probability for %r: %s", sequence, exc)
            print(f"undefined\t{sequence}")
        except CorpusFormatError as exc:
            logger.error("Invalid sequence %r: %s", sequence, exc)
            print(f"invalid\t{sequence}")
            n_invalid += 1
        else:
            print(f"{probability!r}\t{sequence}")
    return 1 if n_invalid else 0


def _cmd_benchmark(args: argparse.Namespace) -> int:
    """Entry point for the ``benchmark`` sub-command."""
    logger.info("Running %s benchmark", args.kind)

    try:
        if args.kind == "alphabet":
            timings = time_alphabet_sizes(args.values or DEFAULT_ALPHABET_SIZES,
                                          progress=args.progress)
        else:
            timings = time_sequence_lengths(args.values or DEFAULT_SEQUENCE_LENGTHS,
                                            progress=args.progress)
        print(timings.to_string(index=False))
        if args.csv:
            save_timings(timings, args.csv)
    except (ConstrainedHMMError, OSError, ValueError) as exc:
        logger.error("Benchmark failed: %s", exc)
        return 1
    return 0


# -----------------------------------------------------------------------------
# Argument parsing
# -----------------------------------------------------------------------------

def _add_model_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        type=str,
        help="YAML/JSON config with training_file, markov_order and constraints.",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=str,
        help="Training file path (overrides the config).",
    )
    parser.add_argument(
        "-m",
        "--order",
        type=int,
        help="Markov order (overrides the config).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="constrained-hmm",
        description="Generates constrained sequences",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging output.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Log file path; defaults to a timestamped file under logs/.",
    )

    sub_parsers = parser.add_subparsers(dest="command", required=True)

    # generate ----------------------------------------------------------------
    generate_parser = sub_parsers.add_parser("generate", help="Train and sample sequences")
    _add_model_arguments(generate_parser)
    generate_parser.add_argument(
        "-n",
        "--sequences",
        type=int,
        help="The number of sequences to generate (config default: 10).",
    )
    generate_parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file to write sequences to; prints when omitted.",
    )
    generate_parser.add_argument(
        "--seed",
        type=int,
        help=f"Random seed; falls back to the config, then ${SEED_ENVIRONMENT_VARIABLE}.",
    )
    generate_parser.add_argument(
        "--workers",
        type=int,
        help="Number of sampling threads.",
    )
    generate_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while sampling.",
    )
    generate_parser.set_defaults(func=_cmd_generate)

    # score -------------------------------------------------------------------
    score_parser = sub_parsers.add_parser("score", help="Probability of sequences")
    _add_model_arguments(score_parser)
    score_parser.add_argument(
        "queries",
        metavar="SEQUENCE",
        nargs="+",
        help="Sequences of space-separated surface:hidden tokens.",
    )
    score_parser.set_defaults(func=_cmd_score)

    # benchmark ---------------------------------------------------------------
    benchmark_parser = sub_parsers.add_parser("benchmark", help="Measure running times")
    benchmark_parser.add_argument(
        "kind",
        choices=["alphabet", "length"],
        help="Vary the alphabet size or the sequence length.",
    )
    benchmark_parser.add_argument(
        "--values",
        type=int,
        nargs="+",
        help="Sizes or lengths to measure (default: 5..100 or 50..10000 step 50).",
    )
    benchmark_parser.add_argument(
        "--csv",
        type=str,
        help="Write the timing table to this CSV file.",
    )
    benchmark_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar.",
    )
    benchmark_parser.set_defaults(func=_cmd_benchmark)

    return parser


# -----------------------------------------------------------------------------
# Main entry point
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Parse ``argv`` and dispatch to sub-command implementation."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    # Logging must be set up *after* parsing to respect --verbose flag.
    _setup_logging(verbose=args.verbose, log_file=args.log_file)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
