"""Run settings with YAML and JSON loading support."""

import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "config.yaml"

# Fields that configuration files may store as strings, e.g. ``markov_order: "2"``
_INTEGER_FIELDS = ('markov_order', 'n_sequences', 'random_seed', 'n_workers')


@dataclass
class Settings:
    """Settings for one training and generation run.

    Loaded from a YAML or JSON file and then overridden from the command
    line. The file holds at least ``training_file``, ``markov_order`` and
    ``constraints`` (constraint specification text, see
    :func:`constrained_hmm.constraints.parse_constraint_spec`).
    """

    # Inputs
    training_file: Optional[str] = None
    markov_order: int = 1
    constraints: Optional[str] = None

    # Generation
    n_sequences: int = 10
    output_file: Optional[str] = None

    # Reproducibility and processing
    random_seed: Optional[int] = None
    n_workers: int = 1

    def __post_init__(self):
        """Validate settings after initialization."""
        for name in _INTEGER_FIELDS:
            setattr(self, name, _coerce_integer(name, getattr(self, name)))

        if self.markov_order < 1:
            raise ConfigurationError(f"markov_order must be at least 1, got {self.markov_order}")
        if self.n_sequences < 0:
            raise ConfigurationError(f"n_sequences must not be negative, got {self.n_sequences}")
        if self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be at least 1, got {self.n_workers}")
        if self.random_seed is not None and self.random_seed < 0:
            raise ConfigurationError(f"random_seed must not be negative, got {self.random_seed}")

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'Settings':
        """Load settings from a YAML or JSON file.

        Parameters
        ----------
        config_path : Union[str, Path]
            Path to a ``.yaml``, ``.yml`` or ``.json`` file

        Returns
        -------
        Settings
            Settings object with values from the file

        Raises
        ------
        ConfigurationError
            If the file is missing, has an unsupported extension, does not
            hold a mapping, or sets unknown fields
        """
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        try:
            if suffix == ".json":
                config_data = json.loads(text)
            elif suffix in {".yml", ".yaml"}:
                config_data = yaml.safe_load(text)
            else:
                raise ConfigurationError(f"Unsupported config type: {path.suffix}")
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration in {path} must be a mapping")

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> 'Settings':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields: {unknown}")
        return cls(**config_data)

    def update(self, **kwargs) -> 'Settings':
        """Create new Settings with updated values.

        Parameters
        ----------
        **kwargs
            Settings fields to update. ``None`` values are ignored so that
            unset command-line options keep the configured value.

        Returns
        -------
        Settings
            New Settings object with updated values
        """
        current_dict = asdict(self)
        current_dict.update({key: value for key, value in kwargs.items() if value is not None})
        return Settings.from_dict(current_dict)


def _coerce_integer(name: str, value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ConfigurationError(f"{name} must be an integer, got {value!r}")
