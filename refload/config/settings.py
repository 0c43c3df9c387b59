"""
Configuration settings for reference-file loading.

**Conceptual**: Loader defaults (separator, text encoding, where reference
files live, how chatty logging is) come from environment variables, optionally
via a ``.env`` file at the project root. Settings are frozen dataclasses
validated in ``__post_init__``, so a bad value fails at startup with a clear
message instead of halfway through a load.

**Environment variables**:
  - REFLOAD_SEPARATOR (optional): default field separator. Defaults to "|".
  - REFLOAD_ENCODING (optional): reference file encoding. Defaults to "utf-8".
  - REFLOAD_DATA_DIR (optional): directory holding reference files.
    Defaults to "data/ref" under the project root.
  - REFLOAD_LOG_LEVEL (optional): logging level name. Defaults to "INFO".

Only the CLI reads the separator and data directory; library calls always
take the separator explicitly and only fall back to the encoding.
"""

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


@dataclass(frozen=True)
class LoaderSettings:
    """
    Defaults used by the loaders and the command-line action.

    Attributes:
        separator: Default field separator for reference files.
        encoding: Text encoding of reference files (any codec name Python knows).
        data_dir: Directory where relative reference file names are resolved.
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    separator: str = "|"
    encoding: str = "utf-8"
    data_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data" / "ref")
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.separator:
            raise ValueError(
                "REFLOAD_SEPARATOR must be a non-empty string. "
                "Unset it to use the default '|'."
            )
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(
                f"REFLOAD_ENCODING names an unknown encoding: {self.encoding}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(
                f"REFLOAD_LOG_LEVEL must be a logging level name, got: {self.log_level}"
            )
        object.__setattr__(self, "data_dir", Path(self.data_dir))
        object.__setattr__(self, "log_level", self.log_level.upper())

    @classmethod
    def from_env(cls) -> "LoaderSettings":
        """
        Load loader settings from environment variables.

        Returns:
            LoaderSettings with values from the environment, defaults elsewhere.

        Raises:
            ValueError: If any variable is set to an invalid value.

        Usage example:
            >>> # In .env file:
            >>> # REFLOAD_SEPARATOR=,
            >>> settings = LoaderSettings.from_env()
            >>> settings.separator
            ','
        """
        data_dir = os.getenv("REFLOAD_DATA_DIR")
        return cls(
            separator=os.getenv("REFLOAD_SEPARATOR", "|"),
            encoding=os.getenv("REFLOAD_ENCODING", "utf-8"),
            data_dir=Path(data_dir) if data_dir else PROJECT_ROOT / "data" / "ref",
            log_level=os.getenv("REFLOAD_LOG_LEVEL", "INFO"),
        )

    def resolve(self, path) -> Path:
        """Resolve a reference file name against ``data_dir`` unless absolute or existing."""
        candidate = Path(path)
        if candidate.is_absolute() or candidate.exists():
            return candidate
        return self.data_dir / candidate


@dataclass(frozen=True)
class Settings:
    """
    Top-level settings object.

    Attributes:
        loader: Reference loader defaults.
    """
    loader: LoaderSettings = field(default_factory=LoaderSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(loader=LoaderSettings.from_env())


_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Return the process-wide Settings, loading them from the environment once.

    Tests can call ``reset_settings()`` after changing environment variables.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()
    return _default_settings


def reset_settings() -> None:
    """Clear the cached settings so the next ``get_settings()`` reloads them."""
    global _default_settings
    _default_settings = None
