"""
soulbound.core.config — Configuration for the soulbound token engine.

Supports loading from YAML, environment variables, and programmatic
construction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict

#: How ``take`` treats ownership once the origin's consent verifies.
#:   "consume": mark the consent used, leave the owner record alone
#:               (the default).
#:   "equip":   also assign the token to the caller, like ``give``.
TAKE_MODES = frozenset({"consume", "equip"})

#: Environment variable naming the default data directory.
DATA_DIR_ENV = "SOULBOUND_DATA_DIR"

#: File name of the per-data-dir config written by ``soulbound init``.
CONFIG_FILENAME = "soulbound.yaml"


def default_data_dir() -> Path:
    return Path(os.environ.get(DATA_DIR_ENV, "./soulbound_data"))


@dataclass
class Config:
    """
    Central configuration object.

    Construct directly, via ``Config.from_yaml(path)``, or via
    ``Config.from_data_dir(path)`` for quick bootstrap.
    """

    # -- storage ------------------------------------------------------------
    data_dir: Path = field(default_factory=default_data_dir)

    # -- token metadata (used by ``soulbound init``) ------------------------
    token_name: str = "Soulbound"
    token_symbol: str = "SBT"

    # -- protocol -----------------------------------------------------------
    take_mode: str = "consume"  # "consume" | "equip"

    # -- logging ------------------------------------------------------------
    structured_logging: bool = False  # emit JSON log lines when True
    log_level: str = "INFO"

    # -----------------------------------------------------------------------
    # Derived paths (all relative to data_dir)
    # -----------------------------------------------------------------------

    @property
    def db_path(self) -> Path:
        return self.data_dir / "soulbound.db"

    @property
    def keys_dir(self) -> Path:
        return self.data_dir / "keys"

    @property
    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    def __post_init__(self) -> None:
        # normalise data_dir to an absolute Path
        self.data_dir = Path(self.data_dir).resolve()
        self.take_mode = self.take_mode.lower().strip()
        if self.take_mode not in TAKE_MODES:
            raise ValueError(
                f"Unknown take_mode {self.take_mode!r}; "
                f"expected one of {sorted(TAKE_MODES)}"
            )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML file.

        Any key in the YAML that matches a Config field is applied.
        Unknown keys are silently ignored so the file can carry
        application-level settings alongside soulbound config.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as fh:
            raw: Dict[str, Any] = yaml.safe_load(fh) or {}

        # pull the soulbound section if nested, else use top-level
        data = raw.get("soulbound", raw)

        if "data_dir" in data:
            data["data_dir"] = Path(data["data_dir"])

        known = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known}

        return cls(**filtered)

    @classmethod
    def from_data_dir(cls, data_dir: str | Path, **overrides: Any) -> "Config":
        """Quick constructor: just point at a data directory."""
        return cls(data_dir=Path(data_dir), **overrides)

    @classmethod
    def load(
        cls,
        data_dir: str | Path | None = None,
        config_path: str | Path | None = None,
        **overrides: Any,
    ) -> "Config":
        """Resolve the config a data directory runs with.

        Lookup order: an explicit *config_path*, then
        ``<data_dir>/soulbound.yaml`` if it exists, then plain defaults
        for *data_dir*.  Without *data_dir* the default data directory
        is used.  A YAML file found inside *data_dir* always points at
        that directory, whatever ``data_dir`` it records.
        """
        if config_path:
            config = cls.from_yaml(config_path)
            return replace(config, **overrides) if overrides else config

        data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        candidate = data_dir / CONFIG_FILENAME
        if candidate.exists():
            return replace(cls.from_yaml(candidate), data_dir=data_dir, **overrides)
        return cls.from_data_dir(data_dir, **overrides)

    # -----------------------------------------------------------------------
    # Directory bootstrapping
    # -----------------------------------------------------------------------

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for d in (self.data_dir, self.keys_dir):
            d.mkdir(parents=True, exist_ok=True)

    # -----------------------------------------------------------------------
    # Serialisation
    # -----------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to a plain dict (YAML/JSON-safe)."""
        return {
            "data_dir": str(self.data_dir),
            "token_name": self.token_name,
            "token_symbol": self.token_symbol,
            "take_mode": self.take_mode,
            "structured_logging": self.structured_logging,
            "log_level": self.log_level,
        }

    def write_yaml(self, path: str | Path | None = None) -> Path:
        """Write this config under a ``soulbound:`` section and return the path."""
        import yaml

        target = Path(path) if path is not None else self.config_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as fh:
            yaml.safe_dump({"soulbound": self.to_dict()}, fh, sort_keys=False)
        return target
