"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATA_PATH = Path("data/data.json")
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4000


@dataclass(slots=True)
class AppConfig:
    data_path: Path = DEFAULT_DATA_PATH
    schema_file: Path | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from the environment, reading a ``.env`` file if present."""
        load_dotenv()
        schema_file = os.environ.get("SCHEMA_FILE")
        raw_port = os.environ.get("PORT") or str(DEFAULT_PORT)
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got {raw_port!r}") from None
        return cls(
            data_path=Path(os.environ.get("DATAFILES_FILE") or DEFAULT_DATA_PATH),
            schema_file=Path(schema_file) if schema_file else None,
            host=os.environ.get("HOST") or DEFAULT_HOST,
            port=port,
        )

    def resolve_data_path(self, base_dir: Path | None = None) -> Path:
        if Path(self.data_path).is_absolute() or base_dir is None:
            return Path(self.data_path)
        return base_dir / self.data_path
