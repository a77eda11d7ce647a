"""Configuration loading and merging for bulletin."""

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


@dataclass
class BulletinConfig:
    # HTTP listener
    host: str = "0.0.0.0"
    port: int = 8087

    # Directory holding the registry file and the log directory
    data_dir: str = "."
    db_file: str = "services.json"
    log_dir: str = "log"
    log_file: str = "bulletin.log"

    # Liveness probing (seconds)
    probe_interval: float = 5
    probe_timeout: float = 5

    @property
    def db_path(self) -> Path:
        return Path(self.data_dir) / self.db_file

    @property
    def log_path(self) -> Path:
        return Path(self.data_dir) / self.log_dir / self.log_file


def load_config(path: str | Path) -> BulletinConfig:
    """Load a BulletinConfig from a YAML file, ignoring unknown keys."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    valid_fields = {f.name for f in fields(BulletinConfig)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return BulletinConfig(**filtered)


def merge_cli_args(config: BulletinConfig, args) -> BulletinConfig:
    """Overlay CLI arguments onto an existing config. CLI values take precedence."""
    for f in fields(BulletinConfig):
        cli_val = getattr(args, f.name, None)
        if cli_val is not None:
            setattr(config, f.name, cli_val)
    return config
