"""Configuration management for the bsky-archive CLI.

Reads/writes a TOML config file and provides a typed Config dataclass.
Default location: ``~/.config/bsky-archive/config.toml``.
Override with the ``BSKY_ARCHIVE_CONFIG`` environment variable.

Example::

    [account]
    identifier = "alice.bsky.social"
    password = "xxxx-xxxx-xxxx-xxxx"

    [service]
    url = "https://bsky.social"

    [archive]
    dir = "./posts"
    mirror = true
    workers = 1
    infer_image_extension = false
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass
from pathlib import Path

from bsky_archive.config import (
    DEFAULT_ARCHIVE_DIR,
    DEFAULT_SERVICE_URL,
    ArchiveSettings,
)

_DEFAULT_CONFIG_DIR = Path("~/.config/bsky-archive").expanduser()


def _config_path() -> Path:
    env = os.environ.get("BSKY_ARCHIVE_CONFIG")
    if env:
        return Path(env).expanduser()
    return _DEFAULT_CONFIG_DIR / "config.toml"


def _toml_str(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class Config:
    identifier: str = ""
    password: str = ""

    service_url: str = DEFAULT_SERVICE_URL

    archive_dir: str = DEFAULT_ARCHIVE_DIR
    mirror: bool = True
    image_workers: int = 1
    infer_image_extension: bool = False

    @property
    def has_credentials(self) -> bool:
        return bool(self.identifier and self.password)

    def to_settings(self) -> ArchiveSettings:
        """Library settings; credentials stay on the CLI side."""
        return ArchiveSettings.from_dict(asdict(self))


def load_config() -> Config:
    """Load config from disk, falling back to defaults + env overrides."""
    path = _config_path()
    cfg = Config()

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        account_section = data.get("account", {})
        service_section = data.get("service", {})
        archive_section = data.get("archive", {})

        cfg.identifier = account_section.get("identifier", cfg.identifier)
        cfg.password = account_section.get("password", cfg.password)

        cfg.service_url = service_section.get("url", cfg.service_url)

        cfg.archive_dir = archive_section.get("dir", cfg.archive_dir)
        cfg.mirror = bool(archive_section.get("mirror", cfg.mirror))
        cfg.image_workers = int(archive_section.get("workers", cfg.image_workers))
        cfg.infer_image_extension = bool(
            archive_section.get("infer_image_extension", cfg.infer_image_extension)
        )

    # Environment variables always take precedence
    cfg.identifier = os.environ.get("BSKYUSERNAME", cfg.identifier)
    cfg.password = os.environ.get("BSKYPASSWORD", cfg.password)
    cfg.service_url = os.environ.get("BSKY_SERVICE_URL", cfg.service_url)
    cfg.archive_dir = os.environ.get("BSKY_ARCHIVE_DIR", cfg.archive_dir)

    return cfg


def save_config(cfg: Config) -> Path:
    """Write config to the TOML file. Returns the path written."""
    path = _config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "[account]",
        f"identifier = {_toml_str(cfg.identifier)}",
        f"password = {_toml_str(cfg.password)}",
        "",
        "[service]",
        f"url = {_toml_str(cfg.service_url)}",
        "",
        "[archive]",
        f"dir = {_toml_str(cfg.archive_dir)}",
        f"mirror = {_toml_bool(cfg.mirror)}",
        f"workers = {cfg.image_workers}",
        f"infer_image_extension = {_toml_bool(cfg.infer_image_extension)}",
        "",
    ]

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def config_exists() -> bool:
    return _config_path().exists()


def config_path_display() -> str:
    return str(_config_path())
