from __future__ import annotations

from dataclasses import dataclass
from dataclasses import fields as dataclass_fields
from typing import Any

DEFAULT_SERVICE_URL = "https://bsky.social"
DEFAULT_MIRROR_URL = "https://web.archive.org/save/"
DEFAULT_ARCHIVE_DIR = "./posts"


@dataclass(frozen=True)
class ArchiveSettings:
    """Library-side settings for one archive run.

    The HTTP client built from these is immutable: headers, redirect cap
    and timeout never change after construction.
    """

    service_url: str = DEFAULT_SERVICE_URL
    mirror_url: str = DEFAULT_MIRROR_URL
    archive_dir: str = DEFAULT_ARCHIVE_DIR
    user_agent: str = "Mozilla/5.0"
    max_redirects: int = 100
    timeout: float = 30.0
    mirror: bool = True
    image_workers: int = 1
    infer_image_extension: bool = False

    def __post_init__(self) -> None:
        if self.image_workers < 1:
            raise ValueError(f"image_workers must be >= 1, got {self.image_workers}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArchiveSettings:
        """Build settings from a plain dict, ignoring unknown keys."""
        known = {f.name for f in dataclass_fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
