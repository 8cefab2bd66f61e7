"""Configuration constants for discourse-trees."""

import os
from dataclasses import dataclass
from pathlib import Path

# Parent id that marks a tree marker as an intentional root.
ROOT_PARENT_ID: str = "root"

# Connectors whose tracks fall into the same bucket of this width are grouped.
TRACK_BUCKET_WIDTH: int = 5

# Max start-offset distance for attaching connectors within one track bucket.
SAME_TRACK_DISTANCE: int = 1000

# Max start-offset distance for attaching connectors across nearby buckets.
CROSS_TRACK_DISTANCE: int = 500

# Buckets further apart than this are never aligned.
MAX_BUCKET_DIFFERENCE: int = 3

# Seconds before the in-use identifier cache is rescanned.
ID_CACHE_TTL: float = 2.0

# Color used for connectors that do not name one.
DEFAULT_CONNECTOR_COLOR: str = "var(--text-normal)"

# Environment variable pointing at a color alias file.
COLOR_FILE_ENV: str = "DISCOURSE_TREES_COLORS"

# Color alias file location. First file found is used.
COLOR_FILES: list[Path] = [
    Path("~/.config/discourse-trees/colors.txt").expanduser(),
    Path("~/.discourse-trees-colors.txt").expanduser(),
]


def resolve_color_file() -> Path | None:
    """Return the color alias file to use, or None when there is none."""
    env_path = os.environ.get(COLOR_FILE_ENV)
    if env_path:
        return Path(env_path).expanduser()
    for candidate in COLOR_FILES:
        if candidate.is_file():
            return candidate
    return None


@dataclass(frozen=True)
class HierarchyThresholds:
    """Tunable constants of the connector hierarchy heuristic."""

    bucket_width: int = TRACK_BUCKET_WIDTH
    same_track_distance: int = SAME_TRACK_DISTANCE
    cross_track_distance: int = CROSS_TRACK_DISTANCE
    max_bucket_difference: int = MAX_BUCKET_DIFFERENCE

    def __post_init__(self) -> None:
        if self.bucket_width <= 0:
            msg = f"bucket_width must be positive, got {self.bucket_width!r}"
            raise ValueError(msg)
        if self.same_track_distance <= 0 or self.cross_track_distance <= 0:
            msg = (
                f"distance thresholds must be positive, got "
                f"{self.same_track_distance!r}/{self.cross_track_distance!r}"
            )
            raise ValueError(msg)
        if self.max_bucket_difference < 0:
            msg = f"max_bucket_difference must be >= 0, got {self.max_bucket_difference!r}"
            raise ValueError(msg)
