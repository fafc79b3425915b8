"""Data models and constants for the video review application."""

from __future__ import annotations

from dataclasses import dataclass, field

# Application identity (single source of truth for platformdirs config paths)
CONFIG_APP_NAME = "video-review"

# Disposition values (binary label)
ACCEPT = "accept"
REJECT = "reject"
DISPOSITIONS = (ACCEPT, REJECT)

# Older review documents stored true/false positive markers instead
LEGACY_DISPOSITION_ALIASES: dict[str, str] = {
    "tp": ACCEPT,
    "fp": REJECT,
    "accept": ACCEPT,
    "reject": REJECT,
}

# Display styles for dispositions: style -> (accept label, reject label)
LABEL_STYLES: dict[str, tuple[str, str]] = {
    "accept-reject": ("ACCEPT", "REJECT"),
    "tp-fp": ("TP", "FP"),
}

# Page size limits (slots are addressed with digit keys 1-9)
DEFAULT_PAGE_SIZE = 8
MAX_PAGE_SIZE = 9

# Autosave debounce window in seconds
DEFAULT_AUTOSAVE_DELAY = 0.5
MIN_AUTOSAVE_DELAY = 0.05
MAX_AUTOSAVE_DELAY = 10.0

# Presigned URL lifetime bounds in seconds
DEFAULT_PRESIGN_EXPIRY = 3600
MIN_PRESIGN_EXPIRY = 60
MAX_PRESIGN_EXPIRY = 86400

DEFAULT_VIDEO_EXTENSIONS: list[str] = [".mp4"]


@dataclass(frozen=True, slots=True)
class LabelState:
    """Disposition plus optional free-text tag for one video."""

    disposition: str = ACCEPT
    tag: str = ""

    def __post_init__(self) -> None:
        if self.disposition not in DISPOSITIONS:
            raise ValueError(f"Unknown disposition: {self.disposition!r}")


DEFAULT_LABEL = LabelState()


@dataclass(frozen=True, slots=True)
class VideoDescriptor:
    """Temporary access descriptor for one video on a page."""

    key: str
    url: str


@dataclass(frozen=True, slots=True)
class PageItem:
    """One row of the rendered page, annotated with its label at render time."""

    slot: int
    key: str
    url: str
    label: LabelState


@dataclass(slots=True)
class ReviewSnapshot:
    """The durable review document: last visited page plus all labels."""

    last_page: int = 0
    labels: dict[str, LabelState] = field(default_factory=dict)


@dataclass(slots=True)
class InitPayload:
    """Everything a backend hands over when a session starts."""

    video_keys: list[str]
    labels: dict[str, LabelState] = field(default_factory=dict)
    last_page: int = 0


@dataclass(frozen=True, slots=True)
class SearchHit:
    """Location of a catalog entry found by name."""

    page: int
    index: int
    key: str


@dataclass(slots=True)
class ReviewStats:
    """Label counts for the status bar and ``--stats`` output."""

    total: int = 0
    reviewed: int = 0
    accepted: int = 0
    rejected: int = 0
    tagged: int = 0


@dataclass(slots=True)
class ReviewConfig:
    """User preferences persisted between runs."""

    page_size: int = DEFAULT_PAGE_SIZE
    autosave_delay: float = DEFAULT_AUTOSAVE_DELAY
    player_command: str = ""  # e.g. "mpv --fs {url}"; empty = system browser
    tags_enabled: bool = True
    label_style: str = "accept-reject"  # key into LABEL_STYLES
    theme_name: str = "monokai"
    presign_expiry_seconds: int = DEFAULT_PRESIGN_EXPIRY
    video_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS))
    last_source: str = ""  # s3://..., http(s)://... or a local directory
    aws_region: str = ""
    version: int = 1

    def __post_init__(self) -> None:
        """Clamp numeric settings into their supported ranges."""
        self.page_size = max(1, min(self.page_size, MAX_PAGE_SIZE))
        self.autosave_delay = max(MIN_AUTOSAVE_DELAY, min(self.autosave_delay, MAX_AUTOSAVE_DELAY))
        self.presign_expiry_seconds = max(
            MIN_PRESIGN_EXPIRY, min(self.presign_expiry_seconds, MAX_PRESIGN_EXPIRY)
        )
        if self.label_style not in LABEL_STYLES:
            self.label_style = "accept-reject"


def disposition_label(disposition: str, style: str = "accept-reject") -> str:
    """Return the display text for a disposition under a label style."""
    accept_text, reject_text = LABEL_STYLES.get(style, LABEL_STYLES["accept-reject"])
    return accept_text if disposition == ACCEPT else reject_text


__all__ = [
    "ACCEPT",
    "CONFIG_APP_NAME",
    "DEFAULT_AUTOSAVE_DELAY",
    "DEFAULT_LABEL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_PRESIGN_EXPIRY",
    "DEFAULT_VIDEO_EXTENSIONS",
    "DISPOSITIONS",
    "LABEL_STYLES",
    "LEGACY_DISPOSITION_ALIASES",
    "MAX_AUTOSAVE_DELAY",
    "MAX_PAGE_SIZE",
    "MAX_PRESIGN_EXPIRY",
    "MIN_AUTOSAVE_DELAY",
    "MIN_PRESIGN_EXPIRY",
    "REJECT",
    "InitPayload",
    "LabelState",
    "PageItem",
    "ReviewConfig",
    "ReviewSnapshot",
    "ReviewStats",
    "SearchHit",
    "VideoDescriptor",
    "disposition_label",
]
