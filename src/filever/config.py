"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_TARGET_DIR = Path("/mnt/drive2/nextcloud/local-cache/Files")
DEFAULT_STATE_FILE = Path("/etc/default/file-versioning-state.txt")
DEFAULT_EXCLUSIONS_FILE = Path("/etc/default/file-versioning-exclusions.txt")
DEFAULT_LOG_FILE = Path("/var/log/create-file-versions.log")

DEFAULT_EXTENSIONS = frozenset(
    {
        # Microsoft Office
        ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".mdb", ".accdb", ".pub", ".one",
        ".docm", ".dotx", ".dotm", ".xlsm", ".xltm", ".pptm", ".osts",
        # OneNote, Project, Visio
        ".onetoc2", ".onepkg",
        ".mpp", ".mpt",
        ".vsd", ".vsdx", ".vst", ".vstx", ".vss", ".vssx", ".vsw",
        # Email
        ".eml", ".msg", ".pst", ".ost", ".mbox",
        # Markdown and code
        ".md", ".cs", ".sh", ".js", ".java", ".cpp", ".py", ".rb",
        ".php", ".html", ".htm", ".css", ".sln", ".csproj",
        # Configuration
        ".conf", ".config", ".ini", ".yaml", ".yml", ".json", ".xml",
        # Images
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".psd", ".svg",
        # LibreOffice
        ".odt", ".ods", ".odp", ".odg", ".odf",
        # Text
        ".csv", ".txt", ".rtf",
        # Web archives
        ".mhtml", ".mht", ".webarchive",
        # CorelDRAW
        ".cdr", ".cdt", ".cmx", ".csl", ".cpt", ".clr",
        ".bat",
        # Adobe
        ".pdf", ".ai", ".indd", ".aep", ".prel", ".prproj", ".ae", ".fla", ".swf",
        # Vegas
        ".veg", ".vf",
        # Video
        ".mkv", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".mpeg", ".mpg",
        ".m4v", ".svi", ".3gp", ".m2ts", ".mts", ".vob", ".webm",
        ".drawio",
    }
)


@dataclass(slots=True)
class AppConfig:
    target_dir: Path = DEFAULT_TARGET_DIR
    state_file: Path = DEFAULT_STATE_FILE
    exclusions_file: Path = DEFAULT_EXCLUSIONS_FILE
    log_file: Path | None = DEFAULT_LOG_FILE
    cooldown: float = 120.0
    state_poll_interval: float = 60.0
    sweep_interval: float = 600.0
    lock_timeout: float = 3.0
    lock_poll_interval: float = 0.5
    copy_timeout: float = 20 * 60.0
    max_workers: int = 8
    extensions: frozenset[str] = field(default=DEFAULT_EXTENSIONS)

    def __post_init__(self) -> None:
        self.target_dir = Path(self.target_dir)
        self.extensions = frozenset(ext.lower() for ext in self.extensions)
        if self.cooldown < 0:
            raise ValueError("cooldown must not be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
