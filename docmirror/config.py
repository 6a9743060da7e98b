"""Configuration system for docmirror.

This module defines how callers describe a mirror run: where the mirror
lives, which databases take part, and how artifacts are written.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .codec import DEFAULT_EXTENSION


class MirrorMode(Enum):
    """What a run does, derived from which databases are configured."""
    BACKUP = "backup"                            # Source only
    BACKUP_AND_REPLICATE = "backup_replicate"    # Source and destination
    RESTORE = "restore"                          # Destination only


@dataclass
class MirrorConfig:
    """Complete configuration for one backup or restore run.

    The CLI builds this from its arguments; library callers may build it
    directly and hand it to the high-level API.
    """

    # Mirror location
    backup_path: Optional[Path] = None

    # Service-account credential files
    source_credentials: Optional[Path] = None
    destination_credentials: Optional[Path] = None

    # Artifact format
    pretty_print: bool = False
    artifact_extension: str = DEFAULT_EXTENSION

    # Only this root collection takes part (None = all)
    collection: Optional[str] = None

    # Mirror traversal
    follow_symlinks: bool = False

    log_level: str = "INFO"

    def __post_init__(self):
        if self.backup_path is not None:
            self.backup_path = Path(self.backup_path)
        if self.source_credentials is not None:
            self.source_credentials = Path(self.source_credentials)
        if self.destination_credentials is not None:
            self.destination_credentials = Path(self.destination_credentials)

    @property
    def mode(self) -> Optional[MirrorMode]:
        """Run mode, or None when no database is configured."""
        if self.source_credentials and self.destination_credentials:
            return MirrorMode.BACKUP_AND_REPLICATE
        if self.source_credentials:
            return MirrorMode.BACKUP
        if self.destination_credentials:
            return MirrorMode.RESTORE
        return None

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.backup_path is None or not str(self.backup_path).strip():
            errors.append("backup_path is required")

        if self.mode is None:
            errors.append("source_credentials or destination_credentials is required")

        if self.source_credentials and not os.path.exists(self.source_credentials):
            errors.append(f"source credentials file does not exist: {self.source_credentials}")

        if self.destination_credentials and not os.path.exists(self.destination_credentials):
            errors.append(
                f"destination credentials file does not exist: {self.destination_credentials}"
            )

        if not self.artifact_extension.startswith('.') or len(self.artifact_extension) < 2:
            errors.append("artifact_extension must start with '.'")

        if self.collection is not None and (not self.collection or '/' in self.collection):
            errors.append("collection must be a single non-empty collection id")

        return errors
