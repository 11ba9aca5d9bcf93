"""
Utilities package for the scan intake service.

Pure naming helpers plus the collision-safe move used for every relocation.
"""

from .file_operations import (
    failed_base_name,
    generate_conflict_free_path,
    is_candidate_file,
    is_temporary_artifact,
    move_to_unique_path,
    sanitize_code,
    strip_extension,
)

__all__ = [
    "failed_base_name",
    "generate_conflict_free_path",
    "is_candidate_file",
    "is_temporary_artifact",
    "move_to_unique_path",
    "sanitize_code",
    "strip_extension",
]
