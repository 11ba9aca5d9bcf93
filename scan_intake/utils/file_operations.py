import errno
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Iterable, Union

from scan_intake.core.exceptions import CollisionResolutionError

MAX_CONFLICT_ATTEMPTS = 9999
MAX_CODE_LENGTH = 150

TEMPORARY_PREFIXES = ("~", ".")
TEMPORARY_SUFFIXES = (".tmp", ".part", ".partial", ".crdownload", ".filepart")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|]')
_UNDERSCORE_RUNS = re.compile(r"_+")
_EDGE_CHARS = "_. \t"
_LINK_FALLBACK_ERRNOS = {errno.EXDEV, errno.EPERM, errno.EACCES, errno.EMLINK, errno.ENOTSUP, errno.EINVAL}


def sanitize_code(raw: str) -> str:
    """
    Turn decoder output into a filename-safe code.

    The result may be empty; callers must treat that as a failure rather than
    substitute a placeholder name.
    """
    cleaned = _CONTROL_CHARS.sub("", raw).strip()
    cleaned = _UNSAFE_CHARS.sub("_", cleaned)
    cleaned = _UNDERSCORE_RUNS.sub("_", cleaned)
    cleaned = cleaned.strip(_EDGE_CHARS)
    if len(cleaned) > MAX_CODE_LENGTH:
        cleaned = cleaned[:MAX_CODE_LENGTH].rstrip(_EDGE_CHARS)
    return cleaned


def strip_extension(name: str) -> str:
    dot = name.rfind(".")
    return name[:dot] if dot > 0 else name


def is_temporary_artifact(path: Path) -> bool:
    """Check if the name looks like a partial or editor artifact (~scan.pdf, .scan.pdf, scan.pdf.part)."""
    name = path.name.lower()
    return name.startswith(TEMPORARY_PREFIXES) or name.endswith(TEMPORARY_SUFFIXES)


def is_candidate_file(path: Path, accepted_extensions: Iterable[str]) -> bool:
    """Check extension (case-insensitive) and reject temporary artifacts."""
    if is_temporary_artifact(path):
        return False
    return path.suffix.lower() in tuple(accepted_extensions)


def _candidate_name(base_name: str, extension: str, counter: int) -> str:
    if counter == 0:
        return f"{base_name}{extension}"
    return f"{base_name}_{counter}{extension}"


def generate_conflict_free_path(
    directory: Path, base_name: str, extension: str
) -> Path:
    """
    Return directory/base_name+extension if unused, else the first free base_name_N+extension.

    This is a snapshot answer; use move_to_unique_path when the result is
    about to be used as a move destination.
    """
    for counter in range(MAX_CONFLICT_ATTEMPTS + 1):
        candidate = directory / _candidate_name(base_name, extension, counter)
        if not candidate.exists():
            return candidate

    raise CollisionResolutionError(str(directory), base_name, MAX_CONFLICT_ATTEMPTS)


def _link_or_copy_exclusive(source: Path, target: Path) -> None:
    """
    Create target from source without ever replacing an existing target.

    Raises FileExistsError if target is taken.
    """
    try:
        os.link(source, target)
        return
    except FileExistsError:
        raise
    except OSError as e:
        if e.errno not in _LINK_FALLBACK_ERRNOS:
            raise

    # Cross-device or no hard link support: claim the name, then copy into it
    with open(target, "xb") as dst:
        try:
            with open(source, "rb") as src:
                shutil.copyfileobj(src, dst)
        except BaseException:
            dst.close()
            target.unlink(missing_ok=True)
            raise

    # Metadata is best effort; SMB and similar mounts often refuse it
    try:
        shutil.copystat(source, target)
    except OSError as e:
        logging.debug(f"Could not copy metadata to {target}: {e}")


def move_to_unique_path(
    source: Union[str, Path], directory: Path, base_name: str, extension: str
) -> Path:
    """
    Move source into directory under base_name+extension, suffixing _1, _2, ... on collision.

    The destination name is claimed exclusively, so two concurrent callers
    can never end up on the same path and nothing is overwritten. The first
    caller to claim the bare name keeps it.
    """
    source = Path(source)
    for counter in range(MAX_CONFLICT_ATTEMPTS + 1):
        candidate = directory / _candidate_name(base_name, extension, counter)
        try:
            _link_or_copy_exclusive(source, candidate)
        except FileExistsError:
            continue

        try:
            source.unlink()
        except OSError:
            candidate.unlink(missing_ok=True)
            raise
        return candidate

    raise CollisionResolutionError(str(directory), base_name, MAX_CONFLICT_ATTEMPTS)


def failed_base_name(file_name: str, reason: str) -> str:
    return f"{strip_extension(file_name)}_{reason}"


def file_extension(path: Path) -> str:
    return path.suffix.lower()
