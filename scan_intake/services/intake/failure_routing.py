import asyncio
import logging
from pathlib import Path
from typing import Optional

import aiofiles.os

from scan_intake.core.exceptions import CollisionResolutionError
from scan_intake.models import FailureReason, IntakeResult
from scan_intake.utils.file_operations import (
    failed_base_name,
    file_extension,
    move_to_unique_path,
)


async def route_to_failed(
    path: Path,
    failed_dir: Path,
    reason: FailureReason,
    source_path: Optional[Path] = None,
    error_message: Optional[str] = None,
) -> IntakeResult:
    """
    Move path to failed/<stem>_<reason>[_N]<ext> if it still exists.

    A file that is already gone yields a Vanished result. A move that fails is
    logged and the file stays where it is; it is never deleted.
    """
    original = source_path or path
    source = str(original)

    if not await aiofiles.os.path.exists(path):
        logging.warning(f"Cannot route to failed ({reason.value}), file is gone: {path}")
        return IntakeResult.vanished(source)

    try:
        target = await asyncio.to_thread(
            move_to_unique_path,
            path,
            failed_dir,
            failed_base_name(original.name, reason.value),
            file_extension(path),
        )
    except (OSError, CollisionResolutionError) as e:
        logging.error(
            f"Failed moving {path.name} to failed ({reason.value}): {e}", exc_info=True
        )
        still_present = await aiofiles.os.path.exists(path)
        return IntakeResult.failed(
            source,
            reason,
            final_path=str(path) if still_present else None,
            error_message=error_message or str(e),
        )

    logging.info(f"Moved to failed ({reason.value}): {target.name}")
    return IntakeResult.failed(
        source, reason, final_path=str(target), error_message=error_message
    )
