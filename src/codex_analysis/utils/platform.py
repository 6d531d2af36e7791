"""Cross-platform process helpers.

Every CLI invocation runs in its own process group so that a timeout or an
abort can take down the CLI together with anything it spawned.
"""

import logging
import os
import subprocess
import sys
from typing import Any, Final

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS: Final[bool] = sys.platform == "win32"
IS_POSIX: Final[bool] = os.name == "posix"


def get_process_group_kwargs() -> dict[str, Any]:
    """Get subprocess.Popen kwargs that put the child in a new process group.

    Returns:
        Dictionary of kwargs to pass to subprocess.Popen.
    """
    if IS_WINDOWS:
        CREATE_NEW_PROCESS_GROUP = 0x00000200
        return {"creationflags": CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def kill_process_group(proc: subprocess.Popen[Any]) -> None:
    """Forcibly kill a child and every process in its group.

    Safe to call on a process that already exited; on POSIX the group is
    still signalled so orphaned grandchildren are reaped too.

    Args:
        proc: Process started with get_process_group_kwargs().
    """
    if IS_WINDOWS:
        try:
            proc.kill()
        except OSError as e:
            logger.debug(f"Failed to kill process {proc.pid}: {e}")
        return

    import signal

    try:
        # With start_new_session the child leads a group whose id is its pid
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError as e:
        logger.warning(f"Not allowed to kill process group {proc.pid}: {e}")
        proc.kill()
