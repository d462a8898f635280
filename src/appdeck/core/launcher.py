"""
Application launching
Starts an indexed application detached from the engine's process
"""

import logging
import os
import shlex
import subprocess
import time
from typing import List, Optional, Union

import psutil

from ..utils.paths import IS_WINDOWS, split_command
from .errors import LaunchError

logger = logging.getLogger(__name__)

# How long a freshly started process gets to fail before we call it launched
LAUNCH_GRACE_PERIOD = 0.5


def build_command(path: str) -> Union[str, List[str]]:
    """Command for Popen; Windows takes the raw command line"""
    executable, args = split_command(path)

    if IS_WINDOWS:
        return f'"{executable}" {args}' if args else [executable]

    return [executable] + shlex.split(args)


def launch_application(path: str, working_dir: Optional[str] = None,
                       grace_period: float = LAUNCH_GRACE_PERIOD) -> int:
    """Launch an application and return its pid; raises LaunchError"""
    executable, _ = split_command(path)
    if not executable or not os.path.exists(executable):
        raise LaunchError(f"Executable not found: {executable or path}")

    cwd = working_dir or os.path.dirname(executable) or None

    try:
        cmd = build_command(path)
    except ValueError as e:
        raise LaunchError(f"Could not parse launch arguments for {path}: {e}") from e

    logger.info(f"Launching application: {path}")

    popen_kwargs = dict(
        cwd=cwd,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        stdin=subprocess.DEVNULL,
    )
    if IS_WINDOWS:
        popen_kwargs['creationflags'] = subprocess.CREATE_NEW_PROCESS_GROUP | subprocess.DETACHED_PROCESS
    else:
        popen_kwargs['start_new_session'] = True

    try:
        process_handle = subprocess.Popen(cmd, **popen_kwargs)
    except OSError as e:
        raise LaunchError(f"Failed to launch {path}: {e}") from e

    # Wait for process to start
    if grace_period > 0:
        time.sleep(grace_period)

    exit_code = process_handle.poll()
    if exit_code is not None:
        # Launchers (browsers, etc.) may exit 0 after handing off to a child
        if exit_code != 0:
            raise LaunchError(f"Process {path} exited with code {exit_code}")
        logger.info(f"Launcher for {path} exited cleanly")
        return process_handle.pid

    try:
        process = psutil.Process(process_handle.pid)
        logger.info(f"Started {process.name()} (PID: {process.pid})")
    except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
        logger.debug(f"Could not inspect process {process_handle.pid}: {e}")

    return process_handle.pid
