import sys

import pytest

from appdeck.core.errors import LaunchError
from appdeck.core.launcher import build_command, launch_application

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX launch semantics")


def test_missing_executable_raises(tmp_path):
    with pytest.raises(LaunchError):
        launch_application(str(tmp_path / "missing" / "app"))


def test_empty_path_raises():
    with pytest.raises(LaunchError):
        launch_application("")


@posix_only
def test_build_command_splits_arguments():
    assert build_command('"/opt/My App/app" --profile "Work Stuff"') == ["/opt/My App/app", "--profile", "Work Stuff"]
    assert build_command("/usr/bin/gimp") == ["/usr/bin/gimp"]


@posix_only
def test_launch_returns_pid(tmp_path):
    script = tmp_path / "sleeper"
    script.write_text("#!/bin/sh\nsleep 1\n")
    script.chmod(0o755)

    pid = launch_application(str(script), grace_period=0.1)

    assert pid > 0


@posix_only
def test_early_failure_raises(tmp_path):
    script = tmp_path / "crasher"
    script.write_text("#!/bin/sh\nexit 3\n")
    script.chmod(0o755)

    with pytest.raises(LaunchError, match="exited with code 3"):
        launch_application(str(script), grace_period=0.5)
