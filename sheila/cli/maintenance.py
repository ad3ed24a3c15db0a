"""Cache clearing and control of background test processes."""

from __future__ import annotations

import json
import shutil
import tempfile
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from uuid import UUID

from termcolor import colored

from sheila.cli.helpers import get_default_output_dir, validate_test_id
from sheila.cli.output import format_error, format_info, format_success, format_warning
from sheila.cli.process import ManagedProcess, ProcessManager, ProcessStatus
from sheila.errors import SheilaError

_TEMP_PREFIXES = ("sheila_", ".sheila")
_COMPILATION_PROFILES = ("debug", "release")


@dataclass
class CacheClearReport:
    """What a cache clearing run removed and what it could not."""

    cleared: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def clear_directory(directory: str | PathLike[str]) -> int:
    """Delete every file below ``directory``, pruning emptied subdirectories.

    The directory itself is kept. Returns the number of files removed.
    """
    directory = Path(directory)
    if not directory.exists():
        return 0
    count = 0
    for path in directory.iterdir():
        if path.is_file():
            path.unlink()
            count += 1
        elif path.is_dir():
            count += clear_directory(path)
            if not any(path.iterdir()):
                path.rmdir()
    return count


def _home() -> Path | None:
    try:
        return Path.home()
    except RuntimeError:
        return None


def _clear_temp_files() -> int:
    count = 0
    temp_path = Path(tempfile.gettempdir())
    if temp_path.exists():
        for path in temp_path.iterdir():
            if not path.name.startswith(_TEMP_PREFIXES):
                continue
            if path.is_file():
                path.unlink()
                count += 1
            elif path.is_dir():
                count += clear_directory(path)
                shutil.rmtree(path)

    home = _home()
    if home is not None:
        sheila_temp = home / ".sheila" / "temp"
        if sheila_temp.exists():
            count += clear_directory(sheila_temp)
    return count


def _clear_compilation_cache() -> int:
    count = 0
    target_dir = Path.cwd() / "target"
    if not target_dir.exists():
        return 0
    for profile in _COMPILATION_PROFILES:
        deps_dir = target_dir / profile / "deps"
        if not deps_dir.exists():
            continue
        for path in deps_dir.iterdir():
            if ("test" in path.name or path.name.startswith("sheila")) and path.is_file():
                path.unlink()
                count += 1
    return count


def clear_cache() -> CacheClearReport:
    """Clear the process cache, saved results, temporary files and test binaries."""
    print(format_info("Clearing all caches..."))
    report = CacheClearReport()

    try:
        manager = ProcessManager()
    except (SheilaError, OSError) as exc:
        report.errors.append(f"Failed to initialize process manager: {exc}")
    else:
        try:
            manager.clear_cache()
            report.cleared.append("Process cache")
        except OSError as exc:
            report.errors.append(f"Process cache: {exc}")

    try:
        output_dir = get_default_output_dir()
    except OSError as exc:
        report.errors.append(f"Failed to get output directory: {exc}")
    else:
        if output_dir.exists():
            try:
                count = clear_directory(output_dir)
                if count > 0:
                    report.cleared.append(f"Test results ({count} files)")
            except OSError as exc:
                report.errors.append(f"Test results cache: {exc}")

    try:
        count = _clear_temp_files()
        if count > 0:
            report.cleared.append(f"Temporary files ({count} files)")
    except OSError as exc:
        report.errors.append(f"Temporary files: {exc}")

    try:
        count = _clear_compilation_cache()
        if count > 0:
            report.cleared.append(f"Compilation cache ({count} files)")
    except OSError as exc:
        report.errors.append(f"Compilation cache: {exc}")

    if report.cleared:
        print(format_success("Successfully cleared:"))
        for item in report.cleared:
            print(f"  ✓ {item}")
    if report.errors:
        print(format_warning("Some items could not be cleared:"))
        for error in report.errors:
            print(f"  ⚠ {error}")
    if not report.cleared and not report.errors:
        print(format_info("No cache files found to clear"))

    print(format_success("Cache clearing completed"))
    return report


def _status_debug(record: ManagedProcess) -> str:
    if record.status is ProcessStatus.COMPLETED:
        return f"Completed {{ exit_code: {record.exit_code} }}"
    if record.status is ProcessStatus.FAILED:
        return f"Failed {{ error: {json.dumps(record.error or '')} }}"
    return record.status.value


def _status_label(status: ProcessStatus) -> str:
    if status is ProcessStatus.RUNNING:
        return colored("running", "green")
    if status is ProcessStatus.PAUSED:
        return colored("paused", "yellow")
    if status is ProcessStatus.COMPLETED:
        return colored("completed", "blue")
    if status is ProcessStatus.FAILED:
        return colored("failed", "red")
    return colored("stopped", attrs=["dark"])


def _open_manager(test_id: str) -> tuple[UUID, ProcessManager]:
    process_id = validate_test_id(test_id)
    manager = ProcessManager()
    manager.load_from_cache()
    return process_id, manager


def stop(test_id: str) -> None:
    """Stop a background test process, or list the known ones if it is not found."""
    process_id, manager = _open_manager(test_id)
    record = manager.get_process(process_id)
    if record is None:
        print(format_warning(f"No running test process found with ID: {process_id}"))
        processes = manager.list_processes()
        if processes:
            print("\nAvailable processes:")
            for process in processes:
                print(f"  {process.id} - {process.command} ({_status_label(process.status)})")
        return

    started = record.started_at.strftime("%Y-%m-%d %H:%M:%S UTC")
    print(format_info(f"Stopping test process: {process_id} (started: {started})"))
    manager.stop_process(process_id)
    print(format_success("Test process stopped successfully"))


def pause(test_id: str) -> None:
    """Pause a running background test process."""
    process_id, manager = _open_manager(test_id)
    record = manager.get_process(process_id)
    if record is None:
        print(format_error(f"No test process found with ID: {process_id}"))
        return
    if record.status is ProcessStatus.RUNNING:
        print(format_info(f"Pausing test process: {process_id}"))
        manager.pause_process(process_id)
        print(format_success("Test process paused successfully"))
    elif record.status is ProcessStatus.PAUSED:
        print(format_warning(f"Test process {process_id} is already paused"))
    else:
        print(
            format_warning(
                f"Test process {process_id} is not in a state that can be paused "
                f"(status: {_status_debug(record)})"
            )
        )


def resume(test_id: str) -> None:
    """Resume a paused background test process."""
    process_id, manager = _open_manager(test_id)
    record = manager.get_process(process_id)
    if record is None:
        print(format_error(f"No test process found with ID: {process_id}"))
        return
    if record.status is ProcessStatus.PAUSED:
        print(format_info(f"Resuming test process: {process_id}"))
        manager.resume_process(process_id)
        print(format_success("Test process resumed successfully"))
    elif record.status is ProcessStatus.RUNNING:
        print(format_warning(f"Test process {process_id} is already running"))
    else:
        print(
            format_warning(
                f"Test process {process_id} is not in a state that can be resumed "
                f"(status: {_status_debug(record)})"
            )
        )