"""Background test processes and their on-disk status cache."""

from __future__ import annotations

import dataclasses
import enum
import json
import os
import shutil
import signal
import subprocess
import threading
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Any

from sheila.errors import SheilaError


class ProcessStatus(enum.Enum):
    RUNNING = "Running"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    FAILED = "Failed"
    STOPPED = "Stopped"

    def __str__(self) -> str:
        return self.value.lower()


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass
class ManagedProcess:
    """A test process started in the background."""

    id: uuid.UUID
    command: str
    args: list[str]
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: ProcessStatus = ProcessStatus.RUNNING
    output_file: Path | None = None
    exit_code: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        status: Any
        if self.status is ProcessStatus.COMPLETED:
            status = {"Completed": {"exit_code": self.exit_code}}
        elif self.status is ProcessStatus.FAILED:
            status = {"Failed": {"error": self.error or ""}}
        else:
            status = self.status.value
        return {
            "id": str(self.id),
            "command": self.command,
            "args": list(self.args),
            "started_at": _format_timestamp(self.started_at),
            "status": status,
            "output_file": str(self.output_file) if self.output_file is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManagedProcess:
        """Rebuild a process record; ValueError, KeyError or TypeError if malformed."""
        raw_status = data["status"]
        exit_code = None
        error = None
        if isinstance(raw_status, str):
            status = ProcessStatus(raw_status)
            if status in (ProcessStatus.COMPLETED, ProcessStatus.FAILED):
                raise ValueError(f"status {raw_status} needs data")
        elif isinstance(raw_status, dict) and len(raw_status) == 1:
            (name, payload), = raw_status.items()
            status = ProcessStatus(name)
            if status is ProcessStatus.COMPLETED:
                exit_code = int(payload["exit_code"])
            elif status is ProcessStatus.FAILED:
                error = str(payload["error"])
            else:
                raise ValueError(f"status {name} takes no data")
        else:
            raise ValueError("invalid status")
        args = data["args"]
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise TypeError("args must be a list of strings")
        started = datetime.fromisoformat(str(data["started_at"]).replace("Z", "+00:00"))
        output_file = data.get("output_file")
        return cls(
            id=uuid.UUID(str(data["id"])),
            command=str(data["command"]),
            args=list(args),
            started_at=started,
            status=status,
            output_file=Path(output_file) if output_file is not None else None,
            exit_code=exit_code,
            error=error,
        )


def _default_cache_dir() -> Path:
    try:
        home = Path.home()
    except RuntimeError:
        raise SheilaError("Could not find home directory") from None
    return home / ".sheila" / "cache"


class ProcessManager:
    """Starts, signals and tracks background test processes."""

    def __init__(self, cache_dir: str | PathLike[str] | None = None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else _default_cache_dir()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._processes: dict[uuid.UUID, ManagedProcess] = {}
        self._running: dict[uuid.UUID, subprocess.Popen] = {}
        self._lock = threading.RLock()

    def start_process(
        self,
        command: str,
        args: Sequence[str],
        output_dir: str | PathLike[str] | None = None,
    ) -> uuid.UUID:
        """Start ``command`` in the background and return its id.

        With ``output_dir`` its standard output goes to ``<id>.json`` there.
        """
        process_id = uuid.uuid4()
        args = list(args)
        output_file = Path(output_dir) / f"{process_id}.json" if output_dir is not None else None
        record = ManagedProcess(process_id, command, args, output_file=output_file)
        self._save(record)

        stdout_target: Any = subprocess.PIPE
        output_handle = None
        if output_file is not None:
            output_handle = open(output_file, "wb")
            stdout_target = output_handle
        try:
            child = subprocess.Popen(
                [command, *args],
                stdout=stdout_target,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as exc:
            raise SheilaError(
                f"Failed to start process: {command} {json.dumps(args)}"
            ) from exc
        finally:
            if output_handle is not None:
                output_handle.close()

        with self._lock:
            self._running[process_id] = child
            self._processes[process_id] = record
        return process_id

    def stop_process(self, process_id: uuid.UUID) -> None:
        with self._lock:
            child = self._running.pop(process_id, None)
            if child is None:
                return
            try:
                child.kill()
            except OSError as exc:
                raise SheilaError(f"Failed to kill process {process_id}") from exc
            child.wait()
            self._release(child)
            self._set_status(process_id, ProcessStatus.STOPPED)

    def pause_process(self, process_id: uuid.UUID) -> None:
        self._signal(process_id, "SIGSTOP", ProcessStatus.PAUSED, "pausing")

    def resume_process(self, process_id: uuid.UUID) -> None:
        self._signal(process_id, "SIGCONT", ProcessStatus.RUNNING, "resuming")

    def get_process(self, process_id: uuid.UUID) -> ManagedProcess | None:
        with self._lock:
            record = self._processes.get(process_id)
            return dataclasses.replace(record) if record is not None else None

    def list_processes(self) -> list[ManagedProcess]:
        with self._lock:
            return [dataclasses.replace(record) for record in self._processes.values()]

    def cleanup_completed(self) -> None:
        """Mark processes that have exited as completed and forget their handles."""
        with self._lock:
            finished = []
            for process_id, child in self._running.items():
                code = child.poll()
                if code is None:
                    continue
                record = self._processes.get(process_id)
                if record is not None:
                    record.status = ProcessStatus.COMPLETED
                    record.exit_code = code if code >= 0 else -1
                    self._save(record)
                finished.append(process_id)
            for process_id in finished:
                self._release(self._running.pop(process_id))

    def clear_cache(self) -> None:
        """Forget every process and empty the cache directory."""
        with self._lock:
            self._processes.clear()
            self._running.clear()
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir)
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    def load_from_cache(self) -> None:
        """Read process records saved earlier; unreadable files are skipped."""
        if not self.cache_dir.exists():
            return
        for path in sorted(self.cache_dir.iterdir()):
            if path.suffix != ".json":
                continue
            try:
                record = ManagedProcess.from_dict(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError):
                continue
            with self._lock:
                self._processes[record.id] = record

    def _signal(
        self, process_id: uuid.UUID, signal_name: str, status: ProcessStatus, verb: str
    ) -> None:
        signum = getattr(signal, signal_name, None)
        if signum is None:
            raise SheilaError(f"Process {verb} is not supported on this platform")
        with self._lock:
            child = self._running.get(process_id)
            if child is None:
                return
            os.kill(child.pid, signum)
            self._set_status(process_id, status)

    def _set_status(self, process_id: uuid.UUID, status: ProcessStatus) -> None:
        record = self._processes.get(process_id)
        if record is not None:
            record.status = status
            self._save(record)

    def _save(self, record: ManagedProcess) -> None:
        cache_file = self.cache_dir / f"{record.id}.json"
        cache_file.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")

    @staticmethod
    def _release(child: subprocess.Popen) -> None:
        for stream in (child.stdout, child.stderr):
            if stream is not None:
                stream.close()