from __future__ import annotations

import dataclasses
import os
import shlex
import shutil
import signal
import subprocess
import sys
import tempfile
import threading
import uuid
from pathlib import Path
from types import FrameType
from typing import Any, Iterable, Sequence

from .options import UsageError
from .toolchain import ImageInfo, Toolchain, identify_command, probe_image


TMPDIR_ENV = "MAGICKFX_TMPDIR"
TRAPPED_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT")


class MagickError(RuntimeError):
    pass


def eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def command_str(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class Runner:
    def __init__(self, toolchain: Toolchain, *, dry_run: bool = False, verbose: bool = False) -> None:
        self.toolchain = toolchain
        self.dry_run = dry_run
        self.verbose = verbose
        self.commands: list[str] = []
        self.warnings: list[str] = []

    def warn(self, msg: str) -> None:
        eprint(f"magickfx: warning: {msg}")
        self.warnings.append(msg)

    def _record(self, line: str) -> None:
        # Queries are listed too; the dry-run plan shows every command that runs.
        self.commands.append(line)
        if self.verbose:
            eprint(f"$ {line}")

    def run(self, cmd: list[str], *, ok_codes: Iterable[int] = (0,)) -> subprocess.CompletedProcess[str]:
        self._record(command_str(cmd))
        if self.dry_run:
            return subprocess.CompletedProcess(cmd, 0, "", "")
        proc = subprocess.run(cmd, text=True, capture_output=True)
        if proc.returncode not in tuple(ok_codes):
            name = Path(cmd[0]).name
            raise MagickError(proc.stderr.strip() or f"{name} exited with status {proc.returncode}")
        return proc

    def convert(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        return self.run(self.toolchain.convert + args)

    def capture(self, cmd: list[str]) -> str:
        # Read-only queries run even in dry-run mode.
        self._record(command_str(cmd))
        proc = subprocess.run(cmd, text=True, capture_output=True)
        if proc.returncode != 0:
            raise MagickError(proc.stderr.strip() or f"{Path(cmd[0]).name} query failed")
        return proc.stdout

    def capture_pipe(self, first: list[str], second: list[str]) -> str:
        self._record(f"{command_str(first)} | {command_str(second)}")
        # p1 stderr goes to a file so a chatty producer cannot fill a pipe nobody reads.
        with tempfile.TemporaryFile() as err1_file:
            p1 = subprocess.Popen(first, stdout=subprocess.PIPE, stderr=err1_file)
            p2 = subprocess.Popen(second, stdin=p1.stdout, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
            assert p1.stdout is not None
            p1.stdout.close()
            out2, err2 = p2.communicate()
            p1.wait()
            err1_file.seek(0)
            err1 = err1_file.read()
        if p1.returncode != 0:
            raise MagickError((err1 or b"").decode("utf-8", errors="replace").strip() or "query failed")
        if p2.returncode != 0:
            raise MagickError((err2 or b"").decode("utf-8", errors="replace").strip() or "query failed")
        return out2.decode("utf-8", errors="replace")

    def query(self, path: Path, fmt: str, pre: Sequence[str] = ()) -> str:
        return self.capture(self.toolchain.convert + [str(path), *pre, "-format", fmt, "info:"])

    def image_info(self, path: Path) -> ImageInfo:
        self._record(command_str(identify_command(self.toolchain, path)))
        return probe_image(self.toolchain, path)

    def dimensions(self, path: Path) -> tuple[int, int]:
        info = self.image_info(path)
        if info.width is None or info.height is None:
            raise MagickError(f"unable to read image: {path}")
        return (info.width, info.height)


class Workspace:
    """Scratch directory for one invocation.

    Removed on normal exit, on exceptions and on SIGINT/SIGTERM/SIGHUP/SIGQUIT.
    While active, those signals raise SystemExit(1) so the cleanup in
    ``__exit__`` always runs.
    """

    def __init__(self, parent: Path | None = None, *, prefix: str = "magickfx-") -> None:
        if parent is None and os.environ.get(TMPDIR_ENV):
            parent = Path(os.environ[TMPDIR_ENV]).expanduser()
        self.parent = parent
        self.prefix = prefix
        self.root: Path | None = None
        self._saved: dict[int, Any] = {}

    def __enter__(self) -> Workspace:
        if self.parent is not None:
            self.parent.mkdir(parents=True, exist_ok=True)
        self.root = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.parent))
        self._trap()
        return self

    def __exit__(self, *exc: object) -> None:
        self._untrap()
        if self.root is not None:
            shutil.rmtree(self.root, ignore_errors=True)

    def path(self, name: str, ext: str = "mpc") -> Path:
        assert self.root is not None, "workspace is not active"
        return self.root / f"{name}.{ext}"

    def _trap(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for name in TRAPPED_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._saved[signum] = signal.signal(signum, _exit_on_signal)

    def _untrap(self) -> None:
        for signum, handler in self._saved.items():
            signal.signal(signum, handler)
        self._saved.clear()


def _exit_on_signal(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(1)


def ensure_parent_dir(path: Path, *, dry_run: bool) -> None:
    parent = path.parent
    if not parent.exists():
        if dry_run:
            return
        parent.mkdir(parents=True, exist_ok=True)


def check_overwrite(path: Path, *, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise UsageError(f"output exists (pass --overwrite to replace): {path}")


def safe_write_path(path: Path, *, dry_run: bool) -> Path:
    # Write to a temp file next to the target, then rename.
    if dry_run:
        return path
    tmp = path.with_name(f".{path.stem}.tmp-{uuid.uuid4().hex[:8]}{path.suffix}")
    return tmp


def atomic_replace(tmp: Path, final: Path, *, dry_run: bool) -> None:
    if dry_run:
        return
    tmp.replace(final)


@dataclasses.dataclass
class Context:
    toolchain: Toolchain
    runner: Runner
    workspace: Workspace
    overwrite: bool = False
    outputs: list[Path] = dataclasses.field(default_factory=list)

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def scratch(self, name: str, ext: str = "mpc") -> Path:
        return self.workspace.path(name, ext)

    def require_input(self, path: Path) -> Path:
        if not path.is_file():
            raise UsageError(f"input not found: {path}")
        return path

    def prepare_output(self, path: Path) -> Path:
        out = path.expanduser()
        if not out.is_absolute():
            out = (Path.cwd() / out).resolve()
        check_overwrite(out, overwrite=self.overwrite)
        ensure_parent_dir(out, dry_run=self.dry_run)
        return out

    def write(self, args: list[str], out: Path, *, tool: list[str] | None = None, ok_codes: Iterable[int] = (0,)) -> subprocess.CompletedProcess[str]:
        """Run ``tool + args + [out]`` so that ``out`` only appears once complete."""
        tmp = safe_write_path(out, dry_run=self.dry_run)
        base = self.toolchain.convert if tool is None else tool
        try:
            proc = self.runner.run(base + args + [str(tmp)], ok_codes=ok_codes)
            atomic_replace(tmp, out, dry_run=self.dry_run)
        except BaseException:
            if tmp != out and tmp.exists():
                tmp.unlink()
            raise
        self.outputs.append(out)
        return proc
