from __future__ import annotations

import json
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest


STUB_TOOLS = ("magick", "convert", "identify", "compare")


def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def stub_source() -> Path:
    return repo_root() / "tests" / "stubs" / "magick_stub.py"


def write_executable(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, "utf-8")
    path.chmod(0o755)


@dataclass
class StubMagick:
    root: Path
    bin_dir: Path
    log_path: Path
    scratch_dir: Path
    env: dict[str, str]

    def set(self, **values: str) -> None:
        for key, value in values.items():
            self.env[f"MAGICKFX_STUB_{key.upper()}"] = value

    def calls(self) -> list[tuple[str, list[str]]]:
        """(tool, argv) for every call except version checks."""
        if not self.log_path.exists():
            return []
        out: list[tuple[str, list[str]]] = []
        for line in self.log_path.read_text("utf-8").splitlines():
            rec = json.loads(line)
            prog, argv = rec["prog"], rec["argv"]
            if "-version" in argv:
                continue
            if prog == "magick":
                if argv and argv[0] in {"identify", "compare", "convert"}:
                    prog, argv = argv[0], argv[1:]
                else:
                    prog = "convert"
            out.append((prog, argv))
        return out

    def argvs(self, tool: str) -> list[list[str]]:
        return [argv for prog, argv in self.calls() if prog == tool]

    def writes(self) -> list[list[str]]:
        """convert calls that produce a file (queries excluded)."""
        return [
            argv
            for argv in self.argvs("convert")
            if argv and argv[-1] not in {"info:", "null:", "miff:-"}
        ]

    def run(self, args: list[str], *, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [sys.executable, "-m", "magickfx", *args],
            cwd=str(cwd or self.root),
            env=self.env,
            text=True,
            capture_output=True,
            timeout=60,
        )

    def run_json(self, args: list[str]) -> dict[str, Any]:
        proc = self.run([*args, "--json"])
        if proc.returncode != 0:
            raise AssertionError(f"exit={proc.returncode}\nstdout:\n{proc.stdout}\nstderr:\n{proc.stderr}")
        return json.loads(proc.stdout)


@pytest.fixture
def stub_magick(tmp_path: Path) -> StubMagick:
    bin_dir = tmp_path / "bin"
    for name in STUB_TOOLS:
        launcher = "\n".join(
            [
                f"#!{sys.executable}",
                "import runpy",
                f"stub = runpy.run_path({str(stub_source())!r}, run_name='magick_stub')",
                f"raise SystemExit(stub['main']({name!r}))",
                "",
            ]
        )
        write_executable(bin_dir / name, launcher)

    env = {k: v for k, v in os.environ.items() if not k.startswith("MAGICKFX_")}
    scratch = tmp_path / "scratch"
    env.update(
        {
            "PATH": os.pathsep.join([str(bin_dir), env.get("PATH", "")]),
            "PYTHONPATH": os.pathsep.join(p for p in [str(repo_root()), env.get("PYTHONPATH", "")] if p),
            "MAGICKFX_STUB_LOG": str(tmp_path / "calls.jsonl"),
            "MAGICKFX_TMPDIR": str(scratch),
            "NO_COLOR": "1",
        }
    )
    return StubMagick(
        root=tmp_path,
        bin_dir=bin_dir,
        log_path=tmp_path / "calls.jsonl",
        scratch_dir=scratch,
        env=env,
    )


@pytest.fixture
def image(tmp_path: Path) -> Path:
    path = tmp_path / "input.png"
    path.write_bytes(b"stub-image\n")
    return path
