from __future__ import annotations

import dataclasses
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Mapping


BACKEND_ENV = "MAGICKFX_BACKEND"

# Minimum ImageMagick versions for operators that later releases introduced.
FEATURES: dict[str, tuple[int, int, int, int]] = {
    "complex": (6, 8, 8, 6),
    "identify-locate": (6, 8, 9, 0),
    "connected-components": (6, 8, 9, 10),
    "kmeans": (7, 0, 10, 37),
}

# Older releases treated sRGB input as linear RGB during gray conversion.
LINEAR_GRAY_FROM = (6, 7, 7, 7)

VERSION_RE = re.compile(r"ImageMagick\s+(\d+)\.(\d+)\.(\d+)(?:-(\d+))?")


class ToolchainError(RuntimeError):
    pass


def parse_version(text: str) -> tuple[int, int, int, int]:
    m = VERSION_RE.search(text)
    if not m:
        raise ToolchainError(f"unable to read ImageMagick version from: {text.strip()[:80]!r}")
    return (int(m.group(1)), int(m.group(2)), int(m.group(3)), int(m.group(4) or 0))


def format_version(version: tuple[int, int, int, int]) -> str:
    major, minor, patch, rev = version
    return f"{major}.{minor}.{patch}-{rev}"


@dataclasses.dataclass(frozen=True)
class Toolchain:
    convert: list[str]
    identify: list[str]
    compare: list[str]
    version: tuple[int, int, int, int]
    imv7: bool

    @property
    def backend(self) -> str:
        return "imagemagick:magick" if self.imv7 else "imagemagick:convert"

    @property
    def version_str(self) -> str:
        return format_version(self.version)

    def supports(self, feature: str) -> bool:
        return self.version >= FEATURES[feature]

    def require(self, feature: str) -> None:
        if not self.supports(feature):
            need = format_version(FEATURES[feature])
            raise ToolchainError(
                f"{feature} needs ImageMagick {need} or newer (found {self.version_str})"
            )

    def copy_alpha(self) -> str:
        return "copy_alpha" if self.imv7 else "copy_opacity"

    def colorspace_fixup(self) -> list[str]:
        if self.version < LINEAR_GRAY_FROM:
            return ["-set", "colorspace", "RGB"]
        return []


def _read_version(cmd: list[str]) -> tuple[int, int, int, int]:
    proc = subprocess.run(cmd + ["-version"], text=True, capture_output=True)
    if proc.returncode != 0:
        raise ToolchainError(proc.stderr.strip() or f"{cmd[0]} -version failed")
    return parse_version(proc.stdout)


def detect_toolchain(env: Mapping[str, str] | None = None) -> Toolchain:
    env = os.environ if env is None else env
    forced = (env.get(BACKEND_ENV) or "").strip().lower()
    if forced and forced not in {"magick", "convert"}:
        raise ToolchainError(f"{BACKEND_ENV} must be magick or convert (got {forced!r})")

    magick = shutil.which("magick") if forced != "convert" else None
    if magick:
        base = [magick]
        return Toolchain(
            convert=base,
            identify=base + ["identify"],
            compare=base + ["compare"],
            version=_read_version(base),
            imv7=True,
        )
    if forced == "magick":
        raise ToolchainError(f"{BACKEND_ENV}=magick but `magick` is not on PATH")

    convert = shutil.which("convert")
    identify = shutil.which("identify")
    compare = shutil.which("compare")
    if not (convert and identify and compare):
        raise ToolchainError("missing ImageMagick (need `magick` or `convert` + `identify` + `compare`)")
    return Toolchain(
        convert=[convert],
        identify=[identify],
        compare=[compare],
        version=_read_version([convert]),
        imv7=False,
    )


@dataclasses.dataclass
class ImageInfo:
    format: str | None = None
    width: int | None = None
    height: int | None = None
    channels: str | None = None
    alpha: bool | None = None
    size_bytes: int | None = None


def identify_command(toolchain: Toolchain, path: Path) -> list[str]:
    return toolchain.identify + ["-ping", "-format", "%m|%w|%h|%[channels]\n", str(path)]


def probe_image(toolchain: Toolchain, path: Path) -> ImageInfo:
    info = ImageInfo()
    try:
        info.size_bytes = path.stat().st_size
    except OSError:
        info.size_bytes = None

    cmd = identify_command(toolchain, path)
    proc = subprocess.run(cmd, text=True, capture_output=True)
    if proc.returncode != 0:
        return info
    raw = proc.stdout.strip()
    if not raw:
        return info
    # Multi-frame files report one line per frame; the first is enough.
    parts = raw.splitlines()[0].split("|")
    if parts[0]:
        info.format = parts[0].strip()
    if len(parts) >= 3:
        try:
            info.width = int(parts[1])
            info.height = int(parts[2])
        except ValueError:
            pass
    if len(parts) >= 4 and parts[3]:
        info.channels = parts[3].strip()
        info.alpha = "a" in info.channels.lower()
    return info

