from __future__ import annotations

import pytest

from magickfx.toolchain import Toolchain, ToolchainError, detect_toolchain, format_version, parse_version


def _toolchain(version: tuple[int, int, int, int], *, imv7: bool = False) -> Toolchain:
    return Toolchain(
        convert=["convert"],
        identify=["identify"],
        compare=["compare"],
        version=version,
        imv7=imv7,
    )


def test_parse_version_im6_and_im7() -> None:
    assert parse_version("Version: ImageMagick 6.9.12-98 Q16 x86_64 2023") == (6, 9, 12, 98)
    assert parse_version("Version: ImageMagick 7.1.1-21 Q16-HDRI aarch64") == (7, 1, 1, 21)
    assert parse_version("Version: ImageMagick 7.0.0 Q16") == (7, 0, 0, 0)


def test_parse_version_rejects_garbage() -> None:
    with pytest.raises(ToolchainError, match="unable to read ImageMagick version"):
        parse_version("GraphicsMagick 1.3.38")


def test_format_version_roundtrip() -> None:
    assert format_version((6, 8, 9, 10)) == "6.8.9-10"


def test_feature_gates() -> None:
    old = _toolchain((6, 8, 9, 9))
    assert not old.supports("connected-components")
    assert old.supports("complex")
    with pytest.raises(ToolchainError, match=r"connected-components needs ImageMagick 6\.8\.9-10"):
        old.require("connected-components")

    new = _toolchain((7, 1, 0, 0), imv7=True)
    assert new.supports("kmeans")
    new.require("connected-components")


def test_version_quirk_toggles() -> None:
    assert _toolchain((6, 7, 6, 0)).colorspace_fixup() == ["-set", "colorspace", "RGB"]
    assert _toolchain((6, 9, 0, 0)).colorspace_fixup() == []
    assert _toolchain((6, 9, 0, 0)).copy_alpha() == "copy_opacity"
    assert _toolchain((7, 1, 0, 0), imv7=True).copy_alpha() == "copy_alpha"


def test_detect_prefers_magick(stub_magick, monkeypatch) -> None:
    monkeypatch.setenv("PATH", stub_magick.env["PATH"])
    monkeypatch.setenv("MAGICKFX_STUB_LOG", str(stub_magick.log_path))
    tc = detect_toolchain({})
    assert tc.imv7
    assert tc.version == (7, 1, 1, 21)
    assert tc.identify[-1] == "identify"
    assert tc.backend == "imagemagick:magick"


def test_detect_forced_convert(stub_magick, monkeypatch) -> None:
    monkeypatch.setenv("PATH", stub_magick.env["PATH"])
    tc = detect_toolchain({"MAGICKFX_BACKEND": "convert"})
    assert not tc.imv7
    assert tc.version == (6, 9, 12, 98)
    assert tc.convert[0].endswith("convert")
    assert tc.compare[0].endswith("compare")


def test_detect_rejects_unknown_backend() -> None:
    with pytest.raises(ToolchainError, match="must be magick or convert"):
        detect_toolchain({"MAGICKFX_BACKEND": "gm"})


def test_detect_missing_imagemagick(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PATH", str(tmp_path))
    with pytest.raises(ToolchainError, match="missing ImageMagick"):
        detect_toolchain({})
