"""
Tests for the local render tool.
"""

from __future__ import annotations

import pytest

from tests.factories import RED, decode, make_config, make_image_bytes, temp_config_file, write_image
from tools.render_badge import build_parser, main


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(make_image_bytes())
    return path


@pytest.fixture
def config_path(tmp_path):
    config = make_config(assets={"background": str(tmp_path / "bg.png"), "fx": None})
    with temp_config_file(config) as path:
        yield path


def run(tmp_path, *args: str) -> int:
    return main([*args, "--log-file", str(tmp_path / "logs" / "renderer.log")])


def test_parser_defaults(photo) -> None:
    args = build_parser().parse_args([str(photo)])

    assert args.name == ""
    assert args.background == "solid"
    assert str(args.output) == "debug-final.png"
    assert args.preview is None
    assert args.debug_guide is False


def test_parser_rejects_unknown_background(photo) -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([str(photo), "--background", "plaid"])


def test_renders_png_and_preview(tmp_path, photo, config_path, restore_root_logging) -> None:
    output = tmp_path / "out" / "badge.png"
    preview = tmp_path / "out" / "badge.jpg"

    code = run(
        tmp_path,
        str(photo),
        "--name", "Night Owls",
        "--background", "transparent",
        "--output", str(output),
        "--preview", str(preview),
        "--config", config_path,
    )

    assert code == 0
    assert decode(output.read_bytes()).size == (256, 256)
    assert decode(preview.read_bytes()).format == "JPEG"


def test_solid_background_from_config(tmp_path, photo, config_path, restore_root_logging) -> None:
    write_image(tmp_path / "bg.png", (8, 8), RED)
    output = tmp_path / "badge.png"

    code = run(tmp_path, str(photo), "--output", str(output), "--config", config_path)

    assert code == 0
    assert decode(output.read_bytes()).getpixel((2, 2)) == RED


def test_debug_guide_flag(tmp_path, photo, config_path, restore_root_logging) -> None:
    output = tmp_path / "badge.png"

    code = run(
        tmp_path,
        str(photo),
        "--background", "transparent",
        "--output", str(output),
        "--config", config_path,
        "--debug-guide",
    )

    assert code == 0
    colors = {rgba for _count, rgba in decode(output.read_bytes()).getcolors(256 * 256)}
    assert (0, 255, 255, 255) in colors


def test_missing_background_asset_fails(tmp_path, photo, config_path, restore_root_logging) -> None:
    output = tmp_path / "badge.png"

    code = run(tmp_path, str(photo), "--output", str(output), "--config", config_path)

    assert code == 1
    assert not output.exists()


def test_missing_photo_fails(tmp_path, config_path, restore_root_logging) -> None:
    code = run(
        tmp_path,
        str(tmp_path / "missing.png"),
        "--output", str(tmp_path / "badge.png"),
        "--config", config_path,
    )

    assert code == 1


def test_corrupt_background_asset_fails(tmp_path, photo, config_path, restore_root_logging) -> None:
    (tmp_path / "bg.png").write_bytes(b"not an image")
    output = tmp_path / "badge.png"

    code = run(tmp_path, str(photo), "--output", str(output), "--config", config_path)

    assert code == 1
    assert not output.exists()


def test_malformed_config_value_fails(tmp_path, photo, restore_root_logging) -> None:
    config = make_config(size="big", assets={"background": str(tmp_path / "bg.png"), "fx": None})
    output = tmp_path / "badge.png"

    with temp_config_file(config) as path:
        code = run(tmp_path, str(photo), "--output", str(output), "--config", path)

    assert code == 1
    assert not output.exists()
