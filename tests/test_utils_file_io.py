from pathlib import Path

import numpy as np
import pytest

from mortar_stager.utils import file_io


def test_ensure_dir_creates_directory(tmp_path: Path):
    target = tmp_path / "nested" / "dir"
    out = file_io.ensure_dir(target)
    assert out == target
    assert target.is_dir()
    # 이미 존재해도 오류 없음
    assert file_io.ensure_dir(target) == target


def test_save_image_creates_parent_dirs(tmp_path: Path, random_rgba):
    path = tmp_path / "a" / "b" / "img.png"
    file_io.FileIO().save_rgba(path, random_rgba)
    assert path.is_file()


def test_write_read_json_roundtrip(tmp_path: Path):
    data = {"a": 1, "b": {"c": [1, 2]}}
    path = tmp_path / "data.json"
    file_io.write_json(data, path)
    assert file_io.read_json(path) == data


def test_read_json_missing_returns_empty(tmp_path: Path):
    assert file_io.read_json(tmp_path / "nope.json") == {}


def test_list_files_filters_only_files(tmp_path: Path):
    (tmp_path / "f1.png").write_bytes(b"1")
    (tmp_path / "f2.log").write_text("2", encoding="utf-8")
    (tmp_path / "sub.png").mkdir()
    assert file_io.list_files(tmp_path, "*.png") == [tmp_path / "f1.png"]


# ================================================================
# Stage output naming
# ================================================================


def test_single_stage_uses_output_path():
    assert file_io.stage_output_paths(Path("out/result.png"), 1) == [Path("out/result.png")]


def test_multi_stage_naming():
    paths = file_io.stage_output_paths(Path("out/result.png"), 3)
    assert paths == [
        Path("out/result_stage_01.png"),
        Path("out/result_stage_02.png"),
        Path("out/result_stage_03.png"),
    ]


def test_multi_stage_without_extension_defaults_to_png():
    paths = file_io.stage_output_paths(Path("result"), 2)
    assert paths == [Path("result_stage_01.png"), Path("result_stage_02.png")]


# ================================================================
# Image I/O
# ================================================================


def test_rgba_save_load_preserves_channels(tmp_path: Path, random_rgba):
    io = file_io.FileIO()
    path = tmp_path / "sub" / "img.png"
    io.save_rgba(path, random_rgba)

    loaded = io.load_rgba(path)
    np.testing.assert_array_equal(loaded, random_rgba)


def test_load_three_channel_png_as_rgba(tmp_path: Path):
    io = file_io.FileIO()
    bgr = np.zeros((10, 12, 3), dtype=np.uint8)
    bgr[:, :, 2] = 200  # red in BGR
    path = tmp_path / "bgr.png"
    io.save_image(path, bgr)

    rgba = io.load_rgba(path)
    assert rgba.shape == (10, 12, 4)
    assert np.all(rgba[:, :, 0] == 200)
    assert np.all(rgba[:, :, 2] == 0)
    assert np.all(rgba[:, :, 3] == 255)


def test_load_missing_or_corrupt_returns_none(tmp_path: Path):
    io = file_io.FileIO()
    assert io.load_rgba(tmp_path / "missing.png") is None

    corrupt = tmp_path / "corrupt.png"
    corrupt.write_bytes(b"not an image")
    assert io.load_rgba(corrupt) is None


def test_encode_decode_png_bytes(random_rgba):
    data = file_io.encode_png(random_rgba)
    assert data[:4] == b"\x89PNG"

    decoded = file_io.decode_image_bytes(data)
    assert decoded.shape == (80, 120, 4)


@pytest.mark.parametrize("data", [b"", b"garbage"])
def test_decode_invalid_bytes(data):
    assert file_io.decode_image_bytes(data) is None
