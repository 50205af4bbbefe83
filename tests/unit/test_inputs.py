"""Unit tests for the video source catalogue."""

from __future__ import annotations

import pytest

from atem_controller.inputs import MAX_CAMERA_INPUT, VideoSource, input_description, input_name, is_camera


@pytest.mark.parametrize(
    ("source", "name", "description"),
    [
        (VideoSource.CAM3, "CAM3", "Camera 3"),
        (40, "CAM40", "Camera 40"),
        (VideoSource.BLACK, "BLACK", "Black"),
        (VideoSource.BARS, "BARS", "Color Bars"),
        (VideoSource.MP2, "MP2", "Media Player 2"),
        (VideoSource.PROGRAM, "PGM", "Program Output"),
        (VideoSource.AUX6, "AUX6", "AUX 6 Output"),
        (4242, "UNKNOWN", "Unknown Input"),
    ],
)
def test_names(source: int, name: str, description: str) -> None:
    assert input_name(source) == name
    assert input_description(source) == description


def test_camera_range() -> None:
    assert not is_camera(0)
    assert is_camera(1)
    assert is_camera(MAX_CAMERA_INPUT)
    assert not is_camera(MAX_CAMERA_INPUT + 1)


def test_source_ids() -> None:
    assert VideoSource.COLOR1 == 2001
    assert VideoSource.MP1_KEY == 3011
    assert VideoSource.SUPERSOURCE == 7001
    assert VideoSource.MULTIVIEW == 10012
    assert VideoSource.RECORDING == 12002


def test_every_camera_enumerated() -> None:
    cameras = [source for source in VideoSource if is_camera(source)]

    assert len(cameras) == MAX_CAMERA_INPUT
    assert VideoSource.CAM40 == MAX_CAMERA_INPUT
