"""Well-known ATEM video source IDs and their display names.

These are the IDs carried in CPvI/CPgI commands and PrgI/PrvI broadcasts.
Which of them a given switcher actually has depends on the model; the engine
never validates against this table.
"""

from __future__ import annotations

from enum import IntEnum

MAX_CAMERA_INPUT = 40


class VideoSource(IntEnum):
    """Source IDs shared by all ATEM models (cameras are 1..40)."""

    BLACK = 0
    CAM1 = 1
    CAM2 = 2
    CAM3 = 3
    CAM4 = 4
    CAM5 = 5
    CAM6 = 6
    CAM7 = 7
    CAM8 = 8
    CAM9 = 9
    CAM10 = 10
    CAM11 = 11
    CAM12 = 12
    CAM13 = 13
    CAM14 = 14
    CAM15 = 15
    CAM16 = 16
    CAM17 = 17
    CAM18 = 18
    CAM19 = 19
    CAM20 = 20
    CAM21 = 21
    CAM22 = 22
    CAM23 = 23
    CAM24 = 24
    CAM25 = 25
    CAM26 = 26
    CAM27 = 27
    CAM28 = 28
    CAM29 = 29
    CAM30 = 30
    CAM31 = 31
    CAM32 = 32
    CAM33 = 33
    CAM34 = 34
    CAM35 = 35
    CAM36 = 36
    CAM37 = 37
    CAM38 = 38
    CAM39 = 39
    CAM40 = 40
    BARS = 1000
    COLOR1 = 2001
    COLOR2 = 2002
    MP1 = 3010
    MP1_KEY = 3011
    MP2 = 3020
    MP2_KEY = 3021
    MP3 = 3030
    MP3_KEY = 3031
    MP4 = 3040
    MP4_KEY = 3041
    SUPERSOURCE = 7001
    SUPERSOURCE2 = 7002
    PROGRAM = 10010
    PREVIEW = 10011
    MULTIVIEW = 10012
    AUX1 = 11001
    AUX2 = 11002
    AUX3 = 11003
    AUX4 = 11004
    AUX5 = 11005
    AUX6 = 11006
    STREAMING = 12001
    RECORDING = 12002


# source id: (short name, description)
_SOURCE_NAMES: dict[int, tuple[str, str]] = {
    VideoSource.BLACK: ("BLACK", "Black"),
    VideoSource.BARS: ("BARS", "Color Bars"),
    VideoSource.COLOR1: ("COL1", "Color Generator 1"),
    VideoSource.COLOR2: ("COL2", "Color Generator 2"),
    VideoSource.MP1: ("MP1", "Media Player 1"),
    VideoSource.MP2: ("MP2", "Media Player 2"),
    VideoSource.MP3: ("MP3", "Media Player 3"),
    VideoSource.MP4: ("MP4", "Media Player 4"),
    VideoSource.SUPERSOURCE: ("SS1", "SuperSource 1"),
    VideoSource.SUPERSOURCE2: ("SS2", "SuperSource 2"),
    VideoSource.PROGRAM: ("PGM", "Program Output"),
    VideoSource.PREVIEW: ("PVW", "Preview Output"),
    VideoSource.MULTIVIEW: ("MVW", "Multiview Output"),
    VideoSource.AUX1: ("AUX1", "AUX 1 Output"),
    VideoSource.AUX2: ("AUX2", "AUX 2 Output"),
    VideoSource.AUX3: ("AUX3", "AUX 3 Output"),
    VideoSource.AUX4: ("AUX4", "AUX 4 Output"),
    VideoSource.AUX5: ("AUX5", "AUX 5 Output"),
    VideoSource.AUX6: ("AUX6", "AUX 6 Output"),
    VideoSource.STREAMING: ("STRM", "Streaming Output"),
    VideoSource.RECORDING: ("REC", "Recording Output"),
}


def is_camera(source: int) -> bool:
    """True for camera inputs 1..40."""
    return 1 <= source <= MAX_CAMERA_INPUT


def input_name(source: int) -> str:
    """Short label for a source ID, e.g. ``CAM3`` or ``PGM``."""
    if is_camera(source):
        return f"CAM{source}"
    return _SOURCE_NAMES.get(source, ("UNKNOWN", ""))[0]


def input_description(source: int) -> str:
    """Long label for a source ID, e.g. ``Camera 3`` or ``Program Output``."""
    if is_camera(source):
        return f"Camera {source}"
    return _SOURCE_NAMES.get(source, ("", "Unknown Input"))[1]
