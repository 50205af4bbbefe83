"""Reference datagrams for the ATEM UDP protocol.

Hex strings are the exact bytes a controller must put on the wire. The
command packets use session 0x8008 and local packet IDs 1..4, in that order.
"""

from __future__ import annotations

from typing import Final

REFERENCE_SESSION_ID: Final = 0x8008

HELLO: Final = bytes.fromhex("10 14 53 ab 00 00 00 00 00 3a 00 00 01 00 00 00 00 00 00 00")

# 80 0c | session | ack id 3
ACK_SESSION_8008_ID_3: Final = bytes.fromhex("80 0c 80 08 00 03 00 00 00 00 00 00")

# 08 0c | session | packet id 5
HEARTBEAT_SESSION_8008_ID_5: Final = bytes.fromhex("08 0c 80 08 00 00 00 00 00 00 00 05")

# Fade to black toggle, ME 0, packet 1
FADE_TO_BLACK_ID_1: Final = bytes.fromhex("081880080000000000000001000c00004674624100000000")

# Fade to black rate 25 frames, ME 0, packet 2
FADE_TO_BLACK_RATE_25_ID_2: Final = bytes.fromhex("081880080000000000000002000c00004674624301001900")

# Transition position 5000 (halfway), ME 0, packet 3
TRANSITION_POSITION_5000_ID_3: Final = bytes.fromhex("081880080000000000000003000c00004354507300001388")

# Preview transition enabled, ME 0, packet 4
PREVIEW_TRANSITION_ON_ID_4: Final = bytes.fromhex("081880080000000000000004000c00004354507200010000")

# PrgI broadcast body block: ME 0, source 4 (Camera 4)
PROGRAM_INPUT_BLOCK_CAM4: Final = bytes.fromhex("000c0000 50726749 00000004")

# PrvI broadcast body block: ME 0, source 1000 (Color Bars)
PREVIEW_INPUT_BLOCK_BARS: Final = bytes.fromhex("000c0000 50727649 000003e8")
