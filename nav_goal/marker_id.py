"""Marker identity parsing for ArUco detection frame labels.

The detector names each marker frame ``aruco_marker_<id>``, possibly with a
prefix or suffix (``front_left/aruco_marker_23``).
"""
import re
from typing import Optional, Pattern

MARKER_ID_PATTERN = re.compile(r'aruco_marker_(\d+)')


def marker_pattern(keyword: str) -> Pattern:
    """Pattern for ``<keyword><digits>``; the keyword is matched literally."""
    return re.compile(re.escape(keyword) + r'(\d+)')


def extract_marker_id(frame_id: Optional[str], pattern: Pattern = MARKER_ID_PATTERN) -> Optional[int]:
    """Return the marker ID embedded in ``frame_id``, or None if there is none."""
    if not frame_id:
        return None
    match = pattern.search(frame_id)
    if match is None:
        return None
    return int(match.group(1))


def marker_matches(frame_id: Optional[str], desired_id: int, pattern: Pattern = MARKER_ID_PATTERN) -> bool:
    marker_id = extract_marker_id(frame_id, pattern)
    return marker_id is not None and marker_id == desired_id
