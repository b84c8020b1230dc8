"""Telemetry verbosity levels"""
from enum import IntEnum
from typing import Optional


class Verbosity(IntEnum):
    OFF = 0
    MANDATORY = 1
    INFORMATION = 2
    DEBUG = 3


def is_debug_allowed(value: int) -> bool:
    return value >= Verbosity.DEBUG


def is_info_allowed(value: int) -> bool:
    return value >= Verbosity.INFORMATION


def parse_verbosity(verbosity: Optional[str]) -> Optional[Verbosity]:
    """Parse a configured level name

    Returns None when nothing is configured and MANDATORY for unknown names.
    """
    if not verbosity:
        return None
    try:
        return Verbosity[verbosity.strip().upper()]
    except KeyError:
        return Verbosity.MANDATORY


def get_name(value: int) -> str:
    try:
        return Verbosity(value).name
    except ValueError:
        return Verbosity.OFF.name
