"""
Phase model definition for menstrual cycle phases.
"""
from enum import Enum


class CyclePhase(str, Enum):
    """
    Cycle phase assigned to a single calendar day.
    """
    MENSTRUAL = "menstrual"
    FOLLICULAR = "follicular"
    OVULATION = "ovulation"
    FERTILE = "fertile"
    LUTEAL = "luteal"
    UNKNOWN = "unknown"
