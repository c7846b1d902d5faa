# This project was developed with assistance from AI tools.
"""DS-160 wizard step validation."""

from .engine import CONTINUE, DRAFT, Mode, StepResult, StepSchema, validate_step
from .registry import STEP_KEYS, STEPS, TOTAL_STEPS, StepInfo, get_step, next_step

__all__ = [
    "CONTINUE",
    "DRAFT",
    "Mode",
    "STEPS",
    "STEP_KEYS",
    "StepInfo",
    "StepResult",
    "StepSchema",
    "TOTAL_STEPS",
    "get_step",
    "next_step",
    "validate_step",
]
