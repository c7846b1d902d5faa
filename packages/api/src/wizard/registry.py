# This project was developed with assistance from AI tools.
"""Ordered registry of the ten wizard steps."""

from dataclasses import dataclass

from . import steps
from .engine import StepSchema


@dataclass(frozen=True)
class StepInfo:
    order: int
    key: str
    label: str
    schema: StepSchema

    @property
    def path(self) -> str:
        return self.key


STEPS: tuple[StepInfo, ...] = (
    StepInfo(1, "basic-info", "基本信息", steps.BASIC_INFO),
    StepInfo(2, "personal-info-2", "个人详情", steps.PERSONAL_INFO_2),
    StepInfo(3, "address-phone", "地址电话", steps.ADDRESS_PHONE),
    StepInfo(4, "work-info", "工作信息", steps.WORK_INFO),
    StepInfo(5, "family-info", "家庭信息", steps.FAMILY_INFO),
    StepInfo(6, "travel-info", "旅行信息", steps.TRAVEL_INFO),
    StepInfo(7, "travel-companions", "旅行同伴", steps.TRAVEL_COMPANIONS),
    StepInfo(8, "previous-us-travel", "美国历史", steps.PREVIOUS_US_TRAVEL),
    StepInfo(9, "us-contact", "美国联系人", steps.US_CONTACT),
    StepInfo(10, "upload", "上传文件", steps.UPLOAD),
)

STEP_KEYS: tuple[str, ...] = tuple(s.key for s in STEPS)
TOTAL_STEPS = len(STEPS)

_BY_KEY: dict[str, StepInfo] = {s.key: s for s in STEPS}


def get_step(key: str) -> StepInfo | None:
    """Look up a step by key. Returns None for unknown keys."""
    return _BY_KEY.get(key)


def next_step(key: str) -> StepInfo | None:
    """Step following ``key``, or None for the last step."""
    info = _BY_KEY.get(key)
    if info is None or info.order >= TOTAL_STEPS:
        return None
    return STEPS[info.order]
