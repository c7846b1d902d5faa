# This project was developed with assistance from AI tools.
"""Case status metadata registry.

One mapping from status to label, color, icon and allowed next triggers,
served at ``GET /cases/statuses`` and reused by every view and the client.
"""

from db.enums import CaseStatus

from ..schemas.status import StatusMeta
from .workflow import allowed_triggers

_TERMINAL = CaseStatus.terminal_statuses()


def _meta(status: CaseStatus, label: str, label_en: str, color: str, icon: str) -> StatusMeta:
    return StatusMeta(
        status=status,
        label=label,
        label_en=label_en,
        color=color,
        icon=icon,
        is_terminal=status in _TERMINAL,
        allowed_triggers=allowed_triggers(status),
    )


STATUS_META: dict[CaseStatus, StatusMeta] = {
    m.status: m
    for m in (
        _meta(CaseStatus.CREATED, "已创建", "Created", "gray", "clock"),
        _meta(CaseStatus.LINK_SENT, "链接已发送", "Link sent", "blue", "link"),
        _meta(CaseStatus.CLIENT_FILLING, "客户填写中", "Client filling", "yellow", "clock"),
        _meta(CaseStatus.CLIENT_SUBMITTED, "客户已提交", "Client submitted", "green", "check-circle"),
        _meta(CaseStatus.AI_REVIEWING, "AI审查中", "AI reviewing", "purple", "clock"),
        _meta(
            CaseStatus.CONSULTANT_REVIEWING,
            "顾问审核中",
            "Consultant reviewing",
            "indigo",
            "alert-circle",
        ),
        _meta(CaseStatus.NEED_SUPPLEMENT, "需要补充", "Needs supplement", "orange", "alert-circle"),
        _meta(
            CaseStatus.MATERIALS_APPROVED,
            "材料确认无误",
            "Materials approved",
            "teal",
            "check-circle",
        ),
        _meta(CaseStatus.AI_PROCESSING, "AI翻译处理中", "AI translating", "purple", "clock"),
        _meta(
            CaseStatus.CONSULTANT_FINAL_REVIEW,
            "顾问最终核对",
            "Final review",
            "indigo",
            "alert-circle",
        ),
        _meta(
            CaseStatus.CONSULTANT_FINAL_APPROVED,
            "顾问最终确认",
            "Final approved",
            "green",
            "check-circle",
        ),
        _meta(CaseStatus.SENT_TO_CLIENT, "已发送给客户", "Sent to client", "blue", "link"),
        _meta(
            CaseStatus.CLIENT_CONFIRMED, "客户确认无误", "Client confirmed", "green", "check-circle"
        ),
        _meta(CaseStatus.COMPLETED, "已完成", "Completed", "green", "check-circle"),
        _meta(CaseStatus.CANCELLED, "已取消", "Cancelled", "gray", "x-circle"),
    )
}


def get_status_meta(status: CaseStatus) -> StatusMeta:
    return STATUS_META[status]


def status_label(status: CaseStatus) -> str:
    return STATUS_META[status].label


def list_status_meta() -> list[StatusMeta]:
    """All statuses in lifecycle order."""
    return [STATUS_META[s] for s in CaseStatus]
