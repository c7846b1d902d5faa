# This project was developed with assistance from AI tools.
"""Tests for the case status metadata registry."""

from db.enums import CaseStatus, CaseTrigger

from src.services.status import STATUS_META, get_status_meta, list_status_meta, status_label


def test_every_status_has_metadata():
    assert set(STATUS_META) == set(CaseStatus)
    for meta in STATUS_META.values():
        assert meta.label
        assert meta.label_en
        assert meta.color
        assert meta.icon


def test_list_follows_lifecycle_order():
    assert [m.status for m in list_status_meta()] == list(CaseStatus)


def test_labels():
    assert status_label(CaseStatus.MATERIALS_APPROVED) == "材料确认无误"
    assert status_label(CaseStatus.CREATED) == "已创建"


def test_terminal_statuses_have_no_triggers():
    for status in (CaseStatus.COMPLETED, CaseStatus.CANCELLED):
        meta = get_status_meta(status)
        assert meta.is_terminal is True
        assert meta.allowed_triggers == []


def test_allowed_triggers_follow_transition_table():
    meta = get_status_meta(CaseStatus.CONSULTANT_REVIEWING)
    assert meta.is_terminal is False
    assert CaseTrigger.APPROVE_MATERIALS in meta.allowed_triggers
    assert CaseTrigger.REQUEST_SUPPLEMENT in meta.allowed_triggers
    assert CaseTrigger.CANCEL in meta.allowed_triggers
    assert CaseTrigger.SEND_LINK not in meta.allowed_triggers
