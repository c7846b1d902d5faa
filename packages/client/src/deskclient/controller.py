# This project was developed with assistance from AI tools.
"""Consultant-side case workflow actions.

``CaseWorkflowController`` holds the displayed state of one case and runs
every action the same way: skip if the same action is already in flight,
check the local guard, call the backend, notify the user on success or
failure, then re-fetch authoritative state. Displayed status is never
changed before the backend accepts a transition. No ``ApiError`` escapes
an action.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Literal, Protocol

from .edits import FieldEditTracker
from .errors import ApiError
from .polling import StatusPoller
from .services import DeskClient

logger = logging.getLogger(__name__)

Level = Literal["success", "info", "warning", "error"]


class Notifier(Protocol):
    def __call__(self, level: Level, message: str) -> None: ...


def log_notifier(level: Level, message: str) -> None:
    """Default sink: write the notification to the log."""
    logger.log(logging.ERROR if level == "error" else logging.INFO, "[%s] %s", level, message)


class ActionState:
    """``is_loading`` flag per named action."""

    def __init__(self) -> None:
        self._loading: set[str] = set()

    def is_loading(self, action: str) -> bool:
        return action in self._loading

    @property
    def any_loading(self) -> bool:
        return bool(self._loading)

    def begin(self, action: str) -> bool:
        if action in self._loading:
            return False
        self._loading.add(action)
        return True

    def end(self, action: str) -> None:
        self._loading.discard(action)


class GuardError(Exception):
    """A local precondition failed; no request was sent."""


_SUCCESS_MESSAGES = {
    "confirm_submission": "已确认客户提交，AI审查中",
    "request_supplement": "已要求客户补充材料",
    "approve_materials": "材料确认无误",
    "start_translation": "已开始AI翻译",
    "final_approve": "已完成最终确认",
    "reopen_final_review": "已重新打开核对",
    "send_to_client": "已发送给客户确认",
    "complete": "案例已完成",
    "cancel": "案例已取消",
}


class CaseWorkflowController:
    def __init__(
        self,
        desk: DeskClient,
        case_id: int,
        notifier: Notifier = log_notifier,
    ):
        self.desk = desk
        self.case_id = case_id
        self.notify = notifier
        self.actions = ActionState()
        self.case: dict[str, Any] | None = None
        self.report: dict[str, Any] | None = None
        self.translation_edits = FieldEditTracker()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> str | None:
        return self.case["status"] if self.case else None

    @property
    def status_label(self) -> str | None:
        return self.case["status_label"] if self.case else None

    async def refresh(self) -> bool:
        """Re-fetch the case and its latest report; False if that failed."""
        try:
            self.case = await self.desk.cases.get(self.case_id)
        except ApiError as exc:
            self.notify("error", exc.message)
            return False
        try:
            self.report = await self.desk.diagnosis.latest(self.case_id)
        except ApiError as exc:
            # a case without a report yet answers 404
            if exc.status != 404:
                self.notify("error", exc.message)
            self.report = None
        return True

    async def load_translation(self) -> dict[str, Any] | None:
        try:
            comparison = await self.desk.translation.comparison(self.case_id)
        except ApiError as exc:
            self.notify("error", exc.message)
            return None
        self.translation_edits.load({f["id"]: f["english_value"] for f in comparison["fields"]})
        return comparison

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def unfixed_blockers(self) -> int:
        if not self.report:
            return 0
        return sum(
            1
            for issue in self.report.get("issues", [])
            if issue["severity"] == "blocker" and not issue["fixed"]
        )

    def check_guard(self, trigger: str) -> None:
        """Raise ``GuardError`` when ``trigger`` cannot succeed from the displayed state."""
        if self.case is None:
            raise GuardError("案例尚未加载")
        if trigger not in self.case.get("allowed_triggers", []):
            raise GuardError(f"当前状态「{self.status_label}」不允许此操作")
        if trigger in ("approve_materials", "request_supplement"):
            if not self.report or self.report["status"] != "completed":
                raise GuardError("AI审查尚未完成")
        if trigger == "approve_materials" and self.unfixed_blockers():
            raise GuardError(f"还有 {self.unfixed_blockers()} 个阻断问题未修复")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _perform(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        *,
        success: str | None = None,
        refetch: bool = True,
    ) -> bool:
        if not self.actions.begin(action):
            logger.debug("Action %s already in flight", action)
            return False
        try:
            await call()
        except ApiError as exc:
            self.notify("error", exc.message)
            ok = False
        else:
            if success:
                self.notify("success", success)
            ok = True
        finally:
            self.actions.end(action)
        if refetch:
            await self.refresh()
        return ok

    async def transition(self, trigger: str, reason: str | None = None) -> bool:
        try:
            self.check_guard(trigger)
        except GuardError as exc:
            self.notify("warning", str(exc))
            return False
        return await self._perform(
            trigger,
            lambda: self.desk.cases.transition(self.case_id, trigger, reason),
            success=_SUCCESS_MESSAGES.get(trigger),
        )

    async def confirm_submission(self) -> bool:
        return await self.transition("confirm_submission")

    async def request_supplement(self, reason: str | None = None) -> bool:
        return await self.transition("request_supplement", reason)

    async def approve_materials(self) -> bool:
        return await self.transition("approve_materials")

    async def start_translation(self) -> bool:
        return await self.transition("start_translation")

    async def final_approve(self) -> bool:
        return await self.transition("final_approve")

    async def send_to_client(self) -> bool:
        return await self.transition("send_to_client")

    async def complete(self) -> bool:
        return await self.transition("complete")

    async def cancel(self, reason: str | None = None) -> bool:
        return await self.transition("cancel", reason)

    async def send_link(self, expiry_hours: int | None = None) -> dict[str, Any] | None:
        """Generate a link; returns it (for copying) or None on failure."""
        created: dict[str, Any] = {}

        async def call():
            created.update(await self.desk.links.create(self.case_id, expiry_hours=expiry_hours))

        ok = await self._perform("send_link", call, success="链接已生成")
        return created if ok else None

    async def request_diagnosis(self) -> bool:
        return await self._perform(
            "request_diagnosis",
            lambda: self.desk.diagnosis.request(self.case_id),
            success="已重新提交AI审查",
        )

    async def set_issue_fixed(self, issue_id: int, fixed: bool = True) -> bool:
        return await self._perform(
            f"issue:{issue_id}",
            lambda: self.desk.diagnosis.set_issue_fixed(issue_id, fixed),
        )

    async def fix_all_blockers(self) -> bool:
        """Mark every unfixed blocker of the displayed report fixed."""
        if not self.report:
            return False
        ok = True
        for issue in self.report.get("issues", []):
            if issue["severity"] == "blocker" and not issue["fixed"]:
                ok = await self.set_issue_fixed(issue["id"], True) and ok
        return ok

    async def edit_translation(self, field_id: int, english_value: str) -> bool:
        try:
            return await self.translation_edits.submit(
                field_id,
                english_value,
                lambda value: self.desk.translation.update_field(field_id, value),
            )
        except ApiError as exc:
            self.notify("error", exc.message)
            return False

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def diagnosis_poller(self, **kwargs) -> StatusPoller:
        settings = self.desk.api.settings
        kwargs.setdefault("interval", settings.poll_interval)
        kwargs.setdefault("window", settings.poll_window)
        return StatusPoller(lambda: self.desk.diagnosis.status(self.case_id), **kwargs)

    def translation_poller(self, **kwargs) -> StatusPoller:
        settings = self.desk.api.settings
        kwargs.setdefault("interval", settings.poll_interval)
        kwargs.setdefault("window", settings.poll_window)
        return StatusPoller(lambda: self.desk.translation.status(self.case_id), **kwargs)

    async def wait_for_diagnosis(self, **kwargs) -> str | None:
        """Poll until the current round's report settles, then re-fetch."""
        poller = self.diagnosis_poller(**kwargs)
        try:
            result = await poller.wait()
        finally:
            await poller.stop()
        await self.refresh()
        if result == "failed":
            self.notify("error", "AI审查失败，请重新提交")
        elif result is None:
            self.notify("warning", "AI审查超时，请稍后刷新")
        return result
