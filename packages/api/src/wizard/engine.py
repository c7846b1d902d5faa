# This project was developed with assistance from AI tools.
"""Generic step validation engine for the DS-160 wizard.

Each wizard step is described by a ``StepSchema``: a pydantic model for
structural/type checks, a tuple of required fields, and a tuple of
declarative cross-field rules. ``validate_step`` is pure and synchronous.

Modes:
    draft     -- structural/type checks only (a draft may be incomplete)
    continue  -- structural checks, then required fields, then rules
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

Mode = Literal["draft", "continue"]

DRAFT: Mode = "draft"
CONTINUE: Mode = "continue"

EMAIL_PATTERN = r"[^\s@]+@[^\s@]+\.[^\s@]+"
PASSPORT_PATTERN = r"[A-Z]\d{8}"


def is_blank(value: Any) -> bool:
    """Empty string, None, and empty list/dict count as not filled in."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, list | tuple | dict):
        return len(value) == 0
    return False


def parse_date(value: Any) -> date | None:
    """Parse an ISO date string; None for blank or unparseable values."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def format_path(loc: Iterable[str | int]) -> str:
    """Render a location tuple as ``companions[1].surname``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def split_path(path: str) -> list[str | int]:
    """Inverse of ``format_path``: ``companions[1].surname`` -> ["companions", 1, "surname"]."""
    parts: list[str | int] = []
    for token in re.findall(r"[^.\[\]]+|\[\d+\]", path):
        if token.startswith("["):
            parts.append(int(token[1:-1]))
        else:
            parts.append(token)
    return parts


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConditionalRule:
    """When ``when(data)`` holds, ``field`` must be filled in."""

    when: Callable[[dict], bool]
    field: str
    message: str

    def check(self, data: dict) -> dict[str, str]:
        if self.when(data) and is_blank(data.get(self.field)):
            return {self.field: self.message}
        return {}


@dataclass(frozen=True)
class AnyOfRule:
    """When ``when(data)`` holds, at least one of ``fields`` must be filled in.

    The error is reported on ``fields[0]``.
    """

    when: Callable[[dict], bool]
    fields: tuple[str, ...]
    message: str

    def check(self, data: dict) -> dict[str, str]:
        if self.when(data) and all(is_blank(data.get(f)) for f in self.fields):
            return {self.fields[0]: self.message}
        return {}


@dataclass(frozen=True)
class ElementRule:
    """Per-element rule for an array of records.

    An element with any field filled in must have every field in
    ``required`` filled in. Errors are addressed by index, e.g.
    ``companions[1].surname``; untouched elements are never flagged.
    """

    array_field: str
    required: dict[str, str]

    def check(self, data: dict) -> dict[str, str]:
        errors: dict[str, str] = {}
        for index, element in enumerate(data.get(self.array_field) or []):
            if not any(not is_blank(v) for v in element.values()):
                continue
            for name, message in self.required.items():
                if is_blank(element.get(name)):
                    errors[format_path((self.array_field, index, name))] = message
        return errors


@dataclass(frozen=True)
class DateOrderRule:
    """``end`` must be strictly after ``start`` when both are present."""

    start: str
    end: str
    message: str

    def check(self, data: dict) -> dict[str, str]:
        start = parse_date(data.get(self.start))
        end = parse_date(data.get(self.end))
        if start is not None and end is not None and end <= start:
            return {self.end: self.message}
        return {}


@dataclass(frozen=True)
class FormatRule:
    """A filled-in ``field`` must fully match ``pattern``."""

    field: str
    pattern: str
    message: str

    def check(self, data: dict) -> dict[str, str]:
        value = data.get(self.field)
        if is_blank(value):
            return {}
        if not re.fullmatch(self.pattern, str(value).strip()):
            return {self.field: self.message}
        return {}


@dataclass(frozen=True)
class MinimumRule:
    """A present numeric ``field`` must be at least ``minimum``."""

    field: str
    minimum: float
    message: str

    def check(self, data: dict) -> dict[str, str]:
        value = data.get(self.field)
        if value is not None and value < self.minimum:
            return {self.field: self.message}
        return {}


# ---------------------------------------------------------------------------
# Step schema + engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepSchema:
    """Descriptor for one wizard step."""

    model: type[BaseModel]
    required: dict[str, str] = field(default_factory=dict)
    rules: tuple = ()


@dataclass(frozen=True)
class StepResult:
    """Either validated data (``ok``) or a non-empty field-path error map."""

    ok: bool
    data: dict | None = None
    errors: dict[str, str] = field(default_factory=dict)


def _structural_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        if err.get("type") == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        else:
            message = err["msg"]
        errors.setdefault(format_path(err["loc"]), message)
    return errors


def validate_step(schema: StepSchema, data: dict | None, mode: Mode = CONTINUE) -> StepResult:
    """Validate one step's field bucket.

    Returns a StepResult holding the normalized data (defaults filled in,
    numeric strings coerced) or the error map. Never both.
    """
    try:
        model = schema.model.model_validate(data or {})
    except ValidationError as exc:
        return StepResult(ok=False, errors=_structural_errors(exc))

    clean = model.model_dump()
    if mode == DRAFT:
        return StepResult(ok=True, data=clean)

    errors: dict[str, str] = {}
    for name, message in schema.required.items():
        if is_blank(clean.get(name)):
            errors[name] = message

    for rule in schema.rules:
        for path, message in rule.check(clean).items():
            errors.setdefault(path, message)

    if errors:
        return StepResult(ok=False, errors=errors)
    return StepResult(ok=True, data=clean)
