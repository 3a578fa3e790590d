"""Declarative request validation.

A rule set maps each field to an ordered list of constraints. ``validate``
evaluates every field (never stops at the first failing field) and returns a
field-keyed map of human-readable messages; an empty map means the payload is
valid.

Per-field semantics:
 - ``Required`` and the type constraints (``String``, ``Integer``,
   ``DateValue``) short-circuit the remaining constraints of that field when
   they fail, so later checks only ever see a value of the right type.
 - An absent/empty value on a field without ``Required`` skips the rest
   (``Nullable`` makes that explicit for documentation purposes).
 - Otherwise every constraint runs and each failure contributes a message.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ErrorMap = dict[str, list[str]]


def _attr(field: str) -> str:
    return field.replace("_", " ")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return isinstance(value, (list, tuple, dict)) and len(value) == 0


class Constraint:
    """Base constraint: return a message on failure, None when satisfied."""

    implicit = False  # implicit constraints also run on empty values
    bail = False  # a failure stops the remaining constraints of the field

    def check(self, field: str, value: Any, data: Mapping[str, Any]) -> str | None:  # pragma: no cover - interface
        raise NotImplementedError


class Required(Constraint):
    implicit = True
    bail = True

    def check(self, field, value, data):
        if _is_empty(value):
            return f"The {_attr(field)} field is required."
        return None


class Nullable(Constraint):
    def check(self, field, value, data):
        return None


class String(Constraint):
    bail = True

    def check(self, field, value, data):
        if not isinstance(value, str):
            return f"The {_attr(field)} field must be a string."
        return None


class Integer(Constraint):
    bail = True

    def check(self, field, value, data):
        if isinstance(value, bool):
            return f"The {_attr(field)} field must be an integer."
        if isinstance(value, int):
            return None
        if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
            return None
        return f"The {_attr(field)} field must be an integer."


class Email(Constraint):
    def check(self, field, value, data):
        if not isinstance(value, str) or not _EMAIL_RE.match(value):
            return f"The {_attr(field)} field must be a valid email address."
        return None


class Lowercase(Constraint):
    def check(self, field, value, data):
        if isinstance(value, str) and value != value.lower():
            return f"The {_attr(field)} field must be lowercase."
        return None


@dataclass(frozen=True)
class Max(Constraint):
    length: int

    def check(self, field, value, data):
        if isinstance(value, str) and len(value) > self.length:
            return f"The {_attr(field)} field must not be greater than {self.length} characters."
        return None


@dataclass(frozen=True)
class In(Constraint):
    choices: tuple[str, ...]

    def check(self, field, value, data):
        if value not in self.choices:
            return f"The selected {_attr(field)} is invalid."
        return None


class DateValue(Constraint):
    bail = True

    def check(self, field, value, data):
        if isinstance(value, (date, datetime)):
            return None
        if isinstance(value, str):
            # a bare date, or a date with a ``T`` time part
            for parse in (date.fromisoformat, datetime.fromisoformat):
                try:
                    parse(value.strip())
                    return None
                except ValueError:
                    continue
        return f"The {_attr(field)} field must be a valid date."


class Confirmed(Constraint):
    """``<field>_confirmation`` must be present and equal."""

    def check(self, field, value, data):
        if data.get(f"{field}_confirmation") != value:
            return f"The {_attr(field)} field confirmation does not match."
        return None


@dataclass(frozen=True)
class PasswordPolicy(Constraint):
    """Configurable strength policy; defaults to a minimum length only."""

    min_length: int = 8
    letters: bool = False
    mixed_case: bool = False
    numbers: bool = False
    symbols: bool = False

    def messages(self, field: str, value: str) -> list[str]:
        name = _attr(field)
        out: list[str] = []
        if len(value) < self.min_length:
            out.append(f"The {name} field must be at least {self.min_length} characters.")
        if self.letters and not re.search(r"[A-Za-z]", value):
            out.append(f"The {name} field must contain at least one letter.")
        if self.mixed_case and not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value)):
            out.append(f"The {name} field must contain at least one uppercase and one lowercase letter.")
        if self.numbers and not re.search(r"\d", value):
            out.append(f"The {name} field must contain at least one number.")
        if self.symbols and not re.search(r"[^A-Za-z0-9]", value):
            out.append(f"The {name} field must contain at least one symbol.")
        return out

    def check(self, field, value, data):
        if not isinstance(value, str):
            return f"The {_attr(field)} field must be a string."
        msgs = self.messages(field, value)
        return " ".join(msgs) if msgs else None


class Unique(Constraint):
    """Value must not already exist in ``model.column``.

    ``ignore`` excludes one record by ``id_column`` (the model's primary key
    attribute name, ``id`` by default). ``ignore=None`` means the check runs
    against every row.
    """

    def __init__(self, db: Session, model: type, column: str, ignore: Any = None, id_column: str = "id"):
        self.db = db
        self.model = model
        self.column = column
        self.ignore = ignore
        self.id_column = id_column

    def check(self, field, value, data):
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            return None  # left to the type constraints
        col = getattr(self.model, self.column)
        stmt = select(func.count()).select_from(self.model).where(col == value)
        if self.ignore is not None:
            stmt = stmt.where(getattr(self.model, self.id_column) != self.ignore)
        if (self.db.execute(stmt).scalar() or 0) > 0:
            return f"The {_attr(field)} has already been taken."
        return None

    def __repr__(self) -> str:  # shows up in rule-set assertions
        return f"Unique({self.model.__name__}.{self.column}, ignore={self.ignore!r}, id_column={self.id_column!r})"


RuleSet = Mapping[str, Sequence[Constraint]]


def _field_errors(field: str, constraints: Iterable[Constraint], data: Mapping[str, Any]) -> list[str]:
    value = data.get(field)
    constraints = list(constraints)
    empty = _is_empty(value)
    if empty and not any(c.implicit for c in constraints):
        return []
    messages: list[str] = []
    for c in constraints:
        if empty and not c.implicit:
            continue
        msg = c.check(field, value, data)
        if msg is None:
            continue
        messages.append(msg)
        if c.bail:
            break
    return messages


def validate(data: Mapping[str, Any], rules: RuleSet) -> ErrorMap:
    errors: ErrorMap = {}
    for field, constraints in rules.items():
        msgs = _field_errors(field, constraints, data)
        if msgs:
            errors[field] = msgs
    return errors


def validate_or_raise(data: Mapping[str, Any], rules: RuleSet) -> dict[str, Any]:
    """Return the validated subset of ``data`` or raise ``ValidationError`` with every violation."""
    errors = validate(data, rules)
    if errors:
        raise ValidationError(errors)
    return {k: data.get(k) for k in rules if k in data}


__all__ = [
    "Constraint",
    "Required",
    "Nullable",
    "String",
    "Integer",
    "Email",
    "Lowercase",
    "Max",
    "In",
    "DateValue",
    "Confirmed",
    "PasswordPolicy",
    "Unique",
    "RuleSet",
    "ErrorMap",
    "validate",
    "validate_or_raise",
]
