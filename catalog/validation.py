"""
Declarative validation and sanitization of submitted form fields.

Each field gets a chain of steps built fluently::

    check("first_name").trim().is_length(min=1).with_message("First name must be specified.")

Sanitizers (``trim``, ``to_date``, ``to_list``) rewrite the value in chain
order whether or not validation passes. Rules record a violation when their
check fails; they never raise.
"""

import re
from datetime import datetime
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional, Tuple

from dateutil.parser import isoparse
from pydantic import BaseModel, Field

DEFAULT_MESSAGE = "Invalid value"

_ALPHANUMERIC = re.compile(r"^[0-9A-Za-z]+$")


class Violation(BaseModel):
    """A single failed rule for one field."""
    field: str = Field(..., description="Submitted field name")
    message: str = Field(..., description="Human-readable message")
    value: Any = Field(None, description="Value that was checked")


class ValidationReport(BaseModel):
    """Sanitized values plus every violation found."""
    values: Dict[str, Any] = Field(default_factory=dict)
    violations: List[Violation] = Field(default_factory=list)


def coerce_list(value: Any) -> List[Any]:
    """
    Normalize a field that may be submitted once, several times or not at all.

    Absent (None) gives an empty list, a list or tuple is returned as a list
    with the same items, and any other value is wrapped in a one-element list.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_iso8601(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string; None if it is not one.

    Reduced precision ("2020", "2020-01"), the basic format ("20200115")
    and week dates ("2020-W03-3") are accepted.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return isoparse(value)
    except (ValueError, OverflowError):
        return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _trim(value: Any) -> Any:
    if isinstance(value, list):
        return [_as_text(item).strip() for item in value]
    return _as_text(value).strip()


def _to_date(value: Any) -> Optional[datetime]:
    return parse_iso8601(value)


class FieldChain:
    """Ordered sanitizers and rules for one submitted field."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        self.message = message
        self._steps: List[Tuple[str, Callable[[Any], Any], Optional[str]]] = []
        self._optional = False
        self._check_falsy = False

    def _rule(self, predicate: Callable[[Any], bool]) -> 'FieldChain':
        self._steps.append(("rule", predicate, None))
        return self

    def _sanitizer(self, function: Callable[[Any], Any]) -> 'FieldChain':
        self._steps.append(("sanitize", function, None))
        return self

    def with_message(self, message: str) -> 'FieldChain':
        """Set the message of the most recently added rule."""
        for index in range(len(self._steps) - 1, -1, -1):
            kind, function, _ = self._steps[index]
            if kind == "rule":
                self._steps[index] = (kind, function, message)
                return self
        raise ValueError(f"with_message() on {self.field!r} must follow a rule")

    def optional(self, check_falsy: bool = False) -> 'FieldChain':
        """
        Skip this chain's rules when the field is absent, or with
        ``check_falsy`` when it is empty or otherwise falsy.
        """
        self._optional = True
        self._check_falsy = check_falsy
        return self

    # Sanitizers

    def trim(self) -> 'FieldChain':
        return self._sanitizer(_trim)

    def to_date(self) -> 'FieldChain':
        return self._sanitizer(_to_date)

    def to_list(self) -> 'FieldChain':
        return self._sanitizer(coerce_list)

    # Rules

    def is_length(self, min: int = 0, max: Optional[int] = None) -> 'FieldChain':
        def predicate(value):
            length = len(_as_text(value))
            return length >= min and (max is None or length <= max)
        return self._rule(predicate)

    def is_alphanumeric(self) -> 'FieldChain':
        return self._rule(lambda value: bool(_ALPHANUMERIC.match(_as_text(value))))

    def is_iso8601(self) -> 'FieldChain':
        return self._rule(lambda value: parse_iso8601(_as_text(value)) is not None)

    def is_in(self, choices: Collection[Any]) -> 'FieldChain':
        allowed = {_as_text(choice) for choice in choices}
        return self._rule(lambda value: _as_text(value) in allowed)

    def _skips_rules(self, raw: Any) -> bool:
        if not self._optional:
            return False
        if raw is None:
            return True
        return self._check_falsy and not raw

    def run(self, raw: Any) -> Tuple[Any, List[Violation]]:
        """
        Apply the chain to one value.

        Returns:
            The sanitized value and the violations found
        """
        skip_rules = self._skips_rules(raw)
        value = raw
        violations = []
        for kind, function, message in self._steps:
            if kind == "sanitize":
                value = function(value)
            elif not skip_rules and not function(value):
                violations.append(Violation(
                    field=self.field,
                    message=message or self.message or DEFAULT_MESSAGE,
                    value=value,
                ))
        return value, violations


def check(field: str, message: Optional[str] = None) -> FieldChain:
    """Start a validation chain; ``message`` is the default for its rules."""
    return FieldChain(field, message)


def sanitize(field: str) -> FieldChain:
    """Start a chain meant for sanitizers only."""
    return FieldChain(field)


class FormValidator:
    """Runs a sequence of field chains over a submitted body."""

    def __init__(self, *chains: FieldChain):
        self.chains = chains

    def run(self, body: Mapping[str, Any]) -> ValidationReport:
        """
        Validate and sanitize ``body``.

        Fields without a chain are passed through untouched. Chains for the
        same field see the output of the previous ones.
        """
        values = dict(body)
        violations = []
        for chain in self.chains:
            value, found = chain.run(values.get(chain.field))
            values[chain.field] = value
            violations.extend(found)
        return ValidationReport(values=values, violations=violations)
