"""Shape checks for TOML payloads before they become model instances."""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Any, ClassVar, Mapping, Sequence


class ModelValidationError(ValueError):
    """Raised when a payload does not satisfy a model's requirements."""

    def __init__(self, model: type[Any] | str, errors: Sequence[str]) -> None:
        self.model = model
        self.errors = list(errors)
        name = model if isinstance(model, str) else model.__name__
        message = "; ".join(self.errors) if self.errors else "invalid payload"
        super().__init__(f"{name} validation failed: {message}")


@dataclass(frozen=True)
class FieldSpec:
    expected: Any
    description: str
    required: bool = True


@dataclass(frozen=True)
class SequenceSpec:
    item: Any


@dataclass(frozen=True)
class MappingSpec:
    key: Any
    value: Any


def is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_positive_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and value > 0


def is_fraction(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and 0 <= value < 1


def _matches(value: Any, expected: Any) -> bool:
    if expected is Any:
        return True
    if isinstance(expected, SequenceSpec):
        if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
            return False
        return all(_matches(item, expected.item) for item in value)
    if isinstance(expected, MappingSpec):
        if not isinstance(value, Mapping):
            return False
        return all(
            _matches(key, expected.key) and _matches(item, expected.value)
            for key, item in value.items()
        )
    if isinstance(expected, tuple):
        return any(_matches(value, part) for part in expected)
    if isinstance(expected, type):
        # bool is an int subclass; TOML booleans never stand in for numbers.
        if expected is int:
            return isinstance(value, int) and not isinstance(value, bool)
        if expected is float:
            return isinstance(value, Real) and not isinstance(value, bool)
        return isinstance(value, expected)
    if callable(expected):
        try:
            return bool(expected(value))
        except (TypeError, ValueError):
            return False
    return True


class ModelValidator:
    """Base class for payload validators.

    Subclasses declare ``model`` and a ``fields`` mapping of
    :class:`FieldSpec`.  :meth:`validate` collects every problem before
    raising so a broken file can be fixed in one pass.
    """

    model: ClassVar[type[Any] | str]
    fields: ClassVar[Mapping[str, FieldSpec]]

    @classmethod
    def validate(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ModelValidationError(cls.model, ["payload must be a table of fields"])

        errors: list[str] = []
        for name, spec in cls.fields.items():
            if name not in data:
                if spec.required:
                    errors.append(f"missing required field '{name}' ({spec.description})")
                continue
            value = data[name]
            if not _matches(value, spec.expected):
                errors.append(
                    f"field '{name}' expected {spec.description}, "
                    f"received {type(value).__name__} {value!r}"
                )
        if errors:
            raise ModelValidationError(cls.model, errors)
        return dict(data)


__all__ = [
    "FieldSpec",
    "MappingSpec",
    "ModelValidationError",
    "ModelValidator",
    "SequenceSpec",
    "is_fraction",
    "is_non_empty_str",
    "is_positive_number",
]
