"""Three-state partial updates.

A JSON update body distinguishes three cases per field:

* absent        -> keep the stored value
* ``null``      -> clear the column (nullable fields only)
* a value       -> write the value

Pydantic records which fields the client actually sent in
``model_fields_set``; that is the absent/present bit. Resolution happens in
Python so that the final UPDATE can write every writable column at once.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel


class FieldState(Enum):
    ABSENT = "absent"
    CLEAR = "clear"
    SET = "set"


def field_state(payload: BaseModel, name: str) -> FieldState:
    if name not in payload.model_fields_set:
        return FieldState.ABSENT
    if getattr(payload, name) is None:
        return FieldState.CLEAR
    return FieldState.SET


def resolve_columns(
    payload: BaseModel,
    current: Mapping[str, Any],
    *,
    nullable: Iterable[str] = (),
    required: Iterable[str] = (),
) -> dict[str, Any]:
    """Final value for every writable column.

    ``required`` columns cannot be cleared: an explicit null keeps the stored
    value, same as absent.
    """
    provided = payload.model_dump(include=payload.model_fields_set)
    resolved: dict[str, Any] = {}

    for name in required:
        if field_state(payload, name) is FieldState.SET:
            resolved[name] = provided[name]
        else:
            resolved[name] = current[name]

    for name in nullable:
        state = field_state(payload, name)
        if state is FieldState.ABSENT:
            resolved[name] = current[name]
        elif state is FieldState.CLEAR:
            resolved[name] = None
        else:
            resolved[name] = provided[name]

    return resolved


def changed_columns(resolved: Mapping[str, Any], current: Mapping[str, Any]) -> set[str]:
    return {name for name, value in resolved.items() if current.get(name) != value}
