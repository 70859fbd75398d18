from __future__ import annotations

import json
from typing import Any, List

import yaml

from mycs.mycs_datatypes import ClassArena, FieldMember, MethodMember


# --------------------------
# Helpers
# --------------------------

def _member_to_builtin(member: Any) -> dict:
    if isinstance(member, FieldMember):
        return {
            "name": member.name,
            "access": member.access,
            "initialized": member.initializer is not None,
        }
    return {
        "name": member.name,
        "access": member.access,
        "params": list(member.params),
        "virtual": member.is_virtual,
        "override": member.is_override,
    }


# --------------------------
# Public API
# --------------------------

def class_graph(arena: ClassArena) -> List[dict]:
    """
    Flattens the class arena into plain dicts, one per class in index order.
    Bases are referenced by index, so the output is a faithful copy of the graph.
    """
    out = []
    for index, definition in enumerate(arena.classes):
        members = list(definition.members.values())
        out.append({
            "index": index,
            "name": definition.name,
            "base": definition.base_index,
            "interfaces": list(definition.interfaces),
            "fields": [_member_to_builtin(m) for m in members if isinstance(m, FieldMember)],
            "methods": [_member_to_builtin(m) for m in members if isinstance(m, MethodMember)],
        })
    return out


def serialize(value: Any, *, fmt: str, pretty: bool = True) -> str:
    """
    Convert plain Python structures into text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    if f == 'json':
        return json.dumps(value, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(value, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def deserialize(text: str, *, fmt: str) -> Any:
    f = (fmt or '').lower()
    if f == 'json':
        return json.loads(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "class_graph",
    "serialize",
    "deserialize",
]
