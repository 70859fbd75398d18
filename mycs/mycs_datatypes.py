"""
Runtime data types for the MYCS interpreter.

This module holds the object model (class arena, member resolution, object
instances, bound methods), the tagged statement outcomes, and the
ExecutionContext that carries all interpreter state between calls.
"""
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TextIO

from mycs.mycs_ast import Block, Expression, FunctionDecl, InterfaceDecl
from mycs.mycs_errors import RuntimeFault, UndefinedClassError


# =================================================================
# Class model
# =================================================================

@dataclass
class FieldMember:
    name: str
    access: str
    initializer: Optional[Expression]


@dataclass
class MethodMember:
    name: str
    access: str
    params: List[str]
    body: Block
    # Informational only: dispatch never consults these flags.
    is_virtual: bool = False
    is_override: bool = False


@dataclass
class ClassDefinition:
    name: str
    base_index: Optional[int]
    members: Dict[str, Any] = field(default_factory=dict)
    interfaces: List[str] = field(default_factory=list)

    def field_names(self) -> List[str]:
        return [m.name for m in self.members.values() if isinstance(m, FieldMember)]

    def method_names(self) -> List[str]:
        return [m.name for m in self.members.values() if isinstance(m, MethodMember)]


class MemberKind(Enum):
    FIELD = "field"
    METHOD = "method"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class Resolution:
    kind: MemberKind
    owner: Optional[int] = None
    member: Any = None


NOT_FOUND = Resolution(MemberKind.NOT_FOUND)


class ClassArena:
    """Stable-index storage for class definitions.

    Classes refer to their base by index, never by reference. Indices are
    handed out in definition order and never reused, so resolution results
    can be cached for the lifetime of the arena.
    """
    def __init__(self):
        self.classes: List[ClassDefinition] = []
        self.index_by_name: Dict[str, int] = {}
        self._cache: Dict[tuple, Resolution] = {}

    def __len__(self) -> int:
        return len(self.classes)

    def __contains__(self, name: str) -> bool:
        return name in self.index_by_name

    def __getitem__(self, index: int) -> ClassDefinition:
        return self.classes[index]

    def define(self, definition: ClassDefinition) -> int:
        if definition.name in self.index_by_name:
            raise RuntimeFault(f"Class already defined: {definition.name}")
        index = len(self.classes)
        self.classes.append(definition)
        self.index_by_name[definition.name] = index
        return index

    def lookup(self, name: str, line: Optional[int] = None) -> int:
        try:
            return self.index_by_name[name]
        except KeyError:
            raise UndefinedClassError(name, line) from None

    def get(self, name: str) -> Optional[ClassDefinition]:
        index = self.index_by_name.get(name)
        return self.classes[index] if index is not None else None

    def chain(self, index: int) -> List[int]:
        """Indices from `index` up to the root base, most derived first."""
        out = []
        cur: Optional[int] = index
        while cur is not None:
            out.append(cur)
            cur = self.classes[cur].base_index
        return out

    def resolve(self, index: int, name: str) -> Resolution:
        """Resolves `name` on class `index`: a field anywhere on the chain wins over methods."""
        key = (index, name)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        result = NOT_FOUND
        chain = self.chain(index)
        for cls_index in chain:
            member = self.classes[cls_index].members.get(name)
            if isinstance(member, FieldMember):
                result = Resolution(MemberKind.FIELD, cls_index, member)
                break
        else:
            for cls_index in chain:
                member = self.classes[cls_index].members.get(name)
                if isinstance(member, MethodMember):
                    result = Resolution(MemberKind.METHOD, cls_index, member)
                    break
        self._cache[key] = result
        return result

    def find_method(self, index: Optional[int], name: str) -> Resolution:
        """First method named `name` walking from `index` toward the root."""
        if index is None:
            return NOT_FOUND
        for cls_index in self.chain(index):
            member = self.classes[cls_index].members.get(name)
            if isinstance(member, MethodMember):
                return Resolution(MemberKind.METHOD, cls_index, member)
        return NOT_FOUND


class ObjectInstance:
    """An instance of a MYCS class; fields live here, methods on the class."""
    def __init__(self, class_index: int, class_name: str):
        self.class_index = class_index
        self.class_name = class_name
        self.fields: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<ObjectInstance {self.class_name} fields=[{', '.join(self.fields)}]>"


@dataclass(frozen=True, eq=False)
class BoundMethod:
    instance: ObjectInstance
    name: str

    def __repr__(self) -> str:
        return f"<BoundMethod {self.instance.class_name}.{self.name}>"


# =================================================================
# Statement outcomes
# =================================================================

class Outcome:
    """Result of executing a statement."""
    __slots__ = ()


class Normal(Outcome):
    __slots__ = ()

    def __repr__(self):
        return "Normal"


class Breaking(Outcome):
    __slots__ = ()

    def __repr__(self):
        return "Breaking"


class Continuing(Outcome):
    __slots__ = ()

    def __repr__(self):
        return "Continuing"


@dataclass(frozen=True)
class Returning(Outcome):
    value: Any = None


@dataclass(frozen=True)
class Raised(Outcome):
    """A user-level exception in flight: the thrown value and the call stack at `throw`."""
    value: Any
    trace: tuple = ()


NORMAL = Normal()
BREAK = Breaking()
CONTINUE = Continuing()


# =================================================================
# Execution context
# =================================================================

@dataclass
class ExecutionContext:
    """All mutable interpreter state, threaded through every evaluation call."""
    globals: Dict[str, Any] = field(default_factory=dict)
    locals: Optional[Dict[str, Any]] = None
    functions: Dict[str, FunctionDecl] = field(default_factory=dict)
    classes: ClassArena = field(default_factory=ClassArena)
    interfaces: Dict[str, InterfaceDecl] = field(default_factory=dict)
    call_stack: List[str] = field(default_factory=list)
    current_instance: Optional[ObjectInstance] = None
    # Class that owns the method being executed; `super` resolves from its base.
    current_class: Optional[int] = None
    stdout: Optional[TextIO] = None
    stdin: Optional[TextIO] = None
    source_dir: Optional[str] = None
    import_stack: List[str] = field(default_factory=list)

    @property
    def out(self) -> TextIO:
        return self.stdout if self.stdout is not None else sys.stdout

    @property
    def inp(self) -> TextIO:
        return self.stdin if self.stdin is not None else sys.stdin

    @property
    def import_dir(self) -> str:
        return self.source_dir or os.getcwd()
