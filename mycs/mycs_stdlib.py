"""
Built-in functions available to every MYCS program.
"""
import inspect
import math
from typing import Any, Callable, Dict, List, Optional

from mycs.mycs_datatypes import ExecutionContext, ObjectInstance, BoundMethod
from mycs.mycs_errors import ArgumentCountError, OperandTypeError, UndefinedClassError
from mycs.mycs_printer import to_text


def builtin(name: str):
    """Marks a StdLib method as the built-in `name`."""
    def decorate(func):
        func._mycs_builtin = name
        return func
    return decorate


def to_number(value: Any, op: str = "operation") -> float:
    """Coerces a value to float the way arithmetic operators do."""
    match value:
        case bool():
            return 1.0 if value else 0.0
        case int() | float():
            return float(value)
        case None:
            return 0.0
        case str():
            try:
                return float(value.strip())
            except ValueError:
                raise OperandTypeError(f"Cannot use string {value!r} as a number in {op}") from None
    raise OperandTypeError(f"Cannot use {to_text(value)} as a number in {op}")


def type_tag(value: Any) -> str:
    match value:
        case ObjectInstance():
            return value.class_name
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case None:
            return "null"
        case list():
            return "list"
        case BoundMethod():
            return "method"
    return type(value).__name__


class StdLib:
    """The built-in function surface. Each builtin receives the execution context first."""

    def __init__(self):
        self.functions: Dict[str, Callable] = {}
        self.arity: Dict[str, int] = {}
        for _, member in inspect.getmembers(self):
            name = getattr(member, "_mycs_builtin", None)
            if name is None:
                continue
            self.functions[name] = member
            # Bound method: drop the leading ctx parameter.
            self.arity[name] = len(inspect.signature(member).parameters) - 1

    def __contains__(self, name: str) -> bool:
        return name in self.functions

    def call(self, name: str, ctx: ExecutionContext, args: List[Any], line: Optional[int] = None) -> Any:
        expected = self.arity[name]
        if len(args) != expected:
            raise ArgumentCountError(name, expected, len(args), line)
        return self.functions[name](ctx, *args)

    @builtin("print")
    def _print(self, ctx, value):
        ctx.out.write(to_text(value) + "\n")
        return None

    @builtin("input")
    def _input(self, ctx, prompt):
        ctx.out.write(to_text(prompt))
        ctx.out.flush()
        line = ctx.inp.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")

    @builtin("sqrt")
    def _sqrt(self, ctx, x):
        n = to_number(x, "sqrt")
        if n < 0:
            return math.nan
        return math.sqrt(n)

    @builtin("abs")
    def _abs(self, ctx, x):
        return abs(to_number(x, "abs"))

    @builtin("typeof")
    def _typeof(self, ctx, value):
        return type_tag(value)

    @builtin("getMethods")
    def _get_methods(self, ctx, class_name):
        definition = ctx.classes.get(to_text(class_name))
        if definition is None:
            raise UndefinedClassError(to_text(class_name))
        return definition.method_names()

    @builtin("getFields")
    def _get_fields(self, ctx, class_name):
        definition = ctx.classes.get(to_text(class_name))
        if definition is None:
            raise UndefinedClassError(to_text(class_name))
        return definition.field_names()
