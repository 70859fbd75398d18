"""
Error types raised by the MYCS lexer, parser and interpreter.

Two tiers are kept apart:
  - structural failures (LexError, ParseError) abort lexing/parsing;
  - host-level faults (RuntimeFault and subclasses) abort execution and are
    never visible to the language's own try/catch.

User-level exceptions raised with `throw` are not Python exceptions at all;
they travel as `Raised` outcomes (see mycs_datatypes).
"""
import os
import sys
from typing import List, Optional


def debug(*parts):
    """Writes a trace line to stderr when MYCS_DEBUG is set."""
    if os.environ.get("MYCS_DEBUG"):
        print("[DBG]", *parts, file=sys.stderr)


class MycsError(Exception):
    """Base class for every error the MYCS core raises."""
    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line


# -----------------------------------------------------------------
# Structural failures
# -----------------------------------------------------------------

class LexError(MycsError):
    def __init__(self, char: str, line: int, column: int, offset: int):
        super().__init__(f"Unknown symbol {char!r} at line {line}, offset {offset}", line)
        self.char = char
        self.column = column
        self.offset = offset


class ParseError(MycsError):
    """Raised on the first structural error; carries what was expected and the token found."""
    def __init__(self, expected: str, found=None):
        found_text = found.text if found is not None else "end of input"
        line = found.line if found is not None else None
        super().__init__(f"Expected {expected} but found {found_text!r}", line)
        self.expected = expected
        self.found = found
        self.column = found.column if found is not None else None


# -----------------------------------------------------------------
# Host-level faults
# -----------------------------------------------------------------

class RuntimeFault(MycsError):
    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message, line)
        self.trace: Optional[List[str]] = None

    def capture(self, call_stack: List[str]):
        # Keep the deepest snapshot: the first boundary the fault crosses.
        if self.trace is None:
            self.trace = list(call_stack)


class UndefinedVariableError(RuntimeFault):
    def __init__(self, name: str, line: Optional[int] = None):
        super().__init__(f"Variable not defined: {name}", line)
        self.name = name


class UndefinedFunctionError(RuntimeFault):
    def __init__(self, name: str, line: Optional[int] = None):
        super().__init__(f"Function not defined: {name}", line)
        self.name = name


class UndefinedClassError(RuntimeFault):
    def __init__(self, name: str, line: Optional[int] = None):
        super().__init__(f"Class not defined: {name}", line)
        self.name = name


class UndefinedMemberError(RuntimeFault):
    def __init__(self, class_name: str, member: str, line: Optional[int] = None):
        super().__init__(f"Member not found: {class_name}.{member}", line)
        self.class_name = class_name
        self.member = member


class UndefinedInterfaceError(RuntimeFault):
    def __init__(self, name: str, line: Optional[int] = None):
        super().__init__(f"Interface not defined: {name}", line)
        self.name = name


class InterfaceError(RuntimeFault):
    pass


class ArgumentCountError(RuntimeFault):
    def __init__(self, name: str, expected: int, given: int, line: Optional[int] = None):
        super().__init__(f"Wrong number of arguments for {name}: expected {expected}, got {given}", line)
        self.expected = expected
        self.given = given


class OperandTypeError(RuntimeFault):
    pass


class ImportFault(RuntimeFault):
    pass
