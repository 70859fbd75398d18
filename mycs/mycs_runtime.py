"""
Script execution: ScriptRunner chains lexer, parser and interpreter and
reports the outcome as an ExecutionResult.
"""

import io
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Literal, Optional, TextIO

from mycs.mycs_datatypes import ExecutionContext, Raised, Returning
from mycs.mycs_errors import LexError, ParseError, RuntimeFault, MycsError
from mycs.mycs_interpreter import Interpreter
from mycs.mycs_lexer import Lexer
from mycs.mycs_parser import Parser
from mycs.mycs_printer import to_text

ErrorKind = Literal['lex', 'parse', 'fault', 'exception', 'internal']

# Every MYCS call costs about a dozen Python frames, so scripts run with a
# raised recursion limit on a worker thread whose stack can hold it.
RECURSION_LIMIT = 40_000
THREAD_STACK_SIZE = 512 * 1024 * 1024


def call_with_deep_stack(func: Callable, *args) -> Any:
    """Runs `func(*args)` on a large-stack worker thread and returns its result or re-raises its error."""
    box = {}

    def target():
        try:
            box['value'] = func(*args)
        except BaseException as e:
            box['error'] = e

    old_limit = sys.getrecursionlimit()
    old_stack_size = threading.stack_size()
    threading.stack_size(THREAD_STACK_SIZE)
    try:
        sys.setrecursionlimit(max(old_limit, RECURSION_LIMIT))
        worker = threading.Thread(target=target, name="mycs-run", daemon=True)
        worker.start()
        worker.join()
    finally:
        threading.stack_size(old_stack_size)
        sys.setrecursionlimit(old_limit)
    if 'error' in box:
        raise box['error']
    return box.get('value')

@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    output: str = ""
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    error_line: Optional[int] = None
    error_column: Optional[int] = None
    # Uncaught `throw`: the thrown value and the call stack, most recent first.
    exception_value: Any = None
    stacktrace: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None

    def format_error(self) -> str:
        """Formats the failure the way the command line reports it."""
        if self.status != 'error':
            return ""
        if self.error_kind == 'exception':
            lines = [f"Uncaught exception: {to_text(self.exception_value)}"]
            lines.extend(f"  at {frame}" for frame in self.stacktrace)
            return "\n".join(lines)

        msg = str(self.error_message or "Unknown error")
        if self.error_line is not None and not msg.startswith("Error on line "):
            col_info = f", col {self.error_column}" if self.error_column is not None else ""
            msg = f"Error on line {self.error_line}{col_info}: {msg}"
        if self.stacktrace:
            msg += "\nStack trace:\n" + "\n".join(f"  at {frame}" for frame in self.stacktrace)
        return msg


class ScriptRunner:
    """Lexes, parses and executes MYCS code against one persistent context.

    Repeated calls to `run` share globals and registries, like a REPL
    session; separate runners are fully isolated from each other.
    """

    def __init__(self, source_dir: Optional[str] = None,
                 stdout: Optional[TextIO] = None, stdin: Optional[TextIO] = None):
        self._buffer: Optional[io.StringIO] = None
        if stdout is None:
            self._buffer = io.StringIO()
            stdout = self._buffer
        self.lexer = Lexer()
        self.interpreter = Interpreter()
        self.context = ExecutionContext(stdout=stdout, stdin=stdin, source_dir=source_dir)

    @property
    def source_dir(self) -> Optional[str]:
        return self.context.source_dir

    @source_dir.setter
    def source_dir(self, value: Optional[str]):
        self.context.source_dir = value

    @property
    def globals(self):
        return self.context.globals

    def _source_context(self, source: str, line: int, col: Optional[int], radius: int = 2) -> str:
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        start = max(1, line - radius)
        end = min(len(lines), line + radius)
        width = len(str(end))
        out = []
        for i in range(start, end + 1):
            prefix = ">" if i == line else " "
            ln = str(i).rjust(width)
            out.append(f"{prefix} {ln} | {lines[i - 1]}")
            if i == line and col is not None:
                caret = " " * max(col - 1, 0)
                out.append(f"  {' ' * width} | {caret}^")
        return "\n".join(out)

    def _structural_error(self, e: MycsError, source: Optional[str], output: str) -> ExecutionResult:
        kind = 'lex' if isinstance(e, LexError) else 'parse'
        col = getattr(e, 'column', None)
        msg = f"{type(e).__name__}: {e.message}"
        if source is not None and e.line is not None:
            excerpt = self._source_context(source, e.line, col)
            if excerpt:
                msg = f"{msg}\n{excerpt}"
        return ExecutionResult(
            status='error',
            output=output,
            error_kind=kind,
            error_message=msg,
            error_line=e.line,
            error_column=col,
            error=e,
        )

    def _internal_error(self, e: RecursionError, output: str) -> ExecutionResult:
        # The interpreter attaches the call stack at the innermost call boundary.
        trace = getattr(e, 'mycs_trace', None) or []
        return ExecutionResult(
            status='error',
            output=output,
            error_kind='internal',
            error_message=f"InternalError: {e}",
            stacktrace=list(reversed(trace)),
            error=e,
        )

    def _output_since(self, start: int) -> str:
        if self._buffer is None:
            return ""
        return self._buffer.getvalue()[start:]

    def run(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script."""
        return call_with_deep_stack(self._run, source_code)

    def _run(self, source_code: str) -> ExecutionResult:
        ctx = self.context
        start = len(self._buffer.getvalue()) if self._buffer is not None else 0
        ctx.call_stack.clear()
        ctx.import_stack.clear()

        # 1. Lex and parse
        try:
            program = Parser(self.lexer.tokenize(source_code)).parse_program()
        except (LexError, ParseError) as e:
            return self._structural_error(e, source_code, self._output_since(start))
        except RecursionError as e:
            return self._internal_error(e, self._output_since(start))

        # 2. Execute
        try:
            outcome = self.interpreter.execute_program(program, ctx)
        except (LexError, ParseError) as e:
            # Raised while loading an imported module; no excerpt of the main source.
            return self._structural_error(e, None, self._output_since(start))
        except RuntimeFault as fault:
            return ExecutionResult(
                status='error',
                output=self._output_since(start),
                error_kind='fault',
                error_message=f"{type(fault).__name__}: {fault.message}",
                error_line=fault.line,
                stacktrace=list(reversed(fault.trace or [])),
                error=fault,
            )
        except RecursionError as e:
            return self._internal_error(e, self._output_since(start))
        finally:
            # A Python-level abort can leave frames behind; the next run starts clean.
            ctx.call_stack.clear()
            ctx.locals = None
            ctx.current_instance = None
            ctx.current_class = None

        if isinstance(outcome, Raised):
            return ExecutionResult(
                status='error',
                output=self._output_since(start),
                error_kind='exception',
                error_message=f"Uncaught exception: {to_text(outcome.value)}",
                exception_value=outcome.value,
                stacktrace=list(reversed(outcome.trace)),
            )
        value = outcome.value if isinstance(outcome, Returning) else None
        return ExecutionResult(status='success', value=value, output=self._output_since(start))

    def run_file(self, file_path: str) -> ExecutionResult:
        """Runs a script file. Imports resolve against source_dir, else the working directory."""
        return self.run(Path(file_path).read_text(encoding="utf-8"))
