import pytest

from mycs import ScriptRunner
from mycs.mycs_errors import LexError, ParseError, UndefinedVariableError
from mycs.mycs_runtime import ExecutionResult


def test_success_result_fields():
    res = ScriptRunner().run("print 1;")
    assert res.status == 'success'
    assert res.output == "1\n"
    assert res.value is None
    assert res.error_kind is None
    assert res.format_error() == ""


def test_lex_error_result_has_position_and_excerpt():
    res = ScriptRunner().run("a = 1;\nb = #;\nc = 3;")
    assert res.status == 'error'
    assert res.error_kind == 'lex'
    assert isinstance(res.error, LexError)
    assert res.error_line == 2
    assert res.error_column == 5
    msg = res.format_error()
    assert msg.startswith("Error on line 2, col 5: LexError: Unknown symbol '#'")
    assert "> 2 | b = #;" in msg
    assert "^" in msg


def test_parse_error_result():
    res = ScriptRunner().run("x = (1 + 2;")
    assert res.error_kind == 'parse'
    assert isinstance(res.error, ParseError)
    assert "Expected ')'" in res.error_message
    assert res.error_line == 1


def test_nothing_runs_when_parsing_fails():
    res = ScriptRunner().run('print "first";\nprint (;')
    assert res.error_kind == 'parse'
    assert res.output == ""


def test_fault_result_carries_line_and_trace():
    src = "function f() {\n  return nope;\n}\nf();"
    res = ScriptRunner().run(src)
    assert res.error_kind == 'fault'
    assert isinstance(res.error, UndefinedVariableError)
    assert res.error_line == 2
    assert res.stacktrace == ["f"]
    msg = res.format_error()
    assert msg.startswith("Error on line 2: UndefinedVariableError: Variable not defined: nope")
    assert "Stack trace:\n  at f" in msg


def test_fault_trace_is_most_recent_first():
    src = """
    function a() { return b(); }
    function b() { return c(); }
    function c() { return 1 * "x"; }
    a();
    """
    res = ScriptRunner().run(src)
    assert res.error_kind == 'fault'
    assert res.stacktrace == ["c", "b", "a"]


def test_context_is_reset_after_a_fault():
    runner = ScriptRunner()
    runner.run("function f() { return missing; } f();")
    assert runner.context.call_stack == []
    assert runner.context.locals is None
    res = runner.run("x = 1; print x;")
    assert res.status == 'success', res.error_message
    assert res.output == "1\n"


def test_output_is_split_per_run():
    runner = ScriptRunner()
    assert runner.run("print 1;").output == "1\n"
    assert runner.run("print 2;").output == "2\n"


def test_source_dir_property(tmp_path):
    runner = ScriptRunner()
    assert runner.source_dir is None
    runner.source_dir = str(tmp_path)
    assert runner.context.source_dir == str(tmp_path)


@pytest.mark.parametrize("result, expected", [
    (ExecutionResult(status='error', error_kind='fault', error_message="Boom"), "Boom"),
    (ExecutionResult(status='error', error_kind='fault', error_message="Boom", error_line=3),
     "Error on line 3: Boom"),
    (ExecutionResult(status='error', error_kind='exception', exception_value=[1.0, "a"], stacktrace=["m"]),
     'Uncaught exception: [1, "a"]\n  at m'),
])
def test_format_error(result, expected):
    assert result.format_error() == expected


def test_debug_tracing_goes_to_stderr(monkeypatch, capsys):
    monkeypatch.setenv("MYCS_DEBUG", "1")
    res = ScriptRunner().run("x = 1;")
    assert res.status == 'success'
    err = capsys.readouterr().err
    assert "[DBG]" in err
    assert "Assigning global variable: x" in err


def test_debug_tracing_is_off_by_default(monkeypatch, capsys):
    monkeypatch.delenv("MYCS_DEBUG", raising=False)
    ScriptRunner().run("x = 1;")
    assert capsys.readouterr().err == ""
