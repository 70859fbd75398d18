import pytest

from mycs import ScriptRunner


def run_mycs(src: str):
    return ScriptRunner().run(src)


def assert_ok(res, output=None):
    assert res.status == 'success', res.error_message
    if output is not None:
        assert res.output == output


def assert_error(res, contains: str | None = None):
    assert res.status == 'error', f"expected error, got success: {res.output!r}"
    if contains is not None:
        assert contains in (res.error_message or ""), f"error did not contain {contains!r}: {res.error_message!r}"


def test_if_else_chain():
    src = """
    function sign(n) {
        if (n > 0) { return "pos"; }
        else if (n < 0) { return "neg"; }
        else { return "zero"; }
    }
    print sign(3);
    print sign(-3);
    print sign(0);
    """
    assert_ok(run_mycs(src), "pos\nneg\nzero\n")


def test_while_loop():
    src = """
    i = 0;
    total = 0;
    while (i < 5) { total = total + i; i = i + 1; }
    print total;
    """
    assert_ok(run_mycs(src), "10\n")


def test_for_loop_counts():
    assert_ok(run_mycs("for (i = 0; i < 3; i = i + 1) { print i; }"), "0\n1\n2\n")


def test_for_loop_variable_survives_the_loop():
    assert_ok(run_mycs("for (i = 0; i < 3; i = i + 1) { } print i;"), "3\n")


def test_break_leaves_the_innermost_loop():
    src = """
    for (i = 0; i < 3; i = i + 1) {
        j = 0;
        while (true) {
            if (j == 2) break;
            j = j + 1;
        }
        print i + ":" + j;
    }
    """
    assert_ok(run_mycs(src), "0:2\n1:2\n2:2\n")


def test_continue_in_for_still_runs_the_iterator():
    src = """
    for (i = 0; i < 5; i = i + 1) {
        if (i % 2 == 0) continue;
        print i;
    }
    """
    assert_ok(run_mycs(src), "1\n3\n")


def test_continue_in_while():
    src = """
    i = 0;
    while (i < 4) {
        i = i + 1;
        if (i == 2) { continue; }
        print i;
    }
    """
    assert_ok(run_mycs(src), "1\n3\n4\n")


def test_return_from_inside_loop():
    src = """
    function find(limit) {
        for (i = 0; i < 100; i = i + 1) {
            if (i * i >= limit) return i;
        }
        return -1;
    }
    print find(50);
    """
    assert_ok(run_mycs(src), "8\n")


@pytest.mark.parametrize("stmt", ["break;", "continue;"])
def test_loop_control_outside_a_loop_is_a_fault(stmt):
    assert_error(run_mycs(stmt), "outside of a loop")


def test_break_cannot_escape_a_function_call():
    src = """
    function f() { break; }
    while (true) { f(); }
    """
    res = run_mycs(src)
    assert_error(res, "outside of a loop in f")
    assert res.stacktrace == ["f"]


def test_throw_out_of_a_loop_stops_it():
    src = """
    try {
        for (i = 0; i < 10; i = i + 1) {
            if (i == 2) throw i;
            print i;
        }
    } catch (e) {
        print "stopped at " + e;
    }
    """
    assert_ok(run_mycs(src), "0\n1\nstopped at 2\n")
