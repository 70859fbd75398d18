import json

import pytest

import mycs_cli


def test_runs_a_script_file(tmp_path, capsys):
    script = tmp_path / "hello.mycs"
    script.write_text('print "hello";', encoding="utf-8")
    assert mycs_cli.main([str(script)]) == 0
    assert capsys.readouterr().out == "hello\n"


def test_rejects_wrong_extension(tmp_path, capsys):
    script = tmp_path / "hello.txt"
    script.write_text('print "hello";', encoding="utf-8")
    assert mycs_cli.main([str(script)]) == 1
    assert "does not end in .mycs" in capsys.readouterr().err


def test_rejects_missing_file(tmp_path, capsys):
    assert mycs_cli.main([str(tmp_path / "absent.mycs")]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_uncaught_exception_prints_value_and_frames(tmp_path, capsys):
    script = tmp_path / "boom.mycs"
    script.write_text('function f() { throw "bad"; }\nf();', encoding="utf-8")
    assert mycs_cli.main([str(script)]) == 1
    err = capsys.readouterr().err
    assert "Uncaught exception: bad" in err
    assert "  at f" in err


def test_parse_error_exit_status(tmp_path, capsys):
    script = tmp_path / "broken.mycs"
    script.write_text("x = ;", encoding="utf-8")
    assert mycs_cli.main([str(script)]) == 1
    assert "ParseError" in capsys.readouterr().err


def test_imports_resolve_against_the_working_directory(tmp_path, monkeypatch, capsys):
    (tmp_path / "lib.mycs").write_text("function f() { return 7; }", encoding="utf-8")
    (tmp_path / "scripts").mkdir()
    script = tmp_path / "scripts" / "main.mycs"
    script.write_text("import lib; print f();", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert mycs_cli.main([str(script)]) == 0
    assert capsys.readouterr().out == "7\n"


def test_dump_classes_as_json(tmp_path, capsys):
    script = tmp_path / "classes.mycs"
    script.write_text("class A { x = 1; } class B extends A { }", encoding="utf-8")
    assert mycs_cli.main([str(script), "--dump-classes", "json"]) == 0
    dumped = json.loads(capsys.readouterr().out)
    assert [c["name"] for c in dumped] == ["A", "B"]
    assert dumped[1]["base"] == 0


def test_invalid_dump_format_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit):
        mycs_cli.main([str(tmp_path / "x.mycs"), "--dump-classes", "xml"])


def test_repl_runs_lines_until_exit(monkeypatch, capsys):
    lines = iter(['x = 2;', 'print x * 3;', 'print y;', 'exit'])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
    assert mycs_cli.main([]) == 0
    captured = capsys.readouterr()
    assert "MYCS REPL v0.1" in captured.out
    assert "6\n" in captured.out
    assert "Variable not defined: y" in captured.err


def test_repl_exits_on_eof(monkeypatch, capsys):
    def raise_eof(prompt=""):
        raise EOFError
    monkeypatch.setattr("builtins.input", raise_eof)
    assert mycs_cli.main([]) == 0
    assert "Exiting." in capsys.readouterr().out
