from mycs import ScriptRunner


def write_module(directory, name, source):
    path = directory / f"{name}.mycs"
    path.write_text(source, encoding="utf-8")
    return path


def test_import_brings_functions_classes_and_globals(tmp_path):
    write_module(tmp_path, "util", """
        greeting = "hello";
        function shout(s) { return s + "!"; }
        class Pair { left = 1; right = 2; }
    """)
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("""
        import util;
        p = new Pair();
        print shout(greeting);
        print p.left + p.right;
    """)
    assert res.status == 'success', res.error_message
    assert res.output == "hello!\n3\n"


def test_import_output_runs_in_order(tmp_path):
    write_module(tmp_path, "noisy", 'print "loading";')
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run('print "start"; import noisy; print "end";')
    assert res.output == "start\nloading\nend\n"


def test_import_inside_function_defines_at_top_level(tmp_path):
    write_module(tmp_path, "lib", "shared = 5;")
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("function load() { import lib; return 0; } load(); print shared;")
    assert res.status == 'success', res.error_message
    assert res.output == "5\n"


def test_missing_module_is_a_fault(tmp_path):
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("import ghost;")
    assert res.status == 'error'
    assert res.error_kind == 'fault'
    assert "Module not found: ghost.mycs" in res.error_message
    assert res.error_line == 1


def test_circular_import_is_detected(tmp_path):
    write_module(tmp_path, "a", "import b;")
    write_module(tmp_path, "b", "import a;")
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("import a;")
    assert res.status == 'error'
    assert "Circular import: a -> b -> a" in res.error_message


def test_importing_twice_sequentially_is_allowed(tmp_path):
    write_module(tmp_path, "count", "hits = hits + 1;")
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("hits = 0; import count; import count; print hits;")
    assert res.output == "2\n"


def test_syntax_error_in_module_is_a_parse_error(tmp_path):
    write_module(tmp_path, "broken", "x = ;")
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("import broken;")
    assert res.status == 'error'
    assert res.error_kind == 'parse'


def test_exception_thrown_by_module_can_be_caught(tmp_path):
    write_module(tmp_path, "angry", 'throw "module failed";')
    runner = ScriptRunner(source_dir=str(tmp_path))
    res = runner.run("try { import angry; } catch (e) { print e; }")
    assert res.output == "module failed\n"


def test_run_file_resolves_imports_against_the_working_directory(tmp_path, monkeypatch):
    write_module(tmp_path, "Helper", "function twice(x) { return x * 2; }")
    (tmp_path / "lib").mkdir()
    main = write_module(tmp_path / "lib", "main", "import Helper; print twice(21);")
    monkeypatch.chdir(tmp_path)
    res = ScriptRunner().run_file(str(main))
    assert res.status == 'success', res.error_message
    assert res.output == "42\n"


def test_run_file_does_not_look_next_to_the_script(tmp_path, monkeypatch):
    (tmp_path / "lib").mkdir()
    write_module(tmp_path / "lib", "sibling", "x = 1;")
    main = write_module(tmp_path / "lib", "main", "import sibling;")
    monkeypatch.chdir(tmp_path)
    res = ScriptRunner().run_file(str(main))
    assert res.status == 'error'
    assert "Module not found: sibling.mycs" in res.error_message


def test_explicit_source_dir_overrides_the_working_directory(tmp_path, monkeypatch):
    (tmp_path / "mods").mkdir()
    write_module(tmp_path / "mods", "helpers", "function twice(x) { return x * 2; }")
    main = write_module(tmp_path, "main", "import helpers; print twice(4);")
    monkeypatch.chdir(tmp_path)
    res = ScriptRunner(source_dir=str(tmp_path / "mods")).run_file(str(main))
    assert res.output == "8\n"
