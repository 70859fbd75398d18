import argparse
import sys
from pathlib import Path

from mycs.mycs_interpreter import EXTENSION
from mycs.mycs_runtime import ScriptRunner
from mycs.mycs_serialize import class_graph, serialize


def run_script_file(file_path: str, dump_classes: str | None = None) -> int:
    """Run a MYCS script file non-interactively and return the exit status."""
    p = Path(file_path)
    if p.suffix != EXTENSION or not p.is_file():
        print(f"Error: {file_path} does not exist or does not end in {EXTENSION}", file=sys.stderr)
        return 1
    # Output streams straight to the terminal so input() prompts appear in order.
    runner = ScriptRunner(stdout=sys.stdout, stdin=sys.stdin)
    result = runner.run_file(str(p))
    if dump_classes:
        print(serialize(class_graph(runner.context.classes), fmt=dump_classes))
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return 1
    return 0


def repl() -> int:
    print("MYCS REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")
    runner = ScriptRunner(stdout=sys.stdout, stdin=sys.stdin)
    while True:
        try:
            line = input(">> ").strip()
        except EOFError:
            print("\nExiting.")
            return 0
        if not line:
            continue
        if line == "exit":
            return 0
        result = runner.run(line)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)


def main(argv=None) -> int:
    """Run a script file when provided, otherwise start the interactive REPL."""
    parser = argparse.ArgumentParser(prog="mycs", description="Run MYCS scripts.")
    parser.add_argument("file", nargs="?", help=f"script to run (must end in {EXTENSION})")
    parser.add_argument("--dump-classes", choices=("json", "yaml"),
                        help="print the class graph after the script finishes")
    args = parser.parse_args(argv)
    if args.file:
        return run_script_file(args.file, args.dump_classes)
    return repl()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
