import argparse
import sys

from fsl.fsl_runtime import ScriptRunner

USAGE = "usage: fslengine <file1> <file2> ... <file_n>"

parser = argparse.ArgumentParser(
    prog="fslengine",
    description="Runs FSL script files in order against one shared environment.",
    epilog="Every argument is a script path, including ones starting with '-'. "
           "A leading '--' is skipped.",
)
parser.add_argument("files", nargs="*", help="script files (.json, or .yaml/.yml)")


def run_script_files(paths) -> int:
    """Run script files non-interactively and return the exit status."""
    runner = ScriptRunner()
    result = runner.run_files(paths)
    # Print side effects (from `print`)
    for message in result.output:
        print(message)
    if result.status == 'error':
        print(f"error: {result.format_error()}", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if args in (["-h"], ["--help"]):
        parser.print_help()
        return 0
    if args[:1] == ["--"]:
        args = args[1:]
    if not args:
        print(USAGE)
        return 0
    return run_script_files(args)


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
