"""Sandbox entry point.

    python -m react_agent.sandbox.runner LIBRARY_FILE CODE_FILE

Runs the generated tool library, then the user code in the same namespace so the
wrapper functions are in scope.
"""

import runpy
import sys

USAGE = "usage: python -m react_agent.sandbox.runner LIBRARY_FILE CODE_FILE"


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print(USAGE, file=sys.stderr)
        return 2

    library_path, code_path = args
    namespace = runpy.run_path(library_path, run_name="tool_library")
    runpy.run_path(code_path, init_globals=namespace, run_name="__main__")
    return 0


if __name__ == "__main__":
    sys.exit(main())
