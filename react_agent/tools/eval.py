"""Sandboxed Python evaluation with access to the agent's tools.

The generated code runs in a child interpreter. A ToolServer bound to an ephemeral
port lets it call the other tools; the port reaches the child through the
TOOL_SERVER_PORT environment variable.
"""

import keyword
import os
import signal
import subprocess
import sys
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

import react_agent
from react_agent.models.agent import ExecutionContext
from react_agent.sandbox.client import TOOL_SERVER_PORT_ENV
from react_agent.tools.base import NoArguments, Tool, ToolBase
from react_agent.tools.server import ToolServer, is_eval_related
from react_agent.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
DRAIN_TIMEOUT_SECONDS = 5.0
TIMEOUT_EXIT_CODE = -1
LAUNCH_FAILURE_EXIT_CODE = 127
NO_OUTPUT = "(no output)"
RUNNER_MODULE = "react_agent.sandbox.runner"

_PYTHON_TYPES = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "array": "list",
    "object": "dict",
}

LIBRARY_HEADER = '''"""Tool library for the eval sandbox.

Each function calls the agent tool of the same name and returns its decoded JSON
result as a dict. Failures raise ToolCallError.
"""

from typing import Any

from react_agent.sandbox.client import ToolCallError, call_tool
'''


def generate_tool_library(tools: Iterable[ToolBase]) -> str:
    """Generate Python source with one wrapper function per tool."""
    wrappers = [_wrapper_source(tool) for tool in tools if not is_eval_related(tool)]
    return "\n\n".join([LIBRARY_HEADER, *wrappers])


def _identifier(name: str) -> str:
    cleaned = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    if keyword.iskeyword(cleaned):
        cleaned = f"{cleaned}_"
    return cleaned


def _annotation(prop: dict[str, Any]) -> str:
    return _PYTHON_TYPES.get(prop.get("type", ""), "Any")


def _docstring(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return '"""' + escaped.replace("\n", "\n    ") + '"""'


def _wrapper_source(tool: ToolBase) -> str:
    schema = tool.schema()
    properties: dict[str, Any] = schema.get("properties", {})
    required = set(schema.get("required", []))

    ordered = [name for name in properties if name in required] + [
        name for name in properties if name not in required
    ]

    params = []
    for name in ordered:
        annotation = _annotation(properties[name])
        if name in required:
            params.append(f"{_identifier(name)}: {annotation}")
        else:
            params.append(f"{_identifier(name)}: {annotation} | None = None")

    arguments = ", ".join(f"{name!r}: {_identifier(name)}" for name in ordered)

    lines = [
        f"def {_identifier(tool.name)}({', '.join(params)}) -> dict:",
        f"    {_docstring(tool.description)}",
        f"    arguments = {{{arguments}}}",
        f"    return call_tool({tool.name!r}, {{k: v for k, v in arguments.items() if v is not None}})",
    ]
    return "\n".join(lines) + "\n"


class GetToolLibraryOutput(BaseModel):
    library: str


class GetToolLibraryTool(Tool[NoArguments, GetToolLibraryOutput]):
    name = "get_tool_library"
    description = (
        "Returns the generated Python code for the tool library. "
        "Use this to see which wrapper functions are available when writing code for the eval tool."
    )

    def __init__(self, available_tools: Iterable[ToolBase]):
        self.available_tools = [tool for tool in available_tools if not is_eval_related(tool)]

    def invoke(self, input: NoArguments, context: ExecutionContext) -> GetToolLibraryOutput:
        return GetToolLibraryOutput(library=generate_tool_library(self.available_tools))


class EvalInput(BaseModel):
    code: str = Field(description="Python code to run. It may call the tool library functions.")


class EvalOutput(BaseModel):
    output: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class EvalTool(Tool[EvalInput, EvalOutput]):
    """Runs Python snippets in a child process that can call the other tools.

    Launch failures, non-zero exits and timeouts are reported through the
    output and exit code; they never raise.
    """

    name = "eval"
    description = (
        "Evaluates a Python 3 code snippet in a separate process.\n"
        "Print the final result to capture it as output.\n"
        "\n"
        'Use the "get_tool_library" tool first to see the available tool functions and their signatures.\n'
        'Example: result = calculator(operation="add", a=5, b=3)\n'
        '         print(result["result"])'
    )

    def __init__(
        self,
        available_tools: Iterable[ToolBase],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        work_dir: str | Path | None = None,
    ):
        self.available_tools = [tool for tool in available_tools if not is_eval_related(tool)]
        self.timeout = timeout
        self.work_dir = work_dir
        # Sandboxed tools share the agent's state, so their keys must be loaded too
        self.state_keys = tuple({id(key): key for tool in self.available_tools for key in tool.state_keys}.values())

    def invoke(self, input: EvalInput, context: ExecutionContext) -> EvalOutput:
        library = generate_tool_library(self.available_tools)

        with tempfile.TemporaryDirectory(prefix="eval-", dir=self.work_dir) as tmp:
            library_path = Path(tmp) / "tool_library.py"
            code_path = Path(tmp) / "snippet.py"
            library_path.write_text(library, encoding="utf-8")
            code_path.write_text(input.code, encoding="utf-8")

            with ToolServer(self.available_tools, context) as server:
                return self._run(server.port, library_path, code_path)

    def _run(self, port: int, library_path: Path, code_path: Path) -> EvalOutput:
        command = [sys.executable, "-m", RUNNER_MODULE, str(library_path), str(code_path)]
        env = _child_environment(port)

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=env,
                cwd=library_path.parent,
                start_new_session=True,
            )
        except OSError as e:
            logger.error(f"Failed to start sandbox: {e}")
            return EvalOutput(output=f"Failed to start sandbox: {e}", exit_code=LAUNCH_FAILURE_EXIT_CODE)

        timed_out = False
        with process:
            try:
                stdout, stderr = process.communicate(timeout=self.timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"Sandbox timed out after {self.timeout:g} seconds, killing pid {process.pid}")
                _kill_process_group(process)
                timed_out = True
                try:
                    stdout, stderr = process.communicate(timeout=DRAIN_TIMEOUT_SECONDS)
                except subprocess.TimeoutExpired:
                    logger.warning(f"Sandbox output still open after kill, discarding it (pid {process.pid})")
                    process.kill()
                    stdout, stderr = "", ""

        output = (stdout if stdout.strip() else stderr).rstrip()
        if timed_out:
            notice = f"Process timed out after {self.timeout:g} seconds"
            output = f"{output}\n{notice}" if output else notice
            return EvalOutput(output=output, exit_code=TIMEOUT_EXIT_CODE)

        logger.debug(f"Sandbox exited with code {process.returncode}")
        return EvalOutput(output=output or NO_OUTPUT, exit_code=process.returncode)


def _kill_process_group(process: subprocess.Popen) -> None:
    """Kill the sandbox and everything it started; they share its session."""
    if not hasattr(os, "killpg"):
        process.kill()
        return

    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        logger.debug(f"Sandbox process group {process.pid} already exited")


def _child_environment(port: int) -> dict[str, str]:
    env = dict(os.environ)
    env[TOOL_SERVER_PORT_ENV] = str(port)

    # The child must import react_agent.sandbox even when running from a checkout
    package_root = str(Path(react_agent.__file__).resolve().parent.parent)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = os.pathsep.join([package_root, existing]) if existing else package_root
    return env
