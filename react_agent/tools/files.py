"""File and directory tools."""

from pathlib import Path

from pydantic import BaseModel, Field

from react_agent.models.agent import ExecutionContext
from react_agent.tools.base import Tool, ToolBase


def _resolve(path: str) -> Path:
    return Path(path).expanduser().resolve()


class ListDirectoryInput(BaseModel):
    path: str = Field(description="The path of the directory to list")
    show_hidden: bool = Field(default=False, description="Whether to include hidden files")
    recursive: bool = Field(default=False, description="Whether to list recursively")


class DirectoryEntry(BaseModel):
    name: str
    path: str
    is_directory: bool
    size: int


class ListDirectoryOutput(BaseModel):
    path: str
    entries: list[DirectoryEntry]
    count: int


class ListDirectoryTool(Tool[ListDirectoryInput, ListDirectoryOutput]):
    name = "list_directory"
    description = (
        "List the contents of a directory. Similar to 'ls' command. Can show hidden files and list recursively."
    )

    def invoke(self, input: ListDirectoryInput, context: ExecutionContext) -> ListDirectoryOutput:
        directory = _resolve(input.path)
        if not directory.exists():
            raise FileNotFoundError(f"Path does not exist: {directory}")
        if not directory.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {directory}")

        children = directory.rglob("*") if input.recursive else directory.iterdir()
        entries = [
            DirectoryEntry(
                name=child.name,
                path=str(child),
                is_directory=child.is_dir(),
                size=0 if child.is_dir() else child.stat().st_size,
            )
            for child in children
            if input.show_hidden or not child.name.startswith(".")
        ]
        # Directories first, then alphabetical
        entries.sort(key=lambda entry: (not entry.is_directory, entry.name.lower()))

        return ListDirectoryOutput(path=str(directory), entries=entries, count=len(entries))


class ReadFileInput(BaseModel):
    path: str = Field(description="The path of the file to read")
    max_lines: int | None = Field(default=None, description="Maximum number of lines to read, all if not given")
    start_line: int = Field(default=1, description="Line number to start reading from (1-indexed)")


class ReadFileOutput(BaseModel):
    path: str
    content: str
    total_lines: int
    lines_read: int


class ReadFileTool(Tool[ReadFileInput, ReadFileOutput]):
    name = "read_file"
    description = "Read the contents of a file. Can read specific line ranges using start_line and max_lines parameters."

    def invoke(self, input: ReadFileInput, context: ExecutionContext) -> ReadFileOutput:
        file_path = _resolve(input.path)
        if not file_path.exists():
            raise FileNotFoundError(f"File does not exist: {file_path}")
        if file_path.is_dir():
            raise IsADirectoryError(f"Path is a directory, not a file: {file_path}")

        lines = file_path.read_text(encoding="utf-8").splitlines()
        start = max(0, input.start_line - 1)
        end = start + input.max_lines if input.max_lines is not None else None
        selected = lines[start:end]

        return ReadFileOutput(
            path=str(file_path),
            content="\n".join(selected),
            total_lines=len(lines),
            lines_read=len(selected),
        )


class FileExistsInput(BaseModel):
    path: str = Field(description="The path to check")


class FileExistsOutput(BaseModel):
    path: str
    exists: bool
    is_file: bool
    is_directory: bool
    size: int


class FileExistsTool(Tool[FileExistsInput, FileExistsOutput]):
    name = "file_exists"
    description = (
        "Check if a file or directory exists at the specified path. "
        "Returns information about the path type and size."
    )

    def invoke(self, input: FileExistsInput, context: ExecutionContext) -> FileExistsOutput:
        target = _resolve(input.path)
        is_file = target.is_file()

        return FileExistsOutput(
            path=str(target),
            exists=target.exists(),
            is_file=is_file,
            is_directory=target.is_dir(),
            size=target.stat().st_size if is_file else 0,
        )


class WriteFileInput(BaseModel):
    path: str = Field(description="The path of the file to write")
    content: str = Field(description="The content to write")


class WriteFileOutput(BaseModel):
    path: str
    bytes_written: int
    message: str


class WriteFileTool(Tool[WriteFileInput, WriteFileOutput]):
    name = "write_file"
    description = "Write content to a file, overwriting any existing content. Creates the file if it doesn't exist."

    def invoke(self, input: WriteFileInput, context: ExecutionContext) -> WriteFileOutput:
        file_path = _resolve(input.path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        data = input.content.encode("utf-8")
        file_path.write_bytes(data)

        return WriteFileOutput(path=str(file_path), bytes_written=len(data), message="File written successfully")


def file_tools(read_only: bool = False) -> list[ToolBase]:
    """Create the file tool set; `read_only` leaves out `write_file`."""
    tools: list[ToolBase] = [ListDirectoryTool(), ReadFileTool(), FileExistsTool()]
    if not read_only:
        tools.append(WriteFileTool())
    return tools
