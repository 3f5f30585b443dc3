"""Durable file-backed memory the agent uses to carry learnings between games."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from boardpilot.util.logging import get_logger

logger = get_logger(__name__)

EMPTY_MEMORY = "Memory directory is empty. No game learnings stored yet."


class ViewCommand(BaseModel):
    command: Literal["view"] = "view"
    path: str | None = None


class CreateCommand(BaseModel):
    command: Literal["create"] = "create"
    path: str
    file_text: str | None = None


class StrReplaceCommand(BaseModel):
    command: Literal["str_replace"] = "str_replace"
    path: str
    old_str: str
    new_str: str | None = None


class InsertCommand(BaseModel):
    command: Literal["insert"] = "insert"
    path: str
    insert_line: int = 0
    insert_text: str | None = None


class RenameCommand(BaseModel):
    command: Literal["rename"] = "rename"
    old_path: str
    new_path: str


class DeleteCommand(BaseModel):
    command: Literal["delete"] = "delete"
    path: str


MemoryCommand = Annotated[
    Union[
        ViewCommand,
        CreateCommand,
        StrReplaceCommand,
        InsertCommand,
        RenameCommand,
        DeleteCommand,
    ],
    Field(discriminator="command"),
]

_COMMAND_ADAPTER: TypeAdapter[MemoryCommand] = TypeAdapter(MemoryCommand)
COMMAND_NAMES = ("view", "create", "str_replace", "insert", "rename", "delete")


class MemoryStore:
    """Root-jailed file namespace.

    Every agent-caused failure is returned as a descriptive string so the
    agent can correct its next command; nothing here raises for bad input.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def run(self, payload: dict[str, Any]) -> str:
        """Parse a raw command payload and execute it."""
        name = payload.get("command")
        if name not in COMMAND_NAMES:
            logger.warning("Unknown memory command: %s", name)
            return f"Unknown memory command: {name}"
        try:
            command = _COMMAND_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            missing = sorted(
                str(error["loc"][-1]) for error in exc.errors() if error["type"] == "missing"
            )
            if missing:
                return f"Error: {', '.join(missing)} required for {name} command"
            return f"Error: Invalid arguments for {name} command: {exc.errors()[0]['msg']}"
        return self.execute(command)

    def execute(self, command: MemoryCommand) -> str:
        try:
            self.ensure_root()
            return self._dispatch(command)
        except OSError as exc:
            logger.warning("Memory command %s failed: %s", command.command, exc)
            return f"Error: {exc.strerror or exc}"
        except ValueError as exc:
            logger.warning("Memory command %s failed: %s", command.command, exc)
            return f"Error: {exc}"

    def _dispatch(self, command: MemoryCommand) -> str:
        if isinstance(command, ViewCommand):
            return self._view(command)
        if isinstance(command, CreateCommand):
            return self._create(command)
        if isinstance(command, StrReplaceCommand):
            return self._str_replace(command)
        if isinstance(command, InsertCommand):
            return self._insert(command)
        if isinstance(command, RenameCommand):
            return self._rename(command)
        if isinstance(command, DeleteCommand):
            return self._delete(command)
        logger.warning("Unhandled memory command: %r", command)
        return f"Unknown memory command: {getattr(command, 'command', command)}"

    def resolve(self, path: str) -> Path | None:
        """Map an agent path onto the root; None when it would leave the root."""
        clean = path[1:] if path.startswith("/") else path
        target = (self.root / clean).resolve()
        if target != self.root and self.root not in target.parents:
            return None
        return target

    def list_files(self, directory: Path) -> list[str]:
        files: list[str] = []
        if not directory.is_dir():
            return files
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            if entry.is_dir():
                files.extend(self.list_files(entry))
            else:
                files.append("/" + entry.relative_to(self.root).as_posix())
        return files

    def _view(self, command: ViewCommand) -> str:
        if not command.path or command.path == "/":
            files = self.list_files(self.root)
            if not files:
                return EMPTY_MEMORY
            return "Memory files:\n" + "\n".join(files)
        target = self.resolve(command.path)
        if target is None:
            return _escape_error(command.path)
        if target.is_dir():
            files = self.list_files(target)
            if not files:
                return f"Directory {command.path} is empty."
            return f"Contents of {command.path}:\n" + "\n".join(files)
        if target.is_file():
            return _read(target)
        return f"Error: File not found: {command.path}"

    def _create(self, command: CreateCommand) -> str:
        target = self.resolve(command.path)
        if target is None:
            return _escape_error(command.path)
        if target == self.root or target.is_dir():
            return f"Error: Path is a directory: {command.path}"
        if any(parent.is_file() for parent in target.parents):
            return f"Error: A parent of {command.path} is a file"
        target.parent.mkdir(parents=True, exist_ok=True)
        _write(target, command.file_text or "")
        logger.info("Memory: created %s", command.path)
        return f"Successfully created file: {command.path}"

    def _str_replace(self, command: StrReplaceCommand) -> str:
        target = self.resolve(command.path)
        if target is None:
            return _escape_error(command.path)
        if not target.is_file():
            return f"Error: File not found: {command.path}"
        if not command.old_str:
            return "Error: old_str must not be empty"
        content = _read(target)
        if command.old_str not in content:
            return f'Error: String not found in file: "{command.old_str}"'
        _write(target, content.replace(command.old_str, command.new_str or "", 1))
        logger.info("Memory: updated %s", command.path)
        return f"Successfully replaced text in: {command.path}"

    def _insert(self, command: InsertCommand) -> str:
        target = self.resolve(command.path)
        if target is None:
            return _escape_error(command.path)
        if not target.is_file():
            return f"Error: File not found: {command.path}"
        lines = _read(target).split("\n")
        if command.insert_line < 0 or command.insert_line > len(lines):
            return (
                f"Error: Invalid line number: {command.insert_line} "
                f"(file has {len(lines)} lines)"
            )
        lines.insert(command.insert_line, command.insert_text or "")
        _write(target, "\n".join(lines))
        logger.info("Memory: inserted into %s at line %s", command.path, command.insert_line)
        return f"Successfully inserted text at line {command.insert_line} in: {command.path}"

    def _rename(self, command: RenameCommand) -> str:
        source = self.resolve(command.old_path)
        if source is None:
            return _escape_error(command.old_path)
        destination = self.resolve(command.new_path)
        if destination is None:
            return _escape_error(command.new_path)
        if source == self.root:
            return "Error: Cannot rename the memory root"
        if not source.exists():
            return f"Error: File not found: {command.old_path}"
        if destination == source or source in destination.parents:
            return f"Error: Cannot move {command.old_path} into itself"
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))
        logger.info("Memory: renamed %s to %s", command.old_path, command.new_path)
        return f"Successfully renamed {command.old_path} to {command.new_path}"

    def _delete(self, command: DeleteCommand) -> str:
        target = self.resolve(command.path)
        if target is None:
            return _escape_error(command.path)
        if target == self.root:
            return "Error: Cannot delete the memory root"
        if not target.exists():
            return f"Error: File not found: {command.path}"
        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink()
        logger.info("Memory: deleted %s", command.path)
        return f"Successfully deleted: {command.path}"


def _escape_error(path: str) -> str:
    return f"Error: Path escapes the memory directory: {path}"


def _read(target: Path) -> str:
    # bytes round-trip keeps \r\n and lone \r exactly as written
    return target.read_bytes().decode("utf-8")


def _write(target: Path, text: str) -> None:
    target.write_bytes(text.encode("utf-8"))
