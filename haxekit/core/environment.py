"""
Process environment wiring for haxekit.

RunnerEnvironment applies search-path entries, exported variables and step
outputs to the current process and, when running under a CI runner that
exposes file commands (GITHUB_PATH, GITHUB_ENV, GITHUB_OUTPUT), appends them
to those files so later steps of the job see them too.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, MutableMapping, Optional

logger = logging.getLogger(__name__)


class RunnerEnvironment:
    """
    Applies environment changes to this process and to runner file commands.

    Attributes:
        environ: Mapping updated in place (default: os.environ)
        outputs: Step outputs set during this invocation

    Example:
        >>> env = RunnerEnvironment()
        >>> env.add_path("/opt/neko")
        >>> env.export_variable("NEKOPATH", "/opt/neko")
        >>> env.set_output("cache-hit", "false")
    """

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.outputs: Dict[str, str] = {}

    def _command_file(self, name: str) -> Optional[Path]:
        value = self.environ.get(name)
        return Path(value) if value else None

    @staticmethod
    def _append(file_path: Path, text: str) -> None:
        with open(file_path, "a", encoding="utf-8") as f:
            f.write(text)

    @staticmethod
    def _key_value_block(name: str, value: str) -> str:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in name or delimiter in value:
            raise ValueError("Unexpected input: value contains the delimiter")
        return f"{name}<<{delimiter}{os.linesep}{value}{os.linesep}{delimiter}{os.linesep}"

    def add_path(self, path) -> None:
        """Prepend a directory to the executable search path."""
        path = str(path)
        command_file = self._command_file("GITHUB_PATH")
        if command_file:
            self._append(command_file, f"{path}{os.linesep}")

        current = self.environ.get("PATH", "")
        self.environ["PATH"] = f"{path}{os.pathsep}{current}" if current else path
        logger.debug(f"Added to PATH: {path}")

    def export_variable(self, name: str, value) -> None:
        """Export an environment variable to this process and later steps."""
        value = str(value)
        command_file = self._command_file("GITHUB_ENV")
        if command_file:
            self._append(command_file, self._key_value_block(name, value))

        self.environ[name] = value
        logger.debug(f"Exported {name}={value}")

    def prepend_variable(self, name: str, value, separator: str = os.pathsep) -> str:
        """
        Export a path-list variable with value placed in front of its current value.

        Returns:
            The exported value
        """
        value = str(value)
        current = self.environ.get(name, "")
        combined = f"{value}{separator}{current}" if current else value
        self.export_variable(name, combined)
        return combined

    def set_output(self, name: str, value) -> None:
        """Set a step output (booleans are rendered as 'true'/'false')."""
        if isinstance(value, bool):
            value = "true" if value else "false"
        value = str(value)

        self.outputs[name] = value
        command_file = self._command_file("GITHUB_OUTPUT")
        if command_file:
            self._append(command_file, self._key_value_block(name, value))
        logger.info(f"Output {name}={value}")


__all__ = ["RunnerEnvironment"]
