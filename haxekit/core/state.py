"""
Cross-step state persistence for haxekit.

The setup step and the post step run as two separate processes. Values the
post step needs are written by the setup step into a small JSON document
(`.haxekit/state.json` by default) and read back later.

Example:
    >>> from haxekit.core.state import StepState
    >>>
    >>> state = StepState(Path('.haxekit/state.json'))
    >>> state.save_state('PRIMARY_KEY', 'haxelib-cache-linux64-haxe4.0.5-abc')
    >>>
    >>> # ... later, in another process
    >>> StepState(Path('.haxekit/state.json')).get_state('PRIMARY_KEY')
    'haxelib-cache-linux64-haxe4.0.5-abc'
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from haxekit.core.directory import get_state_file
from haxekit.core.exceptions import StateError
from haxekit.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StepState:
    """
    Key/value store persisted between the setup and post steps.

    Every write goes straight to disk so a crash later in the setup step
    never loses values already saved.

    Attributes:
        state_file: Path to the JSON document
    """

    def __init__(self, state_file: Optional[Path] = None):
        self.state_file = Path(state_file) if state_file else get_state_file()

    def _load(self) -> Dict[str, str]:
        if not self.state_file.exists():
            return {}

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StateError(f"Failed to read state file {self.state_file}: {e}") from e

        if data.get("version") != STATE_VERSION or not isinstance(
            data.get("values"), dict
        ):
            raise StateError(f"Unsupported state file format: {self.state_file}")

        return data["values"]

    def _save(self, values: Dict[str, str]) -> None:
        content = json.dumps({"version": STATE_VERSION, "values": values}, indent=2)
        try:
            atomic_write(self.state_file, content)
        except OSError as e:
            raise StateError(f"Failed to write state file {self.state_file}: {e}") from e

    def save_state(self, name: str, value) -> None:
        """Persist a value under name, replacing any previous value."""
        values = self._load()
        values[name] = str(value)
        self._save(values)
        logger.debug(f"Saved state {name}")

    def get_state(self, name: str) -> str:
        """
        Read a persisted value.

        Returns:
            The stored value, or an empty string if it was never saved
        """
        return self._load().get(name, "")

    def clear(self) -> None:
        """Discard all persisted values."""
        if self.state_file.exists():
            self.state_file.unlink()
            logger.debug(f"Removed state file {self.state_file}")


__all__ = ["StepState", "STATE_VERSION"]
