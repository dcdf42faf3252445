"""
Loader state chart as a standard XState machine (xstate-python).

States: idle -> loading_initial -> initial_ready -> fully_loaded, plus failed.
The JSON lives next to this module so it can be opened in Stately Studio.
"""

import functools
import json
from pathlib import Path

from xstate.machine import Machine

IDLE = "idle"
LOADING_INITIAL = "loading_initial"
INITIAL_READY = "initial_ready"
FULLY_LOADED = "fully_loaded"
FAILED = "failed"


def get_machine_path() -> Path:
    return Path(__file__).resolve().parent / "loader_machine.json"


def load_machine(path: Path | None = None) -> dict:
    """Read and check the machine JSON. Raises ValueError for unknown states."""
    if path is None:
        path = get_machine_path()
    config = json.loads(path.read_text(encoding="utf-8"))
    if "initial" not in config or "states" not in config:
        raise ValueError("Machine must have 'initial' and 'states'")
    states = config["states"]
    if config["initial"] not in states:
        raise ValueError(f"initial state '{config['initial']}' is not defined")
    for name, node in states.items():
        for event, target in (node.get("on") or {}).items():
            if target not in states:
                raise ValueError(f"{name} --{event}--> '{target}' is not a defined state")
    return config


class LoadStateChart:
    """A checked machine config plus its xstate Machine."""

    def __init__(self, config: dict) -> None:
        self.config = config
        self._machine = Machine(config)

    @property
    def initial(self) -> str:
        return self.config["initial"]

    def accepts(self, state_value: str, event: str) -> bool:
        node = self.config["states"].get(state_value) or {}
        return event in (node.get("on") or {})

    def next_state(self, state_value: str, event: str) -> str | None:
        """Target of event in state_value, or None when the state does not take the event."""
        if not self.accepts(state_value, event):
            return None
        state = self._machine.state_from(state_value)
        return self._machine.transition(state, event).value


@functools.lru_cache(maxsize=None)
def _state_chart(path: Path) -> LoadStateChart:
    return LoadStateChart(load_machine(path))


def get_state_chart(path: Path | None = None) -> LoadStateChart:
    """Shared chart for a machine file (the bundled one by default)."""
    return _state_chart((path or get_machine_path()).resolve())
