# debug_trace.py — v1.0.0
# Optional diagnostic sink for one lookup/calculation.
# Callers create one only when debug output is requested and pass it down;
# lookups append to it and never read it back.

from __future__ import annotations
import copy
from typing import Any, Dict, Iterable, List


class DebugTrace:
    """
    Append-only record of a single lookup:
      - steps: human-readable lines, in the order they were produced
      - snapshot: structured values (inputs, clamped inputs, axis bounds,
        corner values, corrections)
    """

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._steps: List[str] = []
        self._snapshot: Dict[str, Any] = {"corner_values": {}}

    def step(self, line: str) -> None:
        self._steps.append(str(line))

    def extend(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.step(line)

    def record(self, key: str, value: Any) -> None:
        self._snapshot[key] = value

    def corner(self, key: str, value: float) -> None:
        self._snapshot["corner_values"][key] = float(value)

    @property
    def steps(self) -> List[str]:
        return list(self._steps)

    @property
    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._snapshot)

    def to_dict(self) -> Dict[str, Any]:
        out = self.snapshot
        out["label"] = self.label
        out["steps"] = self.steps
        return out
