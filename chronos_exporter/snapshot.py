"""Typed read access to a decoded metrics snapshot."""
from typing import Any, Dict, Tuple

from chronos_exporter.errors import SnapshotValueError

_MISSING = object()


class SnapshotNode:
    """
    A node in a decoded JSON snapshot.

    Navigation never fails: missing keys produce a node whose ``exists`` is
    False. Reading a leaf with ``number()`` or ``string()`` raises
    SnapshotValueError when the value is missing, of another type, or (for
    numbers) outside the float range.
    """

    def __init__(self, data: Any = _MISSING, path: Tuple[str, ...] = ()):
        self.data = data
        self.path = path

    @property
    def exists(self) -> bool:
        return self.data is not _MISSING

    @property
    def path_str(self) -> str:
        return ".".join(self.path) or "<root>"

    def child(self, key: str) -> "SnapshotNode":
        if isinstance(self.data, dict) and key in self.data:
            return SnapshotNode(self.data[key], self.path + (key,))
        return SnapshotNode(_MISSING, self.path + (key,))

    def children(self) -> Dict[str, "SnapshotNode"]:
        """Child nodes by key, in document order; empty for non-objects."""
        if not isinstance(self.data, dict):
            return {}
        return {
            key: SnapshotNode(value, self.path + (key,))
            for key, value in self.data.items()
        }

    @property
    def is_number(self) -> bool:
        # bool is an int subclass but JSON true/false are not numbers
        return isinstance(self.data, (int, float)) and not isinstance(self.data, bool)

    def number(self) -> float:
        if not self.is_number:
            raise SnapshotValueError(self.path_str, "number", self._value_for_error(), key=self._key)
        try:
            return float(self.data)
        except OverflowError as e:
            # JSON integers are unbounded; floats are not
            raise SnapshotValueError(self.path_str, "number", self.data, key=self._key) from e

    def string(self) -> str:
        if isinstance(self.data, str):
            return self.data
        raise SnapshotValueError(self.path_str, "string", self._value_for_error(), key=self._key)

    @property
    def _key(self):
        return self.path[-1] if self.path else None

    def _value_for_error(self):
        return None if self.data is _MISSING else self.data

    def __contains__(self, key: str) -> bool:
        return isinstance(self.data, dict) and key in self.data

    def __repr__(self) -> str:
        return f"SnapshotNode(path={self.path_str!r})"
