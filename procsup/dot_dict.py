"""
Dictionary-like object with attribute access and dotted-path lookup.

    cfg = DotDict(supervisor={"tick_ms": 100})
    cfg.supervisor.tick_ms       # 100
    cfg.get("supervisor.tick_ms")  # 100
"""

from typing import Any


class DotDictPathNotFoundError(KeyError):
    """Raised when a dotted path does not resolve."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"path not found: {path}")


class DotDict:
    """
    Dictionary-like object with attribute-style access and nested structure support.

    Nested dicts (also inside lists) are converted to DotDict on assignment.
    """

    _RESERVED_KEYS = frozenset({"set", "clear", "dict", "get", "has"})

    def __init__(self, **kwargs: Any) -> None:
        object.__setattr__(self, "_data", {})
        self.set(**kwargs)

    def set(self, **kwargs: Any) -> "DotDict":
        """Set multiple key-value pairs; returns self for chaining."""
        for key, val in kwargs.items():
            key = str(key)
            if key in self._RESERVED_KEYS:
                raise ValueError(
                    f"Key '{key}' is reserved and cannot be used (would shadow method)"
                )
            self._data[key] = self._wrap(val)
        return self

    @classmethod
    def _wrap(cls, val: Any) -> Any:
        if isinstance(val, dict):
            return DotDict(**{str(k): v for k, v in val.items()})
        if isinstance(val, list):
            return [cls._wrap(v) for v in val]
        return val

    @classmethod
    def _unwrap(cls, val: Any) -> Any:
        if isinstance(val, DotDict):
            return val.dict()
        if isinstance(val, list):
            return [cls._unwrap(v) for v in val]
        return val

    def clear(self) -> None:
        self._data.clear()

    def dict(self) -> dict[str, Any]:
        """Recursively convert to plain dicts and lists."""
        return {key: self._unwrap(val) for key, val in self._data.items()}

    def _resolve(self, path: str) -> Any:
        current: Any = self
        for part in path.split("."):
            if not isinstance(current, DotDict) or part not in current._data:
                raise DotDictPathNotFoundError(path)
            current = current._data[part]
        return current

    def has(self, path: str) -> bool:
        """Check whether a dotted path resolves."""
        try:
            self._resolve(path)
        except DotDictPathNotFoundError:
            return False
        return True

    def get(self, path: str, default: Any = None) -> Any:
        """Get the value at a dotted path, or default."""
        try:
            return self._resolve(path)
        except DotDictPathNotFoundError:
            return default

    def __getattr__(self, name: str) -> Any:
        data = object.__getattribute__(self, "_data")
        if name in data:
            return data[name]
        raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Any:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DotDict):
            return self.dict() == other.dict()
        if isinstance(other, dict):
            return self.dict() == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.dict()!r})"
