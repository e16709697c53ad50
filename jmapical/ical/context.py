"""Per-call conversion state: mode, property paths and invalid properties."""

import logging
from contextlib import contextmanager
from enum import IntEnum, IntFlag
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from ..config.settings import ConverterSettings, get_settings
from .models import EventProperty

logger = logging.getLogger(__name__)


class Mode(IntFlag):
    """Direction and flavour of a conversion."""

    READ = 0
    WRITE = 1
    UPDATE = 2
    EXCEPTION = 256


class PropStatus(IntEnum):
    """Outcome of reading a property from a JSON object."""

    INVALID = -1
    MISSING = 0
    FOUND = 1


PropertyName = Union[str, EventProperty]


def encode_pointer(token: str) -> str:
    """Escape a JSON pointer reference token."""
    return token.replace("~", "~0").replace("/", "~1")


def decode_pointer(token: str) -> str:
    """Unescape a JSON pointer reference token."""
    return token.replace("~1", "/").replace("~0", "~")


def _name(prop: PropertyName) -> str:
    return prop.value if isinstance(prop, EventProperty) else str(prop)


def _has_kind(value: Any, kind: Optional[type]) -> bool:
    if kind is None:
        return True
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


class ConversionContext:
    """Mutable state for one conversion call.

    Tracks the property path of the sub-object currently being converted so
    that invalid properties are reported with their full path, e.g.
    ``participants/p1/email``. Nested contexts created with :meth:`nested`
    share the invalid property sink of their parent and prefix their paths
    with the parent's current path.
    """

    def __init__(
        self,
        mode: Mode = Mode.READ,
        wanted: Optional[Iterable[PropertyName]] = None,
        settings: Optional[ConverterSettings] = None,
        calendar: Any = None,
        _sink: Optional[List[str]] = None,
        _prefix: Optional[List[str]] = None,
    ) -> None:
        self.mode = mode
        self.wanted = frozenset(_name(p) for p in wanted) if wanted is not None else None
        self.settings = settings or get_settings()
        self.calendar = calendar
        self.master: Any = None
        self.uid: Optional[str] = None

        # Timing scratch shared by the property converters
        self.tzid_start: Optional[str] = None
        self.is_allday = False
        self.tzstart_old: Any = None
        self.tzstart: Any = None
        self.tzend_old: Any = None
        self.tzend: Any = None

        self._invalid: List[str] = _sink if _sink is not None else []
        self._baseline = len(self._invalid)
        self._path: List[str] = list(_prefix or [])

    @property
    def is_write(self) -> bool:
        return bool(self.mode & Mode.WRITE)

    @property
    def is_update(self) -> bool:
        return bool(self.mode & Mode.UPDATE)

    @property
    def is_create(self) -> bool:
        return self.is_write and not self.is_update

    @property
    def is_exception(self) -> bool:
        return bool(self.mode & Mode.EXCEPTION) or self.master is not None

    @property
    def invalid_properties(self) -> List[str]:
        """All invalid property paths collected so far, including nested ones."""
        return list(self._invalid)

    def nested(self, mode: Optional[Mode] = None, master: Any = None) -> "ConversionContext":
        """Create a context for a per-exception conversion.

        Args:
            mode: Mode of the nested conversion, defaults to this context's mode
            master: Master component the exception belongs to

        Returns:
            Context reporting into this context's invalid property sink
        """
        child = ConversionContext(
            mode=self.mode if mode is None else mode,
            wanted=self.wanted,
            settings=self.settings,
            calendar=self.calendar,
            _sink=self._invalid,
            _prefix=self._path,
        )
        child.master = master
        child.uid = self.uid
        return child

    def has_invalid(self) -> bool:
        """Return True if this context collected any invalid property."""
        return len(self._invalid) > self._baseline

    def path(self, name: Optional[str] = None) -> str:
        """Render the current property path, optionally extended by name."""
        parts = list(self._path)
        if name is not None:
            parts.append(encode_pointer(name))
        return "/".join(parts)

    def invalid(self, name: Optional[str] = None) -> None:
        """Report the property name (or the current sub-object) as invalid."""
        path = self.path(name)
        if path not in self._invalid:
            logger.debug(f"Invalid property: {path}")
            self._invalid.append(path)

    @contextmanager
    def prop(self, name: str, key: Any = None) -> Iterator[None]:
        """Descend into property name, or into its sub-object at key."""
        token = encode_pointer(name)
        if key is not None:
            token = f"{token}/{encode_pointer(str(key))}"
        self._path.append(token)
        try:
            yield
        finally:
            self._path.pop()

    def wants(self, prop: PropertyName) -> bool:
        """Return True if the caller asked for this event property."""
        return self.wanted is None or _name(prop) in self.wanted

    @contextmanager
    def all_properties(self) -> Iterator[None]:
        """Temporarily compute every property regardless of the wanted filter."""
        wanted = self.wanted
        self.wanted = None
        try:
            yield
        finally:
            self.wanted = wanted

    def read_prop(
        self,
        obj: dict,
        name: str,
        kind: Optional[type] = str,
        mandatory: bool = False,
    ) -> Tuple[PropStatus, Any]:
        """Read a property from a JSON object, reporting it if invalid.

        Args:
            obj: JSON object to read from
            name: Property name
            kind: Expected Python type, or None to accept any value
            mandatory: Report a missing property as invalid

        Returns:
            Tuple of read status and value (None unless found)
        """
        if name not in obj:
            if mandatory:
                self.invalid(name)
                return PropStatus.INVALID, None
            return PropStatus.MISSING, None

        value = obj[name]
        if not _has_kind(value, kind):
            self.invalid(name)
            return PropStatus.INVALID, None
        return PropStatus.FOUND, value
