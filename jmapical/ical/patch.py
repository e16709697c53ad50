"""JMAP patch objects.

A patch maps JSON pointers (without the leading slash, e.g.
``locations/loc1/name``) to replacement values; a null value removes the
addressed member. Recurrence overrides are stored as patches against the
master event.
"""

import copy
from typing import Any, Dict, List

from .context import decode_pointer, encode_pointer
from .exceptions import PatchError


def _diff(patch: Dict[str, Any], prefix: List[str], base: dict, target: dict) -> None:
    for key, value in target.items():
        path = prefix + [encode_pointer(key)]
        if key not in base:
            patch["/".join(path)] = copy.deepcopy(value)
        elif isinstance(base[key], dict) and isinstance(value, dict):
            _diff(patch, path, base[key], value)
        elif base[key] != value:
            patch["/".join(path)] = copy.deepcopy(value)

    for key in base:
        if key not in target:
            patch["/".join(prefix + [encode_pointer(key)])] = None


def diff(base: dict, target: dict) -> Dict[str, Any]:
    """Create the patch that turns base into target.

    Nested objects are compared member by member; any other differing value
    (including arrays) is replaced as a whole.
    """
    patch: Dict[str, Any] = {}
    _diff(patch, [], base, target)
    return patch


def apply(base: dict, patch: Dict[str, Any]) -> dict:
    """Apply a patch to a deep copy of base.

    Args:
        base: Object to patch, left unmodified
        patch: Patch object

    Returns:
        The patched copy

    Raises:
        PatchError: If a pointer is empty or its parent does not exist
    """
    result = copy.deepcopy(base)
    for pointer, value in patch.items():
        tokens = [decode_pointer(token) for token in pointer.split("/")]
        if not pointer or any(token == "" for token in tokens):
            raise PatchError(f"Invalid patch pointer: {pointer!r}")

        parent = result
        for token in tokens[:-1]:
            child = parent.get(token) if isinstance(parent, dict) else None
            if not isinstance(child, dict):
                raise PatchError(f"Patch pointer {pointer!r} has no parent object")
            parent = child

        if value is None:
            parent.pop(tokens[-1], None)
        else:
            parent[tokens[-1]] = copy.deepcopy(value)
    return result
