"""
Lenient typed reads from a state snapshot.

Values that come back from the browser (property updates, action params)
are whatever JSON the client sent: a counter may arrive as "3" or 3.0.
These helpers coerce the common cases and fall back to a default.
"""

from typing import Any, Dict, List, Optional

# Signed 64-bit range; larger integers cannot be serialized into a state token
INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1


def getValue(state: Dict[str, Any], key: str, valueType: type, default: Any = None) -> Any:
    """Value at key if it is an instance of valueType, else default."""
    value = state.get(key)
    return value if isinstance(value, valueType) else default


def getInt(state: Dict[str, Any], key: str, default: int = 0) -> int:
    """Integer at key; default when missing, unparseable or outside 64 bits."""
    value = state.get(key)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        try:
            result = int(value)
        except (OverflowError, ValueError):
            return default
    elif isinstance(value, str):
        try:
            result = int(value.strip())
        except ValueError:
            return default
    else:
        return default
    return result if INT_MIN <= result <= INT_MAX else default


def getFloat(state: Dict[str, Any], key: str, default: float = 0.0) -> float:
    value = state.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def getBool(state: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = state.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    if isinstance(value, (int, float)):
        return value != 0
    return default


def getString(state: Dict[str, Any], key: str, default: str = '') -> str:
    value = state.get(key)
    if isinstance(value, str):
        return value
    if value is not None:
        return str(value)
    return default


def getList(state: Dict[str, Any], key: str, default: Optional[List[Any]] = None) -> List[Any]:
    value = state.get(key)
    if isinstance(value, list):
        return value
    return list(default) if default is not None else []
