#!/usr/bin/env python3
"""
Helpers turning configuration values into enums
"""

from enum import Enum
from typing import Dict, Optional, Type, TypeVar, Union

from ..exceptions import ConfigurationError

E = TypeVar('E', bound=Enum)


def _normalize(text: str) -> str:
    return text.replace('_', '').replace('-', '').replace(' ', '').lower()


def enum_from_string(
    enum_cls: Type[E],
    value: Union[str, E],
    aliases: Optional[Dict[str, E]] = None,
    what: str = ''
) -> E:
    """
    Resolve an enum member from its value, its name or an alias

    Matching ignores case, underscores and dashes, so 'FiniteDiff',
    'finite_diff' and 'FINITE_DIFF' all resolve to the same member.

    Args:
        enum_cls: Enum class to resolve into
        value: Enum member or string read from a configuration
        aliases: Additional accepted spellings
        what: Name of the setting, used in the error message

    Returns:
        The matching enum member

    Raises:
        ConfigurationError: if the string matches no member
    """
    if isinstance(value, enum_cls):
        return value

    if isinstance(value, str):
        key = _normalize(value)
        for member in enum_cls:
            if key in (_normalize(member.name), _normalize(str(member.value))):
                return member
        for alias, member in (aliases or {}).items():
            if key == _normalize(alias):
                return member

    allowed = ', '.join(str(member.value) for member in enum_cls)
    label = what or enum_cls.__name__
    raise ConfigurationError(
        f"Unknown {label} '{value}'. Please pick among: [{allowed}]"
    )
