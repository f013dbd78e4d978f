# -*- coding: utf-8 -*-
"""
Wizard Data Model - the external, key-addressable store the wizard reads
and writes through form fields and branch rules.

Field paths:
- ``name``                plain key
- ``address.city``        nested mappings
- ``persons[2].name``     explicit list index
- ``persons[].name``      current iteration index of an array section
"""

import re
from typing import Any, Dict, List, Optional, Union

from utils.logger import get_logger

logger = get_logger(__name__)

_TOKEN_PATTERN = re.compile(r"([^.\[\]]+)|\[(\d*)\]")

# Marker for the "current index" placeholder ``[]``
CURRENT_INDEX = object()

_MISSING = object()


def parse_path(path: str) -> List[Union[str, int, object]]:
    """
    Split a field path into keys and indexes.

    Examples:
        >>> parse_path("persons[1].name")
        ['persons', 1, 'name']
    """
    if not path:
        raise ValueError("Empty field path")

    tokens: List[Union[str, int, object]] = []
    position = 0
    for match in _TOKEN_PATTERN.finditer(path):
        between = path[position:match.start()]
        if between not in ("", "."):
            raise ValueError(f"Malformed field path: {path!r}")
        key, index = match.groups()
        if key is not None:
            tokens.append(key)
        elif index == "":
            tokens.append(CURRENT_INDEX)
        else:
            tokens.append(int(index))
        position = match.end()

    if position != len(path) or not tokens:
        raise ValueError(f"Malformed field path: {path!r}")
    return tokens


def path_problem(path: Any, array_field: Optional[str] = None) -> Optional[str]:
    """
    Check a field path at build time.

    Args:
        path: Authored field path
        array_field: Collection the owning section repeats over, if any

    Returns:
        A description of the problem, or None if the path is usable
    """
    if not isinstance(path, str):
        return f"field path must be a string, got {type(path).__name__}"
    try:
        tokens = parse_path(path)
    except ValueError as e:
        return str(e)
    if CURRENT_INDEX in tokens and not array_field:
        return f"path {path!r} uses [] outside an array section"
    return None


def array_root(path: str) -> Optional[str]:
    """
    Get the collection a ``[]`` path iterates over.

    Examples:
        >>> array_root("persons[].name")
        'persons'
        >>> array_root("name") is None
        True
    """
    marker = path.find("[]")
    if marker <= 0:
        return None
    return path[:marker]


class WizardDataModel:
    """
    Dict-backed implementation of the external data model.

    Any object offering get / set / length with the same signatures can
    be handed to the engine instead.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = data if data is not None else {}

    def _resolve_tokens(self, path: str, index: Optional[int]) -> List[Union[str, int]]:
        tokens = []
        for token in parse_path(path):
            if token is CURRENT_INDEX:
                if index is None:
                    raise ValueError(f"Path {path!r} needs an array index")
                token = index
            tokens.append(token)
        return tokens

    def get(self, path: str, index: Optional[int] = None, default: Any = None) -> Any:
        """
        Read a value by field path.

        Args:
            path: Field path
            index: Current iteration index substituted for ``[]``
            default: Returned when any step of the path is missing
        """
        node: Any = self.data
        for token in self._resolve_tokens(path, index):
            node = self._step(node, token)
            if node is _MISSING:
                return default
        return node

    def set(self, path: str, value: Any, index: Optional[int] = None):
        """
        Write a value by field path, creating intermediate containers.

        Lists are padded with None up to the written index.
        """
        tokens = self._resolve_tokens(path, index)
        node: Any = self.data
        for token, next_token in zip(tokens, tokens[1:]):
            child = self._step(node, token)
            if child is _MISSING or child is None:
                child = [] if isinstance(next_token, int) else {}
                self._assign(node, token, child)
            node = child
        self._assign(node, tokens[-1], value)
        logger.debug(f"Data model set: {path} (index={index})")

    def length(self, path: str, index: Optional[int] = None) -> int:
        """Length of a collection; 0 when missing or not a list."""
        value = self.get(path, index)
        if isinstance(value, (list, tuple)):
            return len(value)
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return self.data

    @staticmethod
    def _step(node: Any, token: Union[str, int]) -> Any:
        if isinstance(token, int):
            if isinstance(node, (list, tuple)) and 0 <= token < len(node):
                return node[token]
            return _MISSING
        if isinstance(node, dict):
            return node.get(token, _MISSING)
        return _MISSING

    @staticmethod
    def _assign(node: Any, token: Union[str, int], value: Any):
        if isinstance(token, int):
            if not isinstance(node, list):
                raise TypeError(f"Cannot index {type(node).__name__} with {token}")
            while len(node) <= token:
                node.append(None)
            node[token] = value
        else:
            if not isinstance(node, dict):
                raise TypeError(f"Cannot set key {token!r} on {type(node).__name__}")
            node[token] = value
