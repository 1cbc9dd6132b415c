"""Validation of custom analyzer registrations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

_VALID_NAME = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"


@dataclass(frozen=True)
class Connection:
    url: str
    port: int


@dataclass(frozen=True)
class CustomAnalyzerConfiguration:
    name: str
    connection: Connection


class CustomAnalyzer:
    """Checks that a new custom analyzer fits alongside the configured ones."""

    def check(self, actual_config: Iterable[CustomAnalyzerConfiguration], name: str, url: str, port: int) -> None:
        """Raise ValueError if the name is malformed or clashes with an existing entry."""
        if not re.fullmatch(_VALID_NAME, name):
            raise ValueError(f"invalid name format. Must match {_VALID_NAME}")
        wanted = Connection(url=url, port=port)
        for analyzer in actual_config:
            if analyzer.name == name:
                raise ValueError(
                    f"custom analyzer with the name '{name}' already exists. Please use a different name"
                )
            if analyzer.connection == wanted:
                raise ValueError(
                    f"custom analyzer with the same connection configuration (URL: '{url}', Port: {port}) "
                    "already exists. Please use a different URL or port"
                )