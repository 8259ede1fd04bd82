"""
pylon/adapter/header_table.py

Multi-value response header table owned by a single response writer.

Names are canonicalised on every access ("content-type" and
"CONTENT-TYPE" both become "Content-Type"), so handler code can use any
casing. Values for one name keep their insertion order.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple


def canonical_header_name(name: str) -> str:
    """
    "x-request-id" -> "X-Request-Id".

    Names containing characters outside the HTTP token set (spaces,
    colons, ...) are returned unchanged.
    """
    if not name or any(c in name for c in " \t:\r\n"):
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


class HeaderTable:
    def __init__(self) -> None:
        self._values: Dict[str, List[str]] = {}

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping any existing ones."""
        self._values.setdefault(canonical_header_name(name), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace all values for name with a single value."""
        self._values[canonical_header_name(name)] = [value]

    def get(self, name: str) -> Optional[str]:
        """First value for name, or None."""
        values = self._values.get(canonical_header_name(name))
        return values[0] if values else None

    def get_all(self, name: str) -> List[str]:
        return list(self._values.get(canonical_header_name(name), []))

    def delete(self, name: str) -> None:
        self._values.pop(canonical_header_name(name), None)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for name, values in self._values.items():
            yield name, list(values)

    def collapse(self) -> Dict[str, str]:
        """
        Single-value view: the last value written for each name wins.
        Names whose value list is empty are dropped.
        """
        return {name: values[-1] for name, values in self._values.items() if values}

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __delitem__(self, name: str) -> None:
        self.delete(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_header_name(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeaderTable({self._values!r})"
