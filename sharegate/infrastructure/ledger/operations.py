"""Write operations accepted by `LedgerStore.transact`.

Keys and conditions are plain column -> value mappings. A condition value of
None means "column IS NULL".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Put:
    """Insert an item. With `if_absent` the op fails if the key already exists,
    otherwise it replaces the non-key attributes of an existing item."""

    table: str
    item: dict[str, Any]
    if_absent: bool = False


@dataclass(frozen=True)
class Update:
    """Set attributes on an existing item, optionally guarded by a condition."""

    table: str
    key: dict[str, Any]
    values: dict[str, Any]
    condition: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Delete:
    table: str
    key: dict[str, Any]
    must_exist: bool = True


@dataclass(frozen=True)
class Add:
    """Atomically add `amount` to a numeric attribute.

    A missing item (or attribute) counts as 0. The op fails if the result
    would be negative.
    """

    table: str
    key: dict[str, Any]
    attribute: str
    amount: int


Operation = Union[Put, Update, Delete, Add]
