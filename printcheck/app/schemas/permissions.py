"""
Permission flag schema.

Flags mirror the user-access bits of the PDF standard security handler
(``/P`` entry of the encryption dictionary), using the bit values PDF
viewers expose.

EMPTY SET SEMANTICS
-------------------
The empty, non-explicit PermissionSet means the document carries no
explicit restriction list (it is not encrypted) and therefore grants every
permission. It does NOT mean "fully restricted".

A document that really denies everything still declares ``/P``. Decoding
it yields no flags, so emptiness alone cannot tell the two cases apart;
the ``explicit`` field does. Such a set reports ``is_unrestricted ==
False`` and cannot print.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, Iterable, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class PermissionFlag(IntEnum):
    """
    User-access permission bits.

    Ordering follows bit position and MUST remain stable; PermissionSet
    relies on it for deterministic ordering.
    """

    PRINT = 0x04
    MODIFY_CONTENTS = 0x08
    COPY = 0x10
    MODIFY_ANNOTATIONS = 0x20
    FILL_INTERACTIVE_FORMS = 0x100
    COPY_FOR_ACCESSIBILITY = 0x200
    ASSEMBLE = 0x400
    PRINT_HIGH_QUALITY = 0x800


PRINT_CLASS_FLAGS = frozenset(
    {PermissionFlag.PRINT, PermissionFlag.PRINT_HIGH_QUALITY}
)


class PermissionSet(BaseModel):
    """
    Ordered collection of granted permission flags.

    ``explicit`` records whether the document declared a permission list
    at all. The empty, non-explicit set is the unrestricted sentinel; an
    explicit list that grants nothing is fully restricted.
    """

    flags: Tuple[PermissionFlag, ...] = ()
    explicit: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def flags_imply_explicit(self) -> "PermissionSet":
        if self.flags and not self.explicit:
            raise ValueError("A non-empty permission list is always explicit.")
        return self

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def unrestricted(cls) -> "PermissionSet":
        return cls(flags=(), explicit=False)

    @classmethod
    def from_flags(cls, flags: Iterable[PermissionFlag]) -> "PermissionSet":
        return cls(flags=tuple(sorted(set(flags))), explicit=True)

    @classmethod
    def from_p_value(cls, p_value: int) -> "PermissionSet":
        """
        Decode a raw ``/P`` integer into the granted flags.

        ``/P`` is a signed 32-bit value; undefined bits are ignored.
        """
        return cls(
            flags=tuple(flag for flag in PermissionFlag if p_value & flag),
            explicit=True,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_unrestricted(self) -> bool:
        return not self.explicit

    def allows(self, flag: PermissionFlag) -> bool:
        return self.is_unrestricted or flag in self.flags

    @property
    def can_print(self) -> bool:
        return self.is_unrestricted or any(
            flag in PRINT_CLASS_FLAGS for flag in self.flags
        )

    def breakdown(self) -> Dict[PermissionFlag, bool]:
        """Every known flag mapped to whether it is granted."""
        return {flag: self.allows(flag) for flag in PermissionFlag}

    def __contains__(self, flag: object) -> bool:
        return flag in self.flags
