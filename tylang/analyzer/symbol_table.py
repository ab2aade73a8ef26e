"""
Prototype table for tylang sessions.

Every function the session has heard of, through 'extern' or 'def', is
recorded here by name together with its prototype and how far its definition
got. The table outlives the LLVM modules that are created and handed to the
JIT, so a call in a later module can still be declared from it.
"""

from typing import Dict, Iterator, List, Optional
from dataclasses import dataclass, replace
from enum import Enum

from ..parser.ast_nodes import Prototype
from .errors import create_redefinition_error, create_signature_mismatch_error


class FunctionState(Enum):
    """Where a function is in its lifecycle."""
    DECLARED = "declared"
    IN_PROGRESS = "body-in-progress"
    DEFINED = "defined"


@dataclass(frozen=True)
class FunctionEntry:
    """A known function: its prototype and whether a body backs it."""
    prototype: Prototype
    state: FunctionState = FunctionState.DECLARED

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def arity(self) -> int:
        return self.prototype.arity

    @property
    def is_defined(self) -> bool:
        return self.state == FunctionState.DEFINED

    def __str__(self) -> str:
        return f"{self.prototype} [{self.state.value}]"


class PrototypeTable:
    """
    Maps function names to their entries.

    Names are unique. An entry is created by declare() or begin_definition()
    and only becomes DEFINED through finish_definition(); a failed body is
    rolled back with revert().
    """

    def __init__(self):
        self._entries: Dict[str, FunctionEntry] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FunctionEntry]:
        return iter(list(self._entries.values()))

    def lookup(self, name: str) -> Optional[FunctionEntry]:
        return self._entries.get(name)

    def lookup_prototype(self, name: str) -> Optional[Prototype]:
        entry = self._entries.get(name)
        return entry.prototype if entry is not None else None

    def is_defined(self, name: str) -> bool:
        entry = self._entries.get(name)
        return entry is not None and entry.is_defined

    def names(self) -> List[str]:
        return sorted(self._entries)

    def _check_signature(self, prototype: Prototype) -> Optional[FunctionEntry]:
        existing = self._entries.get(prototype.name)
        if existing is not None and existing.arity != prototype.arity:
            raise create_signature_mismatch_error(
                prototype.name, existing.arity, prototype.arity,
                prototype.location, existing.prototype.location
            )
        return existing

    def declare(self, prototype: Prototype) -> FunctionEntry:
        """
        Record a forward declaration.

        Re-declaring a known function with the same arity is allowed and keeps
        the existing entry, including its state.

        Raises:
            SignatureMismatchError: If the arity differs from a known prototype
        """
        existing = self._check_signature(prototype)
        if existing is not None:
            return existing

        entry = FunctionEntry(prototype)
        self._entries[prototype.name] = entry
        return entry

    def begin_definition(self, prototype: Prototype) -> Optional[FunctionEntry]:
        """
        Start lowering a body for ``prototype``.

        Returns the entry that was in place before, so the caller can hand it
        back to revert() if the body fails.

        Raises:
            RedefinitionError: If the name already has a body
            SignatureMismatchError: If the arity differs from a known prototype
        """
        existing = self._entries.get(prototype.name)
        if existing is not None and existing.state != FunctionState.DECLARED:
            raise create_redefinition_error(
                prototype.name, prototype.location, existing.prototype.location
            )
        self._check_signature(prototype)

        self._entries[prototype.name] = FunctionEntry(prototype, FunctionState.IN_PROGRESS)
        return existing

    def finish_definition(self, name: str) -> FunctionEntry:
        entry = replace(self._entries[name], state=FunctionState.DEFINED)
        self._entries[name] = entry
        return entry

    def revert(self, name: str, previous: Optional[FunctionEntry]) -> None:
        """Restore the entry that begin_definition() replaced."""
        if previous is None:
            self._entries.pop(name, None)
        else:
            self._entries[name] = previous

    def forget(self, name: str) -> None:
        """Drop a function entirely, e.g. a top-level expression after it ran."""
        self._entries.pop(name, None)
