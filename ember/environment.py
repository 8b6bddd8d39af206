from dataclasses import dataclass
from typing import Dict, Iterator

from ember.types import VarType


@dataclass
class Variable:
    name: str
    type: VarType
    is_const: bool = False


class SymbolTable:
    """Flat mapping from identifier to type for one compilation unit.

    Ember has no lexical scoping of names, so a single table serves the
    whole program. Redeclaring a name overwrites its type and constness.
    The table holds at most `capacity` names; registering a new name in
    a full table is refused and leaves the table untouched.
    """
    def __init__(self, capacity: int = 512):
        self.capacity = capacity
        self.variables: Dict[str, Variable] = {}

    def __len__(self) -> int:
        return len(self.variables)

    def __contains__(self, name: str) -> bool:
        return name in self.variables

    def __iter__(self) -> Iterator[Variable]:
        return iter(self.variables.values())

    @property
    def full(self) -> bool:
        return len(self.variables) >= self.capacity

    def register(self, name: str, vtype: VarType, is_const: bool = False) -> bool:
        var = self.variables.get(name)
        if var is not None:
            var.type = vtype
            var.is_const = is_const
            return True
        if self.full:
            return False
        self.variables[name] = Variable(name, vtype, is_const)
        return True

    def lookup(self, name: str) -> VarType:
        var = self.variables.get(name)
        if var is None:
            return VarType.UNKNOWN
        return var.type

    def is_const(self, name: str) -> bool:
        var = self.variables.get(name)
        return var is not None and var.is_const
