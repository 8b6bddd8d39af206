"""Type definitions for the Ember transpiler.

This module defines the small closed sets the front end works with: the
static types a variable can carry, the kinds of blocks the scope tracker
can hold, and the two disciplines a block can be closed with. It also
holds the mapping from Ember type keywords to the C types and zero
values used by the code generator.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class VarType(Enum):
    """Static type of an Ember variable or expression."""
    INT = 'int'
    FLOAT = 'float'
    BOOL = 'bool'
    STRING = 'string'
    LIST = 'list'
    DICT = 'dict'
    TUPLE = 'tuple'
    UNKNOWN = 'unknown'

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def from_keyword(keyword: str) -> 'VarType':
        """Return the type named by a declaration keyword such as `int`."""
        if keyword not in TYPE_KEYWORDS:
            raise ValueError(f"not a type keyword: {keyword!r}")
        return VarType(keyword)

    @property
    def is_container(self) -> bool:
        return self in (VarType.LIST, VarType.DICT, VarType.TUPLE)


class BlockKind(Enum):
    IF = 'if'
    ELIF = 'elif'
    ELSE = 'else'
    WHILE = 'while'
    FOR = 'for'
    FOR_IN = 'for-in'
    FUNC = 'func'

    def __str__(self) -> str:
        return self.value

    @property
    def continues_chain(self) -> bool:
        """True if an `elif`/`else` line may extend a block of this kind."""
        return self in (BlockKind.IF, BlockKind.ELIF)


class Closer(Enum):
    """How a block is closed: by dedent/`end` or by a lone `}`."""
    INDENT = 'indent'
    BRACE = 'brace'

    def __str__(self) -> str:
        return self.value


TYPE_KEYWORDS = ('int', 'float', 'bool', 'string', 'list', 'dict', 'tuple')

C_TYPES: Dict[VarType, str] = {
    VarType.INT: 'int',
    VarType.FLOAT: 'double',
    VarType.BOOL: 'bool',
    VarType.STRING: 'char*',
    VarType.LIST: 'List',
    VarType.DICT: 'Dict',
    VarType.TUPLE: 'Tuple',
}

# Float and bool declarations without an initializer stay uninitialized.
ZERO_VALUES: Dict[VarType, Optional[str]] = {
    VarType.INT: '0',
    VarType.FLOAT: None,
    VarType.BOOL: None,
    VarType.STRING: 'NULL',
    VarType.LIST: 'new_list()',
    VarType.DICT: 'new_dict()',
    VarType.TUPLE: 'new_tuple()',
}


def c_type(vtype: VarType) -> str:
    """Return the C spelling of an Ember type (unknown falls back to int)."""
    return C_TYPES.get(vtype, 'int')


def zero_value(vtype: VarType) -> Optional[str]:
    return ZERO_VALUES.get(vtype)
