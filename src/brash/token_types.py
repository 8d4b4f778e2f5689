"""
Token Types for the brash parser

Shared between lexer, parser and command parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types"""

    # Literals
    NUMBER = auto()
    STRING = auto()       # "..." with {expr} interpolation
    RAW_STRING = auto()   # '...'
    IDENT = auto()
    WORD = auto()         # any other character, only meaningful inside commands

    # Keywords
    LET = auto()
    EXPORT = auto()
    FN = auto()
    RETURN = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    IN = auto()
    BREAK = auto()
    CONTINUE = auto()
    TRUE = auto()
    FALSE = auto()
    NIL = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    POW = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()     # also stdin redirect inside commands
    GT = auto()     # also stdout redirect inside commands
    LTE = auto()
    GTE = auto()

    # Logical (also command combinators)
    AND = auto()
    OR = auto()
    NEG = auto()  # !

    # Command operators
    PIPE = auto()       # |
    STAR_PIPE = auto()  # *|
    AMP_PIPE = auto()   # &|
    STAR_GT = auto()    # *>
    AMP_GT = auto()     # &>
    STAR_LT = auto()    # *<
    AMP_LT = auto()     # &<

    # Assignment
    ASSIGN = auto()

    # Ranges
    DOTDOT = auto()
    DOTDOTEQ = auto()

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    COLON = auto()
    SEMI = auto()
    DOLLAR = auto()
    BACKQUOTE = auto()

    # Layout
    SPACE = auto()
    NEWLINE = auto()
    EOF = auto()


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def lexeme(self) -> str:
        """Source text of the token as it should appear inside a command word."""
        if self.type == TT.STRING:
            return f'"{self.value}"'
        if self.type == TT.RAW_STRING:
            return f"'{self.value}'"
        if self.value is None:
            return ""
        return str(self.value)
