"""
Command parser for brash

Builds a `Cmd` tree out of the raw token stream with precedence climbing:
every operator carries a (left, right) binding power pair, higher binds
tighter. One recursive routine handles all tiers:

    redirections  > *> &> < *< &<   (7, 8)
    pipes         | *| &|           (5, 6)
    and           &&                (3, 4)
    or            ||                (1, 2)

Mixed into `Parser`, which supplies raw token access (`peek_raw`,
`advance_raw`), `expect` and `parse_expr`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .cmd import Atom, Cmd, CmdOp, Fragment, Op, is_literal
from .token_types import TT, Tok
from .tree import is_token

if TYPE_CHECKING:
    from .tree import Node

_BINDING_POWER: Dict[TT, Tuple[int, int]] = {
    TT.GT: (7, 8),
    TT.STAR_GT: (7, 8),
    TT.AMP_GT: (7, 8),
    TT.LT: (7, 8),
    TT.STAR_LT: (7, 8),
    TT.AMP_LT: (7, 8),

    TT.PIPE: (5, 6),
    TT.STAR_PIPE: (5, 6),
    TT.AMP_PIPE: (5, 6),

    TT.AND: (3, 4),
    TT.OR: (1, 2),
}

_CMD_OPS: Dict[TT, CmdOp] = {
    TT.OR: CmdOp.OR,
    TT.AND: CmdOp.AND,

    TT.PIPE: CmdOp.OUT_PIPE,
    TT.STAR_PIPE: CmdOp.ERR_PIPE,
    TT.AMP_PIPE: CmdOp.ALL_PIPE,

    TT.GT: CmdOp.OUT_WRITE,
    TT.STAR_GT: CmdOp.ERR_WRITE,
    TT.AMP_GT: CmdOp.ALL_WRITE,

    TT.LT: CmdOp.OUT_READ,
    TT.STAR_LT: CmdOp.ERR_READ,
    TT.AMP_LT: CmdOp.ALL_READ,
}

# Tokens that end the current word; SPACE additionally starts the next one.
_WORD_END = {TT.SPACE, TT.NEWLINE, TT.EOF, TT.SEMI, TT.BACKQUOTE, TT.RBRACE}

def binding_power(kind: TT) -> Optional[Tuple[int, int]]:
    return _BINDING_POWER.get(kind)

def is_cmd_op(tok: Tok) -> bool:
    return tok.type in _BINDING_POWER


class CmdParser:
    def parse_cmd(self, min_bp: int = 0) -> Cmd:
        lhs: Cmd = self.parse_cmd_atom()

        while True:
            tok = self.peek_raw()
            bp = binding_power(tok.type)
            if bp is None:
                break

            l_bp, r_bp = bp
            if l_bp < min_bp:
                break

            self.advance_raw()
            rhs = self.parse_cmd(r_bp)
            lhs = Op(lhs, _CMD_OPS[tok.type], rhs)

        return lhs

    def parse_cmd_atom(self) -> Atom:
        segments: List[List[Fragment]] = []
        start = self.peek_raw()

        while True:
            fragments: List[Fragment] = []

            while True:
                tok = self.peek_raw()
                if tok.type in _WORD_END or is_cmd_op(tok):
                    break

                self.advance_raw()
                self._push_fragment(fragments, self._parse_word_part(tok))

            if fragments:
                segments.append(fragments)

            if self.peek_raw().type == TT.SPACE:
                self.advance_raw()
            else:
                break

        if not segments:
            raise self.error("Expected a command", start)

        return Atom(segments)

    def _parse_word_part(self, tok: Tok) -> Fragment | Node:
        match tok.type:
            case TT.STRING | TT.RAW_STRING:
                return self.parse_string_token(tok)
            case TT.LBRACE:
                expr = self.parse_expr()
                self.expect(TT.RBRACE, "Expected '}' to close command interpolation")
                return expr
            case _:
                return tok.lexeme

    @staticmethod
    def _push_fragment(fragments: List[Fragment], part: Fragment | Node) -> None:
        if is_token(part) and part.type == 'STRING':
            part = str(part.value)

        if is_literal(part) and fragments and is_literal(fragments[-1]):
            fragments[-1] += part
            return

        fragments.append(part)
