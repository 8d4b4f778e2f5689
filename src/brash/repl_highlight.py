"""prompt_toolkit lexer for live brash syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer import LexError, tokenize
from .token_types import TT

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "command": "bold ansiyellow",
    "operator": "",
    "comment": "italic ansigray",
}

_KEYWORDS = {
    TT.LET, TT.EXPORT, TT.FN, TT.RETURN, TT.IF, TT.ELSE, TT.WHILE,
    TT.FOR, TT.IN, TT.BREAK, TT.CONTINUE,
}

_TT_GROUP = {
    **{kind: "keyword" for kind in _KEYWORDS},
    TT.TRUE: "constant",
    TT.FALSE: "constant",
    TT.NIL: "constant",
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.RAW_STRING: "string",
    TT.DOLLAR: "command",
    TT.BACKQUOTE: "command",
    TT.PIPE: "command",
    TT.STAR_PIPE: "command",
    TT.AMP_PIPE: "command",
    TT.STAR_GT: "command",
    TT.AMP_GT: "command",
    TT.STAR_LT: "command",
    TT.AMP_LT: "command",
}

_LAYOUT = {TT.NEWLINE, TT.EOF, TT.SPACE}


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = tokenize(text)
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for tok in tokens:
        if tok.type in _LAYOUT:
            continue

        start = tok.column - 1
        tok_text = tok.lexeme
        if not tok_text or start < pos:
            continue

        # Unstyled gap before token.
        if start > pos:
            result.append(("", text[pos:start]))

        style = GROUP_STYLE.get(_TT_GROUP.get(tok.type, ""), "")
        result.append((style, tok_text))
        pos = start + len(tok_text)

    # Whatever the lexer skipped at the end is a comment (or a line continuation).
    if pos < len(text):
        rest = text[pos:]
        style = GROUP_STYLE["comment"] if rest.lstrip().startswith("#") else ""
        result.append((style, rest))

    return result if result else [("", text)]


class BrashLexer(Lexer):
    """prompt_toolkit Lexer that highlights brash source using the brash tokenizer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
