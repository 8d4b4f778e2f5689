"""
Lexer for brash

Tokenizes source code into a flat token stream.

Features:
- Single-pass tokenization
- Whitespace runs are kept as SPACE tokens (command words are space separated)
- Position tracking (line, column)
- String bodies are kept raw; interpolation is split out by the parser
"""

from typing import List

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    brash lexer.

    Expression code ignores SPACE tokens; the command parser uses them to
    split words, so the lexer never drops them.
    """

    # Keyword mapping
    KEYWORDS = {
        'let': TT.LET,
        'export': TT.EXPORT,
        'fn': TT.FN,
        'return': TT.RETURN,
        'if': TT.IF,
        'else': TT.ELSE,
        'while': TT.WHILE,
        'for': TT.FOR,
        'in': TT.IN,
        'break': TT.BREAK,
        'continue': TT.CONTINUE,
        'true': TT.TRUE,
        'false': TT.FALSE,
        'nil': TT.NIL,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('..=', TT.DOTDOTEQ),

        # Two-character operators
        ('**', TT.POW),
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('*|', TT.STAR_PIPE),
        ('&|', TT.AMP_PIPE),
        ('*>', TT.STAR_GT),
        ('&>', TT.AMP_GT),
        ('*<', TT.STAR_LT),
        ('&<', TT.AMP_LT),
        ('..', TT.DOTDOT),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('=', TT.ASSIGN),
        ('|', TT.PIPE),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        (';', TT.SEMI),
        ('$', TT.DOLLAR),
        ('`', TT.BACKQUOTE),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.emit(TT.EOF, None, self.line, self.column)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        # Whitespace (not newlines)
        if self.peek() in (' ', '\t'):
            self.scan_space()
            return

        # Line continuation
        if self.peek() == '\\' and self.peek(1) == '\n':
            self.advance(2)
            self.line += 1
            self.column = 1
            return

        # Comments (only at the start of a word)
        if self.peek() == '#' and self.at_word_start():
            self.skip_comment()
            return

        # Newlines
        if self.peek() in ('\n', '\r'):
            self.scan_newline()
            return

        # String literals
        if self.peek() in ('"', "'"):
            self.scan_string()
            return

        # Numbers
        if self.peek().isdigit():
            self.scan_number()
            return

        # Identifiers and keywords
        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_space(self):
        line, col = self.line, self.column
        value = ''
        while self.peek() in (' ', '\t'):
            value += self.advance()
        self.emit(TT.SPACE, value, line, col)

    def scan_newline(self):
        """Scan newline character"""
        line, col = self.line, self.column
        if self.peek() == '\r' and self.peek(1) == '\n':
            self.advance(2)  # consume CRLF
        else:
            self.advance()

        self.emit(TT.NEWLINE, '\n', line, col)
        self.line += 1
        self.column = 1

    def scan_string(self):
        """Scan string literal: "..." (interpolating) or '...' (raw)"""
        line, col = self.line, self.column
        quote = self.advance()
        value = self.scan_string_body(quote, line)
        self.emit(TT.STRING if quote == '"' else TT.RAW_STRING, value, line, col)

    def scan_string_body(self, quote: str, line: int) -> str:
        """
        Consume up to and including the closing quote, returning the raw body.
        Inside `{...}` of a double-quoted string, nested strings and braces
        are skipped so an interpolated `"..."` does not end the outer string.
        """
        value = ''
        depth = 0

        while True:
            if self.pos >= len(self.source):
                raise LexError(f"Unterminated string at line {line}")

            ch = self.peek()

            if ch == '\\':
                # Keep escape sequence as-is
                value += self.advance()
                if self.pos < len(self.source):
                    value += self.advance()
                continue

            if ch == quote and depth == 0:
                self.advance()  # Closing quote
                return value

            if quote == '"':
                if ch == '{':
                    depth += 1
                elif ch == '}' and depth > 0:
                    depth -= 1
                elif ch in ('"', "'") and depth > 0:
                    inner = self.advance()
                    value += inner + self.scan_string_body(inner, line) + inner
                    continue

            if ch == '\n':
                self.line += 1
                self.column = 0
            value += self.advance()

    def scan_number(self):
        """Scan number literal"""
        line, col = self.line, self.column
        value = ''

        # Integer part
        while self.peek().isdigit():
            value += self.advance()

        # Decimal part (but not a `..` range)
        if self.peek() == '.' and self.peek(1).isdigit():
            value += self.advance()  # .
            while self.peek().isdigit():
                value += self.advance()

        # Scientific notation
        if self.peek() in ('e', 'E') and (self.peek(1).isdigit() or (self.peek(1) in ('+', '-') and self.peek(2).isdigit())):
            value += self.advance()
            if self.peek() in ('+', '-'):
                value += self.advance()
            while self.peek().isdigit():
                value += self.advance()

        self.emit(TT.NUMBER, value, line, col)

    def scan_identifier(self):
        """Scan identifier or keyword"""
        line, col = self.line, self.column
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        # Check if keyword
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value, line, col)

    def scan_operator(self):
        """Scan operators and punctuation"""
        line, col = self.line, self.column
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str, line, col)
                return

        # Anything else can still be part of a shell word (~, @, ^, ...)
        ch = self.advance()
        self.emit(TT.WORD, ch, line, col)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            self.column += 1
        return result

    def at_word_start(self) -> bool:
        """True at the start of input or right after whitespace"""
        return self.pos == 0 or self.source[self.pos - 1] in (' ', '\t', '\n', '\r')

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\r', '\0'):
            self.advance()

    def emit(self, token_type: TT, value, line: int, column: int):
        """Emit a token"""
        self.tokens.append(Tok(type=token_type, value=value, line=line, column=column))

class LexError(Exception):
    """Lexical analysis error"""
    pass

def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
