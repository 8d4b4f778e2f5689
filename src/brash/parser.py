"""
Recursive Descent Parser for brash

Structure:
- Lexer: token stream from source (SPACE tokens included)
- Parser: recursive descent, one method per precedence tier
- CmdParser (mixin): binding-power parser for `$ cmd` and `` `cmd` `` regions
- AST: lark Tree/Token nodes consumed by the evaluator
"""

from typing import List, Optional

from lark import Token, Tree

from .cmd_parser import CmdParser
from .lexer import tokenize
from .token_types import TT, Tok
from .tree import is_token, make_token, make_tree, tree_label

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '0': '\0',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '{': '{',
    '}': '}',
}

class Parser(CmdParser):
    """
    Recursive descent parser for brash.

    Expression precedence (lowest to highest):
    1. assignment (=, right associative)
    2. or (||)
    3. and (&&)
    4. equality (==, !=)
    5. compare (<, >, <=, >=)
    6. range (.., ..=)
    7. add (+, -)
    8. mul (*, /, %)
    9. pow (**, right associative)
    10. unary (-, !)
    11. postfix (call, [index], .method)
    12. primary (literals, identifiers, parens, vec/dict, fn, `cmd`)
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek_raw(self, offset: int = 0) -> Tok:
        """Look ahead without skipping whitespace"""
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance_raw(self) -> Tok:
        tok = self.tokens[self.pos]
        if tok.type != TT.EOF:
            self.pos += 1
        return tok

    def skip_space(self) -> None:
        while self.tokens[self.pos].type == TT.SPACE:
            self.pos += 1

    @property
    def current(self) -> Tok:
        self.skip_space()
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at the offset-th significant token"""
        self.skip_space()
        idx = self.pos
        for _ in range(offset):
            idx += 1
            while idx < len(self.tokens) - 1 and self.tokens[idx].type == TT.SPACE:
                idx += 1
        return self.tokens[min(idx, len(self.tokens) - 1)]

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        self.skip_space()
        return self.advance_raw()

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise ParseError(msg, self.current)
        return self.advance()

    def skip_newlines(self) -> None:
        while self.match(TT.NEWLINE):
            pass

    def error(self, message: str, token: Optional[Tok] = None) -> ParseError:
        return ParseError(message, token or self.current)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        stmts = []

        while True:
            while self.match(TT.NEWLINE, TT.SEMI):
                pass

            if self.check(TT.EOF):
                break

            if self.check(TT.RBRACE):
                raise self.error("Unexpected '}'")

            stmts.append(self.parse_statement())
            self.end_statement()

        return Tree('program', stmts)

    def end_statement(self) -> None:
        if self.match(TT.NEWLINE, TT.SEMI):
            return

        if self.check(TT.EOF, TT.RBRACE):
            return

        raise self.error(f"Expected end of statement, got {self.current.type.name}")

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Tree:
        """
        Parse a single statement.

        Statements include:
        - Declarations (let, export, fn)
        - Control flow (if, while, for, break, continue, return)
        - Commands ($ ...)
        - Blocks and bare expressions
        """
        if self.check(TT.LET, TT.EXPORT):
            return self.parse_let_stmt()
        if self.check(TT.FN) and self.peek(1).type == TT.IDENT:
            return self.parse_fn_stmt()
        if self.check(TT.IF):
            return self.parse_if_stmt()
        if self.check(TT.WHILE):
            return self.parse_while_stmt()
        if self.check(TT.FOR):
            return self.parse_for_stmt()
        if self.check(TT.RETURN):
            return self.parse_return_stmt()
        if self.check(TT.BREAK):
            tok = self.advance()
            return make_tree('breakstmt', [], tok)
        if self.check(TT.CONTINUE):
            tok = self.advance()
            return make_tree('continuestmt', [], tok)
        if self.check(TT.DOLLAR):
            return self.parse_cmd_stmt()
        if self.check(TT.LBRACE):
            return self.parse_block()

        tok = self.current
        return make_tree('exprstmt', [self.parse_expr()], tok)

    def parse_let_stmt(self) -> Tree:
        """Parse `let NAME [= expr]` or `export NAME [= expr]`"""
        kw = self.advance()
        name = self.expect(TT.IDENT, f"Expected a name after '{kw.value}'")
        init = self.parse_expr() if self.match(TT.ASSIGN) else None
        children = [make_token(kw.type.name, kw.value, kw), make_token('IDENT', name.value, name)]

        if init is not None:
            children.append(init)

        return make_tree('letstmt', children, kw)

    def parse_fn_stmt(self) -> Tree:
        """Parse named function: fn name(params) { body }"""
        fn_tok = self.expect(TT.FN)
        name = self.expect(TT.IDENT)
        params = self.parse_param_list()
        body = self.parse_block()
        return make_tree('fndef', [make_token('IDENT', name.value, name), params, body], fn_tok)

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if expr { body } [else if ... | else { body }]
        """
        if_tok = self.expect(TT.IF)
        cond = self.parse_expr()
        then_body = self.parse_block()
        children = [cond, then_body]

        # allow `}` and `else` on separate lines
        save = self.pos
        self.skip_newlines()

        if self.match(TT.ELSE):
            if self.check(TT.IF):
                children.append(self.parse_if_stmt())
            else:
                children.append(self.parse_block())
        else:
            self.pos = save

        return make_tree('ifstmt', children, if_tok)

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while expr { body }"""
        while_tok = self.expect(TT.WHILE)
        cond = self.parse_expr()
        body = self.parse_block()
        return make_tree('whilestmt', [cond, body], while_tok)

    def parse_for_stmt(self) -> Tree:
        """
        Parse for loop:
        for x in expr { body }        (range)
        for i, x in expr { body }     (vec: index, element / dict: key, value)
        """
        for_tok = self.expect(TT.FOR)
        first = self.expect(TT.IDENT, "Expected loop variable after 'for'")
        binders = [make_token('IDENT', first.value, first)]

        if self.match(TT.COMMA):
            second = self.expect(TT.IDENT, "Expected second loop variable")
            binders.append(make_token('IDENT', second.value, second))

        self.expect(TT.IN, "Expected 'in' in for loop")
        iterable = self.parse_expr()
        body = self.parse_block()
        return make_tree('forstmt', [Tree('binders', binders), iterable, body], for_tok)

    def parse_return_stmt(self) -> Tree:
        """Parse return statement: return [expr]"""
        ret_tok = self.expect(TT.RETURN)

        if self.check(TT.NEWLINE, TT.EOF, TT.SEMI, TT.RBRACE):
            return make_tree('returnstmt', [], ret_tok)

        return make_tree('returnstmt', [self.parse_expr()], ret_tok)

    def parse_cmd_stmt(self) -> Tree:
        """Parse command statement: $ cmd"""
        dollar = self.expect(TT.DOLLAR)
        return make_tree('cmdstmt', [self.parse_cmd(0)], dollar)

    def parse_block(self) -> Tree:
        """Parse a brace block: { stmts }"""
        lbrace = self.expect(TT.LBRACE, f"Expected '{{', got {self.current.type.name}")
        stmts = []

        while True:
            while self.match(TT.NEWLINE, TT.SEMI):
                pass

            if self.check(TT.RBRACE, TT.EOF):
                break

            stmts.append(self.parse_statement())
            self.end_statement()

        self.expect(TT.RBRACE, "Expected '}' to close block")
        return make_tree('block', stmts, lbrace)

    def parse_param_list(self) -> Tree:
        """Parse (a, b, c)"""
        self.expect(TT.LPAR)
        params = []

        self.skip_newlines()
        while not self.check(TT.RPAR):
            name = self.expect(TT.IDENT, "Expected parameter name")
            params.append(make_token('IDENT', name.value, name))
            self.skip_newlines()
            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.skip_newlines()
        self.expect(TT.RPAR, "Expected ')' after parameters")
        return Tree('params', params)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Tree | Token:
        return self.parse_assign_expr()

    def parse_assign_expr(self) -> Tree | Token:
        """Parse assignment: target = expr (right associative)"""
        target = self.parse_or_expr()

        if not self.check(TT.ASSIGN):
            return target

        eq = self.advance()
        value = self.parse_assign_expr()

        if is_token(target) and target.type == 'IDENT':
            return make_tree('assign', [target, value], eq)

        if tree_label(target) == 'getfield':
            base, index = target.children
            return make_tree('setfield', [base, index, value], eq)

        raise ParseError("Invalid assignment target", eq)

    def _binary(self, lhs, op: Tok, name: str, rhs) -> Tree:
        return make_tree('binary', [lhs, make_token(name, op.value, op), rhs], op)

    def _negated(self, node: Tree, op: Tok) -> Tree:
        return make_tree('unary', [make_token('NOT', '!', op), node], op)

    def parse_or_expr(self) -> Tree | Token:
        """Parse logical OR: expr || expr"""
        left = self.parse_and_expr()

        while self.check(TT.OR):
            op = self.advance()
            right = self.parse_and_expr()
            left = self._binary(left, op, 'OR', right)

        return left

    def parse_and_expr(self) -> Tree | Token:
        """Parse logical AND: expr && expr"""
        left = self.parse_equality_expr()

        while self.check(TT.AND):
            op = self.advance()
            right = self.parse_equality_expr()
            left = self._binary(left, op, 'AND', right)

        return left

    def parse_equality_expr(self) -> Tree | Token:
        """Parse == and != (the latter as negated equality)"""
        left = self.parse_compare_expr()

        while self.check(TT.EQ, TT.NEQ):
            op = self.advance()
            right = self.parse_compare_expr()
            left = self._binary(left, op, 'EQUAL', right)

            if op.type == TT.NEQ:
                left = self._negated(left, op)

        return left

    def parse_compare_expr(self) -> Tree | Token:
        """Parse <, >, and <=, >= as negations of > and <"""
        left = self.parse_range_expr()

        while self.check(TT.LT, TT.GT, TT.LTE, TT.GTE):
            op = self.advance()
            right = self.parse_range_expr()

            match op.type:
                case TT.LT:
                    left = self._binary(left, op, 'LESS', right)
                case TT.GT:
                    left = self._binary(left, op, 'GREAT', right)
                case TT.LTE:
                    left = self._negated(self._binary(left, op, 'GREAT', right), op)
                case TT.GTE:
                    left = self._negated(self._binary(left, op, 'LESS', right), op)

        return left

    def parse_range_expr(self) -> Tree | Token:
        """Parse lo..hi and lo..=hi"""
        left = self.parse_add_expr()

        if not self.check(TT.DOTDOT, TT.DOTDOTEQ):
            return left

        op = self.advance()
        right = self.parse_add_expr()
        kind = 'INCLUSIVE' if op.type == TT.DOTDOTEQ else 'EXCLUSIVE'
        return make_tree('range', [left, right, make_token(kind, op.value, op)], op)

    def parse_add_expr(self) -> Tree | Token:
        """Parse addition/subtraction: expr + expr"""
        left = self.parse_mul_expr()

        while self.check(TT.PLUS, TT.MINUS):
            op = self.advance()
            right = self.parse_mul_expr()
            left = self._binary(left, op, 'SUM' if op.type == TT.PLUS else 'SUB', right)

        return left

    def parse_mul_expr(self) -> Tree | Token:
        """Parse multiplication/division: expr * expr"""
        names = {TT.STAR: 'MUL', TT.SLASH: 'DIV', TT.MOD: 'MOD'}
        left = self.parse_pow_expr()

        while self.check(TT.STAR, TT.SLASH, TT.MOD):
            op = self.advance()
            right = self.parse_pow_expr()
            left = self._binary(left, op, names[op.type], right)

        return left

    def parse_pow_expr(self) -> Tree | Token:
        """Parse exponentiation: expr ** expr (right associative)"""
        base = self.parse_unary_expr()

        if self.check(TT.POW):
            op = self.advance()
            exp = self.parse_pow_expr()  # Right associative
            return self._binary(base, op, 'POW', exp)

        return base

    def parse_unary_expr(self) -> Tree | Token:
        """Parse unary operators: -expr, !expr"""
        if self.check(TT.MINUS, TT.NEG):
            op = self.advance()
            expr = self.parse_unary_expr()
            name = 'NEG' if op.type == TT.MINUS else 'NOT'
            return make_tree('unary', [make_token(name, op.value, op), expr], op)

        return self.parse_postfix_expr()

    def parse_postfix_expr(self) -> Tree | Token:
        """
        Parse postfix expressions:
        - calls: expr(args)
        - indexing: expr[index]
        - builtin methods: expr.name
        """
        node = self.parse_primary_expr()

        while True:
            if self.check(TT.LPAR):
                lpar = self.advance()
                args = self.parse_arg_list(TT.RPAR)
                node = make_tree('call', [node, Tree('args', args)], lpar)
            elif self.check(TT.LSQB):
                lsqb = self.advance()
                self.skip_newlines()
                index = self.parse_expr()
                self.skip_newlines()
                self.expect(TT.RSQB, "Expected ']' after index")
                node = make_tree('getfield', [node, index], lsqb)
            elif self.check(TT.DOT):
                dot = self.advance()
                name = self.expect(TT.IDENT, "Expected method name after '.'")
                node = make_tree('method', [node, make_token('IDENT', name.value, name)], dot)
            else:
                break

        return node

    def parse_primary_expr(self) -> Tree | Token:
        """
        Parse primary expressions:
        - Literals (numbers, strings, true, false, nil)
        - Identifiers
        - Parenthesized expressions
        - Vec and dict literals
        - Anonymous functions
        - Command expressions
        """
        tok = self.current

        match tok.type:
            case TT.NUMBER:
                self.advance()
                return make_token('NUMBER', tok.value, tok)
            case TT.STRING | TT.RAW_STRING:
                self.advance()
                return self.parse_string_token(tok)
            case TT.TRUE | TT.FALSE | TT.NIL:
                self.advance()
                return make_token(tok.type.name, tok.value, tok)
            case TT.IDENT:
                self.advance()
                return make_token('IDENT', tok.value, tok)
            case TT.LPAR:
                self.advance()
                self.skip_newlines()
                expr = self.parse_expr()
                self.skip_newlines()
                self.expect(TT.RPAR, "Expected ')'")
                return expr
            case TT.LSQB:
                self.advance()
                return make_tree('vec', self.parse_arg_list(TT.RSQB), tok)
            case TT.LBRACE:
                self.advance()
                return self.parse_dict_literal(tok)
            case TT.FN:
                self.advance()
                params = self.parse_param_list()
                body = self.parse_block()
                return make_tree('lambda', [params, body], tok)
            case TT.BACKQUOTE:
                self.advance()
                cmd = self.parse_cmd(0)
                self.expect(TT.BACKQUOTE, "Expected closing '`' after command")
                return make_tree('cmdexpr', [cmd], tok)

        raise ParseError(f"Unexpected token {tok.type.name}", tok)

    def parse_arg_list(self, closer: TT) -> List[Tree | Token]:
        """Parse comma separated expressions up to `closer` (consumed)"""
        items = []

        self.skip_newlines()
        while not self.check(closer):
            items.append(self.parse_expr())
            self.skip_newlines()
            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.expect(closer, f"Expected {closer.name}")
        return items

    def parse_dict_literal(self, lbrace: Tok) -> Tree:
        """Parse { key: expr, ... } after the opening brace"""
        pairs = []

        self.skip_newlines()
        while not self.check(TT.RBRACE):
            key_tok = self.current

            if key_tok.type == TT.IDENT or key_tok.type in _KEYWORD_TYPES:
                self.advance()
                key = str(key_tok.value)
            elif key_tok.type in (TT.STRING, TT.RAW_STRING):
                self.advance()
                node = self.parse_string_token(key_tok)
                if not is_token(node):
                    raise ParseError("Dict keys cannot be interpolated", key_tok)
                key = str(node.value)
            else:
                raise ParseError("Expected dict key", key_tok)

            self.expect(TT.COLON, "Expected ':' after dict key")
            self.skip_newlines()
            value = self.parse_expr()
            pairs.append(Tree('pair', [make_token('KEY', key, key_tok), value]))

            self.skip_newlines()
            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.expect(TT.RBRACE, "Expected '}' to close dict")
        return make_tree('dict', pairs, lbrace)

    # ========================================================================
    # Strings
    # ========================================================================

    def parse_string_token(self, tok: Tok) -> Tree | Token:
        """
        Turn a string token into a STRING token, or a string_interp tree of
        STRING_PART tokens interleaved with expressions. The tree always
        starts and ends with a (possibly empty) STRING_PART.
        """
        body: str = tok.value

        if tok.type == TT.RAW_STRING:
            return make_token('STRING', body.replace("\\'", "'").replace("\\\\", "\\"), tok)

        parts: List[Tree | Token] = []
        literal = ''
        i = 0

        while i < len(body):
            ch = body[i]

            if ch == '\\' and i + 1 < len(body):
                nxt = body[i + 1]
                literal += _ESCAPES.get(nxt, '\\' + nxt)
                i += 2
                continue

            if ch == '{':
                end = _matching_brace(body, i)
                if end < 0:
                    raise ParseError("Unterminated interpolation in string", tok)

                parts.append(make_token('STRING_PART', literal, tok))
                parts.append(parse_expr_fragment(body[i + 1:end], tok))
                literal = ''
                i = end + 1
                continue

            literal += ch
            i += 1

        if not parts:
            return make_token('STRING', literal, tok)

        parts.append(make_token('STRING_PART', literal, tok))
        return make_tree('string_interp', parts, tok)


_KEYWORD_TYPES = {
    TT.LET, TT.EXPORT, TT.FN, TT.RETURN, TT.IF, TT.ELSE, TT.WHILE, TT.FOR,
    TT.IN, TT.BREAK, TT.CONTINUE, TT.TRUE, TT.FALSE, TT.NIL,
}

def _matching_brace(body: str, start: int) -> int:
    """Index of the `}` closing the `{` at `start`, skipping nested strings."""
    depth = 0
    i = start

    while i < len(body):
        ch = body[i]

        if ch in ('"', "'"):
            quote = ch
            i += 1
            while i < len(body) and body[i] != quote:
                i += 2 if body[i] == '\\' else 1
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return i

        i += 1

    return -1

# ============================================================================
# Entry points
# ============================================================================

def parse_source(source: str) -> Tree:
    """
    Parse brash source code to AST.

    Returns a `program` Tree whose children are statement nodes.
    """
    parser = Parser(tokenize(source))
    return parser.parse()


def parse_expr_fragment(source: str, at: Optional[Tok] = None) -> Tree | Token:
    """
    Parse a standalone expression fragment.
    Used by string interpolation.
    """
    parser = Parser(tokenize(source))
    parser.skip_newlines()

    if parser.check(TT.EOF):
        raise ParseError("Empty interpolation", at)

    expr = parser.parse_expr()
    parser.skip_newlines()

    # Ensure we've consumed the entire fragment
    if not parser.check(TT.EOF):
        raise ParseError("Unexpected tokens after expression fragment", at or parser.current)
    return expr
