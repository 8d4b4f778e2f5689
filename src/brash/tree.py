"""Shared helpers for working with the lark Tree/Token nodes that make up the AST."""
from __future__ import annotations

from typing import List, Optional
from typing_extensions import TypeAlias, TypeGuard

from lark import Token, Tree

from .token_types import Tok

Node: TypeAlias = Tree | Token


def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: object) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: object) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def node_line(node: object) -> Optional[int]:
    if is_token(node):
        return node.line

    if is_tree(node):
        meta = node.meta
        return getattr(meta, "line", None)

    return None

def make_token(type_: str, value: str, at: Optional[Tok] = None) -> Token:
    if at is None:
        return Token(type_, value)

    return Token(type_, value, line=at.line, column=at.column)

def make_tree(label: str, children: List[object], at: Optional[Tok] = None) -> Tree:
    tree = Tree(label, children)

    if at is not None:
        tree.meta.line = at.line
        tree.meta.column = at.column
        tree.meta.empty = False

    return tree
