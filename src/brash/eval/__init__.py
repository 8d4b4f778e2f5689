"""Evaluator helper modules for the brash interpreter."""

__all__ = [
    "blocks",
    "chains",
    "commands",
    "common",
    "expr",
    "fn",
    "literals",
    "loops",
]
