"""Terminal output to HTML: lex, resolve styles, optimize runs, serialize."""

from __future__ import annotations

from ansi_lexer import lex
from markup import DEFAULT_OPTIONS, MarkupOptions, serialize
from run_optimizer import optimize
from sgr_style import resolve

__version__ = "0.1.0"


def convert(data: bytes | str, options: MarkupOptions = DEFAULT_OPTIONS) -> str:
    """Convert raw terminal output into inline-styled HTML markup.

    Never raises for any input: malformed or truncated escape sequences are
    dropped and invalid UTF-8 in text is replaced.
    """
    return serialize(optimize(resolve(lex(data))), options)
