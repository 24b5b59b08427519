"""Collapse per-node style scopes into a minimal run of style transitions.

The naive stream wraps every styled text node in its own open/close pair.
``optimize`` merges neighbouring scopes of the same style (also across
whitespace-only text when the style does not show on it), drops vacuous
closes and empty scopes, and replaces an open that is overwritten before
any content appears.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from ansi_lexer import Text
from sgr_style import StyledNode, StyleState


@dataclass(frozen=True)
class OpenStyle:
    style: StyleState


@dataclass(frozen=True)
class Content:
    text: str


@dataclass(frozen=True)
class CloseStyle:
    pass


Run = Union[OpenStyle, Content, CloseStyle]


def naive_runs(items: Iterable[StyledNode | Run]) -> Iterator[Run]:
    """Expand resolved nodes into open/content/close tokens.

    Run tokens pass through untouched so already-optimized output can be fed
    back in. Nodes other than text carry nothing visible and are dropped.
    """
    for item in items:
        if isinstance(item, (OpenStyle, Content, CloseStyle)):
            yield item
            continue
        node, style = item
        if not isinstance(node, Text):
            continue
        if style.is_default:
            yield Content(node.text)
        else:
            yield OpenStyle(style)
            yield Content(node.text)
            yield CloseStyle()


def _drop_empty_opens(tokens: list[Run]) -> list[Run]:
    """Remove opens that are overwritten or closed before any content."""
    kept: list[Run] = []
    for i, token in enumerate(tokens):
        if isinstance(token, OpenStyle):
            following = tokens[i + 1] if i + 1 < len(tokens) else None
            if not isinstance(following, Content):
                continue
        kept.append(token)
    return kept


def blank_invisible(style: StyleState) -> bool:
    """True when *style* paints nothing on whitespace (e.g. a foreground color)."""
    return not (
        style.background is not None
        or style.reverse
        or style.underline is not None
        or style.overlined
        or style.strikethrough
    )


def _close_needed(tokens: list[Run], start: int, active: StyleState) -> bool:
    """Scan ahead from *start* past repeated closes and, where the active
    style would not show on it, blank content.

    The close is only skipped when the scope reopens with the same style.
    """
    absorb_blanks = blank_invisible(active)
    for token in tokens[start:]:
        if isinstance(token, CloseStyle):
            continue
        if isinstance(token, OpenStyle):
            return token.style != active
        if not (absorb_blanks and token.text.isspace()):
            return True
    return True


def optimize(items: Iterable[StyledNode | Run]) -> list[Run]:
    """Reduce resolved nodes (or a previous result) to minimal style runs."""
    tokens = _drop_empty_opens(
        [token for token in naive_runs(items) if not isinstance(token, Content) or token.text]
    )
    result: list[Run] = []
    active: StyleState | None = None

    for i, token in enumerate(tokens):
        if isinstance(token, Content):
            result.append(token)
        elif isinstance(token, OpenStyle):
            if token.style == active:
                continue
            # Only one scope at a time: a new style ends the previous one.
            if active is not None:
                result.append(CloseStyle())
            active = token.style
            result.append(token)
        elif active is not None and _close_needed(tokens, i + 1, active):
            result.append(CloseStyle())
            active = None

    if active is not None:
        result.append(CloseStyle())
    return result
