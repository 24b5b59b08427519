"""SGR (Select Graphic Rendition) style resolution.

Folds the parameter groups of ``CSI ... m`` sequences into an immutable
``StyleState`` and pairs every other node with the style active at that point.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Callable, Iterable, NamedTuple, Sequence, Union

from ansi_lexer import Csi, Node

SGR_CODE = "m"


@dataclass(frozen=True)
class Standard:
    index: int


@dataclass(frozen=True)
class Bright:
    index: int


@dataclass(frozen=True)
class Palette:
    index: int


@dataclass(frozen=True)
class Rgb:
    r: int
    g: int
    b: int


Color = Union[Standard, Bright, Palette, Rgb]


class UnderlineStyle(str, enum.Enum):
    SINGLE = "single"
    DOUBLE = "double"
    CURLY = "curly"
    DOTTED = "dotted"
    DASHED = "dashed"


_UNDERLINE_STYLES = {
    1: UnderlineStyle.SINGLE,
    2: UnderlineStyle.DOUBLE,
    3: UnderlineStyle.CURLY,
    4: UnderlineStyle.DOTTED,
    5: UnderlineStyle.DASHED,
}


@dataclass(frozen=True)
class StyleState:
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: UnderlineStyle | None = None
    underline_color: Color | None = None
    blink: bool = False
    rapid_blink: bool = False
    reverse: bool = False
    hidden: bool = False
    strikethrough: bool = False
    font: int = 0
    fraktur: bool = False
    proportional_spacing: bool = False
    framed: bool = False
    encircled: bool = False
    overlined: bool = False
    superscript: bool = False
    subscript: bool = False
    foreground: Color | None = None
    background: Color | None = None
    # Set while the bright color was produced by bold, not chosen directly.
    fg_bright_from_bold: bool = False
    bg_bright_from_bold: bool = False

    @property
    def is_default(self) -> bool:
        return self == DEFAULT_STYLE


DEFAULT_STYLE = StyleState()


class StyledNode(NamedTuple):
    node: Node
    style: StyleState


def _arg(group: Sequence[int], index: int) -> int:
    return group[index] if index < len(group) else 0


def _extended_color(group: Sequence[int]) -> Color | None:
    """Decode ``38:5:P`` / ``38:2:R:G:B`` style groups (leading code included)."""
    kind = _arg(group, 1)
    if kind == 5:
        return Palette(min(_arg(group, 2), 255))
    if kind == 2:
        # ITU T.416 puts a colour-space id before the channels.
        offset = 3 if len(group) >= 6 else 2
        r, g, b = (min(_arg(group, offset + i), 255) for i in range(3))
        return Rgb(r, g, b)
    return None


def _reset(state: StyleState, group: Sequence[int]) -> StyleState:
    return DEFAULT_STYLE


def _bold(state: StyleState, group: Sequence[int]) -> StyleState:
    changes: dict = {"bold": True}
    if isinstance(state.foreground, Standard):
        changes["foreground"] = Bright(state.foreground.index)
        changes["fg_bright_from_bold"] = True
    if isinstance(state.background, Standard):
        changes["background"] = Bright(state.background.index)
        changes["bg_bright_from_bold"] = True
    return replace(state, **changes)


def _normal_intensity(state: StyleState, group: Sequence[int]) -> StyleState:
    changes: dict = {"bold": False, "dim": False}
    if state.fg_bright_from_bold and isinstance(state.foreground, Bright):
        changes["foreground"] = Standard(state.foreground.index)
    if state.bg_bright_from_bold and isinstance(state.background, Bright):
        changes["background"] = Standard(state.background.index)
    changes["fg_bright_from_bold"] = False
    changes["bg_bright_from_bold"] = False
    return replace(state, **changes)


def _underline(state: StyleState, group: Sequence[int]) -> StyleState:
    if len(group) == 1:
        return replace(state, underline=UnderlineStyle.SINGLE)
    style = group[1]
    if style == 0:
        return replace(state, underline=None)
    return replace(state, underline=_UNDERLINE_STYLES.get(style, UnderlineStyle.SINGLE))


def _font(state: StyleState, group: Sequence[int]) -> StyleState:
    return replace(state, font=group[0] - 10)


def _standard_fg(state: StyleState, group: Sequence[int]) -> StyleState:
    index = group[0] - 30
    if state.bold:
        return replace(state, foreground=Bright(index), fg_bright_from_bold=True)
    return replace(state, foreground=Standard(index), fg_bright_from_bold=False)


def _standard_bg(state: StyleState, group: Sequence[int]) -> StyleState:
    index = group[0] - 40
    if state.bold:
        return replace(state, background=Bright(index), bg_bright_from_bold=True)
    return replace(state, background=Standard(index), bg_bright_from_bold=False)


def _bright_fg(state: StyleState, group: Sequence[int]) -> StyleState:
    return replace(state, foreground=Bright(group[0] - 90), fg_bright_from_bold=False)


def _bright_bg(state: StyleState, group: Sequence[int]) -> StyleState:
    return replace(state, background=Bright(group[0] - 100), bg_bright_from_bold=False)


def _extended_fg(state: StyleState, group: Sequence[int]) -> StyleState:
    color = _extended_color(group)
    if color is None:
        return state
    return replace(state, foreground=color, fg_bright_from_bold=False)


def _extended_bg(state: StyleState, group: Sequence[int]) -> StyleState:
    color = _extended_color(group)
    if color is None:
        return state
    return replace(state, background=color, bg_bright_from_bold=False)


def _underline_color(state: StyleState, group: Sequence[int]) -> StyleState:
    color = _extended_color(group)
    if color is None:
        return state
    return replace(state, underline_color=color)


def _set(**changes) -> Callable[[StyleState, Sequence[int]], StyleState]:
    def rule(state: StyleState, group: Sequence[int]) -> StyleState:
        return replace(state, **changes)

    return rule


_Rule = Callable[[StyleState, Sequence[int]], StyleState]

# Keyed on the first value of a parameter group.
_RULES: dict[int, _Rule] = {
    0: _reset,
    1: _bold,
    2: _set(dim=True),
    3: _set(italic=True),
    4: _underline,
    5: _set(blink=True),
    6: _set(rapid_blink=True),
    7: _set(reverse=True),
    8: _set(hidden=True),
    9: _set(strikethrough=True),
    **{code: _font for code in range(10, 20)},
    20: _set(fraktur=True),
    21: _normal_intensity,
    22: _normal_intensity,
    23: _set(italic=False),
    24: _set(underline=None),
    25: _set(blink=False, rapid_blink=False),
    26: _set(proportional_spacing=True),
    27: _set(reverse=False),
    28: _set(hidden=False),
    29: _set(strikethrough=False),
    **{code: _standard_fg for code in range(30, 38)},
    38: _extended_fg,
    39: _set(foreground=None, fg_bright_from_bold=False),
    **{code: _standard_bg for code in range(40, 48)},
    48: _extended_bg,
    49: _set(background=None, bg_bright_from_bold=False),
    50: _set(proportional_spacing=False),
    51: _set(framed=True),
    52: _set(encircled=True),
    53: _set(overlined=True),
    54: _set(framed=False, encircled=False),
    55: _set(overlined=False),
    58: _underline_color,
    59: _set(underline_color=None),
    73: _set(superscript=True, subscript=False),
    74: _set(subscript=True, superscript=False),
    75: _set(superscript=False, subscript=False),
    **{code: _bright_fg for code in range(90, 98)},
    **{code: _bright_bg for code in range(100, 108)},
}

_EXTENDED_CODES = frozenset({38, 48, 58})
# Number of trailing values taken by "5;P" (palette) and "2;R;G;B" (rgb).
_EXTENDED_ARGS = {5: 1, 2: 3}


def _groups(params: Sequence[Sequence[int]]) -> Iterable[tuple[int, ...]]:
    """Yield parameter groups, joining ``38;5;P``-style runs into one group."""
    i = 0
    while i < len(params):
        group = tuple(params[i])
        i += 1
        if not group:
            continue
        if group[0] in _EXTENDED_CODES and len(group) == 1 and i < len(params):
            kind = _arg(params[i], 0)
            wanted = _EXTENDED_ARGS.get(kind)
            if wanted is None:
                yield group
                continue
            extra = [_arg(p, 0) for p in params[i + 1 : i + 1 + wanted]]
            group = (group[0], kind, *extra)
            i += 1 + len(extra)
        yield group


def apply_sgr(state: StyleState, params: Sequence[Sequence[int]]) -> StyleState:
    """Fold SGR parameter groups over *state*; unknown codes are ignored."""
    for group in _groups(params):
        rule = _RULES.get(group[0])
        if rule is not None:
            state = rule(state, group)
    return state


def is_sgr(node: Node) -> bool:
    return isinstance(node, Csi) and node.code == SGR_CODE and not node.intermediates


def resolve(nodes: Iterable[Node], state: StyleState = DEFAULT_STYLE) -> list[StyledNode]:
    """Consume SGR sequences and pair every other node with its active style."""
    resolved: list[StyledNode] = []
    for node in nodes:
        if is_sgr(node):
            state = apply_sgr(state, node.params)
        else:
            resolved.append(StyledNode(node, state))
    return resolved
