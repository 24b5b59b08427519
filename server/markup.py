"""Render optimized style runs as inline-styled HTML.

  [OpenStyle(red), Content("hi"), CloseStyle()] -> '<span style="color:#a00">hi</span>'
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Iterable

from run_optimizer import CloseStyle, Content, OpenStyle, Run
from sgr_style import Bright, Color, Palette, Rgb, Standard, StyleState, UnderlineStyle

# VGA text-mode palette, indexed by SGR color number 0-7.
_STANDARD_RGB = [
    (0x00, 0x00, 0x00), (0xAA, 0x00, 0x00), (0x00, 0xAA, 0x00), (0xAA, 0x55, 0x00),
    (0x00, 0x00, 0xAA), (0xAA, 0x00, 0xAA), (0x00, 0xAA, 0xAA), (0xAA, 0xAA, 0xAA),
]

_BRIGHT_RGB = [
    (0x55, 0x55, 0x55), (0xFF, 0x55, 0x55), (0x55, 0xFF, 0x55), (0xFF, 0xFF, 0x55),
    (0x55, 0x55, 0xFF), (0xFF, 0x55, 0xFF), (0x55, 0xFF, 0xFF), (0xFF, 0xFF, 0xFF),
]

_DECORATION_STYLES = {
    UnderlineStyle.DOUBLE: "double",
    UnderlineStyle.CURLY: "wavy",
    UnderlineStyle.DOTTED: "dotted",
    UnderlineStyle.DASHED: "dashed",
}


@dataclass(frozen=True)
class MarkupOptions:
    # Stand-ins for the terminal's own colors when reverse video needs them.
    default_foreground: Color = Standard(7)
    default_background: Color = Standard(0)
    wrap_pre: bool = False


DEFAULT_OPTIONS = MarkupOptions()


def palette_rgb(n: int) -> tuple[int, int, int]:
    """Convert a 256-color index to an (r, g, b) triple."""
    if n < 8:
        return _STANDARD_RGB[n]
    if n < 16:
        return _BRIGHT_RGB[n - 8]
    if n < 232:
        n -= 16
        return (n // 36) * 51, (n // 6 % 6) * 51, (n % 6) * 51
    v = 8 + (n - 232) * 10
    return v, v, v


def color_rgb(color: Color) -> tuple[int, int, int]:
    if isinstance(color, Standard):
        return _STANDARD_RGB[color.index]
    if isinstance(color, Bright):
        return _BRIGHT_RGB[color.index]
    if isinstance(color, Palette):
        return palette_rgb(color.index)
    return color.r, color.g, color.b


def hex_color(r: int, g: int, b: int) -> str:
    """Format a color as #rgb when every channel repeats its nibble, else #rrggbb."""
    if all(c >> 4 == c & 0xF for c in (r, g, b)):
        return f"#{r & 0xF:x}{g & 0xF:x}{b & 0xF:x}"
    return f"#{r:02x}{g:02x}{b:02x}"


def color_hex(color: Color) -> str:
    return hex_color(*color_rgb(color))


def style_declarations(style: StyleState, options: MarkupOptions = DEFAULT_OPTIONS) -> list[str]:
    """Build the CSS declarations for *style* in a fixed order."""
    decls: list[str] = []
    if style.bold:
        decls.append("font-weight:bold")
    if style.dim:
        decls.append("opacity:0.5")
    if style.italic:
        decls.append("font-style:italic")

    lines: list[str] = []
    if style.underline is not None:
        lines.append("underline")
    if style.overlined:
        lines.append("overline")
    if style.strikethrough:
        lines.append("line-through")
    if style.blink or style.rapid_blink:
        lines.append("blink")
    if lines:
        decls.append("text-decoration:" + " ".join(lines))
        if style.underline in _DECORATION_STYLES:
            decls.append(f"text-decoration-style:{_DECORATION_STYLES[style.underline]}")
        if style.underline_color is not None:
            decls.append(f"text-decoration-color:{color_hex(style.underline_color)}")

    fg, bg = style.foreground, style.background
    # SGR 7 (reverse video): swap fg and bg for rendering
    if style.reverse:
        fg, bg = bg or options.default_background, fg or options.default_foreground
    if fg is not None:
        decls.append(f"color:{color_hex(fg)}")
    if bg is not None:
        decls.append(f"background-color:{color_hex(bg)}")

    if style.superscript:
        decls.append("vertical-align:super")
    elif style.subscript:
        decls.append("vertical-align:sub")
    if style.hidden:
        decls.append("visibility:hidden")
    return decls


def serialize(runs: Iterable[Run], options: MarkupOptions = DEFAULT_OPTIONS) -> str:
    """Render runs to HTML. Styles with nothing to declare produce no span."""
    out: list[str] = []
    # One flag per open scope: whether its span was actually written.
    spans: list[bool] = []
    for run in runs:
        if isinstance(run, Content):
            out.append(html.escape(run.text, quote=False))
        elif isinstance(run, OpenStyle):
            decls = style_declarations(run.style, options)
            if decls:
                out.append(f'<span style="{";".join(decls)}">')
            spans.append(bool(decls))
        elif isinstance(run, CloseStyle) and spans:
            if spans.pop():
                out.append("</span>")
    # Unbalanced input still yields well-formed markup.
    out.extend("</span>" for written in reversed(spans) if written)

    markup = "".join(out)
    if options.wrap_pre:
        return f'<pre class="shellvetica">{markup}</pre>'
    return markup
