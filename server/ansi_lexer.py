"""ANSI/VT byte-stream lexer.

Splits raw terminal output into a flat list of nodes:
  [Text("hello "), Csi(((1,), (31,)), b"", "m"), Text("world"), ...]

No parameter is interpreted here; SGR semantics live in ``sgr_style``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

ESC = 0x1B
BEL = 0x07
CAN = 0x18
SUB = 0x1A
DEL = 0x7F

# Control bytes that stay inside a text run instead of becoming nodes.
_TEXT_CONTROLS = frozenset(b"\n\r\t")

_MAX_CSI_VALUES = 32
_MAX_CSI_VALUE = 0xFFFF
_MAX_OSC_PARAMS = 16

_GROUND = 0
_ESCAPE = 1
_CSI = 2
_CSI_IGNORE = 3
_OSC = 4


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Csi:
    params: tuple[tuple[int, ...], ...]
    intermediates: bytes
    code: str


@dataclass(frozen=True)
class Esc:
    intermediates: bytes
    code: int


@dataclass(frozen=True)
class ControlChar:
    byte: int


@dataclass(frozen=True)
class Osc:
    params: tuple[bytes, ...]
    bell_terminated: bool


Node = Union[Text, Csi, Esc, ControlChar, Osc]


def normalize_crlf(data: bytes) -> bytes:
    """Collapse CRLF pairs into a single LF; lone CRs are left alone."""
    return data.replace(b"\r\n", b"\n")


def _csi_value(digits: bytes) -> int:
    # Checked on length first so huge digit runs never reach int().
    digits = digits.lstrip(b"0")
    if len(digits) > len(str(_MAX_CSI_VALUE)):
        return _MAX_CSI_VALUE
    return min(int(digits), _MAX_CSI_VALUE) if digits else 0


def parse_csi_params(raw: bytes) -> tuple[tuple[int, ...], ...]:
    """Split CSI parameter bytes into ``;`` positions of ``:`` sub-values.

    Empty values default to 0, values saturate at 65535 and at most 32 values
    are kept in total.
    """
    groups: list[tuple[int, ...]] = []
    budget = _MAX_CSI_VALUES
    for position in raw.split(b";"):
        values: list[int] = []
        for sub in position.split(b":"):
            if budget == 0:
                break
            values.append(_csi_value(sub))
            budget -= 1
        if values:
            groups.append(tuple(values))
        if budget == 0:
            break
    return tuple(groups)


def parse_osc_params(raw: bytes) -> tuple[bytes, ...]:
    return tuple(raw.split(b";", _MAX_OSC_PARAMS - 1))


class _Lexer:
    __slots__ = ("nodes", "text", "state", "intermediates", "params")

    def __init__(self) -> None:
        self.nodes: list[Node] = []
        self.text = bytearray()
        self.state = _GROUND
        self.intermediates = bytearray()
        self.params = bytearray()

    def flush_text(self) -> None:
        if self.text:
            self.nodes.append(Text(self.text.decode("utf-8", errors="replace")))
            self.text.clear()

    def emit(self, node: Node) -> None:
        self.flush_text()
        self.nodes.append(node)

    def execute(self, byte: int) -> None:
        if byte in _TEXT_CONTROLS:
            self.text.append(byte)
        else:
            self.emit(ControlChar(byte))

    def begin_escape(self) -> None:
        self.state = _ESCAPE
        self.intermediates.clear()
        self.params.clear()

    def run(self, data: bytes) -> list[Node]:
        for byte in data:
            state = self.state

            # CAN/SUB abort any sequence in progress, ESC restarts one.
            if state != _GROUND:
                if byte == CAN or byte == SUB:
                    self.state = _GROUND
                    self.emit(ControlChar(byte))
                    continue
                if byte == ESC:
                    if state == _OSC:
                        self.emit(Osc(parse_osc_params(bytes(self.params)), False))
                    self.begin_escape()
                    continue

            if state == _GROUND:
                if byte == ESC:
                    self.begin_escape()
                elif byte < 0x20 or byte == DEL:
                    self.execute(byte)
                else:
                    self.text.append(byte)

            elif state == _ESCAPE:
                if byte < 0x20:
                    self.execute(byte)
                elif byte < 0x30:
                    self.intermediates.append(byte)
                elif byte == 0x5B and not self.intermediates:
                    self.state = _CSI
                elif byte == 0x5D and not self.intermediates:
                    self.state = _OSC
                elif byte != DEL:
                    self.state = _GROUND
                    self.emit(Esc(bytes(self.intermediates), byte))

            elif state == _CSI:
                if byte < 0x20:
                    self.execute(byte)
                elif byte < 0x30:
                    self.intermediates.append(byte)
                elif byte < 0x40:
                    if 0x3C <= byte <= 0x3F:
                        # Private markers such as "?" in "CSI ? 25 h".
                        self.intermediates.append(byte)
                    elif self.intermediates and self.intermediates[-1] < 0x30:
                        self.state = _CSI_IGNORE
                    else:
                        self.params.append(byte)
                elif byte < DEL:
                    self.state = _GROUND
                    self.emit(
                        Csi(
                            params=parse_csi_params(bytes(self.params)),
                            intermediates=bytes(self.intermediates),
                            code=chr(byte),
                        )
                    )

            elif state == _CSI_IGNORE:
                if byte < 0x20:
                    self.execute(byte)
                elif 0x40 <= byte < DEL:
                    self.state = _GROUND

            elif state == _OSC:
                if byte == BEL:
                    self.state = _GROUND
                    self.emit(Osc(parse_osc_params(bytes(self.params)), True))
                elif byte >= 0x20:
                    self.params.append(byte)

        # Whatever sequence is still open at end of input is dropped.
        self.flush_text()
        return self.nodes


def lex(data: bytes | str) -> list[Node]:
    """Lex terminal output into nodes. Total over any input."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return _Lexer().run(normalize_crlf(data))
