from pathlib import Path
import random
import sys
import unittest

SERVER_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(SERVER_DIR))

from ansi_lexer import ControlChar, Text, lex
from run_optimizer import CloseStyle, Content, OpenStyle, blank_invisible, naive_runs, optimize
from sgr_style import DEFAULT_STYLE, Standard, StyledNode, StyleState, UnderlineStyle, resolve

RED = StyleState(foreground=Standard(1))
BLUE = StyleState(foreground=Standard(4))


def opened(style):
    return OpenStyle(style)


class NaiveRunsTests(unittest.TestCase):
    def test_styled_text_is_wrapped(self):
        self.assertEqual(
            list(naive_runs([StyledNode(Text("a"), RED), StyledNode(Text("b"), DEFAULT_STYLE)])),
            [opened(RED), Content("a"), CloseStyle(), Content("b")],
        )

    def test_non_text_nodes_are_dropped(self):
        self.assertEqual(list(naive_runs([StyledNode(ControlChar(7), RED)])), [])


class OptimizeTests(unittest.TestCase):
    def test_plain_text_untouched(self):
        tokens = [Content("t"), Content("e"), Content("s"), Content("t")]
        self.assertEqual(optimize(tokens), tokens)

    def test_vacuous_closes_dropped(self):
        self.assertEqual(
            optimize([Content("A"), CloseStyle(), CloseStyle(), CloseStyle(), Content("B")]),
            [Content("A"), Content("B")],
        )

    def test_repeated_closes_collapse(self):
        self.assertEqual(
            optimize([opened(RED), Content("A"), CloseStyle(), CloseStyle(), CloseStyle(), Content("B")]),
            [opened(RED), Content("A"), CloseStyle(), Content("B")],
        )

    def test_whitespace_between_same_color_is_absorbed(self):
        self.assertEqual(
            optimize([
                opened(RED), Content("A"), CloseStyle(), CloseStyle(), CloseStyle(),
                Content(" "), Content(" "), Content(" "),
                opened(RED), Content("B"), CloseStyle(), CloseStyle(),
            ]),
            [
                opened(RED), Content("A"),
                Content(" "), Content(" "), Content(" "),
                Content("B"), CloseStyle(),
            ],
        )

    def test_text_between_same_color_keeps_both_scopes(self):
        self.assertEqual(
            optimize([
                opened(RED), Content("A"), CloseStyle(), CloseStyle(), CloseStyle(),
                Content(" "), Content("X"), Content(" "),
                opened(RED), Content("B"), CloseStyle(), CloseStyle(),
            ]),
            [
                opened(RED), Content("A"), CloseStyle(),
                Content(" "), Content("X"), Content(" "),
                opened(RED), Content("B"), CloseStyle(),
            ],
        )

    def test_whitespace_before_different_color_stays_outside(self):
        self.assertEqual(
            optimize([opened(RED), Content("A"), CloseStyle(), Content("  "), opened(BLUE), Content("B"), CloseStyle()]),
            [opened(RED), Content("A"), CloseStyle(), Content("  "), opened(BLUE), Content("B"), CloseStyle()],
        )

    def test_overwritten_color(self):
        self.assertEqual(
            optimize([opened(RED), opened(BLUE), Content("A"), CloseStyle(), Content("B")]),
            [opened(BLUE), Content("A"), CloseStyle(), Content("B")],
        )

    def test_new_color_closes_previous_scope(self):
        self.assertEqual(
            optimize([opened(RED), Content("A"), opened(BLUE), Content("B")]),
            [opened(RED), Content("A"), CloseStyle(), opened(BLUE), Content("B"), CloseStyle()],
        )

    def test_empty_scope_removed(self):
        self.assertEqual(optimize([opened(RED), CloseStyle(), Content("x")]), [Content("x")])
        self.assertEqual(optimize([opened(RED)]), [])

    def test_open_scope_closed_at_end(self):
        self.assertEqual(
            optimize([opened(RED), Content("A"), Content(" ")]),
            [opened(RED), Content("A"), Content(" "), CloseStyle()],
        )

    def test_trailing_whitespace_after_close_stays_outside(self):
        self.assertEqual(
            optimize([opened(RED), Content("A"), CloseStyle(), Content("\n")]),
            [opened(RED), Content("A"), CloseStyle(), Content("\n")],
        )

    def test_empty_different_open_does_not_split_scope(self):
        self.assertEqual(
            optimize([
                opened(RED), Content("A"), CloseStyle(), Content(" "),
                opened(BLUE), opened(RED), Content("B"), CloseStyle(),
            ]),
            [opened(RED), Content("A"), Content(" "), Content("B"), CloseStyle()],
        )

    def test_resolved_nodes(self):
        runs = optimize(resolve(lex(b"\x1b[31mA\x1b[0m \x1b[31mB\x1b[0m C")))
        self.assertEqual(
            runs,
            [opened(RED), Content("A"), Content(" "), Content("B"), CloseStyle(), Content(" C")],
        )

    def test_same_style_split_by_control_merges(self):
        runs = optimize(resolve(lex(b"\x1b[31mab\x07cd")))
        self.assertEqual(runs, [opened(RED), Content("ab"), Content("cd"), CloseStyle()])

    def test_background_scope_keeps_whitespace_outside(self):
        red_bg = StyleState(background=Standard(1))
        tokens = [
            opened(red_bg), Content("A"), CloseStyle(),
            Content("   "),
            opened(red_bg), Content("B"), CloseStyle(),
        ]
        self.assertEqual(optimize(tokens), tokens)

    def test_underline_scope_keeps_whitespace_outside(self):
        runs = optimize(resolve(lex(b"\x1b[4mA\x1b[0m   \x1b[4mB\x1b[0m")))
        underlined = StyleState(underline=UnderlineStyle.SINGLE)
        self.assertEqual(
            runs,
            [
                opened(underlined), Content("A"), CloseStyle(),
                Content("   "),
                opened(underlined), Content("B"), CloseStyle(),
            ],
        )

    def test_visible_style_still_merges_without_whitespace(self):
        runs = optimize(resolve(lex(b"\x1b[41mab\x07cd")))
        red_bg = StyleState(background=Standard(1))
        self.assertEqual(runs, [opened(red_bg), Content("ab"), Content("cd"), CloseStyle()])

    def test_blank_invisible(self):
        self.assertTrue(blank_invisible(RED))
        self.assertTrue(blank_invisible(StyleState(bold=True, italic=True)))
        self.assertFalse(blank_invisible(StyleState(background=Standard(1))))
        self.assertFalse(blank_invisible(StyleState(reverse=True)))
        self.assertFalse(blank_invisible(StyleState(strikethrough=True)))
        self.assertFalse(blank_invisible(StyleState(overlined=True)))


class IdempotenceTests(unittest.TestCase):
    SAMPLES = [
        b"\x1b[31mA\x1b[0m   \x1b[31mB\x1b[0m",
        b"\x1b[31mA\x1b[0m \x1b[34m\x1b[31mB\x1b[39m\n",
        b"\x1b[1;32m+added\x1b[m\n\x1b[1;31m-removed\x1b[m\n context",
        b"\x1b[7m \x1b[0m x \x1b[4m\x1b[24m y\x1b[41m\t\x1b[42m z",
        b"plain text only",
        b"",
    ]

    def test_reapplying_is_a_no_op(self):
        for raw in self.SAMPLES:
            with self.subTest(raw=raw):
                once = optimize(resolve(lex(raw)))
                self.assertEqual(optimize(once), once)

    def test_reapplying_random_streams_is_a_no_op(self):
        pieces = [
            b"\x1b[31m", b"\x1b[34m", b"\x1b[41m", b"\x1b[4m", b"\x1b[24m",
            b"\x1b[7m", b"\x1b[1m", b"\x1b[0m", b"\x1b[m",
            b" ", b"  ", b"\t", b"\n", b"x", b"yz", b"\x07",
        ]
        rng = random.Random(99)
        for _ in range(300):
            raw = b"".join(rng.choice(pieces) for _ in range(rng.randrange(30)))
            with self.subTest(raw=raw):
                once = optimize(resolve(lex(raw)))
                self.assertEqual(optimize(once), once)
                opens = sum(isinstance(token, OpenStyle) for token in once)
                closes = sum(isinstance(token, CloseStyle) for token in once)
                self.assertEqual(opens, closes)


if __name__ == "__main__":
    unittest.main()
