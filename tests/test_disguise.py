"""
Tests for the disguise mixer.

A seeded random.Random and a fixed clock make filler output reproducible.
"""

import random
import re
import unittest
from datetime import datetime

from reader.disguise import (
    LOG_ACTIONS,
    LOG_COMPONENTS,
    LOG_LEVELS,
    DisguiseMixer,
    filler_lines_per_content_line,
    looks_like_filler,
    plain_lines,
)

FIXED_TIME = datetime(2024, 3, 9, 14, 5, 7)


def make_mixer(seed: int = 42) -> DisguiseMixer:
    return DisguiseMixer(rng=random.Random(seed), clock=lambda: FIXED_TIME)


class TestFillerCount(unittest.TestCase):
    """k = max(1, round(ratio * 10)), rounding halves up."""

    def test_known_ratios(self):
        cases = {
            0.0: 1,
            0.04: 1,
            0.1: 1,
            0.25: 3,
            0.3: 3,
            0.5: 5,
            0.66: 7,
            1.0: 10,
        }
        for ratio, expected in cases.items():
            with self.subTest(ratio=ratio):
                self.assertEqual(filler_lines_per_content_line(ratio), expected)

    def test_out_of_range_ratio_rejected(self):
        for ratio in (-0.1, 1.5, float("nan")):
            with self.subTest(ratio=ratio):
                with self.assertRaises(ValueError):
                    filler_lines_per_content_line(ratio)


class TestMix(unittest.TestCase):
    """Output layout and line-number mapping."""

    def test_two_lines_at_point_three(self):
        mixed = make_mixer().mix(["a", "b"], ratio=0.3)
        self.assertEqual(len(mixed), 8)
        self.assertEqual([m.is_genuine for m in mixed], [False, False, False, True] * 2)
        self.assertEqual(mixed[3].text, "a")
        self.assertEqual(mixed[7].text, "b")

    def test_line_count_law(self):
        content = [f"line {i}" for i in range(7)]
        for ratio in (0.0, 0.1, 0.3, 0.55, 1.0):
            with self.subTest(ratio=ratio):
                k = filler_lines_per_content_line(ratio)
                mixed = make_mixer().mix(content, ratio)
                self.assertEqual(len(mixed), len(content) * (k + 1))
                self.assertEqual(sum(m.is_genuine for m in mixed), len(content))
                pattern = ([False] * k + [True]) * len(content)
                self.assertEqual([m.is_genuine for m in mixed], pattern)

    def test_genuine_lines_map_back_to_document_lines(self):
        content = ["alpha", "beta", "gamma"]
        for ratio in (0.0, 0.3, 1.0):
            with self.subTest(ratio=ratio):
                mixed = make_mixer().mix(content, ratio, start_line=40)
                genuine = [m for m in mixed if m.is_genuine]
                self.assertEqual([m.text for m in genuine], content)
                self.assertEqual([m.line_number for m in genuine], [40, 41, 42])
                self.assertTrue(all(m.line_number is None for m in mixed if not m.is_genuine))

    def test_zero_ratio_still_disguises(self):
        mixed = make_mixer().mix(["only"], ratio=0.0)
        self.assertEqual(len(mixed), 2)
        self.assertFalse(mixed[0].is_genuine)

    def test_empty_content(self):
        self.assertEqual(make_mixer().mix([], ratio=0.5), [])

    def test_log_shaped_content_stays_genuine(self):
        """The tag, not the text, decides what is genuine."""
        fake_log = "[2024-01-01 00:00:00] INFO Narrator: once upon a time"
        mixed = make_mixer().mix([fake_log], ratio=0.1)
        self.assertTrue(looks_like_filler(mixed[-1].text))
        self.assertTrue(mixed[-1].is_genuine)
        self.assertEqual(mixed[-1].line_number, 0)

    def test_same_seed_same_output(self):
        content = ["x", "y", "z"]
        first = make_mixer(seed=7).mix(content, 0.4)
        second = make_mixer(seed=7).mix(content, 0.4)
        self.assertEqual(first, second)


class TestFillerLine(unittest.TestCase):
    """Shape and vocabulary of synthetic lines."""

    def test_format(self):
        mixer = make_mixer()
        pattern = re.compile(r"^\[2024-03-09 14:05:07\] (\w+) (\w+): (.+)$")
        for _ in range(50):
            line = mixer.filler_line()
            match = pattern.match(line)
            self.assertIsNotNone(match, line)
            self.assertIn(match.group(1), LOG_LEVELS)
            self.assertIn(match.group(2), LOG_COMPONENTS)
            self.assertIn(match.group(3), LOG_ACTIONS)
            self.assertTrue(looks_like_filler(line))

    def test_plain_prose_does_not_look_like_filler(self):
        self.assertFalse(looks_like_filler("It was the best of times."))


class TestPlainLines(unittest.TestCase):
    """Disguise off: lines pass through tagged genuine."""

    def test_plain_lines(self):
        lines = plain_lines(["a", "b"], start_line=10)
        self.assertEqual([(m.text, m.is_genuine, m.line_number) for m in lines],
                         [("a", True, 10), ("b", True, 11)])


if __name__ == '__main__':
    unittest.main()
