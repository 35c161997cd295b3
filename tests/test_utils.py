import re

import pytest

from _pluck.utils import compile_pattern, extract_regex, normalize_space


@pytest.mark.parametrize(
    ("pattern", "strings", "expected"),
    (
        (r"\d+", ["a1b2c3"], ["1", "2", "3"]),
        (r"\d+", ["no digits"], []),
        (r"[a-z]", ["a1b2c3"], ["a", "b", "c"]),
        (r"\$(\d+)", ["$10 and $20"], ["10", "20"]),
        (r"\$(\d+\.\d+)", ["$99.99, $49.50"], ["99.99", "49.50"]),
        (r"(\d{4})-(\d{2})-(\d{2})", ["2024-01-15"], ["2024", "01", "15"]),
        (r"([a-z])(\d)", ["a1 b2 c3"], ["a", "1", "b", "2", "c", "3"]),
        (r"([a-z])(\d)?", ["a1b"], ["a", "1", "b"]),
        (r"(?:item)-(\d)", ["item-1 item-2"], ["1", "2"]),
        (r"(?:item)-\d", ["item-1 item-2"], ["item-1", "item-2"]),
        (r"\d+", [""], []),
        (r"\$\d+\.\d+", ["Price: $99.99"], ["$99.99"]),
        (r"\w+", ["hello 世界"], ["hello", "世界"]),
        (r"\d", ["line 1\nline 2\nline 3"], ["1", "2", "3"]),
        (r"\d+", ["1", "2 3"], ["1", "2", "3"]),
    ),
)
def test_extract_regex(pattern, strings, expected):
    assert extract_regex(compile_pattern(pattern), strings) == expected


def test_compile_pattern():
    pattern = re.compile(r"\d", re.IGNORECASE)
    assert compile_pattern(pattern) is pattern
    assert compile_pattern(r"\d") is compile_pattern(r"\d")
    with pytest.raises(re.error):
        compile_pattern("(")


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        ("  a  b ", "a b"),
        ("a\n\tb", "a b"),
        ("", ""),
    ),
)
def test_normalize_space(in_, out):
    assert normalize_space(in_) == out
