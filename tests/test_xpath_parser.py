import operator

import pytest

from _pluck.nodes import TextNode
from _pluck.xpath import parse, split_union
from _pluck.xpath.ast import (
    AnyNameTest,
    AttributeComparison,
    AttributeStringTest,
    Axis,
    BooleanOperator,
    CountComparison,
    HasAttribute,
    HasDescendant,
    IsLast,
    LocationPath,
    LocationStep,
    NameMatchTest,
    NodeTypeTest,
    Not,
    PositionComparison,
    StringLengthComparison,
    SubstringAfterComparison,
    SubstringBeforeComparison,
    SubstringComparison,
    TextComparison,
    TextStringTest,
    TranslateComparison,
)


@pytest.mark.parametrize(
    ("expression", "location_steps"),
    (
        ("p", [LocationStep(Axis("child"), NameMatchTest("p"))]),
        ("/p", [LocationStep(Axis("child"), NameMatchTest("p"))]),
        ("./p", [LocationStep(Axis("child"), NameMatchTest("p"))]),
        ("//p", [LocationStep(Axis("descendant"), NameMatchTest("p"))]),
        (".//P", [LocationStep(Axis("descendant"), NameMatchTest("p"))]),
        ("*", [LocationStep(Axis("child"), AnyNameTest())]),
        ("..", [LocationStep(Axis("parent"), NodeTypeTest(None))]),
        (".", [LocationStep(Axis("self"), NodeTypeTest(None))]),
        (
            "//a/@href",
            [
                LocationStep(Axis("descendant"), NameMatchTest("a")),
                LocationStep(Axis("attribute"), NameMatchTest("href")),
            ],
        ),
        (
            "//img/@*",
            [
                LocationStep(Axis("descendant"), NameMatchTest("img")),
                LocationStep(Axis("attribute"), AnyNameTest()),
            ],
        ),
        (
            "//p/text()",
            [
                LocationStep(Axis("descendant"), NameMatchTest("p")),
                LocationStep(Axis("child"), NodeTypeTest(TextNode)),
            ],
        ),
        (
            "//h2/following-sibling::p",
            [
                LocationStep(Axis("descendant"), NameMatchTest("h2")),
                LocationStep(Axis("following-sibling"), NameMatchTest("p")),
            ],
        ),
        (
            "ancestor::div/node()",
            [
                LocationStep(Axis("ancestor"), NameMatchTest("div")),
                LocationStep(Axis("child"), NodeTypeTest(None)),
            ],
        ),
    ),
)
def test_location_paths(expression, location_steps):
    path = parse(expression)
    assert path.is_complete
    assert path == LocationPath(location_steps)


@pytest.mark.parametrize(
    ("predicate", "expected"),
    (
        ("1", PositionComparison(operator.eq, 1.0)),
        ("last()", IsLast()),
        ("position() > 2", PositionComparison(operator.gt, 2.0)),
        ("2 < position()", PositionComparison(operator.gt, 2.0)),
        ("@id", HasAttribute("id")),
        ("@id='x'", AttributeComparison("id", operator.eq, "x")),
        ('@id != "x"', AttributeComparison("id", operator.ne, "x")),
        ("'x' = @id", AttributeComparison("id", operator.eq, "x")),
        ("span", HasDescendant("span")),
        ("text()='x'", TextComparison(operator.eq, "x")),
        (".='x'", TextComparison(operator.eq, "x")),
        ("normalize-space()='a b'", TextComparison(operator.eq, "a b", True)),
        ("normalize-space(.)='a b'", TextComparison(operator.eq, "a b", True)),
        (
            "contains(@class, 'item')",
            AttributeStringTest(operator.contains, "class", "item"),
        ),
        (
            "starts-with(@href, 'https')",
            AttributeStringTest(str.startswith, "href", "https"),
        ),
        ("ends-with(text(), '!')", TextStringTest(str.endswith, "!")),
        ("contains(., 'x')", TextStringTest(operator.contains, "x")),
        ("count(li) >= 3", CountComparison("li", operator.ge, 3.0)),
        ("string-length() > 5", StringLengthComparison(operator.gt, 5.0)),
        ("string-length(.) = 5", StringLengthComparison(operator.eq, 5.0)),
        (
            "substring(., 1, 3)='abc'",
            SubstringComparison(1, 3, operator.eq, "abc"),
        ),
        ("substring(., 2)='bc'", SubstringComparison(2, None, operator.eq, "bc")),
        (
            "substring-after(., ':')='b'",
            SubstringAfterComparison(":", operator.eq, "b"),
        ),
        (
            "substring-before(., ':')='a'",
            SubstringBeforeComparison(":", operator.eq, "a"),
        ),
        (
            "translate(., 'abc', 'ABC')='ABC'",
            TranslateComparison("abc", "ABC", operator.eq, "ABC"),
        ),
        ("not(@id)", Not(HasAttribute("id"))),
        (
            "@a and @b",
            BooleanOperator(operator.and_, HasAttribute("a"), HasAttribute("b")),
        ),
        (
            "@a or @b and @c",
            BooleanOperator(
                operator.or_,
                HasAttribute("a"),
                BooleanOperator(operator.and_, HasAttribute("b"), HasAttribute("c")),
            ),
        ),
        (
            "(@a or @b) and @c",
            BooleanOperator(
                operator.and_,
                BooleanOperator(operator.or_, HasAttribute("a"), HasAttribute("b")),
                HasAttribute("c"),
            ),
        ),
    ),
)
def test_predicates(predicate, expected):
    path = parse(f"//p[{predicate}]")
    assert path.is_complete
    assert not path.ignored_predicates
    assert path.location_steps[0].predicates == (expected,)


def test_multiple_predicates():
    path = parse("//li[@class][2]")
    assert path.location_steps[0].predicates == (
        HasAttribute("class"),
        PositionComparison(operator.eq, 2.0),
    )


@pytest.mark.parametrize(
    "predicate",
    (
        "@id > 'x'",
        "foo()",
        "5*6",
        "@a = @b",
        "1 = 1 = 1",
        "@a and",
        "substring(., 'x')='y'",
    ),
)
def test_ignored_predicates(predicate):
    expression = f"//p[{predicate}]"
    path = parse(expression)
    assert path.is_complete
    assert path.location_steps[0].predicates == ()
    assert path.ignored_predicates == (f"[{predicate}]",)


@pytest.mark.parametrize(
    ("expression", "remainder"),
    (
        ("", ""),
        ("//div[", "["),
        ("//[invalid-xpath", "//[invalid-xpath"),
        ("[invalid", "[invalid"),
        ("foo*", "*"),
        ("//p[~x]", "[~x]"),
        ("ancestors::div", "ancestors::div"),
        ("//p/", "/"),
        ("//p/foo()", "/foo()"),
        ("//a[@x='foo]", "[@x='foo]"),
        ("//a[@x=\"", "[@x=\""),
        ("//a[contains(@x, 'y)]", "[contains(@x, 'y)]"),
    ),
)
def test_incomplete_expressions(expression, remainder):
    path = parse(expression)
    assert not path.is_complete
    assert path.remainder == remainder


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        ("//p", ["//p"]),
        ("//p | //div", ["//p", "//div"]),
        ("//p|//div|//span", ["//p", "//div", "//span"]),
        ("//p[@a='x|y'] | //b", ["//p[@a='x|y']", "//b"]),
        ("//h1::text | //p::text", ["//h1::text", "//p::text"]),
        (" | ", []),
    ),
)
def test_split_union(in_, out):
    assert split_union(in_) == out
