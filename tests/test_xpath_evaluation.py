import pytest

from _pluck.nodes import TagNode
from _pluck.parser import parse_html
from _pluck.xpath import evaluate
from _pluck.exceptions import XPathParsingError
from pluck import pluck


ADVANCED_HTML = """
<div class="container" id="main">
  <a href="/page1" class="link active">Home</a>
  <a href="/page2" class="link">About</a>
  <a href="https://external.com" class="link external">External</a>
  <p class="intro">Welcome to the site</p>
  <p class="content">Main content here</p>
  <div class="nested"><span>Nested text</span></div>
</div>
"""

AXES_HTML = """
<dl>
  <dt>Price</dt>
  <dd>$99</dd>
  <dt>Color</dt>
  <dd>Blue</dd>
</dl>
<table>
  <tr><td>A</td><td>B</td><td>C</td></tr>
  <tr><td>1</td><td>2</td><td>3</td></tr>
</table>
<div class="wrapper"><span class="inner">Deep</span></div>
"""

FUNCTIONS_HTML = """
<ul>
  <li>First</li>
  <li>Second</li>
  <li>Third</li>
  <li>   Spaced   </li>
</ul>
<div class="items">
  <span>A</span><span>B</span><span>C</span>
</div>
<p class="empty"></p>
<p class="filled">Has content</p>
"""

STRINGS_HTML = """
<ul>
  <li>hello-world</li>
  <li>foo-bar-baz</li>
  <li>ABC123</li>
</ul>
"""

SIBLINGS_HTML = """
<div>
  <p id="first">First paragraph</p>
  <p id="second">Second paragraph</p>
  <span id="middle">Middle span</span>
  <p id="third">Third paragraph</p>
  <p id="fourth">Fourth paragraph</p>
</div>
"""


@pytest.mark.parametrize(
    ("name", "start_name", "expected_order"),
    (
        ("ancestor", "c", "ba"),
        ("child", "b", "cde"),
        ("descendant", "a", "bcdefghi"),
        ("following", "b", "fghi"),
        ("following", "c", "defghi"),
        ("following-sibling", "b", "f"),
        ("following-sibling", "c", "de"),
        ("parent", "a", ""),
        ("parent", "d", "b"),
        ("preceding", "i", "bcdegh"),
        ("preceding", "f", "bcde"),
        ("preceding-sibling", "f", "b"),
        ("preceding-sibling", "i", "hg"),
        ("self", "a", "a"),
    ),
)
def test_axes_order(tree, name, start_name, expected_order):
    start = tree.xpath(f"//{start_name}")
    assert start.count == 1

    result = start.xpath(f"{name}::*")

    assert "".join(x._items[0].local_name for x in result) == expected_order


def test_any_name_test_matches_elements_only(tree):
    assert tree.xpath("//b/*").count == 3
    assert tree.xpath("//b/node()").count > 3


def test_attribute_steps_yield_strings():
    document = parse_html('<p><a href="/x" class="y">t</a></p>')
    assert evaluate("//a/@href", [document]) == ["/x"]
    assert sorted(evaluate("//a/@*", [document])) == ["/x", "y"]
    assert evaluate("//a/@missing", [document]) == []


def test_case_insensitive_names():
    document = parse_html("<DIV><P>x</P></DIV>")
    result = evaluate("//div/P", [document])
    assert len(result) == 1
    assert isinstance(result[0], TagNode)
    assert result[0].local_name == "p"


def test_evaluate_raises_on_incomplete_expression():
    document = parse_html("<p/>")
    with pytest.raises(XPathParsingError):
        evaluate("//p[", [document])


def test_paths_are_relative_to_context():
    document = pluck("<div><p>inner</p></div><p>outer</p>")
    div = document.css("div")
    assert div.xpath("//p::text").getall() == ["inner"]
    assert div.xpath("/p::text").getall() == ["inner"]
    assert div.xpath("p::text").getall() == ["inner"]
    assert document.xpath("/p::text").getall() == ["outer"]


def test_parent_step():
    document = pluck('<div id="x"><p>t</p></div>')
    assert document.xpath("//p/../@id").get() == "x"


def test_step_results_are_concatenated():
    document = pluck("<ul><li>a</li><li>b</li></ul>")
    assert document.xpath("//li/..").count == 2
    assert document.xpath("//li/.. | //li/..").count == 1


@pytest.mark.parametrize(
    ("html", "expression", "expected"),
    (
        (ADVANCED_HTML, "//a[text()='Home']/@href", ["/page1"]),
        (ADVANCED_HTML, "//p[contains(text(), 'Welcome')]::text", ["Welcome to the site"]),
        (
            ADVANCED_HTML,
            "//a[contains(@class, 'link')]/@href",
            ["/page1", "/page2", "https://external.com"],
        ),
        (ADVANCED_HTML, "//a[starts-with(@href, '/')]/@href", ["/page1", "/page2"]),
        (ADVANCED_HTML, "//p[starts-with(text(), 'Main')]::text", ["Main content here"]),
        (ADVANCED_HTML, "//a[ends-with(@href, '.com')]/@href", ["https://external.com"]),
        (
            ADVANCED_HTML,
            "//a[not(contains(@class, 'external'))]/@href",
            ["/page1", "/page2"],
        ),
        (
            ADVANCED_HTML,
            "//a[contains(@class, 'link') and contains(@class, 'active')]/@href",
            ["/page1"],
        ),
        (
            ADVANCED_HTML,
            "//p[@class='intro' or @class='content']::text",
            ["Welcome to the site", "Main content here"],
        ),
        (ADVANCED_HTML, "//div[@class='nested'][span]::text", ["Nested text"]),
        (ADVANCED_HTML, "//div[span]/@class", ["container", "nested"]),
        (AXES_HTML, "//dt[text()='Price']/following-sibling::dd::text", ["$99", "Blue"]),
        (AXES_HTML, "//dt[text()='Price']/following-sibling::dd[1]::text", ["$99"]),
        (AXES_HTML, "//dd[text()='Blue']/preceding-sibling::dt::text", ["Color", "Price"]),
        (AXES_HTML, "//dd[text()='Blue']/preceding-sibling::dt[1]::text", ["Color"]),
        (AXES_HTML, "//span[@class='inner']/ancestor::div/@class", ["wrapper"]),
        (AXES_HTML, "//tr[2]/td[2]::text", ["2"]),
        (FUNCTIONS_HTML, "//li[last()]::text", ["Spaced"]),
        (FUNCTIONS_HTML, "//li[position() > 1]::text", ["Second", "Third", "Spaced"]),
        (FUNCTIONS_HTML, "//li[position() < 3]::text", ["First", "Second"]),
        (FUNCTIONS_HTML, "//li[normalize-space()='Spaced']::text", ["Spaced"]),
        (FUNCTIONS_HTML, "//li[.='Spaced']::text", ["Spaced"]),
        (FUNCTIONS_HTML, "//div[count(span) > 2]/@class", ["items"]),
        (FUNCTIONS_HTML, "//div[count(span) > 3]/@class", []),
        (FUNCTIONS_HTML, "//p[string-length() > 0]/@class", ["filled"]),
        (FUNCTIONS_HTML, "//p[@class != 'empty']/@class", ["filled"]),
        (FUNCTIONS_HTML, "//span[@class != 'x']::text", ["A", "B", "C"]),
        (FUNCTIONS_HTML, "//li[text() != 'First']::text", ["Second", "Third", "Spaced"]),
        (FUNCTIONS_HTML, "//p[contains(@id, '')]/@class", ["empty", "filled"]),
        (STRINGS_HTML, "//li[substring(., 1, 5)='hello']::text", ["hello-world"]),
        (STRINGS_HTML, "//li[substring(., 7)='world']::text", ["hello-world"]),
        (STRINGS_HTML, "//li[substring-before(., '-')='foo']::text", ["foo-bar-baz"]),
        (
            STRINGS_HTML,
            "//li[substring-after(., 'hello-')='world']::text",
            ["hello-world"],
        ),
        (STRINGS_HTML, "//li[substring-after(., '#')='']::text", ["hello-world", "foo-bar-baz", "ABC123"]),
        (STRINGS_HTML, "//li[translate(., 'ABC', 'abc')='abc123']::text", ["ABC123"]),
        (STRINGS_HTML, "//li[translate(., '-', '')='helloworld']::text", ["hello-world"]),
        (SIBLINGS_HTML, "//span[@id='middle']/following::p/@id", ["third", "fourth"]),
        (SIBLINGS_HTML, "//span[@id='middle']/preceding::p/@id", ["first", "second"]),
    ),
)
def test_expressions(html, expression, expected):
    assert pluck(html).xpath(expression).getall() == expected


def test_unsupported_predicate_is_ignored(logger):
    document = pluck("<p>a</p><p>b</p>", logger=logger)
    assert document.xpath("//p[foo()]::text").getall() == ["a", "b"]
    assert "ignoring unsupported xpath predicate" in logger.messages("debug")


def test_text_nodes():
    document = pluck("<p>one <b>two</b> three</p>")
    assert document.xpath("//p/text()").getall() == ["one", "three"]
    assert document.xpath("//text()").getall() == ["one", "two", "three"]
