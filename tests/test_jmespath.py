import pytest

from pluck import pluck, JsonSelector


JSON_HTML = """
<html>
  <script id="__NEXT_DATA__" type="application/json">
    {"props":{"pageProps":{"product":{"name":"Widget","price":29.99,"tags":["sale","new"]}}}}
  </script>
  <div data-config='{"theme":"dark","version":"2.0"}'>Content</div>
  <script type="application/ld+json">
    {"@type":"Product","name":"Gadget","offers":{"price":"49.99"}}
  </script>
</html>
"""


@pytest.fixture
def document():
    return pluck(JSON_HTML)


@pytest.mark.parametrize(
    ("query", "expected"),
    (
        ("props.pageProps.product.name", "Widget"),
        ("props.pageProps.product.tags", ["sale", "new"]),
        ("props.pageProps.product.price", 29.99),
        ("props.pageProps.product.tags[0]", "sale"),
        ("props.missing.path", None),
        ("length(props.pageProps.product.tags)", 2),
    ),
)
def test_script_json(document, query, expected):
    result = document.css("script#__NEXT_DATA__::text").jmespath(query)
    assert isinstance(result, JsonSelector)
    assert result.get() == expected


def test_attribute_json(document):
    result = document.css("[data-config]::attr(data-config)").jmespath("theme")
    assert result.get() == "dark"


def test_chained_queries(document):
    result = (
        document.css("script#__NEXT_DATA__::text")
        .jmespath("props.pageProps")
        .jmespath("product.price")
    )
    assert result.get() == 29.99


def test_feedback(document):
    scripts = document.css("script#__NEXT_DATA__::text")

    result = scripts.jmespath("props.pageProps.product.name")
    assert result.ok
    assert result.count == 1
    assert result.getall() == ["Widget"]

    result = scripts.jmespath("nonexistent")
    assert not result.ok
    assert result.count == 0
    assert result.get() is None
    assert scripts.jmespath("props.missing").get("default") == "default"


def test_multiple_sources(document):
    names = (
        document.css(
            "script[type='application/json'], script[type='application/ld+json']::text"
        )
        .jmespath("name")
        .getall()
    )
    assert names == ["Gadget"]


def test_invalid_json(logger):
    document = pluck('<script id="bad">not valid json</script>', logger=logger)
    result = document.css("script#bad::text").jmespath("anything")
    assert not result.ok
    assert result.get() is None
    assert logger.messages("warning") == ["jmespath failed to parse or query JSON"]


def test_invalid_query(logger):
    document = pluck(JSON_HTML, logger=logger)
    result = document.css("script#__NEXT_DATA__::text").jmespath("props[")
    assert not result.ok
    assert "jmespath failed to parse or query JSON" in logger.messages("warning")


def test_invalid_chained_query(logger):
    document = pluck(JSON_HTML, logger=logger)
    result = (
        document.css("script#__NEXT_DATA__::text").jmespath("props").jmespath("[[[")
    )
    assert not result.ok
    assert "jmespath query failed" in logger.messages("warning")
