from emailcrawler.parser import MarkupParser


def test_links_and_visible_text() -> None:
    body = b"""
    <html><head><style>p { color: red }</style><script>var x = "js@example.com";</script></head>
    <body>
      <a href=" /about ">About</a>
      <a href="">empty</a>
      <a>no href</a>
      <a href="https://other.com/x">Other</a>
      <p>Contact: hello@example.com</p>
    </body></html>
    """
    page = MarkupParser().parse(body)
    assert page.links == ["/about", "https://other.com/x"]
    assert "hello@example.com" in page.text
    assert "js@example.com" not in page.text
    assert "color" not in page.text


def test_binary_body_is_an_empty_page() -> None:
    page = MarkupParser().parse(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    assert page.links == []
    assert page.text == ""


def test_empty_body() -> None:
    page = MarkupParser().parse(b"")
    assert page.links == [] and page.text == ""


def test_malformed_markup_is_tolerated() -> None:
    page = MarkupParser().parse(b"<a href='/x'>unclosed <p>text <b>bold")
    assert page.links == ["/x"]
    assert "bold" in page.text
