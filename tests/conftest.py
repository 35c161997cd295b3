from pathlib import Path

import pytest

from pluck import pluck


FILES_PATH = Path(__file__).parent / "files"


class RecordingLogger:
    def __init__(self):
        self.records = []

    def _record(self, level, message, context):
        self.records.append((level, message, context))

    def debug(self, message, context=None):
        self._record("debug", message, context)

    def info(self, message, context=None):
        self._record("info", message, context)

    def warning(self, message, context=None):
        self._record("warning", message, context)

    def error(self, message, context=None):
        self._record("error", message, context)

    def messages(self, level=None):
        return [m for lvl, m, _ in self.records if level is None or lvl == level]


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def product_page():
    return pluck(
        """\
        <!DOCTYPE html>
        <html>
          <head><title>Shop</title></head>
          <body>
            <div class="product" data-id="1">
              <h2 class="title">Laptop</h2>
              <span class="price">$999</span>
              <a href="/p/1">Details</a>
            </div>
            <div class="product" data-id="2">
              <h2 class="title">Phone</h2>
              <span class="price">$499</span>
              <a href="/p/2">Details</a>
            </div>
            <div class="product sold-out" data-id="3">
              <h2 class="title">Tablet</h2>
              <span class="price">$299</span>
            </div>
          </body>
        </html>
        """
    )


@pytest.fixture
def tree():
    return pluck(
        """\
        <a>
            <b>
                <c></c>
                <d></d>
                <e></e>
            </b>
            <f>
                <g></g>
                <h></h>
                <i></i>
            </f>
        </a>
        """
    )


@pytest.fixture
def files_path():
    return FILES_PATH


@pytest.fixture
def dashboard(files_path):
    return pluck((files_path / "dashboard.html").read_text())
