"""
RIGRELAY - Test Configuration
=============================
Pytest fixtures shared by the unit and server tests.
"""

from pathlib import Path

import pytest

from rigrelay.assembly import PayloadAssembler
from rigrelay.content import ContentStore
from rigrelay.handler import RelayProtocol

SESSION_ID = "TEST-SESSION-0001"
ENDPOINT = "relay.test:8081"

TEMPLATE = """(function () {
    const EXT_JS = atob("%%PLACEHOLDER_EXT_JS_B64%%");
    const EXT_HTML = atob("%%PLACEHOLDER_EXT_HTML_B64%%");
    const ENTRY = atob("%%PLACEHOLDER_HTML_ENTRY_B64%%");
    const CHROME = atob("%%PLACEHOLDER_CHROME_PAYLOAD_B64%%");
    const UPDATER = "ws://%%updaterurl%%";
    const EXT_JS_AGAIN = atob("%%PLACEHOLDER_EXT_JS_B64%%");
})();
"""

FRAGMENT_A = "console.log('extension script');\n"
FRAGMENT_B = "<html><body><h1>Toolkit ✓ éè</h1></body></html>\n"
FRAGMENT_C = "<html><body>entry</body></html>\n"


def write_content(root: Path, template: str = TEMPLATE) -> Path:
    """Lay out the four content files under ``root``."""
    (root / "payloads").mkdir(parents=True, exist_ok=True)
    (root / "entry").mkdir(parents=True, exist_ok=True)
    (root / "payload.mjs").write_text(template, encoding="utf-8")
    (root / "payloads" / "index.js").write_text(FRAGMENT_A, encoding="utf-8")
    (root / "payloads" / "index.html").write_text(FRAGMENT_B, encoding="utf-8")
    (root / "entry" / "entry.html").write_text(FRAGMENT_C, encoding="utf-8")
    return root


@pytest.fixture
def content_dir(tmp_path) -> Path:
    """Directory holding a complete set of content files."""
    return write_content(tmp_path / "content")


@pytest.fixture
def store() -> ContentStore:
    """In-memory content store."""
    return ContentStore(
        template_script=TEMPLATE,
        fragment_a=FRAGMENT_A,
        fragment_b=FRAGMENT_B,
        fragment_c=FRAGMENT_C,
        endpoint=ENDPOINT,
    )


@pytest.fixture
def assembler(store) -> PayloadAssembler:
    return PayloadAssembler(store)


@pytest.fixture
def protocol(assembler) -> RelayProtocol:
    return RelayProtocol(assembler, SESSION_ID)
