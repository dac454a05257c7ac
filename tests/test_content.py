"""
RIGRELAY Content Store Tests
"""

import logging

import pytest

from conftest import FRAGMENT_A, FRAGMENT_B, FRAGMENT_C, TEMPLATE, write_content
from rigrelay.content import (
    DEFAULT_SECONDARY_PAYLOAD,
    MARKER_HTML_ENTRY,
    ContentPaths,
    ContentStore,
)
from rigrelay.errors import ContentLoadError


class TestContentStoreLoad:
    """Test loading the blobs from disk."""

    def test_load_complete(self, content_dir):
        """All four blobs and the endpoint are loaded."""
        store = ContentStore.load(content_dir, "host:1")
        assert store.template_script == TEMPLATE
        assert store.fragment_a == FRAGMENT_A
        assert store.fragment_b == FRAGMENT_B
        assert store.fragment_c == FRAGMENT_C
        assert store.endpoint == "host:1"
        assert store.secondary_payload == DEFAULT_SECONDARY_PAYLOAD

    @pytest.mark.parametrize("rel", [
        "payload.mjs",
        "payloads/index.js",
        "payloads/index.html",
        "entry/entry.html",
    ])
    def test_missing_blob_is_fatal(self, content_dir, rel):
        """Each mandatory file is required and named in the error."""
        (content_dir / rel).unlink()
        with pytest.raises(ContentLoadError) as exc_info:
            ContentStore.load(content_dir, "host:1")
        assert rel.split("/")[-1] in str(exc_info.value)
        assert exc_info.value.reason == "file not found"

    def test_empty_blob_is_fatal(self, content_dir):
        """An empty file does not satisfy the non-empty invariant."""
        (content_dir / "entry" / "entry.html").write_text("")
        with pytest.raises(ContentLoadError, match="empty"):
            ContentStore.load(content_dir, "host:1")

    def test_custom_paths(self, tmp_path):
        """File locations can be overridden."""
        for name, body in [("t.js", TEMPLATE), ("a", "A"), ("b", "B"), ("c", "C")]:
            (tmp_path / name).write_text(body)
        store = ContentStore.load(
            tmp_path, "e", paths=ContentPaths(template="t.js", fragment_a="a",
                                              fragment_b="b", fragment_c="c"),
        )
        assert (store.fragment_a, store.fragment_b, store.fragment_c) == ("A", "B", "C")

    def test_missing_markers_logged(self, tmp_path, caplog):
        """Markers absent from the template are reported, not fatal."""
        write_content(tmp_path, template=TEMPLATE.replace(MARKER_HTML_ENTRY, "nothing"))
        with caplog.at_level(logging.WARNING, logger="rigrelay"):
            store = ContentStore.load(tmp_path, "host:1")
        assert store.missing_markers() == [MARKER_HTML_ENTRY]
        assert MARKER_HTML_ENTRY in caplog.text


class TestContentStoreInvariants:
    """Test immutability and non-empty fields."""

    def test_frozen(self, store):
        """Fields cannot be reassigned."""
        with pytest.raises(Exception):
            store.endpoint = "other"

    def test_empty_field_rejected(self):
        """Every field must be non-empty."""
        with pytest.raises(ValueError, match="endpoint"):
            ContentStore(TEMPLATE, "a", "b", "c", endpoint="")

    def test_all_markers_present(self, store):
        """The fixture template references every marker."""
        assert store.missing_markers() == []
