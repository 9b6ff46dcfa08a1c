"""
Shared helpers for the broker's server-rendered pages.

Pages are plain Python classes returning complete HTML documents, so they can
be asserted on directly in tests. Browser logic lives in static scripts;
a page only hands them data through an inert JSON block.
"""

from typing import Any, Dict, Optional
import html
import json


class Component:
    """Something that renders to an HTML string.

    Subclasses escape every dynamic value they interpolate and never place
    data inside executable script.
    """

    def render(self) -> str:
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[str]) -> str:
        """HTML-escape `text` (quotes included); None renders as ''."""
        if text is None:
            return ""
        return html.escape(str(text), quote=True)

    @staticmethod
    def json_data_block(element_id: str, data: Dict[str, Any]) -> str:
        """Embed `data` as an inert JSON script element.

        `<`, `>` and `&` are emitted as unicode escapes so a value can never
        close the element or start markup.
        """
        payload = (
            json.dumps(data, separators=(",", ":"))
            .replace("<", "\\u003c")
            .replace(">", "\\u003e")
            .replace("&", "\\u0026")
        )
        return f'<script type="application/json" id="{html.escape(element_id)}">{payload}</script>'

    @staticmethod
    def classes(*names: str, **flags: bool) -> str:
        """Join class names, adding each keyword whose flag is true.

        >>> Component.classes("tab", active=True, hidden=False)
        'tab active'
        """
        parts = [n for n in names if n]
        parts.extend(name for name, on in flags.items() if on)
        return " ".join(parts)
