"""
SimWatch Console View.

Renders the menu tree as indented text.
Requires Python 3.11+.
"""

import sys
from typing import TextIO

from menu.models import ItemState, MenuItem

SEPARATOR = "-" * 24


def render_menu(items: list[MenuItem], indent: int = 0) -> list[str]:
    """
    Render menu items as text lines.

    Disabled items are wrapped in parentheses, checked items are
    prefixed with ``*`` and key equivalents follow in brackets.
    """
    pad = "  " * indent
    lines: list[str] = []
    for item in items:
        if item.separator:
            lines.append(pad + SEPARATOR)
            continue

        mark = "* " if item.state == ItemState.ON else "  "
        title = item.title if item.enabled else f"({item.title})"
        key = f" [{item.key_equivalent}]" if item.key_equivalent else ""
        lines.append(f"{pad}{mark}{title}{key}")
        if item.submenu:
            lines.extend(render_menu(item.submenu, indent + 1))
    return lines


class ConsoleConsumer:
    """View consumer that prints each published menu."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout
        self.presented = 0

    def present(self, items: list[MenuItem]) -> None:
        self.presented += 1
        print("\n".join(render_menu(items)), file=self._stream)
        print(file=self._stream, flush=True)
