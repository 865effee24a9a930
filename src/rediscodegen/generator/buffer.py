"""Indentation-tracking text sink used by every generation strategy."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator

INDENT = "    "


class EmissionBuffer:
    """A growing text buffer plus a nesting depth.

    Callers bracket nested bodies (class bodies, function bodies, ``match``
    arms) with :meth:`indented`, or with explicit :meth:`indent` /
    :meth:`dedent` pairs. The buffer never validates what it is given.

    Example::

        buf = EmissionBuffer()
        buf.push_line("class Cmd(BaseCmd):")
        with buf.indented():
            buf.push_line("pass")
        buf.getvalue()   # 'class Cmd(BaseCmd):\\n    pass\\n'
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self.depth = 0

    def push_line(self, text: str = "") -> None:
        """Write ``depth`` indent units, *text*, and a newline.

        An empty *text* writes a bare newline, so blank lines carry no
        trailing whitespace.
        """
        if text:
            self._lines.append(f"{INDENT * self.depth}{text}\n")
        else:
            self._lines.append("\n")

    def push_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.push_line(line)

    def push_doc(self, lines: list[str]) -> None:
        """Write *lines* as a docstring at the current depth.

        A one-line docstring stays on one line; longer ones get the closing
        quotes on their own line. Backslashes and triple quotes in the text
        are escaped.
        """
        escaped = [_escape_doc(line) for line in lines]
        while escaped and not escaped[-1]:
            escaped.pop()
        if not escaped:
            return
        if len(escaped) == 1:
            self.push_line(f'"""{escaped[0]}"""')
            return
        self.push_line(f'"""{escaped[0]}')
        for line in escaped[1:]:
            self.push_line(line)
        self.push_line('"""')

    def indent(self) -> None:
        self.depth += 1

    def dedent(self) -> None:
        self.depth = max(self.depth - 1, 0)

    @contextmanager
    def indented(self) -> Iterator[None]:
        """Indent everything pushed inside the ``with`` block by one unit."""
        self.indent()
        try:
            yield
        finally:
            self.dedent()

    def getvalue(self) -> str:
        return "".join(self._lines)


def _escape_doc(line: str) -> str:
    line = line.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if line.endswith('"'):
        line = line[:-1] + '\\"'
    return line
