"""Convert between character offsets and line/column points in a source text."""

import bisect

from margot import nodes


class OutOfRangeError(ValueError):
    """Raised when an offset or point does not address the source text."""


class Location:
    """Index of line starts for one source text.

    Lines are separated by ``\\n``; a ``\\r`` preceding it stays part of the
    line. Lines and columns are 1-indexed, offsets are 0-indexed. The
    end-of-text offset (``len(source)``) is addressable so that positions
    can end at the very end of a document.

    Out-of-range input raises :class:`OutOfRangeError`; nothing is clamped.
    """

    def __init__(self, source: str) -> None:
        """Index *source* once.

        Args:
            source: The full document text.
        """
        self.source = source
        self._line_starts: list[int] = [0]
        start = source.find("\n")
        while start != -1:
            self._line_starts.append(start + 1)
            start = source.find("\n", start + 1)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_end(self, line: int) -> int:
        """Return the offset just past the last character of *line*, before ``\\n``.

        Raises:
            OutOfRangeError: If *line* is not a line of the source.
        """
        if not 1 <= line <= self.line_count:
            raise OutOfRangeError(f"Line {line} is outside 1..{self.line_count}")
        if line == self.line_count:
            return len(self.source)
        return self._line_starts[line] - 1

    def to_point(self, offset: int) -> nodes.Point:
        """Return the point for *offset*.

        Raises:
            OutOfRangeError: If *offset* is negative or past the end of the text.
        """
        if isinstance(offset, bool) or not 0 <= offset <= len(self.source):
            raise OutOfRangeError(
                f"Offset {offset} is outside 0..{len(self.source)}"
            )
        index = bisect.bisect_right(self._line_starts, offset) - 1
        return nodes.Point(
            line=index + 1,
            column=offset - self._line_starts[index] + 1,
            offset=offset,
        )

    def to_offset(self, point: nodes.Point | tuple[int, int]) -> int:
        """Return the offset for *point*, a Point or a ``(line, column)`` pair.

        Only line and column are read; a Point's own offset is ignored.

        Raises:
            OutOfRangeError: If the line or column does not exist in the text.
        """
        if isinstance(point, nodes.Point):
            line, column = point.line, point.column
        else:
            line, column = point
        line_end = self.line_end(line)
        start = self._line_starts[line - 1]
        if not 1 <= column <= line_end - start + 1:
            raise OutOfRangeError(
                f"Column {column} is outside 1..{line_end - start + 1} on line {line}"
            )
        return start + column - 1

    def is_resolvable(self, point: nodes.Point) -> bool:
        """Return True if *point* is in range and its line/column match its offset."""
        try:
            return self.to_point(point.offset) == point
        except OutOfRangeError:
            return False
