# Copyright (c) 2026 Chip contributors
# SPDX-License-Identifier: ISC

"""
Line buffer for chip.

A Buffer is an ordered list of Rows. Each Row keeps the raw bytes of one line
together with a render form in which tabs are expanded to spaces. Rows are
only ever appended, so row indices stay valid for the lifetime of the buffer.

Text is treated as one byte per screen column.
"""

# Tab stops are placed every TAB_STOP columns in the render form
TAB_STOP = 4


def expand_tabs(raw):
    """
    Returns 'raw' with each tab replaced by one or more spaces, up to the next
    multiple of TAB_STOP. Other bytes are copied as is.
    """
    render = bytearray()
    for c in raw:
        if c == 9:  # "\t"
            render.append(32)
            while len(render) % TAB_STOP:
                render.append(32)
        else:
            render.append(c)
    return bytes(render)


class Row:
    """
    One line of text.

    raw:
      The line's bytes, without the line terminator

    render:
      'raw' with tabs expanded (see expand_tabs()). Recomputed whenever 'raw'
      is assigned.
    """

    __slots__ = ("_raw", "render")

    def __init__(self, raw=b""):
        self.raw = raw

    @property
    def raw(self):
        return self._raw

    @raw.setter
    def raw(self, raw):
        self._raw = bytes(raw)
        self.update()

    def update(self):
        """Recompute the render form from the raw bytes."""
        self.render = expand_tabs(self._raw)

    def cx_to_rx(self, cx):
        """See cx_to_rx()."""
        rx = 0
        for c in self._raw[:cx]:
            if c == 9:
                rx += (TAB_STOP - 1) - (rx % TAB_STOP)
            rx += 1
        return rx

    def __len__(self):
        return len(self._raw)

    def __repr__(self):
        return f"<Row {self._raw!r}>"


def cx_to_rx(row, cx):
    """
    Converts the raw column 'cx' in 'row' to the column it is drawn at, taking
    tab expansion into account. cx_to_rx(row, 0) is always 0.
    """
    return row.cx_to_rx(cx)


class Buffer:
    """
    Ordered collection of Rows, in file order.

    rows:
      List of Row instances. Only append_row() adds to it.
    """

    def __init__(self):
        self.rows = []

    @property
    def numrows(self):
        return len(self.rows)

    def append_row(self, raw):
        """
        Appends a row holding 'raw'. Trailing "\\r"/"\\n" bytes must already
        have been stripped.
        """
        row = Row(raw)
        self.rows.append(row)
        return row

    def load(self, filename):
        """
        Appends every line of 'filename' to the buffer. OSError propagates if
        the file can't be opened or read.
        """
        for line in read_lines(filename):
            self.append_row(line)

    def __len__(self):
        return len(self.rows)

    def __getitem__(self, i):
        return self.rows[i]

    def __iter__(self):
        return iter(self.rows)


def read_lines(filename):
    """
    Generates the lines of 'filename' as bytes, with trailing carriage returns
    and newlines stripped. The file is read in binary mode, so no decoding
    takes place.
    """
    with open(filename, "rb") as f:
        for line in f:
            yield line.rstrip(b"\r\n")
