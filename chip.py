#!/usr/bin/env python3

# Copyright (c) 2026 Chip contributors
# SPDX-License-Identifier: ISC

"""
Overview
========

A small terminal text viewer. The file is shown in a scrollable window with a
status bar (file name, line count, current line) and a message line below it.

Keys:

  Arrow keys       : Move the cursor. Left/Right wrap between lines.
  Home/End         : Beginning/end of the current line
  Page Up/Down     : Scroll by a screenful
  Ctrl-Q           : Quit

Tabs are expanded to the next multiple of four columns. Text is treated as one
byte per column; no UTF-8 decoding takes place.


Running
=======

chip.py can be run either as a standalone executable or by calling the chip()
function. The file to view is passed as the only command-line argument. With
no argument, an empty buffer is shown.

The exit status is 0 after Ctrl-Q and 1 on errors (terminal or file I/O
failures).


Color schemes
=============

The status bar is drawn in reverse video by default. The CHIP_STYLE
environment variable changes this. It holds whitespace-separated
'<element>=<style>' assignments. The elements are:

    - status        Status bar (file name, line count, current line)
    - message       Message line below the status bar

A style is a comma-separated list of attributes:

    - fg:COLOR      Foreground/background color. COLOR is one of black, red,
    - bg:COLOR      green, yellow, blue, magenta, cyan, white, optionally
                    prefixed with 'bright' (brightred, ...).
    - bold          Bold text
    - underline     Underlined text
    - standout      Reverse video

The right-hand side can also name another element, whose style is copied. A
word without '=' names a built-in style ('default' or 'monochrome') which is
expanded in place, for example:

    CHIP_STYLE="monochrome message=fg:brightyellow"

Invalid assignments are ignored with a warning printed to stderr.
"""

import argparse
import os
import sys
import time

import rawterm
from rawterm import Key, Style, ctrl

from chipbuf import Buffer, cx_to_rx

#
# Configuration variables
#

CHIP_VERSION = "0.1"

# Seconds a status message stays visible
_MSG_TIMEOUT = 5

# Status messages longer than this are truncated
_MSG_MAX_LEN = 79

# At most this many characters of the file name are shown in the status bar
_FILENAME_MAX_LEN = 20

# Rows reserved below the text for the status bar and the message line
_BAR_ROWS = 2

_QUIT_KEY = ctrl("q")

#
# Styling
#

_STYLES = {
    "default": """
    status=standout
    message=
    """,
    "monochrome": """
    status=bold,underline
    message=bold
    """,
}

# Screen elements that can be styled
_ELEMENTS = ("status", "message")

_FLAG_ATTRS = ("bold", "underline", "standout")


def _color_number(name):
    # Returns the 0-15 color number for 'red', 'brightred', etc., or None
    # (terminal default) if the name is unknown
    bright = name.startswith("bright")
    base = name[len("bright") :] if bright else name
    if base not in rawterm.COLOR_NAMES:
        _warn("Ignoring unknown color", name)
        return None
    return rawterm.COLOR_NAMES.index(base) + (8 if bright else 0)


def _make_style(attrs):
    """Turns an attribute list like 'fg:white,bg:blue,bold' into a Style."""
    kwargs = {}
    for attr in attrs.split(","):
        kind, _, color = attr.partition(":")
        if kind in ("fg", "bg") and color:
            kwargs[kind] = _color_number(color)
        elif attr in _FLAG_ATTRS:
            kwargs[attr] = True
        elif attr:
            _warn("Ignoring unknown style attribute", attr)
    return Style(**kwargs)


def _apply_styles(text, styles):
    # Applies the '<element>=<attrs>' assignments and template names in
    # 'text' to the 'styles' dict, left to right. '<element>=<element>'
    # copies a style.
    for word in text.split():
        element, eq, value = word.partition("=")

        if not eq:
            if word in _STYLES:
                _apply_styles(_STYLES[word], styles)
            else:
                _warn("Ignoring non-existent style template", word)
        elif element not in _ELEMENTS:
            _warn("Ignoring non-existent style", element)
        elif value in _ELEMENTS:
            styles[element] = styles[value]
        else:
            styles[element] = _make_style(value)


def _load_styles():
    # Returns a dict mapping element names to rawterm.Style objects: the
    # 'default' template with CHIP_STYLE from the environment applied on top
    styles = {}
    _apply_styles("default", styles)
    _apply_styles(os.environ.get("CHIP_STYLE", ""), styles)
    return styles


#
# Editor state
#


class Editor:
    """
    Everything the viewer knows about the session: the buffer, the cursor,
    the visible window onto the buffer, and the status message.

    cx, cy:
      Cursor position in raw coordinates (byte index within the row, row
      index). cy can equal the number of rows only when the buffer is empty.

    rx:
      Screen column of the cursor within the row, after tab expansion.
      Derived from cx by scroll().

    rowoff, coloff:
      Buffer row and render column shown in the top-left corner

    n_rows, n_cols:
      Size of the text area. Two terminal rows are reserved for the bars.
    """

    def __init__(self, screen_rows, screen_cols, buf=None, filename=None, styles=None):
        self.buffer = buf if buf is not None else Buffer()
        self.filename = filename
        self.styles = styles if styles is not None else _load_styles()

        self.cx = 0
        self.cy = 0
        self.rx = 0
        self.rowoff = 0
        self.coloff = 0

        self.statusmsg = ""
        self.statusmsg_time = 0

        self.resize(screen_rows, screen_cols)

    def resize(self, screen_rows, screen_cols):
        """Adapts the text area to a terminal of the given size."""
        # At least one text row and column, even on tiny terminals
        self.n_rows = max(screen_rows - _BAR_ROWS, 1)
        self.n_cols = max(screen_cols, 1)

    def _row(self):
        # Row under the cursor, or None past the end of the buffer
        if self.cy < self.buffer.numrows:
            return self.buffer[self.cy]
        return None

    def set_status_message(self, msg):
        """Shows 'msg' on the message line for the next _MSG_TIMEOUT seconds."""
        self.statusmsg = msg[:_MSG_MAX_LEN]
        self.statusmsg_time = time.time()

    #
    # Cursor movement and scrolling
    #

    def scroll(self):
        """
        Recomputes rx from cx and scrolls the window so that the cursor is
        inside it. Calling it again without changing the cursor does nothing.
        """
        row = self._row()
        self.rx = cx_to_rx(row, self.cx) if row is not None else 0

        if self.cy < self.rowoff:
            self.rowoff = self.cy
        if self.cy >= self.rowoff + self.n_rows:
            self.rowoff = self.cy - self.n_rows + 1

        if self.rx < self.coloff:
            self.coloff = self.rx
        if self.rx >= self.coloff + self.n_cols:
            self.coloff = self.rx - self.n_cols + 1

    def move_cursor(self, key):
        """Moves the cursor one step in the direction of the arrow key 'key'."""
        numrows = self.buffer.numrows
        row = self._row()

        if key == Key.UP:
            if self.cy > 0:
                self.cy -= 1

        elif key == Key.DOWN:
            if self.cy < numrows - 1:
                self.cy += 1

        elif key == Key.LEFT:
            if self.cx > 0:
                self.cx -= 1
            elif self.cy > 0:
                # Wrap to the end of the previous line
                self.cy -= 1
                self.cx = len(self.buffer[self.cy])

        elif key == Key.RIGHT:
            if row is not None:
                if self.cx < len(row):
                    self.cx += 1
                elif self.cy < numrows - 1:
                    # Wrap to the start of the next line
                    self.cy += 1
                    self.cx = 0

        # The new line might be shorter
        row = self._row()
        rowlen = len(row) if row is not None else 0
        if self.cx > rowlen:
            self.cx = rowlen

    def process_key(self, key):
        """
        Acts on a key from rawterm.Terminal.read_key(). Returns False if the
        key asks to quit, and True otherwise.
        """
        if key == _QUIT_KEY:
            return False

        if key == Key.HOME:
            self.cx = 0

        elif key == Key.END:
            row = self._row()
            if row is not None:
                self.cx = len(row)

        elif key in (Key.PAGE_UP, Key.PAGE_DOWN):
            # Go to the top/bottom of the window first, then move a screenful
            # one step at a time so that the usual clamping applies
            if key == Key.PAGE_UP:
                self.cy = self.rowoff
                direction = Key.UP
            else:
                last = max(self.buffer.numrows - 1, 0)
                self.cy = min(self.rowoff + self.n_rows - 1, last)
                direction = Key.DOWN

            for _ in range(self.n_rows):
                self.move_cursor(direction)

        elif key in (Key.UP, Key.DOWN, Key.LEFT, Key.RIGHT):
            self.move_cursor(key)

        # Other keys (Delete, Esc, printable characters) are ignored, as
        # the buffer is read-only

        return True

    #
    # Drawing
    #

    def refresh_screen(self):
        """
        Scrolls and returns the escape sequences that redraw the whole screen,
        as a single bytes object to be written in one go.
        """
        self.scroll()

        buf = [b"\x1b[?25l", b"\x1b[H"]  # Hide cursor, cursor to top-left

        self.draw_rows(buf)
        self.draw_status_bar(buf)
        self.draw_message_bar(buf)

        buf.append(
            "\x1b[{};{}H".format(
                self.cy - self.rowoff + 1, self.rx - self.coloff + 1
            ).encode()
        )
        buf.append(b"\x1b[?25h")  # Show cursor

        return b"".join(buf)

    def draw_rows(self, buf):
        """Appends the text area to the list 'buf'."""
        numrows = self.buffer.numrows

        for y in range(self.n_rows):
            filerow = y + self.rowoff

            if filerow >= numrows:
                if numrows == 0 and y == self.n_rows // 3:
                    self._draw_welcome(buf)
                else:
                    buf.append(b"~")
            else:
                render = self.buffer[filerow].render
                buf.append(render[self.coloff : self.coloff + self.n_cols])

            buf.append(b"\x1b[K\r\n")

    def _draw_welcome(self, buf):
        welcome = f"Chip Editor -- version {CHIP_VERSION}".encode()
        welcome = welcome[: self.n_cols]

        padding = (self.n_cols - len(welcome)) // 2
        if padding:
            buf.append(b"~")
            padding -= 1
        buf.append(b" " * padding)
        buf.append(welcome)

    def draw_status_bar(self, buf):
        """
        Appends the status bar to 'buf': the file name and line count on the
        left, the current line number on the right.
        """
        numrows = self.buffer.numrows

        if self.filename is None:
            name = b"[NO FILE]"
        else:
            name = os.fsencode(self.filename)[:_FILENAME_MAX_LEN]

        status = name + f" - {numrows} lines".encode()
        status = status[: self.n_cols]
        rstatus = f"{self.cy + 1}/{numrows}".encode()

        buf.append(self.styles["status"].sgr().encode())
        buf.append(status)

        # The line number is only shown if at least one space separates it
        # from the left part
        space = self.n_cols - len(status)
        if space > len(rstatus):
            buf.append(b" " * (space - len(rstatus)) + rstatus)
        else:
            buf.append(b" " * space)

        buf.append(b"\x1b[m\r\n")

    def draw_message_bar(self, buf):
        """Appends the message line to 'buf'. Expired messages aren't shown."""
        buf.append(b"\x1b[K")

        msg = self.statusmsg.encode("ascii", "replace")[: self.n_cols]
        if not msg or time.time() - self.statusmsg_time >= _MSG_TIMEOUT:
            return

        style = self.styles["message"]
        if style == Style():
            buf.append(msg)
        else:
            buf.append(style.sgr().encode() + msg + b"\x1b[m")


#
# Main application
#


def _main():
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter, description=__doc__
    )

    parser.add_argument("filename", metavar="FILE", nargs="?", help="File to view")

    args = parser.parse_args()

    try:
        chip(args.filename)
    except (rawterm.TerminalError, OSError) as e:
        sys.exit(f"error: {e}")


def chip(filename=None, term=None):
    """
    Shows 'filename' in the viewer, returning after the user quits.

    filename:
      File to show. If None, the buffer starts out empty.

    term:
      rawterm.Terminal to run on. A Terminal on stdin/stdout is used if None.

    The file is read before the terminal is put in raw mode, so OSError from
    loading it leaves the terminal untouched. rawterm.TerminalError
    propagates after the terminal has been restored.
    """
    buf = Buffer()
    if filename is not None:
        buf.load(filename)

    styles = _load_styles()

    return rawterm.run(lambda t: _chip(t, buf, filename, styles), term)


def _chip(term, buf, filename, styles):
    # Main loop. Runs in raw mode. Returns the Editor after Ctrl-Q.

    rows, cols = term.query_geometry()
    editor = Editor(rows, cols, buf, filename, styles)
    editor.set_status_message("HELP: Ctrl-Q = quit")

    while True:
        term.write(editor.refresh_screen())

        key = term.read_key()

        if key == Key.RESIZE:
            editor.resize(*term.query_geometry())
            continue

        if not editor.process_key(key):
            term.clear_screen()
            return editor


def _warn(*args):
    # Prints a warning to stderr. Only called before the terminal enters raw
    # mode, where the output would get mangled.
    print("chip warning: ", end="", file=sys.stderr)
    print(*args, file=sys.stderr)


if __name__ == "__main__":
    _main()
