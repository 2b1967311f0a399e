#!/usr/bin/env python3

# Copyright (c) 2026 Chip contributors
# SPDX-License-Identifier: ISC

"""
rawterm -- raw-mode terminal session and key decoding for chip

Owns the controlling terminal while the viewer runs: saves the original
termios attributes, switches to raw mode with a short read timeout, reports
the window size and decodes the byte stream into key events, including the
multi-byte escape sequences terminals send for navigation keys.

Also builds the SGR sequences for the colored status and message bars.

Uses only Python stdlib: termios, signal, atexit, os, re. POSIX only.
"""

import atexit
import errno
import os
import re
import signal
import sys
import termios


class TerminalError(Exception):
    """
    Raised when a terminal operation fails: an attribute query or update, a
    size query, or a read/write on the terminal device. Not recoverable.
    """

    def __init__(self, op, msg):
        super().__init__(f"{op}: {msg}")
        self.op = op
        self.msg = msg


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

# The eight basic terminal colors. Color numbers 0-7 select these and 8-15
# their bright variants.
COLOR_NAMES = ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")


class Style:
    """
    Display attributes for the status and message bars. fg and bg are color
    numbers (0-15) or None for the terminal's own color.
    """

    __slots__ = ("fg", "bg", "bold", "standout", "underline")

    def __init__(self, fg=None, bg=None, bold=False, standout=False, underline=False):
        self.fg = fg
        self.bg = bg
        self.bold = bold
        self.standout = standout
        self.underline = underline

    def sgr(self):
        """Return the SGR escape sequence selecting this style.

        Only the attributes that are set are emitted, so Style(standout=True)
        gives plain reverse video ("\\x1b[7m") and Style() gives a reset
        ("\\x1b[m").
        """
        parts = []
        if self.fg is not None:
            parts.append(_color_sgr(self.fg, 30))
        if self.bg is not None:
            parts.append(_color_sgr(self.bg, 40))
        if self.bold:
            parts.append("1")
        if self.underline:
            parts.append("4")
        if self.standout:
            parts.append("7")
        return "\x1b[{}m".format(";".join(parts))

    def __eq__(self, other):
        if not isinstance(other, Style):
            return NotImplemented
        return (self.fg, self.bg, self.bold, self.standout, self.underline) == (
            other.fg,
            other.bg,
            other.bold,
            other.standout,
            other.underline,
        )


def _color_sgr(num, base):
    # base is 30 for foreground and 40 for background. Bright colors use the
    # 90/100 range.
    if num < 8:
        return str(base + num)
    return str(base + 60 + num - 8)


# ---------------------------------------------------------------------------
# Input constants
# ---------------------------------------------------------------------------


class Key:
    """Named constants for special keys."""

    UP = "key_up"
    DOWN = "key_down"
    LEFT = "key_left"
    RIGHT = "key_right"
    PAGE_UP = "key_page_up"
    PAGE_DOWN = "key_page_down"
    HOME = "key_home"
    END = "key_end"
    DELETE = "key_delete"
    RESIZE = "key_resize"


ESC = "\x1b"


def ctrl(ch):
    """Return the control character produced by Ctrl+ch."""
    return chr(ord(ch) & 0x1F)


# ---------------------------------------------------------------------------
# Escape sequence decoding
# ---------------------------------------------------------------------------

# Bytes following ESC, mapped to Key constants. Multiple entries per key to
# handle terminal variants (xterm, rxvt, tmux/linux, application mode).
_ESCAPE_SEQUENCES = {
    # Arrow keys
    b"[A": Key.UP,
    b"[B": Key.DOWN,
    b"[C": Key.RIGHT,
    b"[D": Key.LEFT,
    # Page Up / Page Down
    b"[5~": Key.PAGE_UP,
    b"[6~": Key.PAGE_DOWN,
    # Home
    b"[H": Key.HOME,  # xterm
    b"OH": Key.HOME,  # application mode
    b"[1~": Key.HOME,  # tmux/linux
    b"[7~": Key.HOME,  # rxvt
    # End
    b"[F": Key.END,  # xterm
    b"OF": Key.END,  # application mode
    b"[4~": Key.END,  # tmux/linux
    b"[8~": Key.END,  # rxvt
    # Delete
    b"[3~": Key.DELETE,
}

# Second bytes after "[" that announce a "<digit>~" sequence
_TILDE_DIGITS = b"12345678"


def decode_key(read):
    """Decode one key event from a byte source.

    read:
      Callable returning a single byte (as bytes), or b"" if nothing arrived
      before the read timeout

    Returns None if no byte was available, a Key constant for a recognized
    escape sequence, ESC for a lone or unrecognized escape sequence, and the
    byte as a one-character string otherwise.

    At most three bytes are consumed after ESC, so a truncated or malformed
    sequence never blocks.
    """
    c = read()
    if not c:
        return None

    if c != b"\x1b":
        return chr(c[0])

    seq = read()
    if not seq:
        return ESC
    nxt = read()
    if not nxt:
        return ESC
    seq += nxt

    if seq[:1] == b"[" and seq[1:] in _TILDE_DIGITS:
        nxt = read()
        if not nxt:
            return ESC
        seq += nxt

    return _ESCAPE_SEQUENCES.get(seq, ESC)


# Reply to a cursor position request, e.g. "\x1b[24;80R" (the R is consumed
# by the reader and not part of the match)
_CURSOR_REPORT_RE = re.compile(rb"\x1b\[(\d+);(\d+)$")


def parse_cursor_report(data):
    """Parse a cursor position report into (row, col), or return None."""
    match = _CURSOR_REPORT_RE.match(data)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------


class Terminal:
    """Raw-mode session on the controlling terminal.

    enter() switches the input terminal to raw mode and exit() puts the
    original attributes back. The attributes are restored exactly once, also
    when the process exits without calling exit() (atexit).
    """

    def __init__(self, fd_in=None, fd_out=None):
        self._fd_in = sys.stdin.fileno() if fd_in is None else fd_in
        self._fd_out = sys.stdout.fileno() if fd_out is None else fd_out

        if not os.isatty(self._fd_in):
            raise TerminalError("isatty", "stdin is not a terminal")
        if not os.isatty(self._fd_out):
            raise TerminalError("isatty", "stdout is not a terminal")

        self._old_termios = None
        self._old_sigwinch = None
        self._sigwinch_installed = False
        self.resize_pending = False

    @property
    def active(self):
        """True between enter() and exit()."""
        return self._old_termios is not None

    def enter(self):
        """Save the current attributes and switch to raw mode."""
        try:
            self._old_termios = termios.tcgetattr(self._fd_in)
        except termios.error as e:
            raise TerminalError("tcgetattr", _errstr(e))

        # Safety net for exit paths that bypass exit()
        atexit.register(self.exit)

        raw = termios.tcgetattr(self._fd_in)
        # IFLAG: no break signal, CR-to-NL, parity check, 8th-bit strip or
        # flow control
        raw[0] &= ~(
            termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
        )
        # OFLAG: no output post-processing ("\n" is not turned into "\r\n")
        raw[1] &= ~termios.OPOST
        # CFLAG: 8-bit characters
        raw[2] |= termios.CS8
        # LFLAG: no echo, canonical mode, Ctrl-C/Ctrl-Z signals or Ctrl-V
        raw[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        # read() returns after 1/10 s even if no byte arrived
        raw[6][termios.VMIN] = 0
        raw[6][termios.VTIME] = 1

        try:
            termios.tcsetattr(self._fd_in, termios.TCSAFLUSH, raw)
        except termios.error as e:
            raise TerminalError("tcsetattr", _errstr(e))

        self._old_sigwinch = signal.signal(signal.SIGWINCH, self._sigwinch_handler)
        self._sigwinch_installed = True

    def exit(self):
        """Restore the attributes saved by enter(). Does nothing if they
        have already been restored."""
        if self._old_termios is None:
            return

        old, self._old_termios = self._old_termios, None
        atexit.unregister(self.exit)

        if self._sigwinch_installed:
            # signal.signal() returns None for handlers not set from Python
            signal.signal(signal.SIGWINCH, self._old_sigwinch or signal.SIG_DFL)
            self._sigwinch_installed = False

        try:
            termios.tcsetattr(self._fd_in, termios.TCSAFLUSH, old)
        except termios.error as e:
            raise TerminalError("tcsetattr", _errstr(e))

    def _sigwinch_handler(self, signum, frame):
        # Only flag it. read_key() reports the resize between keys.
        self.resize_pending = True

    def query_geometry(self):
        """Return the terminal size as (rows, cols).

        Asks the terminal driver first. If that fails or reports zero
        columns, moves the cursor to the bottom-right corner and asks the
        terminal where it ended up.
        """
        try:
            sz = os.get_terminal_size(self._fd_out)
            if sz.columns:
                return sz.lines, sz.columns
        except OSError:
            pass

        self.write(b"\x1b[999C\x1b[999B")
        return self.cursor_position()

    def cursor_position(self):
        """Request a cursor position report and return it as (row, col)."""
        self.write(b"\x1b[6n")

        buf = b""
        while len(buf) < 31:
            c = self.read_byte()
            if not c or c == b"R":
                break
            buf += c

        pos = parse_cursor_report(buf)
        if pos is None:
            raise TerminalError("cursor position", f"unexpected reply {buf!r}")
        return pos

    # --- Output ---

    def write(self, data):
        """Write data to the terminal with a single system call."""
        try:
            os.write(self._fd_out, data)
        except OSError as e:
            raise TerminalError("write", _errstr(e))

    def _write_raw(self, data):
        """Best-effort write. Errors are ignored."""
        try:
            os.write(self._fd_out, data)
        except OSError:
            pass

    def clear_screen(self):
        """Clear the screen and home the cursor, ignoring write errors."""
        self._write_raw(b"\x1b[2J\x1b[H")

    # --- Input ---

    def read_byte(self):
        """Return the next input byte, or b"" if none arrived in time."""
        try:
            return os.read(self._fd_in, 1)
        except OSError as e:
            if e.errno in (errno.EAGAIN, errno.EINTR):
                return b""
            raise TerminalError("read", _errstr(e))

    def read_key(self):
        """Block until a key arrives and return it (see decode_key()).

        Returns Key.RESIZE if the window was resized while waiting.
        """
        while True:
            key = decode_key(self.read_byte)
            if key is not None:
                return key
            if self.resize_pending:
                self.resize_pending = False
                return Key.RESIZE


def _errstr(e):
    # termios.error carries (errno, strerror) args, OSError has .strerror
    if isinstance(e, OSError) and e.strerror:
        return e.strerror
    if len(e.args) >= 2:
        return e.args[1]
    return str(e)


# ---------------------------------------------------------------------------
# Safe entry point
# ---------------------------------------------------------------------------


def run(fn, term=None):
    """Safe wrapper: enter raw mode, call fn(terminal), restore on exit.

    term:
      Terminal to use. A Terminal on stdin/stdout is created if None.

    If fn raises, the screen is cleared (best effort) before the exception
    propagates. The original terminal attributes are always restored.
    """
    if term is None:
        term = Terminal()
    term.enter()
    try:
        return fn(term)
    except Exception:
        term.clear_screen()
        raise
    finally:
        term.exit()
