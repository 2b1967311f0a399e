#!/usr/bin/env python3
"""Validate rawterm and chip on the CI host.

Exercises rawterm key decoding and SGR styles, a raw-mode session on the
real controlling terminal when there is one, and chip's style parsing plus a
scripted session that needs no terminal.

Run from the project root: python .ci/validate-rawterm.py
"""

import os
import sys

# Ensure the project root (CWD) is on the import path, since Python
# adds the script's directory (.ci/) rather than CWD by default.
sys.path.insert(0, os.getcwd())


def check_rawterm_units():
    """rawterm Key, Style, decode_key -- no terminal required."""
    from rawterm import COLOR_NAMES, ESC, Key, Style, ctrl, decode_key

    # Key constants exist and are distinct
    names = ("UP", "DOWN", "LEFT", "RIGHT", "HOME", "END", "PAGE_UP", "PAGE_DOWN")
    values = [getattr(Key, attr) for attr in names + ("DELETE", "RESIZE")]
    assert len(set(values)) == len(values), "Key constants distinct"

    def feed(data):
        data = list(data)
        return decode_key(lambda: bytes([data.pop(0)]) if data else b"")

    assert feed(b"\x1b[A") == Key.UP, "ESC [ A"
    assert feed(b"\x1b[3~") == Key.DELETE, "ESC [ 3 ~"
    assert feed(b"\x1bOF") == Key.END, "ESC O F"
    assert feed(b"\x1b") == ESC, "lone ESC"
    assert feed(b"\x11") == ctrl("q"), "Ctrl-Q"

    assert Style(standout=True).sgr() == "\x1b[7m", "reverse video"
    assert Style(fg=9).sgr() == "\x1b[91m", "bright red"
    assert COLOR_NAMES[7] == "white", "color numbering"

    print("rawterm unit checks passed")


def check_terminal_session():
    """Terminal enter/exit -- full raw-mode lifecycle.

    Requires a real TTY on stdin/stdout.
    """
    if not (os.isatty(sys.stdin.fileno()) and os.isatty(sys.stdout.fileno())):
        print("Terminal enter/exit skipped (no TTY)")
        return

    import termios
    from rawterm import Terminal

    orig = termios.tcgetattr(sys.stdin.fileno())

    term = Terminal()
    term.enter()
    try:
        rows, cols = term.query_geometry()
        assert rows > 0 and cols > 0, "terminal size"
    finally:
        term.exit()

    assert termios.tcgetattr(sys.stdin.fileno()) == orig, "attributes restored"
    print(f"Terminal enter/exit passed ({rows}x{cols})")


def check_chip_scripted():
    """chip style parsing and a scripted session on a stand-in terminal."""
    import chip
    from rawterm import Key, Style, ctrl

    class ScriptedTerminal:
        def __init__(self, keys):
            self.keys = list(keys)
            self.frames = []

        def enter(self):
            pass

        def exit(self):
            pass

        def query_geometry(self):
            return 24, 80

        def write(self, data):
            self.frames.append(data)

        def clear_screen(self):
            pass

        def read_key(self):
            return self.keys.pop(0)

    # Verify CHIP_STYLE env override (save/restore any existing value)
    old_style = os.environ.get("CHIP_STYLE")
    os.environ["CHIP_STYLE"] = "status=fg:red,bg:white,bold"
    status = chip._load_styles()["status"]
    assert status == Style(fg=1, bg=7, bold=True)
    if old_style is None:
        del os.environ["CHIP_STYLE"]
    else:
        os.environ["CHIP_STYLE"] = old_style

    term = ScriptedTerminal([Key.DOWN, Key.END, ctrl("q")])
    editor = chip.chip(term=term)
    assert (editor.cy, editor.cx) == (0, 0), "empty buffer cursor"
    assert len(term.frames) == 3, "one frame per key"

    print("chip scripted session + style validation passed")


if __name__ == "__main__":
    check_rawterm_units()
    check_terminal_session()
    check_chip_scripted()
    print("All checks passed")
