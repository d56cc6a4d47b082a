"""Command protocol for the Vbuddy board attached to a simulation testbench."""

from __future__ import annotations

import os
import re
import select
import sys
from pathlib import Path

from vbdsim.serialport import SerialError, SerialPort

BAUD_RATE = 115200
DEFAULT_CONFIG = "vbuddy.cfg"
_MAX_LINE = 80
_MAX_REPLY = 10
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_stdin_prepared = False


class VbuddyError(Exception):
    """Raised when the board cannot be reached or sends an unusable reply."""


def read_port_name(path: str | os.PathLike[str] = DEFAULT_CONFIG) -> str:
    """Return the serial port name held on the first line of ``path``."""
    try:
        with open(path, encoding="utf-8") as config:
            line = config.readline(_MAX_LINE - 1)
    except OSError as exc:
        raise VbuddyError(f"Cannot find {path}") from exc
    name = line.rstrip("\r\n")
    if not name:
        raise VbuddyError(f"no port name in {path}")
    return name


def parse_value(reply: str) -> int:
    """Extract the integer from a reply of the form ``$<number>*``.

    A reply whose second character is not numeric carries a spurious leading
    ``$``; the number then follows the next ``$``.
    """
    text = reply
    start = text.find("$")
    if len(reply) > 1 and ord(reply[1]) < 48 and start >= 0:
        text = text[:start] + text[start + 1:]
        start = text.find("$")
    if start < 0:
        raise VbuddyError(f"malformed reply: {reply!r}")
    text = text[:start] + text[start + 1:]
    match = _LEADING_INT.match(text)
    if match is None:
        raise VbuddyError(f"malformed reply: {reply!r}")
    return int(match.group(1))


def _prepare_stdin(fd: int) -> None:
    global _stdin_prepared
    if _stdin_prepared:
        return
    _stdin_prepared = True
    try:
        import termios
    except ImportError:
        return
    try:
        attrs = termios.tcgetattr(fd)
        attrs[3] &= ~termios.ICANON
        termios.tcsetattr(fd, termios.TCSANOW, attrs)
    except termios.error:
        pass


def get_key() -> str | None:
    """Return a pending key press from standard input without blocking, or None."""
    if sys.platform == "win32":
        import msvcrt

        if msvcrt.kbhit():
            return msvcrt.getwch()
        return None
    fd = sys.stdin.fileno()
    _prepare_stdin(fd)
    ready, _, _ = select.select([fd], [], [], 0)
    if not ready:
        return None
    data = os.read(fd, 1)
    return data.decode("latin-1") if data else None


class Vbuddy:
    """A connection to a Vbuddy board over a serial port."""

    def __init__(self, port: SerialPort | None = None) -> None:
        self.port = port if port is not None else SerialPort()

    def __enter__(self) -> Vbuddy:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _ack(self) -> None:
        while True:
            try:
                reply = self.port.read_string("\n", _MAX_LINE, 0)
            except SerialError as exc:
                if exc.code == -3:
                    continue
                raise
            if reply.startswith("$"):
                return

    def _command(self, message: str) -> None:
        self.port.write_string(message)
        self._ack()

    def _read_reply(self) -> str:
        while True:
            try:
                reply = self.port.read_string_no_timeout("*", _MAX_REPLY)
            except SerialError as exc:
                if exc.code == -3:
                    continue
                raise
            if reply:
                return reply

    def _query(self, message: str) -> int:
        self.port.write_string(message)
        self.port.flush_receiver()
        return parse_value(self._read_reply())

    def open(self, config_path: str | os.PathLike[str] = DEFAULT_CONFIG) -> None:
        """Connect to the port named in ``config_path`` and clear the screen."""
        name = read_port_name(Path(config_path))
        try:
            self.port.open(name, BAUD_RATE)
        except SerialError as exc:
            print(f"\n** Error opening port: {name}")
            raise VbuddyError(f"error opening port: {name}") from exc
        print(f"\n ** Connected to Vbuddy via: {name}")
        self.port.flush_receiver()
        self.clear()

    def close(self) -> None:
        """Show STOP on the board and close the port."""
        if not self.port.is_open():
            return
        self._command("$t,    STOP,R\n")
        self.port.close()

    def clear(self) -> None:
        """Clear the TFT screen to black."""
        self._command("$C\n")

    def hex(self, digit: int, value: int) -> None:
        """Show a 4-bit value on seven-segment digit 0 to 5 (1 is right-most)."""
        if not 0 <= digit <= 5:
            raise ValueError(f"digit must be between 0 and 5, not {digit}")
        self._command(f"$H{digit},{value}\n")

    def plot(self, y: int, low: int, high: int) -> None:
        """Plot ``y`` scaled between ``low`` and ``high`` at the next x position."""
        self._command(f"$p,{y},{low},{high}\n")

    def header(self, text: str) -> None:
        """Write a centred header at the top of the screen."""
        self._command(f"$T,{text}\n")

    def cycle(self, cycle: int) -> None:
        """Show the cycle count at the bottom right of the screen."""
        self._command(f"$t,cyc:{cycle:4d},R\n")

    def flag(self) -> bool:
        """Return the current flag value."""
        self.port.write_string("$Y\n")
        reply = self._read_reply()
        return reply[1:2] == "1"

    def set_mode(self, mode: int) -> None:
        """Set the flag mode: 0 toggles, 1 is one-shot."""
        self._command(f"$y,{mode:1d}\n")

    def value(self) -> int:
        """Return the parameter set by the rotary encoder."""
        return self._query("$V\n")

    def init_analog_out(self, samples: int) -> None:
        """Prepare the DAC output buffer for ``samples`` samples."""
        self._command(f"$S,{samples}\n")

    def output_sample(self, sample: int) -> None:
        """Send one sample to the DAC buffer."""
        self._command(f"$s,{sample}\n")

    def aout_on(self) -> None:
        """Turn analog output on."""
        self._command("$O\n")

    def aout_off(self) -> None:
        """Turn analog output off."""
        self._command("$o\n")

    def init_mic_in(self, samples: int) -> None:
        """Prepare the microphone buffer to capture ``samples`` samples."""
        self._command(f"$M,{samples}\n")

    def mic_value(self) -> int:
        """Return the next microphone sample."""
        return self._query("$m\n")

    def bar(self, value: int) -> None:
        """Light the LED bar from an 8-bit value (1 is on)."""
        self._command(f"$B,{value}\n")

    def init_watch(self) -> None:
        """Start the board's millisecond stopwatch."""
        self._command("$W\n")

    def elapsed(self) -> int:
        """Milliseconds since the last init_watch call."""
        return self._query("$w\n")