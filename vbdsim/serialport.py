"""Serial port access used to talk to the Vbuddy board."""

from __future__ import annotations

import time
from enum import Enum

import serial

SUPPORTED_BAUDS = frozenset({9600, 19200, 38400, 57600, 115200})


class DataBits(Enum):
    """Number of data bits in one UART frame."""

    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    SIXTEEN = 16


class StopBits(Enum):
    """Number of stop bits in one UART frame."""

    ONE = 1
    ONE_POINT_FIVE = 1.5
    TWO = 2


class Parity(Enum):
    """Parity bit type."""

    NONE = "N"
    EVEN = "E"
    ODD = "O"
    MARK = "M"
    SPACE = "S"


_DATABITS = {
    DataBits.FIVE: serial.FIVEBITS,
    DataBits.SIX: serial.SIXBITS,
    DataBits.SEVEN: serial.SEVENBITS,
    DataBits.EIGHT: serial.EIGHTBITS,
}
_STOPBITS = {
    StopBits.ONE: serial.STOPBITS_ONE,
    StopBits.TWO: serial.STOPBITS_TWO,
}
_PARITY = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.EVEN: serial.PARITY_EVEN,
    Parity.ODD: serial.PARITY_ODD,
}


class SerialError(Exception):
    """Raised when the serial device cannot be opened, configured, read or written.

    ``code`` identifies the kind of failure:
    -1 device not found, -2 error while opening or reading, -3 buffer full,
    -4 speed not recognised, -7 data bits not supported,
    -8 stop bits not supported, -9 parity not supported.
    """

    def __init__(self, message: str, code: int = -2) -> None:
        super().__init__(message)
        self.code = code


class Timer:
    """Millisecond stopwatch used for read timeouts."""

    def __init__(self) -> None:
        self._start = time.monotonic()

    def reset(self) -> None:
        """Restart the stopwatch from now."""
        self._start = time.monotonic()

    def elapsed_ms(self) -> int:
        """Whole milliseconds since the last reset."""
        return int((time.monotonic() - self._start) * 1000)


def _to_bytes(data: str | bytes | bytearray) -> bytes:
    if isinstance(data, str):
        return data.encode("latin-1")
    return bytes(data)


class SerialPort:
    """A serial device with character, string and byte level I/O."""

    def __init__(self) -> None:
        self._port: serial.SerialBase | None = None

    def __enter__(self) -> SerialPort:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(
        self,
        device: str,
        bauds: int,
        databits: DataBits = DataBits.EIGHT,
        parity: Parity = Parity.NONE,
        stopbits: StopBits = StopBits.ONE,
    ) -> None:
        """Open and configure ``device``; any pyserial URL is accepted."""
        if bauds not in SUPPORTED_BAUDS:
            raise SerialError(f"speed not recognised: {bauds}", -4)
        if databits not in _DATABITS:
            raise SerialError(f"data bits not supported: {databits.value}", -7)
        if stopbits not in _STOPBITS:
            raise SerialError(f"stop bits not supported: {stopbits.value}", -8)
        if parity not in _PARITY:
            raise SerialError(f"parity not supported: {parity.name}", -9)
        self.close()
        try:
            self._port = serial.serial_for_url(
                device,
                baudrate=bauds,
                bytesize=_DATABITS[databits],
                parity=_PARITY[parity],
                stopbits=_STOPBITS[stopbits],
                timeout=None,
            )
        except FileNotFoundError as exc:
            raise SerialError(f"device not found: {device}", -1) from exc
        except (serial.SerialException, OSError, ValueError) as exc:
            raise SerialError(f"error opening {device}: {exc}", -2) from exc

    def is_open(self) -> bool:
        """True while a device is open."""
        return self._port is not None and self._port.is_open

    def close(self) -> None:
        """Close the device; closing an unopened port does nothing."""
        if self._port is not None:
            self._port.close()
            self._port = None

    def _require(self) -> serial.SerialBase:
        if not self.is_open():
            raise SerialError("device not open", -2)
        return self._port

    def _set_timeout(self, port: serial.SerialBase, seconds: float | None) -> None:
        if port.timeout != seconds:
            port.timeout = seconds

    def write_char(self, byte: str | bytes) -> None:
        """Write a single character."""
        data = _to_bytes(byte)
        if len(data) != 1:
            raise ValueError("write_char takes exactly one character")
        self.write_bytes(data)

    def write_string(self, text: str) -> None:
        """Write a text string."""
        self.write_bytes(_to_bytes(text))

    def write_bytes(self, data: bytes | bytearray) -> None:
        """Write raw bytes; raise SerialError if not all were written."""
        port = self._require()
        payload = bytes(data)
        try:
            written = port.write(payload)
        except (serial.SerialException, OSError) as exc:
            raise SerialError(f"error while writing: {exc}", -1) from exc
        if written is not None and written != len(payload):
            raise SerialError("short write", -1)

    def read_char(self, timeout_ms: int = 0) -> str | None:
        """Read one character; None on timeout. A timeout of 0 waits forever."""
        port = self._require()
        self._set_timeout(port, timeout_ms / 1000 if timeout_ms > 0 else None)
        try:
            data = port.read(1)
        except (serial.SerialException, OSError) as exc:
            raise SerialError(f"error while reading: {exc}", -2) from exc
        return data.decode("latin-1") if data else None

    def read_string_no_timeout(self, final_char: str, max_bytes: int) -> str:
        """Read up to and including ``final_char``, waiting as long as needed."""
        received: list[str] = []
        while len(received) < max_bytes:
            char = self.read_char()
            if char is None:
                continue
            received.append(char)
            if char == final_char:
                return "".join(received)
        raise SerialError("maximum number of bytes reached", -3)

    def read_string(self, final_char: str, max_bytes: int, timeout_ms: int = 0) -> str:
        """Read up to and including ``final_char``.

        On timeout the characters read so far are returned; they then do not
        end with ``final_char``. A timeout of 0 waits forever.
        """
        if timeout_ms == 0:
            return self.read_string_no_timeout(final_char, max_bytes)
        received: list[str] = []
        timer = Timer()
        while len(received) < max_bytes:
            remaining = timeout_ms - timer.elapsed_ms()
            if remaining > 0:
                char = self.read_char(remaining)
                if char is not None:
                    received.append(char)
                    if char == final_char:
                        return "".join(received)
            if timer.elapsed_ms() > timeout_ms:
                return "".join(received)
        raise SerialError("maximum number of bytes reached", -3)

    def read_bytes(self, max_bytes: int, timeout_ms: int = 0, sleep_us: int = 100) -> bytes:
        """Read up to ``max_bytes``, returning what arrived before the timeout."""
        port = self._require()
        self._set_timeout(port, 0)
        buffer = bytearray()
        timer = Timer()
        while timeout_ms == 0 or timer.elapsed_ms() < timeout_ms:
            try:
                chunk = port.read(max_bytes - len(buffer))
            except (serial.SerialException, OSError) as exc:
                raise SerialError(f"error while reading: {exc}", -2) from exc
            buffer += chunk
            if len(buffer) >= max_bytes:
                break
            time.sleep(sleep_us / 1_000_000)
        return bytes(buffer)

    def flush_receiver(self) -> None:
        """Discard everything waiting in the receive buffer."""
        self._require().reset_input_buffer()

    def available(self) -> int:
        """Number of bytes received but not yet read."""
        return self._require().in_waiting