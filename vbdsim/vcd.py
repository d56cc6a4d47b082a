"""Value change dump writer for the ``clktick`` model."""

from __future__ import annotations

import os
from time import ctime
from typing import IO

from vbdsim.clktick import ClkTick

_TOP_SIGNALS = ("clk", "rst", "en", "N", "tick")
_INNER_SIGNALS = ("WIDTH", "clk", "rst", "en", "N", "tick", "count")
_PARAM_BITS = 32


def _identifier(index: int) -> str:
    chars = []
    while True:
        chars.append(chr(33 + index % 94))
        index //= 94
        if index == 0:
            return "".join(chars)


class VcdWriter:
    """Write the signals of a ClkTick model to a VCD file at chosen times."""

    def __init__(self, model: ClkTick) -> None:
        self._model = model
        self._file: IO[str] | None = None
        self._last: dict[str, int] | None = None
        self._time: int | None = None
        names = ("clk", "rst", "en", "N", "tick", "count", "WIDTH")
        self._codes = {name: _identifier(i) for i, name in enumerate(names)}

    def __enter__(self) -> VcdWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _widths(self) -> dict[str, int]:
        width = self._model.width
        return {"clk": 1, "rst": 1, "en": 1, "N": width, "tick": 1, "count": width,
                "WIDTH": _PARAM_BITS}

    def _values(self) -> dict[str, int]:
        values = self._model.signals()
        values["WIDTH"] = self._model.width
        return values

    def _declare(self, name: str, indent: str) -> str:
        bits = self._widths()[name]
        suffix = f" [{bits - 1}:0]" if bits > 1 else ""
        return f"{indent}$var wire {bits} {self._codes[name]} {name}{suffix} $end\n"

    def _format(self, name: str, value: int) -> str:
        bits = self._widths()[name]
        if bits == 1:
            return f"{value}{self._codes[name]}\n"
        return f"b{value:0{bits}b} {self._codes[name]}\n"

    @property
    def is_open(self) -> bool:
        """True while a file is open for writing."""
        return self._file is not None

    def open(self, path: str | os.PathLike[str]) -> None:
        """Create ``path`` and write the declarations."""
        if self._file is not None:
            raise RuntimeError("trace file already open")
        self._file = open(path, "w", encoding="ascii")
        self._last = None
        self._time = None
        lines = [
            "$version Generated by vbdsim $end\n",
            f"$date {ctime()} $end\n",
            "$timescale 1ps $end\n",
            "\n",
            " $scope module TOP $end\n",
        ]
        lines += [self._declare(name, "  ") for name in _TOP_SIGNALS]
        lines.append("  $scope module clktick $end\n")
        lines += [self._declare(name, "   ") for name in _INNER_SIGNALS]
        lines += ["  $upscope $end\n", " $upscope $end\n", "$enddefinitions $end\n", "\n"]
        self._file.writelines(lines)

    def dump(self, time: int) -> None:
        """Record the values that changed since the previous dump; ignored when closed."""
        if self._file is None:
            return
        if self._time is not None and time < self._time:
            raise ValueError(f"time moves backwards: {time} after {self._time}")
        values = self._values()
        changed = [
            name for name, value in values.items()
            if self._last is None or self._last[name] != value
        ]
        self._file.write(f"#{time}\n")
        self._file.writelines(self._format(name, values[name]) for name in changed)
        self._last = values
        self._time = time

    def close(self) -> None:
        """Close the file; closing twice does nothing."""
        if self._file is not None:
            self._file.close()
            self._file = None