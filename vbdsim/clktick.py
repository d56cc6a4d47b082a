"""Cycle-level model of the ``clktick`` counter: a pulse every N+1 enabled clocks."""

from __future__ import annotations

DEFAULT_WIDTH = 16


class _Port:
    """An integer signal truncated to its bit width when assigned."""

    def __init__(self, bits: int | None = None) -> None:
        self._bits = bits

    def __set_name__(self, owner: type, name: str) -> None:
        self._attr = "_" + name

    def __get__(self, obj: object, owner: type | None = None) -> int:
        if obj is None:
            return self  # type: ignore[return-value]
        return getattr(obj, self._attr)

    def __set__(self, obj: object, value: int) -> None:
        bits = self._bits if self._bits is not None else obj.width  # type: ignore[attr-defined]
        setattr(obj, self._attr, int(value) & ((1 << bits) - 1))


class ClkTick:
    """Down-counter that reloads from ``N`` and raises ``tick`` when it reaches zero.

    Inputs ``clk``, ``rst``, ``en`` and ``N`` are assigned directly; ``eval``
    must be called after they change. The sequential logic runs on each rising
    edge of ``clk``.
    """

    clk = _Port(1)
    rst = _Port(1)
    en = _Port(1)
    N = _Port()

    def __init__(self, width: int = DEFAULT_WIDTH) -> None:
        if width < 1:
            raise ValueError(f"width must be at least 1, not {width}")
        self.width = width
        self._clk = 0
        self._rst = 0
        self._en = 0
        self._N = 0
        self._tick = 0
        self._count = 0
        self._last_clk: int | None = None

    @property
    def tick(self) -> int:
        """The output pulse, high for one cycle when the count expires."""
        return self._tick

    @property
    def count(self) -> int:
        """The internal counter value."""
        return self._count

    def _on_rising_edge(self) -> None:
        if self._rst:
            self._tick = 0
            self._count = self._N
        elif self._en:
            if self._count == 0:
                self._tick = 1
                self._count = self._N
            else:
                self._count = (self._count - 1) & ((1 << self.width) - 1)
                self._tick = 0

    def eval(self) -> None:
        """Propagate the current inputs; the first call only records the clock level."""
        if self._last_clk is None:
            self._last_clk = self._clk
        if self._clk and not self._last_clk:
            self._on_rising_edge()
        self._last_clk = self._clk

    def signals(self) -> dict[str, int]:
        """Current value of every port and of the internal counter."""
        return {
            "clk": self._clk,
            "rst": self._rst,
            "en": self._en,
            "N": self._N,
            "tick": self._tick,
            "count": self._count,
        }