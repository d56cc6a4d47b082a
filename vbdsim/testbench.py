"""Testbench driving the clktick model and showing its ticks on a Vbuddy board."""

from __future__ import annotations

import argparse
import os
import sys

from vbdsim.clktick import ClkTick
from vbdsim.vbuddy import DEFAULT_CONFIG, Vbuddy, VbuddyError
from vbdsim.vcd import VcdWriter

MAX_SIM_CYC = 100000
DEFAULT_TRACE = "clktick.vcd"


def run(
    vbuddy: Vbuddy,
    cycles: int = MAX_SIM_CYC,
    trace_path: str | os.PathLike[str] = DEFAULT_TRACE,
) -> int:
    """Simulate ``cycles`` clock cycles, toggling the LED bar on every tick.

    The period N is read from the board's rotary encoder each cycle. The board
    is closed at the end. Returns the number of ticks seen.
    """
    top = ClkTick()
    ticks = 0
    with VcdWriter(top) as trace:
        trace.open(trace_path)
        vbuddy.header("L3T2:Clktick")
        vbuddy.set_mode(1)

        top.clk = 1
        top.rst = 0
        top.en = 0
        top.N = vbuddy.value()
        lights = 0

        for simcyc in range(cycles):
            for edge in range(2):
                trace.dump(2 * simcyc + edge)
                top.clk = not top.clk
                top.eval()

            if top.tick:
                vbuddy.bar(lights)
                lights ^= 0xFF
                ticks += 1

            top.rst = simcyc < 2
            top.en = simcyc > 2
            top.N = vbuddy.value()
            vbuddy.cycle(simcyc)

        vbuddy.close()
    return ticks


def main(argv: list[str] | None = None) -> int:
    """Connect to the board and run the clktick simulation."""
    parser = argparse.ArgumentParser(description="Run the clktick testbench on a Vbuddy board.")
    parser.add_argument("--cycles", type=int, default=MAX_SIM_CYC)
    parser.add_argument("--trace", default=DEFAULT_TRACE)
    parser.add_argument("--config", default=DEFAULT_CONFIG)
    args = parser.parse_args(argv)

    vbuddy = Vbuddy()
    try:
        vbuddy.open(args.config)
    except VbuddyError as exc:
        print(exc, file=sys.stderr)
        return 1
    run(vbuddy, args.cycles, args.trace)
    return 0


if __name__ == "__main__":
    sys.exit(main())