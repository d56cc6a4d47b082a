"""Clock-tick divider model with VCD tracing, a Vbuddy serial driver and a testbench."""

__version__ = "0.1.0"

__all__ = ["clktick", "serialport", "testbench", "vbuddy", "vcd"]