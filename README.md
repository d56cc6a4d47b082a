# vbdsim

vbdsim is a small simulation kit for a clock-tick divider circuit. The simulated
circuit is shown on a Vbuddy board that is connected through a serial port.

## Parts

- `vbdsim.clktick.ClkTick(width=16)` is a cycle-level model of the divider.
  - Its inputs `clk`, `rst`, `en` and `N` are plain attributes. Each is cut to its bit width when you assign it.
  - Call `eval()` after you change the inputs.
  - On every rising edge of `clk`:
    - In reset, the model clears `tick` and loads the counter from `N`.
    - When enabled and the counter is zero, it sets `tick` and loads the counter from `N` again.
    - When enabled and the counter is not zero, it counts down and clears `tick`.
  - `count` holds the counter value.
  - `signals()` returns every value as a dict.
  - The first call to `eval()` only records the clock level.
- `vbdsim.vcd.VcdWriter(model)` writes a value change dump of a `ClkTick`.
  - It writes the ports at the top level. Inside a `clktick` scope it writes the ports again, plus `count` and the `WIDTH` parameter.
  - The timescale is 1 ps.
  - `dump(time)` records only the values that changed since the last dump. It does nothing while no file is open. It raises `ValueError` if `time` goes backwards.
  - The writer is a context manager. Leaving the `with` block closes the file.
- `vbdsim.serialport.SerialPort` is a serial device with character, string and byte I/O.
  - It has `read_char`, `read_string`, `read_string_no_timeout`, `read_bytes`, `write_char`, `write_string`, `write_bytes`, `flush_receiver` and `available`. In the read calls, a timeout of 0 means wait forever.
  - `open()` accepts any device name or URL that pyserial accepts, for example `loop://`.
  - It accepts only the speeds 9600, 19200, 38400, 57600 and 115200.
  - It refuses 16 data bits, 1.5 stop bits, and mark or space parity.
  - Failures raise `SerialError`. Its `code` attribute tells what went wrong.
  - `Timer` is the millisecond stopwatch used for the read timeouts.
- `vbdsim.vbuddy.Vbuddy(port=None)` implements the Vbuddy command set over a `SerialPort`. The commands are:

  | Method | What it does |
  | --- | --- |
  | `clear` | Clears the screen. |
  | `hex` | Sets a seven-segment digit, numbered 0 to 5. |
  | `header` | Writes the screen header. |
  | `plot` | Plots a value on the screen. |
  | `cycle` | Shows the cycle counter. |
  | `bar` | Sets the LED bar. |
  | `flag`, `set_mode` | Read the flag and set its mode. |
  | `value` | Reads the rotary encoder. |
  | `init_analog_out`, `output_sample`, `aout_on`, `aout_off` | Control the DAC. |
  | `init_mic_in`, `mic_value` | Read the microphone. |
  | `init_watch`, `elapsed` | Use the stopwatch. |

  - `open(config_path="vbuddy.cfg")` reads the port name from the first line of the file. It then connects at 115200 baud and clears the screen.
  - `close()` shows STOP on the board and closes the port.
  - Problems with the connection or with a reply raise `VbuddyError`.

  The module also provides these helpers:
  - `read_port_name(path)`
  - `parse_value(reply)`, which turns a `$<number>*` reply into an int
  - `get_key()`, which reads a key press from standard input without blocking
- `vbdsim.testbench` drives the model from the board. It is described in the next section.

## Install

```
pip install .
```

## Running the testbench

First, create a file named `vbuddy.cfg` in the working directory. Its first line
must be the serial device of the board, for example:

```
/dev/ttyUSB0
```

Then run:

```
vbdsim-clktick
```

The command accepts these options:

| Option | Default | Meaning |
| --- | --- | --- |
| `--cycles` | 100000 | Number of cycles to simulate |
| `--trace` | `clktick.vcd` | Waveform file to write |
| `--config` | `vbuddy.cfg` | Board configuration file |

The testbench runs as follows:

1. It sets the header `L3T2:Clktick` and puts the flag in one-shot mode.
2. It holds reset for the first cycles and then enables the counter.
3. On every cycle it reads `N` from the rotary encoder.
4. It flips the LED bar each time `tick` is high.
5. It shows the cycle count on the board.
6. At the end it closes the board.

If the board cannot be opened, the command prints the error and exits with status 1.

You can also start the testbench from your own code.
`vbdsim.testbench.run(vbuddy, cycles, trace_path)` runs it on a `Vbuddy` that is
already open and returns the number of ticks it saw.

## Using the pieces directly

```python
from vbdsim.clktick import ClkTick
from vbdsim.vcd import VcdWriter

top = ClkTick(16)
with VcdWriter(top) as trace:
    trace.open("clktick.vcd")
    top.clk, top.rst, top.en, top.N = 1, 1, 0, 3
    for cycle in range(20):
        for edge in range(2):
            trace.dump(2 * cycle + edge)
            top.clk = not top.clk
            top.eval()
        top.rst = cycle < 2
        top.en = cycle > 2
        if top.tick:
            print("tick at cycle", cycle)
```

To control the board yourself:

```python
from vbdsim.vbuddy import Vbuddy

with Vbuddy() as board:
    board.open("vbuddy.cfg")
    board.header("Hello")
    board.hex(1, 7)
    print(board.value())
```

## What it does not do

- vbdsim does not compile hardware descriptions. The only circuit it models is the clock-tick divider in `ClkTick`.
- The testbench needs a Vbuddy board that answers its commands. There is no mode that runs it without a board.

## Tests

```
pip install .[test]
pytest
```