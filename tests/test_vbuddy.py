import pytest

from vbdsim.serialport import SerialError, SerialPort
from vbdsim.vbuddy import Vbuddy, VbuddyError, parse_value, read_port_name


class FakePort:
    def __init__(self, replies=None, open_error=None):
        self.replies = list(replies or [])
        self.written = []
        self.events = []
        self.opened = None
        self.open_error = open_error
        self.closed = False

    def open(self, device, bauds, *args):
        if self.open_error is not None:
            raise self.open_error
        self.opened = (device, bauds)

    def is_open(self):
        return self.opened is not None and not self.closed

    def close(self):
        self.closed = True

    def write_string(self, text):
        self.written.append(text)
        self.events.append("write")

    def flush_receiver(self):
        self.events.append("flush")

    def _next(self):
        self.events.append("read")
        if not self.replies:
            raise AssertionError("no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def read_string(self, final_char, max_bytes, timeout_ms=0):
        return self._next()

    def read_string_no_timeout(self, final_char, max_bytes):
        return self._next()


def make(replies):
    port = FakePort(replies)
    return Vbuddy(port), port


@pytest.mark.parametrize(
    "call, expected",
    [
        (lambda v: v.clear(), "$C\n"),
        (lambda v: v.header("L3T2:Clktick"), "$T,L3T2:Clktick\n"),
        (lambda v: v.cycle(7), "$t,cyc:   7,R\n"),
        (lambda v: v.hex(3, 9), "$H3,9\n"),
        (lambda v: v.plot(5, 0, 255), "$p,5,0,255\n"),
        (lambda v: v.bar(255), "$B,255\n"),
        (lambda v: v.set_mode(1), "$y,1\n"),
        (lambda v: v.init_analog_out(100), "$S,100\n"),
        (lambda v: v.output_sample(12), "$s,12\n"),
        (lambda v: v.aout_on(), "$O\n"),
        (lambda v: v.aout_off(), "$o\n"),
        (lambda v: v.init_mic_in(64), "$M,64\n"),
        (lambda v: v.init_watch(), "$W\n"),
    ],
)
def test_commands_write_message_and_wait_for_ack(call, expected):
    vbuddy, port = make(["$\n"])
    call(vbuddy)
    assert port.written == [expected]
    assert port.replies == []


def test_ack_skips_lines_without_dollar():
    vbuddy, port = make(["noise\n", "more\n", "$\n"])
    vbuddy.clear()
    assert port.replies == []
    assert port.events.count("read") == 3


def test_ack_retries_after_full_buffer():
    vbuddy, port = make([SerialError("full", -3), "$\n"])
    vbuddy.clear()
    assert port.replies == []


def test_ack_propagates_read_error():
    vbuddy, _ = make([SerialError("broken", -2)])
    with pytest.raises(SerialError):
        vbuddy.clear()


def test_hex_rejects_unknown_digit():
    vbuddy, port = make([])
    with pytest.raises(ValueError):
        vbuddy.hex(6, 1)
    assert port.written == []


def test_value_flushes_before_reading():
    vbuddy, port = make(["$42*"])
    assert vbuddy.value() == 42
    assert port.written == ["$V\n"]
    assert port.events == ["write", "flush", "read"]


def test_mic_value_and_elapsed_queries():
    vbuddy, port = make(["$17*", "$$250*"])
    assert vbuddy.mic_value() == 17
    assert vbuddy.elapsed() == 250
    assert port.written == ["$m\n", "$w\n"]


def test_value_retries_after_full_buffer():
    vbuddy, _ = make([SerialError("full", -3), "$23*"])
    assert vbuddy.value() == 23


@pytest.mark.parametrize("reply, expected", [("$1*", True), ("$0*", False)])
def test_flag(reply, expected):
    vbuddy, port = make([reply])
    assert vbuddy.flag() is expected
    assert port.written == ["$Y\n"]
    assert "flush" not in port.events


@pytest.mark.parametrize(
    "reply, expected",
    [("$123*", 123), ("$$45*", 45), ("$0*", 0), ("$7*", 7)],
)
def test_parse_value(reply, expected):
    assert parse_value(reply) == expected


@pytest.mark.parametrize("reply", ["123*", "$*", "$-5*", "x$12*", ""])
def test_parse_value_rejects_malformed(reply):
    with pytest.raises(VbuddyError):
        parse_value(reply)


def test_read_port_name(tmp_path):
    cfg = tmp_path / "vbuddy.cfg"
    cfg.write_text("/dev/ttyUSB0\n")
    assert read_port_name(cfg) == "/dev/ttyUSB0"


def test_read_port_name_missing_file(tmp_path):
    with pytest.raises(VbuddyError):
        read_port_name(tmp_path / "absent.cfg")


def test_read_port_name_empty_file(tmp_path):
    cfg = tmp_path / "vbuddy.cfg"
    cfg.write_text("")
    with pytest.raises(VbuddyError):
        read_port_name(cfg)


def test_open_connects_and_clears(tmp_path, capsys):
    cfg = tmp_path / "vbuddy.cfg"
    cfg.write_text("/dev/ttyUSB0\n")
    vbuddy, port = make(["$\n"])
    vbuddy.open(cfg)
    assert port.opened == ("/dev/ttyUSB0", 115200)
    assert port.written == ["$C\n"]
    assert port.events[0] == "flush"
    assert "Connected to Vbuddy via: /dev/ttyUSB0" in capsys.readouterr().out


def test_open_failure_raises(tmp_path, capsys):
    cfg = tmp_path / "vbuddy.cfg"
    cfg.write_text("/dev/ttyUSB0\n")
    port = FakePort(open_error=SerialError("no device", -1))
    with pytest.raises(VbuddyError):
        Vbuddy(port).open(cfg)
    assert "Error opening port: /dev/ttyUSB0" in capsys.readouterr().out
    assert port.written == []


def test_close_sends_stop_and_closes(tmp_path):
    cfg = tmp_path / "vbuddy.cfg"
    cfg.write_text("/dev/ttyUSB0\n")
    vbuddy, port = make(["$\n", "$\n"])
    vbuddy.open(cfg)
    vbuddy.close()
    assert port.written[-1] == "$t,    STOP,R\n"
    assert port.closed is True


def test_close_unopened_port_sends_nothing():
    vbuddy, port = make([])
    vbuddy.close()
    assert port.written == []


def test_loopback_round_trip(tmp_path):
    cfg = tmp_path / "vbuddy.cfg"
    cfg.write_text("loop://\n")
    port = SerialPort()
    with Vbuddy(port) as vbuddy:
        vbuddy.open(cfg)
        assert port.is_open()
        vbuddy.header("L3T2:Clktick")
        vbuddy.cycle(3)
        assert port.available() == 0
    assert not port.is_open()