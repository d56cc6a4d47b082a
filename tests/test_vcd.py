import pytest

from vbdsim.clktick import ClkTick
from vbdsim.vcd import VcdWriter


def _codes(text):
    codes = {}
    for line in text.splitlines():
        parts = line.split()
        if parts and parts[0] == "$var":
            codes[parts[4]] = parts[3]
    return codes


def _body(text):
    return text.split("$enddefinitions $end", 1)[1].split()


def test_header_declares_signals(tmp_path):
    path = tmp_path / "trace.vcd"
    with VcdWriter(ClkTick()) as writer:
        writer.open(path)
    text = path.read_text()
    assert "$timescale 1ps $end" in text
    assert "$scope module TOP $end" in text
    assert "$scope module clktick $end" in text
    assert set(_codes(text)) == {"clk", "rst", "en", "N", "tick", "count", "WIDTH"}


def test_first_dump_is_full_and_unchanged_dump_is_empty(tmp_path):
    path = tmp_path / "trace.vcd"
    model = ClkTick()
    with VcdWriter(model) as writer:
        writer.open(path)
        writer.dump(0)
        writer.dump(1)
    body = _body(path.read_text())
    assert body[0] == "#0"
    second = body.index("#1")
    assert second == len(body) - 1
    assert len([token for token in body[1:second] if not token.startswith("b")]) == 7


def test_changes_are_recorded(tmp_path):
    path = tmp_path / "trace.vcd"
    model = ClkTick()
    with VcdWriter(model) as writer:
        writer.open(path)
        writer.dump(0)
        model.clk = 1
        model.eval()
        writer.dump(1)
    text = path.read_text()
    code = _codes(text)["clk"]
    body = _body(text)
    assert body[body.index("#1") + 1:] == ["1" + code]


def test_bus_values_written_at_full_width(tmp_path):
    path = tmp_path / "trace.vcd"
    model = ClkTick()
    model.N = 5
    with VcdWriter(model) as writer:
        writer.open(path)
        writer.dump(0)
    text = path.read_text()
    code = _codes(text)["N"]
    body = _body(text)
    value = body[body.index(code) - 1]
    assert len(value) == 1 + model.width
    assert int(value[1:], 2) == 5
    width_code = _codes(text)["WIDTH"]
    assert int(body[body.index(width_code) - 1][1:], 2) == model.width


def test_time_cannot_go_backwards(tmp_path):
    with VcdWriter(ClkTick()) as writer:
        writer.open(tmp_path / "trace.vcd")
        writer.dump(4)
        with pytest.raises(ValueError):
            writer.dump(3)


def test_open_twice_rejected(tmp_path):
    with VcdWriter(ClkTick()) as writer:
        writer.open(tmp_path / "a.vcd")
        with pytest.raises(RuntimeError):
            writer.open(tmp_path / "b.vcd")


def test_dump_after_close_is_ignored(tmp_path):
    path = tmp_path / "trace.vcd"
    writer = VcdWriter(ClkTick())
    writer.open(path)
    writer.dump(0)
    writer.close()
    before = path.read_text()
    writer.dump(1)
    writer.close()
    assert path.read_text() == before
    assert writer.is_open is False