import io

import pytest

from xfmt import SinkWriteError, StreamSink, StringSink, display_fn, render


class FailingSink:
    def __init__(self, fail_after):
        self.fail_after = fail_after
        self.chunks = []

    def write(self, chunk):
        if len(self.chunks) >= self.fail_after:
            raise OSError("disk full")
        self.chunks.append(chunk)


def test_write_failure_stops_rendering():
    sink = FailingSink(fail_after=1)
    with pytest.raises(SinkWriteError, match="disk full"):
        render('"a" {x} "b"', sink, x=1)
    assert sink.chunks == ["a"]


def test_sink_write_error_passes_through():
    class Refusing:
        def write(self, chunk):
            raise SinkWriteError("refused")

    with pytest.raises(SinkWriteError, match="refused"):
        render('"a"', Refusing())


def test_stream_sink_on_closed_stream():
    stream = io.StringIO()
    stream.close()
    with pytest.raises(SinkWriteError):
        StreamSink(stream).write("x")


def test_stream_sink_writes_through():
    stream = io.StringIO()
    render("for i in [1, 2] { {i} }", StreamSink(stream))
    assert stream.getvalue() == "12"


def test_string_sink_collects_chunks():
    sink = StringSink()
    sink.write("a")
    sink.write("b")
    assert sink.getvalue() == "ab"


def test_escape_write_failure_is_a_sink_error():
    sink = FailingSink(fail_after=0)
    with pytest.raises(SinkWriteError, match="disk full"):
        render('|f| f.write("x");', sink)


def test_display_fn_write_failure_is_a_sink_error():
    display = display_fn(lambda f: f.write("x"))
    with pytest.raises(SinkWriteError, match="disk full"):
        render("{d}", FailingSink(fail_after=0), d=display)
