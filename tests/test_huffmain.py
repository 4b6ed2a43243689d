import io

import huffmain
from huff import HEADER_SIZE, CodecStats


def _write(path, data):
    path.write_bytes(data)
    return str(path)


def test_encode_then_decode(tmp_path, capsys):
    data = b"the rain in spain stays mainly in the plain\n" * 40
    source = _write(tmp_path / "plain.txt", data)
    packed = str(tmp_path / "plain.huf")
    restored = str(tmp_path / "plain.out")

    assert huffmain.main(["huffmain.py", "E", source, packed]) == 0
    assert huffmain.main(["huffmain.py", "d", packed, restored]) == 0

    assert (tmp_path / "plain.out").read_bytes() == data
    out = capsys.readouterr().out
    assert f"Compressing {source} to {packed}" in out
    assert f"Input bytes:             {len(data)}" in out
    assert "Compression ratio:" in out
    assert "CompressFile" in out and "ExpandFile" in out


def test_encode_empty_file(tmp_path):
    source = _write(tmp_path / "empty", b"")
    packed = tmp_path / "empty.huf"
    restored = tmp_path / "empty.out"
    assert huffmain.main(["huffmain.py", "E", source, str(packed)]) == 0
    assert packed.stat().st_size == HEADER_SIZE
    assert huffmain.main(["huffmain.py", "D", str(packed), str(restored)]) == 0
    assert restored.read_bytes() == b""


def test_dump_model(tmp_path, capsys):
    source = _write(tmp_path / "aab", b"aab")
    assert huffmain.main(["huffmain.py", "E", source, str(tmp_path / "aab.huf"), "-d"]) == 0
    assert "node='b'  count=  1  Huffman code=10" in capsys.readouterr().out


def test_test_file_mode(tmp_path, capsys):
    data = bytes(range(256)) * 8
    source = _write(tmp_path / "genes.txt", data)
    packed = tmp_path / "genes.huf"
    restored = tmp_path / "genesRecover.txt"
    tests = tmp_path / "tests.txt"
    tests.write_text(f"E {source} {packed}\n\nD {packed} {restored}\n", encoding="utf-8")

    assert huffmain.main(["huffmain.py", "T", str(tests)]) == 0
    assert restored.read_bytes() == data
    assert "Test file was completed." in capsys.readouterr().out


def test_test_file_mode_reports_failing_line(tmp_path, capsys):
    tests = tmp_path / "tests.txt"
    tests.write_text(f"E {tmp_path / 'missing'} {tmp_path / 'x.huf'}\n", encoding="utf-8")
    assert huffmain.main(["huffmain.py", "t", str(tests)]) == 1
    out = capsys.readouterr().out
    assert "not found" in out
    assert "Error in test line" in out
    assert "Test file was completed." in out


def test_missing_test_file(tmp_path, capsys):
    assert huffmain.main(["huffmain.py", "T", str(tmp_path / "nope.txt")]) == 1
    assert "Cannot find file." in capsys.readouterr().out


def test_usage(capsys):
    assert huffmain.main(["/usr/local/bin/huffmain.py", "E"]) == 0
    assert "Usage:  huffmain E in-file out-file" in capsys.readouterr().out


def test_missing_output_argument(tmp_path, capsys):
    source = _write(tmp_path / "in", b"x")
    assert huffmain.main(["huffmain.py", "E", source]) == 1
    assert "Usage:" in capsys.readouterr().out


def test_unknown_mode(capsys):
    assert huffmain.main(["huffmain.py", "X", "a", "b"]) == 1
    assert "first argument must be E, D or T" in capsys.readouterr().out


def test_decode_corrupt_file(tmp_path, capsys):
    packed = _write(tmp_path / "bad.huf", b"\x00\x01\x02")
    assert huffmain.main(["huffmain.py", "D", packed, str(tmp_path / "bad.out")]) == 1
    assert "An error occurred: Error reading byte counts" in capsys.readouterr().out


def test_short_program_name():
    assert huffmain.short_program_name("C:\\tools\\huffmain.py") == "huffmain"
    assert huffmain.short_program_name("huffmain") == "huffmain"


def test_codec_index_error_is_not_a_usage_message(tmp_path, monkeypatch, capsys):
    def broken_compress_file(*args, **kwargs):
        raise IndexError("list index out of range")

    monkeypatch.setattr(huffmain, "compress_file", broken_compress_file)
    source = _write(tmp_path / "in", b"abc")
    assert huffmain.main(["huffmain.py", "E", source, str(tmp_path / "in.huf")]) == 1
    out = capsys.readouterr().out
    assert "An error occurred: list index out of range" in out
    assert "Usage:" not in out


def test_interactive_prompt(tmp_path, monkeypatch, capsys):
    data = b"interactive session\n" * 10
    source = _write(tmp_path / "typed.txt", data)
    packed = tmp_path / "typed.huf"
    restored = tmp_path / "typed.out"
    monkeypatch.setattr("sys.stdin", io.StringIO(f"E {source} {packed}\n\nD {packed} {restored}\nQ\nE never run\n"))

    assert huffmain.main(["huffmain.py"]) == 0
    assert restored.read_bytes() == data
    out = capsys.readouterr().out
    assert out.count("Command Formats:") == 4
    assert out.rstrip().endswith("Ended program.")


def test_interactive_prompt_ends_at_end_of_input(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    assert huffmain.main(["huffmain.py"]) == 0
    assert "Ended program." in capsys.readouterr().out


def test_print_ratios(capsys):
    huffmain.print_ratios(CodecStats(input_bytes=1000, output_bytes=600))
    out = capsys.readouterr().out
    assert "Input bytes:             1000" in out
    assert "Output bytes:            600" in out
    assert "Compression ratio:       40%" in out


def test_performance_tracker_rows(capsys):
    tracker = huffmain.PerformanceTracker()
    assert tracker.track("First", sum, [1, 2, 3]) == 6
    assert tracker.track("Second", len, "abc") == 3
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == huffmain.PerformanceTracker.HEADING
    assert lines[1].startswith("First ")
    assert lines[2].startswith("Second ")
    assert [timing.name for timing in tracker.timings] == ["First", "Second"]
