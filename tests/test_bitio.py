import io

from bitio import CompressorBitio, END_OF_FILE


def test_output_bits_msb_first_with_zero_padding():
    out = io.BytesIO()
    bit_file = CompressorBitio.BitFile(out, False)
    bit_file.output_code("1010")
    bit_file.close_bit_file()
    assert out.getvalue() == bytes([0b10100000])
    assert bit_file.bytes_written == 1


def test_full_byte_needs_no_padding():
    out = io.BytesIO()
    bit_file = CompressorBitio.BitFile(out, False)
    for bit in (0, 1, 0, 0, 0, 0, 0, 1):
        bit_file.output_bit(bit)
    assert out.getvalue() == b"A"
    bit_file.close_bit_file()
    assert out.getvalue() == b"A"


def test_close_is_idempotent_and_leaves_caller_stream_open():
    out = io.BytesIO()
    bit_file = CompressorBitio.BitFile(out, False)
    bit_file.output_bit(1)
    bit_file.close_bit_file()
    bit_file.close_bit_file()
    assert not out.closed
    assert out.getvalue() == b"\x80"


def test_input_bits_then_end_of_file():
    bit_file = CompressorBitio.BitFile(io.BytesIO(b"\xa5"), True)
    bits = [bit_file.input_bit() for _ in range(8)]
    assert bits == [1, 0, 1, 0, 0, 1, 0, 1]
    assert bit_file.input_bit() == END_OF_FILE
    assert bit_file.input_bit() == END_OF_FILE
    assert bit_file.bytes_read == 1


def test_pacifier_called_every_2048_bytes():
    calls = []
    bit_file = CompressorBitio.BitFile(io.BytesIO(), False, pacifier=lambda: calls.append(1))
    bit_file.output_code("0" * 8 * 4096)
    assert len(calls) == 2


def test_named_files(tmp_path):
    name = str(tmp_path / "bits.bin")
    with CompressorBitio.BitFile.open_output_bit_file(name) as output:
        output.output_code("111")
    assert output.file_stream.closed

    with CompressorBitio.BitFile.open_input_bit_file(name) as input_bit_file:
        assert [input_bit_file.input_bit() for _ in range(4)] == [1, 1, 1, 0]
