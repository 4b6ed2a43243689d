#Bradford Arrington 2025
from typing import BinaryIO, Callable, Optional

END_OF_FILE = -1


class CompressorBitio:
    PACIFIER_COUNT = 2047

    class BitFile:
        def __init__(self, stream: BinaryIO, input_mode: bool,
                     pacifier: Optional[Callable[[], None]] = None, owns_stream: bool = False):
            self.is_input = input_mode
            self.file_stream: BinaryIO = stream
            self.owns_stream = owns_stream
            self.rack: int = 0
            self.mask: int = 0x80
            self.pacifier = pacifier
            self.pacifier_counter: int = 0
            self.bytes_written: int = 0
            self.bytes_read: int = 0
            self.closed = False

        @staticmethod
        def open_output_bit_file(name: str, pacifier=None) -> 'CompressorBitio.BitFile':
            return CompressorBitio.BitFile(open(name, "wb"), False, pacifier, owns_stream=True)

        @staticmethod
        def open_input_bit_file(name: str, pacifier=None) -> 'CompressorBitio.BitFile':
            return CompressorBitio.BitFile(open(name, "rb"), True, pacifier, owns_stream=True)

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_value, traceback):
            if exc_type is None:
                self.close_bit_file()
            elif self.owns_stream:
                self.file_stream.close()

        def close_bit_file(self):
            """Pad the pending byte with 0 bits, write it and flush the stream."""
            if self.closed:
                return
            self.closed = True
            if not self.is_input:
                if self.mask != 0x80:
                    self._write_rack()
                self.file_stream.flush()
            if self.owns_stream:
                self.file_stream.close()

        def _write_rack(self):
            self.file_stream.write(bytes([self.rack]))
            self.bytes_written += 1
            self._tick()
            self.rack = 0
            self.mask = 0x80

        def _tick(self):
            self.pacifier_counter += 1
            if self.pacifier is not None and (self.pacifier_counter & CompressorBitio.PACIFIER_COUNT) == 0:
                self.pacifier()

        def output_bit(self, bit: int):
            if bit != 0:
                self.rack |= self.mask
            self.mask >>= 1
            if self.mask == 0:
                self._write_rack()

        def output_code(self, code: str):
            """Write a code given as a string of '0' and '1' characters, first character first."""
            for c in code:
                self.output_bit(1 if c == '1' else 0)

        def input_bit(self) -> int:
            """Return the next bit, or END_OF_FILE once the stream has no more bytes."""
            if self.mask == 0x80:
                read = self.file_stream.read(1)
                if not read:
                    return END_OF_FILE
                self.rack = read[0]
                self.bytes_read += 1
                self._tick()
            value = self.rack & self.mask
            self.mask >>= 1
            if self.mask == 0:
                self.mask = 0x80
            return 1 if value != 0 else 0
