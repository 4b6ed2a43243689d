#Brad Arrington
import heapq
import io
import struct
import sys
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Union

from bitio import CompressorBitio, END_OF_FILE

END_OF_STREAM = 256
SYMBOL_COUNT = 257
NO_SYMBOL = -1
BLOCK_SIZE = 4096
COMPRESSION_NAME = "static order 0 model with Huffman coding"

# Header: entry count, then one unsigned 64 bit count per symbol
HEADER_COUNT = struct.Struct("<H")
HEADER_TABLE = struct.Struct(f"<{SYMBOL_COUNT}Q")
HEADER_SIZE = HEADER_COUNT.size + HEADER_TABLE.size


class HuffmanError(Exception):
    pass


class HuffmanFormatError(HuffmanError, ValueError):
    """The header could not be read back as a 257 entry frequency table."""


class HuffmanTruncatedError(HuffmanError, EOFError):
    """The body ended before the end-of-stream code was decoded.

    Every byte decoded before the fault has already been written out;
    ``bytes_written`` is their count and ``partial`` holds them when the
    output was collected in memory by ``decompress``.
    """

    def __init__(self, message: str, bytes_written: int = 0, partial: bytes = b""):
        super().__init__(message)
        self.bytes_written = bytes_written
        self.partial = partial


class HuffmanInvariantError(AssertionError):
    """A byte has no code: the frequency table does not match the data."""


@dataclass(frozen=True)
class HuffmanLeaf:
    symbol: int
    count: int

    def is_leaf(self) -> bool:
        return True


@dataclass(frozen=True)
class HuffmanInternal:
    left: 'HuffmanNode'    # 0
    right: 'HuffmanNode'   # 1
    count: int
    symbol: int = NO_SYMBOL

    def is_leaf(self) -> bool:
        return False


HuffmanNode = Union[HuffmanLeaf, HuffmanInternal]


@dataclass
class CodecStats:
    input_bytes: int = 0
    output_bytes: int = 0


def compress_file(input_file: BinaryIO, output_bit_file: 'CompressorBitio.BitFile', dump_model: bool = False) -> CodecStats:
    """Write the header and Huffman coded body of ``input_file``, then close the bit file.

    ``input_file`` must be seekable: it is read once to count the bytes
    and a second time to encode them.
    """
    counts = build_frequency_table(input_file)
    root_node = build_tree(counts)
    codes = build_code_table(root_node)

    if dump_model:
        print_model(root_node, codes)

    output_counts(output_bit_file.file_stream, counts)
    input_bytes = compress_data(input_file, output_bit_file, codes)
    output_bit_file.close_bit_file()
    return CodecStats(input_bytes, HEADER_SIZE + output_bit_file.bytes_written)


def expand_file(input_bit_file: 'CompressorBitio.BitFile', output_file: BinaryIO, dump_model: bool = False) -> CodecStats:
    counts = input_counts(input_bit_file.file_stream)
    root_node = build_tree(counts)

    if dump_model:
        print_model(root_node, build_code_table(root_node))

    output_bytes = expand_data(input_bit_file, output_file, root_node)
    input_bit_file.close_bit_file()
    return CodecStats(HEADER_SIZE + input_bit_file.bytes_read, output_bytes)


def compress(input_stream: Union[BinaryIO, bytes]) -> bytes:
    if isinstance(input_stream, (bytes, bytearray, memoryview)):
        input_stream = io.BytesIO(input_stream)
    output = io.BytesIO()
    compress_file(input_stream, CompressorBitio.BitFile(output, False))
    return output.getvalue()


def decompress(input_stream: Union[BinaryIO, bytes]) -> bytes:
    if isinstance(input_stream, (bytes, bytearray, memoryview)):
        input_stream = io.BytesIO(input_stream)
    output = io.BytesIO()
    try:
        expand_file(CompressorBitio.BitFile(input_stream, True), output)
    except HuffmanTruncatedError as e:
        e.partial = output.getvalue()
        raise
    return output.getvalue()


def build_frequency_table(input_file: BinaryIO) -> List[int]:
    """Count every byte of ``input_file`` from offset 0.

    The end-of-stream count is fixed at 1. The read position is restored
    afterwards so the stream can be encoded in a second pass.
    """
    if not input_file.seekable():
        raise io.UnsupportedOperation("Huffman compression reads its input twice; the input must be seekable")

    counts = [0] * SYMBOL_COUNT
    counts[END_OF_STREAM] = 1

    input_marker = input_file.tell()
    input_file.seek(0)
    while True:
        block = input_file.read(BLOCK_SIZE)
        if not block:
            break # EOF
        for c in block:
            counts[c] += 1
    input_file.seek(input_marker)
    return counts


def output_counts(output_file: BinaryIO, counts: List[int]):
    if len(counts) != SYMBOL_COUNT:
        raise ValueError(f"Frequency table must have {SYMBOL_COUNT} entries, got {len(counts)}")
    output_file.write(HEADER_COUNT.pack(len(counts)))
    output_file.write(HEADER_TABLE.pack(*counts))


def _read_header_field(input_file: BinaryIO, size: int, what: str) -> bytes:
    data = input_file.read(size)
    if len(data) != size:
        raise HuffmanFormatError(f"Error reading byte counts ({what}): expected {size} bytes, got {len(data)}")
    return data


def input_counts(input_file: BinaryIO) -> List[int]:
    (count,) = HEADER_COUNT.unpack(_read_header_field(input_file, HEADER_COUNT.size, "count"))
    if count != SYMBOL_COUNT:
        raise HuffmanFormatError(f"Error reading byte counts (count): expected {SYMBOL_COUNT} entries, got {count}")

    counts = list(HEADER_TABLE.unpack(_read_header_field(input_file, HEADER_TABLE.size, "data")))
    if counts[END_OF_STREAM] == 0:
        raise HuffmanFormatError("Error reading byte counts (data): end-of-stream count is 0")
    return counts


def build_tree(counts: List[int]) -> HuffmanNode:
    """Merge the two lowest counts until a single root remains.

    Heap entries are (count, sequence, node). Leaves get sequence numbers in
    symbol order and every merged node the next free one, so equal counts
    always leave the heap in insertion order and both directions build the
    same tree.
    """
    heap = []
    sequence = 0
    for symbol, count in enumerate(counts):
        if count < 0:
            raise ValueError(f"Negative count {count} for symbol {symbol}")
        if count != 0:
            heap.append((count, sequence, HuffmanLeaf(symbol, count)))
            sequence += 1

    if not heap:
        raise HuffmanFormatError("Frequency table has no nonzero count")

    heapq.heapify(heap)
    while len(heap) > 1:
        count_0, _, child_0 = heapq.heappop(heap)
        count_1, _, child_1 = heapq.heappop(heap)
        total = count_0 + count_1
        heapq.heappush(heap, (total, sequence, HuffmanInternal(child_0, child_1, total)))
        sequence += 1

    return heap[0][2]


def build_code_table(root_node: Optional[HuffmanNode]) -> List[Optional[str]]:
    codes: List[Optional[str]] = [None] * SYMBOL_COUNT
    convert_tree_to_code(codes, "", root_node)
    return codes


def convert_tree_to_code(codes: List[Optional[str]], code_so_far: str, node: Optional[HuffmanNode]):
    if node is None:
        return

    if node.is_leaf():
        codes[node.symbol] = code_so_far
        return

    convert_tree_to_code(codes, code_so_far + "0", node.left)
    convert_tree_to_code(codes, code_so_far + "1", node.right)


def iter_leaves(node: HuffmanNode) -> Iterator[HuffmanLeaf]:
    if node.is_leaf():
        yield node
        return
    yield from iter_leaves(node.left)
    yield from iter_leaves(node.right)


def compress_data(input_file: BinaryIO, output_bit_file: 'CompressorBitio.BitFile', codes: List[Optional[str]]) -> int:
    count = 0
    input_file.seek(0)

    while True:
        block = input_file.read(BLOCK_SIZE)
        if not block:
            break # EOF
        for c in block:
            code = codes[c]
            if code is None:
                raise HuffmanInvariantError(f"No Huffman code for byte {c}")
            output_bit_file.output_code(code)
        count += len(block)

    if codes[END_OF_STREAM] is None:
        raise HuffmanInvariantError("No Huffman code for end of stream")
    output_bit_file.output_code(codes[END_OF_STREAM])
    return count


def expand_data(input_bit_file: 'CompressorBitio.BitFile', output_file: BinaryIO, root_node: HuffmanNode) -> int:
    """Walk the tree one bit at a time, writing a byte at every leaf.

    Stops at the end-of-stream leaf, so the zero padding of the last byte
    is never read as data. Returns the number of bytes written.
    """
    count = 0

    # Empty input: the end-of-stream leaf is the whole tree and its code is empty
    if root_node.is_leaf():
        if root_node.symbol == END_OF_STREAM:
            return count
        raise HuffmanFormatError("Huffman tree has no end-of-stream leaf")

    node = root_node
    while True:
        bit = input_bit_file.input_bit()
        if bit == END_OF_FILE:
            raise HuffmanTruncatedError(
                f"End of file reached before end of stream after {count} bytes", count)

        node = node.right if bit else node.left

        if node.is_leaf():
            if node.symbol == END_OF_STREAM:
                return count
            output_file.write(bytes([node.symbol]))
            count += 1
            node = root_node


def print_char(c: int, file=None):
    if 0x20 <= c < 127:
        print(f"'{chr(c)}'", end="", file=file)
    else:
        print(f"{c:3d}", end="", file=file)


def print_model(root_node: HuffmanNode, codes: List[Optional[str]], file=None):
    file = file if file is not None else sys.stdout
    for leaf in sorted(iter_leaves(root_node), key=lambda leaf: leaf.symbol):
        print("node=", end="", file=file)
        print_char(leaf.symbol, file)
        print(f"  count={leaf.count:3d}", end="", file=file)
        print(f"  Huffman code={codes[leaf.symbol]}", file=file)
