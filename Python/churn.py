import filecmp
import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from bitio import CompressorBitio
from huff import compress_file, expand_file

LOG_HEADER = (
    "                                          Original   Packed\n"
    "            File Name                     Size      Size   Ratio  Result\n"
    "-------------------------------------     --------  --------  ----  ------\n"
)


@dataclass
class ChurnResult:
    file_name: str
    original_size: int = 0
    packed_size: int = 0
    error: Optional[str] = None
    matched: bool = False

    @property
    def passed(self) -> bool:
        return self.error is None and self.matched

    @property
    def ratio(self) -> int:
        return 100 - (self.packed_size * 100 // max(self.original_size, 1))

    def log_line(self) -> str:
        line = f"{self.file_name:<40} "
        if self.error is not None:
            return line + f"Failed: {self.error}\n"
        line += f" {self.original_size:8} {self.packed_size:8} {self.ratio:4}%  "
        return line + ("Passed\n" if self.matched else "Failed\n")


class ChurnProgram:
    COMPRESSED_EXTENSIONS = {".zip", ".ice", ".lzh", ".arc", ".gif", ".pak", ".arj", ".huf"}

    def __init__(self):
        self.results: List[ChurnResult] = []

    @property
    def total_files(self) -> int:
        return len(self.results)

    @property
    def total_passed(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @property
    def total_failed(self) -> int:
        return self.total_files - self.total_passed

    def main(self, args) -> int:
        if len(args) not in (1, 2):
            self.usage_exit()

        root_dir = Path(args[0])
        log_name = args[1] if len(args) == 2 else "CHURN.LOG"

        with open(log_name, "w", encoding="utf-8") as log_file, \
                tempfile.TemporaryDirectory() as work_dir:
            log_file.write(LOG_HEADER)

            start_time = datetime.now()
            for file_name in self.find_files(root_dir):
                print(f"Testing {file_name}", file=sys.stderr)
                result = self.round_trip(file_name, Path(work_dir))
                if not result.passed:
                    print("Comparison failed!", file=sys.stderr)
                self.results.append(result)
                log_file.write(result.log_line())
            stop_time = datetime.now()

            self.write_log_summary(log_file, start_time, stop_time)
        return 1 if self.total_failed else 0

    def find_files(self, path: Path):
        try:
            entries = sorted(path.iterdir())
        except PermissionError as ex:
            print(f"Access denied to {path}: {ex}", file=sys.stderr)
            return

        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_dir():
                yield from self.find_files(entry)
            elif entry.is_file() and not self.file_is_already_compressed(entry):
                yield str(entry)

    def file_is_already_compressed(self, name) -> bool:
        return Path(name).suffix.lower() in self.COMPRESSED_EXTENSIONS

    def round_trip(self, file_name: str, work_dir: Path) -> ChurnResult:
        """Compress ``file_name``, expand it again and compare with the original."""
        packed_name = str(work_dir / "TEST.CMP")
        expanded_name = str(work_dir / "TEST.OUT")
        result = ChurnResult(file_name)

        try:
            with open(file_name, "rb") as input_file, \
                    CompressorBitio.BitFile.open_output_bit_file(packed_name) as output:
                compress_file(input_file, output)

            with CompressorBitio.BitFile.open_input_bit_file(packed_name) as input_bit_file, \
                    open(expanded_name, "wb") as output_file:
                expand_file(input_bit_file, output_file)
        except (OSError, ValueError, EOFError) as ex:
            result.error = str(ex)
            return result

        result.original_size = os.path.getsize(file_name)
        result.packed_size = os.path.getsize(packed_name)
        filecmp.clear_cache()
        result.matched = filecmp.cmp(file_name, expanded_name, shallow=False)
        return result

    def write_log_summary(self, log_file, start_time, stop_time):
        elapsed_time = (stop_time - start_time).total_seconds()
        log_file.write(f"\nTotal elapsed time: {elapsed_time:.2f} seconds\n")
        log_file.write(f"Total files:   {self.total_files}\n")
        log_file.write(f"Total passed:  {self.total_passed}\n")
        log_file.write(f"Total failed:  {self.total_failed}\n")

    def usage_exit(self):
        usage = """
CHURN 1.0. Usage: CHURN root-dir [log-file]

CHURN tests the Huffman coder by compressing and expanding every file below
root-dir and comparing the result with the original.

Example:
  CHURN C:\\DATA CHURN.LOG
"""
        print(usage)
        sys.exit(1)


if __name__ == "__main__":
    churn = ChurnProgram()
    sys.exit(churn.main(sys.argv[1:]))
