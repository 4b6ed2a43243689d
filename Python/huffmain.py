# Bradford Arrington 2025
import os
import sys
import time
import tracemalloc
from dataclasses import dataclass
from typing import List

import psutil

from bitio import CompressorBitio
from huff import COMPRESSION_NAME, CodecStats, compress_file, expand_file

USAGE = ("E in-file out-file [-d]\n"
         "        D in-file out-file [-d]\n"
         "        T test-file\n\n"
         "E encodes in-file into out-file, D decodes it back.\n"
         "T runs every E/D line of test-file.\n"
         "Specifying -d will dump the modeling data\n")

PROMPT = ("\nCommand Formats:\n"
          "E <inputfile> <outputfile>\n"
          "D <inputfile> <outputfile>\n"
          "T <testfile_with_commands>\n"
          "or type Q for quiting\n")


@dataclass
class StageTiming:
    name: str
    wall_time_ms: float
    cpu_time_ms: float
    mem_used_kb: float

    def row(self) -> str:
        return f"{self.name:<20} {self.wall_time_ms:15.2f} {self.cpu_time_ms:15.2f} {self.mem_used_kb:20.2f}"


class PerformanceTracker:
    """Runs codec stages and prints one timing row per stage under a shared heading."""

    HEADING = f"{'Function':<20} {'Wall Time (ms)':>15} {'CPU Time (ms)':>15} {'Memory Used (KB)':>20}"

    def __init__(self):
        self.process = psutil.Process(os.getpid())
        self.timings: List[StageTiming] = []

    def track(self, name, func, *args, **kwargs):
        start_time = time.perf_counter()
        start_cpu = self.process.cpu_times().user
        tracemalloc.start()
        try:
            result = func(*args, **kwargs)
            peak_mem = tracemalloc.get_traced_memory()[1]
        finally:
            tracemalloc.stop()

        timing = StageTiming(name,
                             (time.perf_counter() - start_time) * 1000,
                             (self.process.cpu_times().user - start_cpu) * 1000,
                             peak_mem / 1024)
        if not self.timings:
            print(self.HEADING)
        self.timings.append(timing)
        print(timing.row())
        return result


tracker = PerformanceTracker()


def print_ratios(stats: CodecStats):
    ratio = 100 - (stats.output_bytes * 100 // max(stats.input_bytes, 1))
    print(f"\nInput bytes:             {stats.input_bytes}")
    print(f"Output bytes:            {stats.output_bytes}")
    print(f"Compression ratio:       {ratio}%")


def pacifier():
    sys.stdout.write(".")
    sys.stdout.flush()


def short_program_name(prog_name: str) -> str:
    short_name = prog_name
    last_slash = max(prog_name.rfind('\\'), prog_name.rfind('/'), prog_name.rfind(':'))
    if last_slash != -1:
        short_name = prog_name[last_slash + 1:]
    extension = short_name.rfind('.')
    if extension != -1:
        short_name = short_name[:extension]
    return short_name


def encode(input_name: str, output_name: str, dump_model: bool = False):
    print(f"\nCompressing {input_name} to {output_name}")
    print(f"Using {COMPRESSION_NAME}\n")
    with open(input_name, 'rb') as input_file:
        output = CompressorBitio.BitFile.open_output_bit_file(output_name, pacifier)
        with output:
            stats = tracker.track("CompressFile", compress_file, input_file, output, dump_model)
    print_ratios(stats)
    return stats


def decode(input_name: str, output_name: str, dump_model: bool = False):
    print(f"\nDecompressing {input_name} to {output_name}")
    print(f"Using {COMPRESSION_NAME}\n")
    input_bit_file = CompressorBitio.BitFile.open_input_bit_file(input_name, pacifier)
    with input_bit_file, open(output_name, 'wb') as output_file:
        stats = tracker.track("ExpandFile", expand_file, input_bit_file, output_file, dump_model)
    print(f"\nNumber of bytes in input :{stats.input_bytes}")
    print(f"Number of bytes in output :{stats.output_bytes}")
    return stats


def run_test_file(test_file: str) -> int:
    failed = 0
    try:
        with open(test_file, "r", encoding="utf-8") as lines:
            for line in lines:
                row = line.split()
                if not row:
                    continue
                if run_command(row, "") != 0:
                    print(f"Error in test line: {line.strip()}")
                    failed += 1
    except FileNotFoundError:
        print("Cannot find file.")
        return 1
    print("Test file was completed.")
    return 1 if failed else 0


def run_command(args: List[str], prog_name: str) -> int:
    mode = args[0].upper() if args else ""
    if len(args) < 2 or (mode in ("E", "D") and len(args) < 3):
        print(f"\nUsage:  {short_program_name(prog_name)} {USAGE}")
        return 0 if len(args) < 2 else 1

    dump_model = "-d" in args[3:]
    try:
        if mode == "E":
            encode(args[1], args[2], dump_model)
        elif mode == "D":
            decode(args[1], args[2], dump_model)
        elif mode == "T":
            return run_test_file(args[1])
        else:
            print("Error: first argument must be E, D or T.")
            return 1
    except FileNotFoundError:
        print(f"Error: Input file '{args[1]}' not found.")
        return 1
    except Exception as e:
        print(f"An error occurred: {e}")
        return 1
    return 0


def interactive(prog_name: str) -> int:
    """Prompt for E/D/T commands on stdin until Q or end of input."""
    while True:
        print(PROMPT)
        try:
            command = input("Enter command > ")
        except EOFError:
            break
        if command.strip().upper() == "Q":
            break
        if command.strip():
            run_command(command.split(), prog_name)
    print("Ended program.")
    return 0


def main(argv: List[str]) -> int:
    if len(argv) < 2:
        return interactive(argv[0])
    return run_command(argv[1:], argv[0])


if __name__ == '__main__':
    sys.exit(main(sys.argv))
