import gzip
import sys
from typing import Iterator, List

def read_lines(filename: str, chunk_size: int = 1000) -> Iterator[List[str]]:
    """Read newline-delimited elements from a text file in chunks.

    Trailing newlines and surrounding whitespace are stripped and blank lines
    skipped. Files ending in .gz are decompressed on the fly; "-" reads
    standard input.

    Args:
        filename: Path to the input file, or "-"
        chunk_size: Maximum number of lines per yielded chunk
    """
    if filename == "-":
        yield from _chunked(sys.stdin, chunk_size)
        return

    is_gzipped = filename.endswith(".gz")
    opener = gzip.open if is_gzipped else open
    mode = "rt" if is_gzipped else "r"  # text mode for gzip

    with opener(filename, mode) as file:
        yield from _chunked(file, chunk_size)

def _chunked(lines, chunk_size: int) -> Iterator[List[str]]:
    chunk = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        chunk.append(line)
        if len(chunk) >= chunk_size:
            yield chunk
            chunk = []
    if chunk:  # Yield any remaining lines
        yield chunk
