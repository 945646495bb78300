import logging
import sys
import time
from typing import Optional, Sequence

import pandas as pd

from bioparser import create_parser

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZES = (0, 64 * 1024, 1024 * 1024)


def summarize_objects(objects) -> dict:
    """Sum name/data/quality sizes of parsed objects (attributes missing on overlaps count as 0)"""
    name_bytes = data_bytes = quality_bytes = 0
    for obj in objects:
        name_bytes += len(getattr(obj, "name", b"") or getattr(obj, "a_name", b""))
        data_bytes += len(getattr(obj, "data", b""))
        quality = getattr(obj, "quality", b"")
        if isinstance(quality, bytes):
            quality_bytes += len(quality)
    return {"Name_Bytes": name_bytes, "Data_Bytes": data_bytes, "Quality_Bytes": quality_bytes}


def benchmark_parser(path: str, parser_type: Optional[str] = None,
                     chunk_sizes: Sequence[int] = DEFAULT_CHUNK_SIZES) -> pd.DataFrame:
    """
    Parse path once per chunk size (0 = whole file in one call) and time it.
    Returns: DataFrame with one row per chunk size
    """
    rows = []
    with create_parser(path, parser_type) as parser:
        for chunk_size in chunk_sizes:
            parser.reset()
            objects = []
            calls = 0

            start_time = time.perf_counter()
            while True:
                calls += 1
                if not parser.parse_objects(objects, chunk_size):
                    break
            elapsed = time.perf_counter() - start_time

            logger.info(
                f"Chunk size {chunk_size:,}: {len(objects):,} records in {calls:,} calls, {elapsed:.4f} seconds"
            )
            row = {"Chunk_Size_Bytes": chunk_size, "Calls": calls, "Records": len(objects)}
            row.update(summarize_objects(objects))
            row["Wall_Time_Sec"] = elapsed
            rows.append(row)

    return pd.DataFrame(rows)


def main(argv: Sequence[str]) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if len(argv) < 2 or len(argv) > 4:
        print("Usage:")
        print("  python parse_benchmark.py <file> [fasta|fastq|mhap|paf] [output_csv]")
        print("Example:")
        print("  python parse_benchmark.py reads.fastq fastq reads-benchmark.csv")
        return 1

    parser_type = argv[2] if len(argv) > 2 else None
    results = benchmark_parser(argv[1], parser_type)
    if len(argv) > 3:
        results.to_csv(argv[3], index=False)
    print(results)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
