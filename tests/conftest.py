import io
import random

import pytest

from chunk_processor import FileByteSource

BASES = "ACGT"
QUALITIES = "".join(chr(c) for c in range(33, 74))


def make_parser(parser_cls, data: bytes, **kwargs):
    return parser_cls(FileByteSource(io.BytesIO(data)), **kwargs)


def parse_in_chunks(parser, max_bytes: int) -> list:
    objects = []
    while parser.parse_objects(objects, max_bytes):
        pass
    return objects


def build_fasta(rng: random.Random, count: int = 14):
    records = []
    lines = []
    for i in range(count):
        name = f"read_{i} length={i * 7}"
        data = "".join(rng.choice(BASES) for _ in range(rng.randint(2000, 15000)))
        records.append((name.encode(), data.encode()))
        lines.append(f">{name}")
        lines.extend(data[j:j + 60] for j in range(0, len(data), 60))
    return ("\n".join(lines) + "\n").encode(), records


def build_fastq(rng: random.Random, count: int = 13):
    records = []
    lines = []
    for i in range(count):
        size = rng.randint(3000, 14000)
        data = "".join(rng.choice(BASES) for _ in range(size))
        quality = "".join(rng.choice(QUALITIES) for _ in range(size))
        records.append((f"r{i}".encode(), data.encode(), quality.encode()))
        lines.extend([f"@r{i}", data, "+", quality])
    return ("\n".join(lines) + "\n").encode(), records


def build_mhap(rng: random.Random, count: int = 150):
    rows = []
    for _ in range(count):
        a_length, b_length = rng.randint(1000, 20000), rng.randint(1000, 20000)
        a_begin, b_begin = rng.randint(0, 500), rng.randint(0, 500)
        rows.append((
            rng.randint(1, 300), rng.randint(1, 300), round(rng.random() * 0.3, 6), rng.randint(1, 900),
            rng.randint(0, 1), a_begin, a_length - rng.randint(0, 500), a_length,
            rng.randint(0, 1), b_begin, b_length - rng.randint(0, 500), b_length,
        ))
    text = "".join(" ".join(str(value) for value in row) + "\n" for row in rows)
    return text.encode(), rows


def build_paf(rng: random.Random, count: int = 500):
    rows = []
    for i in range(count):
        a_length, b_length = rng.randint(1000, 20000), rng.randint(1000, 20000)
        rows.append((
            f"query_{i}", a_length, rng.randint(0, 500), a_length - rng.randint(0, 500),
            rng.choice("+-"),
            f"target_{rng.randint(0, 50)}", b_length, rng.randint(0, 500), b_length - rng.randint(0, 500),
            rng.randint(100, 900), rng.randint(900, 1500), rng.randint(0, 60),
        ))
    text = "".join("\t".join(str(value) for value in row) + "\n" for row in rows)
    return text.encode(), rows


@pytest.fixture(scope="session")
def fasta_sample():
    return build_fasta(random.Random(7))


@pytest.fixture(scope="session")
def fastq_sample():
    return build_fastq(random.Random(11))


@pytest.fixture(scope="session")
def mhap_sample():
    return build_mhap(random.Random(13))


@pytest.fixture(scope="session")
def paf_sample():
    return build_paf(random.Random(17))
