from dataclasses import dataclass


@dataclass
class SequenceRecord:
    name: bytes
    data: bytes
    quality: bytes = b""

    @classmethod
    def from_fasta(cls, name: bytes, name_length: int, data: bytes, data_length: int):
        return cls(name[:name_length], data[:data_length])

    @classmethod
    def from_fastq(cls, name: bytes, name_length: int, data: bytes, data_length: int,
                   quality: bytes, quality_length: int):
        return cls(name[:name_length], data[:data_length], quality[:quality_length])


@dataclass
class Overlap:
    """
    Pairwise overlap between sequences a and b.
    MHAP records identify sequences by id, PAF records by name.
    """

    a_begin: int
    a_end: int
    a_length: int
    b_begin: int
    b_end: int
    b_length: int
    orientation: str
    a_id: int = 0
    b_id: int = 0
    a_name: bytes = b""
    b_name: bytes = b""
    error: float = 0.0
    minmers: int = 0
    matching_bases: int = 0
    overlap_length: int = 0
    quality: int = 0

    @classmethod
    def from_mhap(cls, a_id: int, b_id: int, error: float, minmers: int,
                  a_rc: int, a_begin: int, a_end: int, a_length: int,
                  b_rc: int, b_begin: int, b_end: int, b_length: int):
        return cls(
            a_begin, a_end, a_length, b_begin, b_end, b_length,
            orientation="+" if a_rc == b_rc else "-",
            a_id=a_id, b_id=b_id, error=error, minmers=minmers,
        )

    @classmethod
    def from_paf(cls, a_name: bytes, a_name_length: int, a_length: int, a_begin: int, a_end: int,
                 orientation: str, b_name: bytes, b_name_length: int, b_length: int,
                 b_begin: int, b_end: int, matching_bases: int, overlap_length: int,
                 quality: int):
        return cls(
            a_begin, a_end, a_length, b_begin, b_end, b_length,
            orientation=orientation,
            a_name=a_name[:a_name_length], b_name=b_name[:b_name_length],
            matching_bases=matching_bases, overlap_length=overlap_length, quality=quality,
        )
