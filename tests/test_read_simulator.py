import random

import pytest

from svkit.read_simulator import (
    NormalSampler,
    complement_base,
    new_nuc,
    parse_error_profile,
    parse_genome,
    simulate_reads,
)

HEADER = "Pos\tP(stop)\tP(match)\tP(mismatch)\tP(ins)]\tP(del)\n"


def write_profile(path, totals):
    rows = "".join(f"{i}\t{t}\t1.0\t0.0\t0.0\t0.0\n" for i, t in enumerate(totals))
    path.write_text(HEADER + rows)
    return path


@pytest.mark.parametrize(
    "base, expected", [("A", "T"), ("C", "G"), ("G", "C"), ("T", "A"), ("X", "N")]
)
def test_complement_base(base, expected):
    assert complement_base(base) == expected


def test_new_nuc():
    rng = random.Random(3)
    assert {new_nuc("N", rng) for _ in range(200)} <= set("ACGT")
    assert new_nuc("A", rng) == "A"
    assert new_nuc("G", rng) == "G"


def test_normal_sampler():
    sampler = NormalSampler(random.Random(1))
    values = [sampler.sample(5.0, 1.0) for _ in range(4000)]
    mean = sum(values) / len(values)
    assert abs(mean - 5.0) < 0.1
    assert NormalSampler(random.Random(2)).sample(3.0, 0.0) == 3.0


def test_parse_genome(tmp_path):
    fasta = tmp_path / "g.fa"
    fasta.write_text(">chr1 description\nacgt\nACGT\n>chr2\nAC\n")
    assert parse_genome(fasta, 3) == {">CHR1": "ACGTACGT"}
    assert set(parse_genome(fasta, 0)) == {">CHR1", ">CHR2"}


def test_parse_error_profile(tmp_path):
    path = tmp_path / "p.txt"
    path.write_text(HEADER + "0\t0.25\t0.5\t0.125\t0.0625\t0.0625\n1\tnan\t1.0\t0\t0\t0\n")
    profile = parse_error_profile(path)
    assert len(profile) == 2
    first = profile[0]
    assert (first.total, first.match, first.mismatch, first.ins, first.deletion) == (
        0.25,
        0.5,
        0.125,
        0.0625,
        0.0625,
    )
    assert profile[1].total != profile[1].total
    assert profile[1].match == 1.0


def test_simulated_reads_come_from_genome(tmp_path):
    genome = "ACGT" * 50
    fasta = tmp_path / "g.fa"
    fasta.write_text(">chr1\n" + genome + "\n")
    profile = write_profile(tmp_path / "p.txt", [0.0] * 15 + [1.0] * 5)
    out = tmp_path / "reads.fa"
    written = simulate_reads(fasta, profile, 2, out, random.Random(7))
    lines = out.read_text().splitlines()
    assert written > 0
    assert written == len(lines) // 2
    for name, read in zip(lines[::2], lines[1::2]):
        chrom, start, strand = name.rsplit("_", 2)
        assert chrom == ">CHR1"
        start = int(start)
        piece = genome[start:start + 15]
        if strand == "+":
            assert read == piece
        else:
            assert "".join(complement_base(b) for b in reversed(read)) == piece


def test_profile_without_read_length(tmp_path):
    fasta = tmp_path / "g.fa"
    fasta.write_text(">chr1\n" + "ACGT" * 50 + "\n")
    profile = write_profile(tmp_path / "p.txt", [1.0] * 5)
    with pytest.raises(ValueError):
        simulate_reads(fasta, profile, 1, tmp_path / "out.fa", random.Random(1))


def test_genome_too_short(tmp_path):
    fasta = tmp_path / "g.fa"
    fasta.write_text(">chr1\nACGT\n")
    profile = write_profile(tmp_path / "p.txt", [0.0] * 15 + [1.0] * 5)
    with pytest.raises(ValueError):
        simulate_reads(fasta, profile, 1, tmp_path / "out.fa", random.Random(1))