"""Simulation of long reads from a genome using a per-position error profile."""

from __future__ import annotations

import itertools
import math
import random
import re
import sys

from .error_scanner import ReadPosition

_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_NAME = re.compile(r"[^ \0]*")
_COMPLEMENT = {"A": "T", "C": "G", "G": "C", "T": "A"}
_NUCS = "ACGT"


def _atof(text):
    found = _FLOAT_PREFIX.match(text)
    return float(found.group(1)) if found else 0.0


def parse_genome(path, min_length):
    """Read a FASTA file into {header: sequence}, upper-cased.

    The header keeps its leading '>' and ends at the first space; only
    sequences longer than min_length are kept.
    """
    genome = {}
    name = ""
    seq = []

    def flush():
        sequence = "".join(seq)
        if len(sequence) > min_length:
            genome[name] = sequence

    with open(path) as handle:
        for raw in handle:
            line = raw.rstrip("\n")
            if line.startswith(">"):
                flush()
                seq = []
                name = _NAME.match(line).group().upper()
            else:
                seq.append(line.split("\0", 1)[0].upper())
    flush()
    return genome


def complement_base(base):
    """Complementary base; anything but A, C, G, T becomes N."""
    return _COMPLEMENT.get(base, "N")


def new_nuc(old, rng):
    """Nucleotide used for a base: A, C, G and T are kept, anything else is random."""
    if old in _NUCS:
        return old
    return rng.choice(_NUCS)


class NormalSampler:
    """Normal deviates by the polar Box-Muller method, caching the second value."""

    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self._cached = None

    def sample(self, mean, stddev):
        """One normally distributed value."""
        if self._cached is not None:
            value, self._cached = self._cached, None
            return value * stddev + mean
        while True:
            x = 2.0 * self.rng.random() - 1
            y = 2.0 * self.rng.random() - 1
            r = x * x + y * y
            if 0.0 < r <= 1.0:
                break
        d = math.sqrt(-2.0 * math.log(r) / r)
        self._cached = y * d
        return x * d * stddev + mean


def parse_error_profile(path):
    """Read an error profile table; the P(stop) column fills 'total'."""
    profile = []
    with open(path) as handle:
        next(handle, None)
        for raw in handle:
            fields = raw.rstrip("\n").split("\t")[1:6]
            total, match, mismatch, ins, deletion = (
                [_atof(f) for f in fields] + [0.0] * 5
            )[:5]
            profile.append(
                ReadPosition(
                    match=match, mismatch=mismatch, ins=ins, deletion=deletion, total=total
                )
            )
    return profile


def _read_size(profile, bp):
    for size, slot in enumerate(profile):
        if size > 10 and bp < slot.total:
            return size
    return len(profile)


def _fraction(numerator, denominator):
    if denominator:
        return numerator / denominator
    return math.nan if numerator == 0 else math.inf


def _draw(rng):
    return rng.randrange(1_000_000) / 1_000_000


def _sample_read(seq, size, profile, rng):
    num_n = 0.0
    attempts = 10
    while True:
        final = []
        start_pos = rng.randrange(len(seq) - size + 2)
        read = seq[start_pos:start_pos + size]
        if not read:
            print("ERROR! ", file=sys.stderr)
        for base, rates in zip(read, profile):
            if base in "Nn":
                num_n += 1
                if num_n / len(read) > 0.1:
                    break
                base = new_nuc("N", rng)
            bp = _draw(rng)
            if bp < rates.match:
                final.append(base)
            elif bp < rates.mismatch + rates.match:
                final.append(new_nuc(base, rng))
            elif bp < rates.ins + rates.match + rates.mismatch:
                final.append(base)
                final.append(new_nuc("N", rng))
        attempts -= 1
        if not (_fraction(num_n, len(read)) > 0.1 and attempts != 0):
            break
    return (start_pos, "".join(final)) if attempts else None


def simulate_reads(genome_file, profile_file, coverage, output, rng=None):
    """Write simulated reads as FASTA records; returns the number written."""
    rng = rng or random.Random()
    profile = parse_error_profile(profile_file)
    avg_readlen = sum(1 for _ in itertools.takewhile(lambda p: p.total < 0.6, profile))
    if avg_readlen == 0:
        raise ValueError("error profile yields no read length")

    genome = parse_genome(genome_file, avg_readlen * 3)
    print(f"\tParsing done: {len(genome)} chrs ")
    if not genome:
        raise ValueError("no chromosome is long enough for the simulated reads")
    names = sorted(genome)
    longest = max(len(s) for s in genome.values())
    genome_size = sum(len(s) for s in genome.values())

    print(f"\tAVG read length: {avg_readlen}")
    num_reads = int(genome_size / avg_readlen * coverage)
    print(f"\tNum of reads: {num_reads}")

    written = 0
    prev = 0
    with open(output, "w") as handle:
        for i in range(num_reads):
            size = _read_size(profile, _draw(rng))
            if size > longest:
                raise ValueError(f"no chromosome holds a read of length {size}")
            length = 0
            chrom = names[0]
            while size > length:
                chrom = rng.choice(names)
                length = len(genome[chrom])

            sampled = _sample_read(genome[chrom], size, profile, rng)
            if sampled is None:
                continue
            start_pos, read = sampled
            strand = "+"
            if rng.randrange(100) < 51:
                strand = "-"
                read = "".join(complement_base(b) for b in reversed(read))
            handle.write(f"{chrom}_{start_pos}_{strand}\n{read}\n")
            written += 1

            done = (i * 100) // num_reads
            if i % 10000 == 0 and prev < done:
                prev = done
                print(f"\t\tReads simulated: {prev}%", end="\r", flush=True)
    return written