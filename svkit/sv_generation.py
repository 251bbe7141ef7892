"""Random placement of structural variants on a reference genome."""

from __future__ import annotations

import dataclasses
import math
import random
import re
import sys
from dataclasses import dataclass, field

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_COMPLEMENT = {"A": "T", "C": "G", "G": "C", "T": "A"}
_NUCS = "ACGT"

_PARAMETER_TEXT = (
    "PARAMETER FILE: DO JUST MODIFY THE VALUES AND KEEP THE SPACES!\n"
    "DUPLICATION_minimum_length: 100\n"
    "DUPLICATION_maximum_length: 10000\n"
    "DUPLICATION_number: 3\n"
    "INDEL_minimum_length: 20\n"
    "INDEL_maximum_length: 500\n"
    "INDEL_number: 1\n"
    "TRANSLOCATION_minimum_length: 1000\n"
    "TRANSLOCATION_maximum_length: 3000\n"
    "TRANSLOCATION_number: 2\n"
    "INVERSION_minimum_length: 600\n"
    "INVERSION_maximum_length: 800\n"
    "INVERSION_number: 4\n"
    "INV_del_minimum_length: 600\n"
    "INV_del_maximum_length: 800\n"
    "INV_del_number: 2\n"
    "INV_dup_minimum_length: 600\n"
    "INV_dup_maximum_length: 800\n"
    "INV_dup_number: 2\n"
)


@dataclass
class SimParameters:
    """Size ranges and counts of the events to simulate."""

    dup_min: int = 0
    dup_max: int = 0
    dup_num: int = 0
    indel_min: int = 0
    indel_max: int = 0
    indel_num: int = 0
    translocations_min: int = 0
    translocations_max: int = 0
    translocations_num: int = 0
    inv_min: int = 0
    inv_max: int = 0
    inv_num: int = 0
    inv_del_min: int = 0
    inv_del_max: int = 0
    inv_del_num: int = 0
    inv_dup_min: int = 0
    inv_dup_max: int = 0
    inv_dup_num: int = 0
    intrachr_min: int = 0
    intrachr_max: int = 0
    intrachr_num: int = 0


@dataclass
class Position:
    """A region on one chromosome."""

    chrom: str = ""
    start: int = 0
    stop: int = 0


@dataclass
class StructuralVariant:
    """A simulated event.

    Types: 0 duplication, 1 insertion, 2 inversion, 3 translocation,
    4 deletion, 5 inverted duplication.
    """

    sv_type: int
    pos: Position = field(default_factory=Position)
    target: Position = field(default_factory=Position)
    seq: str = ""
    ref: str = ""


def _atoi(text):
    found = _INT_PREFIX.match(text)
    return int(found.group(1)) if found else 0


def _trunc_div(a, b):
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def parse_value(line):
    """The integer after the first space (past the first character), or -1."""
    count = 0
    for i in range(1, len(line)):
        ch = line[i]
        if ch in "\n\0":
            break
        if count == 1:
            return _atoi(line[i:])
        if ch == " ":
            count += 1
    return -1


def parse_param(path):
    """Read a parameter file as written by generate_parameter_file."""
    with open(path) as handle:
        text = handle.read()
    raw = text.split("\n")
    ends_with_newline = text.endswith("\n")
    if ends_with_newline:
        raw.pop()
    values = raw[1:]

    def value(k):
        return parse_value(values[k]) if k < len(values) else -1

    def available(k):
        # A last line without a newline marks the end of input.
        return k < len(values) and (k < len(values) - 1 or ends_with_newline)

    par = SimParameters(
        dup_min=value(0),
        dup_max=value(1),
        dup_num=value(2),
        indel_min=value(3),
        indel_max=value(4),
        indel_num=value(5),
        translocations_min=value(6),
        translocations_max=value(7),
        translocations_num=value(8),
        inv_min=value(9),
        inv_max=value(10),
        inv_num=value(11),
    )
    if available(12):
        par.inv_del_min = value(12)
        par.inv_del_max = value(13)
        par.inv_del_num = value(14)
        if available(15):
            par.inv_dup_min = value(15)
            par.inv_dup_max = value(16)
            par.inv_dup_num = value(17)
    return par


def read_fasta(path, min_length):
    """Read a FASTA file into {name: upper-case sequence}, sorted by name.

    Names end at the first space; only sequences longer than min_length are kept.
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
            line = raw.rstrip("\n").split("\0", 1)[0]
            if line.startswith(">"):
                flush()
                seq = []
                name = line[1:].split(" ", 1)[0]
            else:
                seq.append(line.upper())
    flush()
    print(f"# Chrs passed size threshold:{len(genome)}")
    return dict(sorted(genome.items()))


def percent_n(seq):
    """Fraction of 'N' characters in seq; NaN for an empty sequence."""
    if not seq:
        return math.nan
    return seq.count("N") / len(seq)


def _substr(seq, start, stop):
    if stop >= start:
        return seq[start:stop]
    return seq[start:]


def _random_start(rng, chrom_len, max_pos):
    span = chrom_len - max_pos
    if span <= 0:
        raise ValueError(f"chromosome of length {chrom_len} cannot hold {max_pos} bases")
    return rng.randrange(span)


def _random_stop(rng, start, min_pos, max_pos):
    if max_pos <= min_pos:
        raise ValueError(f"empty size range {min_pos}..{max_pos}")
    return start + min_pos + rng.randrange(max_pos - min_pos)


def get_pos(genome, min_pos, max_pos, rng=None):
    """Pick a random region of min_pos..max_pos bases with few Ns.

    With max_pos of -1 only a start is chosen and the stop is -1; a stop
    of -2 means the chromosome was too small for the region.
    """
    rng = rng or random.Random()
    if not genome:
        raise ValueError("genome is empty")
    names = list(genome)
    pos = Position()
    seq = "N"
    for _ in range(100):
        if not percent_n(seq) > 0.05:
            break
        chrom = names[rng.randrange(len(names))]
        sequence = genome[chrom]
        pos.chrom = chrom
        pos.start = _random_start(rng, len(sequence), max_pos)
        if max_pos == -1:
            pos.stop = max_pos
        else:
            pos.stop = _random_stop(rng, pos.start, min_pos, max_pos)

        num = 0
        while len(sequence) < pos.stop and num < 100:
            pos.start = _random_start(rng, len(sequence), max_pos)
            pos.stop = _random_stop(rng, pos.start, min_pos, max_pos)
            num += 1
        if num == 100:
            print("Simulations are hindered by the two small chr size. ", file=sys.stderr)
            pos.stop = -2
        if max_pos != -1:
            seq = _substr(sequence, pos.start, pos.stop)
    return pos


def is_overlapping(curr, svs):
    """Whether curr overlaps the region of any of the given variants."""
    return any(
        sv.pos.chrom == curr.chrom and sv.pos.stop >= curr.start and sv.pos.start <= curr.stop
        for sv in svs
    )


def choose_pos(genome, min_len, max_len, svs, rng=None):
    """Pick a random region that does not overlap the given variants."""
    rng = rng or random.Random()
    pos = get_pos(genome, min_len, max_len, rng)
    num = 0
    while is_overlapping(pos, svs) and num < 30:
        pos = get_pos(genome, min_len, max_len, rng)
        num += 1
    if num == 30:
        raise RuntimeError("could not find a non overlapping region")
    return pos


def _inverted_target(pos):
    return Position(pos.chrom, pos.stop, pos.start)


def _indel(par, genome, svs, rng):
    sv_type = 1 if rng.randrange(100) <= 50 else 4
    pos = choose_pos(genome, par.indel_min, par.indel_max, svs, rng)
    return StructuralVariant(sv_type, pos, dataclasses.replace(pos))


def _translocation(par, genome, svs, rng):
    if len(genome) < 2:
        raise ValueError("translocations need a second chromosome")
    pos = choose_pos(genome, par.translocations_min, par.translocations_max, svs, rng)
    size = pos.stop - pos.start
    target = choose_pos(genome, size, size + 1, svs, rng)
    while target.chrom == pos.chrom:
        target = choose_pos(genome, size, size + 1, svs, rng)
    common = min(size, target.stop - target.start)
    pos.stop = pos.start + common
    target.stop = target.start + common
    return StructuralVariant(3, pos, target)


def _inversion(par, genome, svs, rng):
    pos = choose_pos(genome, par.inv_min, par.inv_max, svs, rng)
    return StructuralVariant(2, pos, _inverted_target(pos))


def generate_mutations(par, genome, rng=None):
    """Place the events listed in par on the genome, without overlaps."""
    rng = rng or random.Random()
    svs = []
    # Events that set no target of their own keep the one of the event before.
    target = Position()

    for _ in range(par.dup_num):
        pos = choose_pos(genome, par.dup_min, par.dup_max, svs, rng)
        svs.append(StructuralVariant(0, pos, dataclasses.replace(target)))
    for _ in range(par.indel_num):
        sv = _indel(par, genome, svs, rng)
        target = sv.target
        svs.append(sv)
    for _ in range(par.inv_num):
        sv = _inversion(par, genome, svs, rng)
        target = sv.target
        svs.append(sv)
    for _ in range(par.translocations_num):
        sv = _translocation(par, genome, svs, rng)
        target = sv.target
        svs.append(sv)
    for _ in range(par.inv_del_num):
        pos = choose_pos(genome, par.inv_del_min, par.inv_del_max, svs, rng)
        length = _trunc_div(pos.stop - pos.start, 10)
        pos.start += length
        pos.stop -= length
        target = _inverted_target(pos)
        svs.append(StructuralVariant(2, pos, dataclasses.replace(target)))

        before = Position(pos.chrom, pos.start - length, pos.start)
        svs.append(StructuralVariant(4, before, dataclasses.replace(before)))
        after = Position(pos.chrom, pos.stop, pos.stop + length)
        svs.append(StructuralVariant(4, after, dataclasses.replace(after)))
    for _ in range(par.inv_dup_num):
        pos = choose_pos(genome, par.inv_dup_min, par.inv_dup_max, svs, rng)
        svs.append(StructuralVariant(5, pos, dataclasses.replace(target)))
    return svs


def generate_mutations_ref(par, genome, rng=None):
    """Place indels, inversions and translocations for altering the reference."""
    rng = rng or random.Random()
    svs = []
    for _ in range(par.indel_num):
        svs.append(_indel(par, genome, svs, rng))
    for _ in range(par.inv_num):
        svs.append(_inversion(par, genome, svs, rng))
    for _ in range(par.translocations_num):
        svs.append(_translocation(par, genome, svs, rng))
    return svs


def complement(nuc):
    """Complementary base; other characters are returned unchanged."""
    return _COMPLEMENT.get(nuc, nuc)


def invert(seq):
    """Reverse complement of seq."""
    return "".join(complement(base) for base in reversed(seq))


def rand_seq(length, rng=None):
    """A random nucleotide sequence of the given length."""
    rng = rng or random.Random()
    return "".join(_NUCS[rng.randrange(4)] for _ in range(max(length, 0)))


def mut_char(old, rng=None):
    """A nucleotide different from old; non-ACGT characters are kept."""
    if old not in _NUCS:
        return old
    rng = rng or random.Random()
    return rng.choice([n for n in _NUCS if n != old])


def generate_parameter_file(path):
    """Write a parameter file with default values."""
    with open(path, "w") as handle:
        handle.write(_PARAMETER_TEXT)