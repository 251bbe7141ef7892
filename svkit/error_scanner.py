"""Estimate per-position read error profiles from SAM alignments with MD tags."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")
_BASE_IDS = {"A": 0, "C": 1, "G": 2, "T": 3, "-": 4}
_BASE_NAMES = "ACGT-"


@dataclass
class CigarOp:
    """One CIGAR operation."""

    op: str
    length: int


@dataclass
class Difference:
    """An alignment event: type 0 mismatch, >0 deletion, <0 insertion."""

    position: int
    type: int


@dataclass
class ReadPosition:
    """Event counts observed at one read position."""

    match: float = 0.0
    mismatch: float = 0.0
    ins: float = 0.0
    deletion: float = 0.0
    total: float = 0.0


def _atoi_at(text, i):
    found = _INT_PREFIX.match(text, i)
    return int(found.group(1)) if found else 0


def _is_symbol(text, i):
    return _atoi_at(text, i) == 0 and text[i] != "0"


def _base_id(base):
    try:
        return _BASE_IDS[base]
    except KeyError:
        raise ValueError(f"Unknown base: {base}") from None


def parse_cigar(text):
    """Parse a CIGAR string, which ends at a tab or at the end of text."""
    cigar = []
    length = -1
    for i, ch in enumerate(text):
        if ch == "\t":
            break
        if _is_symbol(text, i):
            cigar.append(CigarOp(ch, length))
            length = -1
        elif length == -1:
            length = _atoi_at(text, i)
    return cigar


def cigar_ref_length(cigar):
    """Number of reference bases covered by the alignment."""
    return sum(op.length for op in cigar if op.op in "DMN")


def _add_event(pos, start, events):
    i = start
    while i < len(events) and pos > events[i].position:
        i += 1
    events.insert(i, Difference(pos, 0))
    return i


def summarize_alignment(cigar, md):
    """List the indels, trailing clips and mismatches of an alignment by position."""
    events = []
    pos = 0
    for op in cigar:
        if op.op == "D":
            events.append(Difference(pos, op.length))
            pos += op.length
        elif op.op == "I":
            events.append(Difference(pos, -op.length))
        elif op.op in "MN":
            pos += op.length
        elif op.op == "S" and pos != 0:
            events.append(Difference(pos, pos + op.length))

    pos = 0
    match = False
    gap = False
    ref_pos = 0
    pos_events = 0
    for i, ch in enumerate(md):
        if ch in "\t\0\n":
            break
        if ch == "^":
            gap = True
        if _is_symbol(md, i):
            if not gap:
                while ref_pos < len(events) and pos > events[ref_pos].position:
                    if events[ref_pos].type > 0:
                        pos += events[ref_pos].type
                    ref_pos += 1
                pos_events = _add_event(pos, pos_events, events)
                pos += 1
            match = False
        elif not match:
            match = True
            pos += _atoi_at(md, i)
            gap = False
    return events


def store_diffs(diffs, profile):
    """Add the events of one read to the per-position profile and return it.

    The last entry of diffs only marks where the read ends.
    """
    size = diffs[-1].position if diffs else 1

    def at(index):
        while index >= len(profile):
            profile.append(ReadPosition())
        return profile[index]

    while size > len(profile):
        profile.append(ReadPosition())

    pos = 0
    for diff in diffs[:-1]:
        for _ in range(diff.position - pos - 1):
            slot = at(pos)
            slot.match += 1
            slot.total += 1
            pos += 1
        for _ in range(abs(diff.type) or 1):
            slot = at(pos)
            if diff.type < 0:
                slot.ins += 1
            elif diff.type > 0:
                slot.deletion += 1
            else:
                slot.mismatch += 1
            slot.total += 1
            pos += 1
    while pos < size:
        slot = at(pos)
        slot.match += 1
        slot.total += 1
        pos += 1
    return profile


def compute_alignment(cigar, md, read_seq, error_mat):
    """Rebuild the reference/read alignment and count base substitutions.

    error_mat is extended and updated in place: one 5x5 matrix per read
    position, indexed by reference base then read base (A, C, G, T, -).
    Returns the aligned reference and read strings.
    """
    ref = list(read_seq)
    read = list(read_seq)
    pos = 0
    for op in cigar:
        if op.op == "I":
            for _ in range(op.length):
                if pos >= len(ref):
                    raise ValueError("CIGAR is longer than the read")
                ref[pos] = "-"
                pos += 1
        elif op.op == "D":
            for _ in range(op.length):
                read.insert(pos, "-")
                ref.insert(pos, "D")
                pos += 1
        elif op.op == "S":
            del read[pos:pos + op.length]
            del ref[pos:pos + op.length]
        elif op.op == "M":
            pos += op.length

    pos = 0
    match = False
    gap = False
    j = 0
    aln_pos = 0
    for i, ch in enumerate(md):
        if ch == "\t":
            break
        if ch == "^":
            gap = True
        if _is_symbol(md, i) and ch != "^":
            while j < len(read) and aln_pos != pos:
                if ref[j] != "-":
                    aln_pos += 1
                j += 1
            if j >= len(ref):
                raise ValueError("MD string does not fit the alignment")
            if not gap:
                ref[j] = ch
            elif ref[j] == "D":
                ref[j] = ch
            else:
                t = max(j - 10, 0)
                while t < len(ref) and ref[t] != "D":
                    t += 1
                if t >= len(ref):
                    raise ValueError("MD deletion does not fit the alignment")
                ref[t] = ch
                j = t
            pos += 1
            match = False
        elif not match:
            match = True
            pos += _atoi_at(md, i)
            gap = False

    pos = 0
    for ref_base, read_base in zip(ref, read):
        while pos + 1 > len(error_mat):
            error_mat.append([[0] * 5 for _ in range(5)])
        error_mat[pos][_base_id(ref_base)][_base_id(read_base)] += 1
        if read_base != "-":
            pos += 1
    return "".join(ref), "".join(read)


def _ratio(numerator, denominator):
    if denominator:
        return numerator / denominator
    if numerator == 0:
        return math.nan
    return math.copysign(math.inf, numerator)


def generate_error_profile(lines, min_length, comp_error_mat, output):
    """Build an error profile from SAM lines and write it to output.

    With comp_error_mat a substitution matrix is also written to
    ``<output>_errormat.txt``. Returns the per-position profile.
    """
    profile: list[ReadPosition] = []
    error_mat: list[list[list[int]]] = []
    num = 0

    for raw in lines:
        line = raw.rstrip("\n")
        if line.startswith("@"):
            continue
        count = 0
        seq = []
        cigar: list[CigarOp] = []
        direction = []
        for i, ch in enumerate(line):
            if count == 1 and ch != "\t":
                direction.append(ch)
            if count == 5 and line[i - 1] == "\t":
                cigar = parse_cigar(line[i:])
                if cigar_ref_length(cigar) < min_length:
                    break
            if count == 9 and ch != "\t" and comp_error_mat:
                seq.append(ch)
            if count > 11 and line.startswith("MD:Z:", i):
                num += 1
                md = line[i + 5:]
                store_diffs(summarize_alignment(cigar, md), profile)
                if comp_error_mat:
                    ref, read = compute_alignment(cigar, md, "".join(seq), error_mat)
                    label = "".join(direction)
                    print(f" ref: {label} {ref}")
                    print(f"read: {label} {read}")
                    print()
                break
            if ch == "\t":
                count += 1

    if num == 0:
        raise ValueError("no reads with an MD string found")

    with open(output, "w") as handle:
        handle.write("Pos\tP(stop)\tP(match)\tP(mismatch)\tP(ins)]\tP(del)\n")
        for i, slot in enumerate(profile):
            values = (
                1 - slot.total / num,
                _ratio(slot.match, slot.total),
                _ratio(slot.mismatch, slot.total),
                _ratio(slot.ins, slot.total),
                _ratio(slot.deletion, slot.total),
            )
            handle.write(f"{i}" + "".join(f"\t{v:f}" for v in values) + "\n")

    if comp_error_mat:
        with open(f"{output}_errormat.txt", "w") as handle:
            handle.write("Pos\tRefallele\tRead(A)\tRead(C)\tRead(G)\tRead(T)\tRead(-)\n")
            for i, matrix in enumerate(error_mat):
                for j, row in enumerate(matrix):
                    cells = "".join(f"\t{v}" for v in row)
                    handle.write(f"{i}\t{_BASE_NAMES[j]}{cells}\n")

    print(f"Number of valid reads: {num}")
    return profile