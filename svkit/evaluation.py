"""Evaluation of structural-variant calls against simulated events."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field

_TYPE_NAMES = {0: "DEL", 1: "DUP", 2: "INV", 3: "TRA", 4: "INS", 5: "BND"}


def trans_type(sv_type):
    """Return the name of an SV type code."""
    return _TYPE_NAMES.get(sv_type, "NA")


@dataclass(frozen=True)
class Coordinate:
    """A chromosome position."""

    chrom: str
    pos: int


@dataclass
class SimulatedSV:
    """A simulated event as listed in a BED-like truth file."""

    start: Coordinate
    stop: Coordinate
    sv_type: int
    identified: bool = False
    wrong: bool = False


@dataclass
class VcfCall:
    """A called variant: coordinates, type and the original record text."""

    start: Coordinate
    stop: Coordinate
    sv_type: int
    header: str = ""
    calls: dict[str, str] = field(default_factory=dict)


@dataclass
class Report:
    """Counts of events per SV type."""

    deletions: int = 0
    duplications: int = 0
    inversions: int = 0
    translocations: int = 0
    insertions: int = 0
    other: int = 0

    def add(self, sv_type):
        """Count one event of the given type."""
        name = {
            0: "deletions",
            1: "duplications",
            2: "inversions",
            3: "translocations",
            4: "insertions",
        }.get(sv_type, "other")
        setattr(self, name, getattr(self, name) + 1)

    def total(self):
        """Events of the five known types; 'other' is not counted."""
        return (
            self.deletions
            + self.duplications
            + self.insertions
            + self.inversions
            + self.translocations
        )

    def __str__(self):
        return "/".join(
            str(n)
            for n in (
                self.deletions,
                self.duplications,
                self.inversions,
                self.translocations,
                self.other + self.insertions,
            )
        )


def _divide(numerator, denominator):
    if denominator:
        return numerator / denominator
    if numerator == 0:
        return math.nan
    return math.copysign(math.inf, numerator)


def true_positive_rate(simulated, found):
    """Fraction of simulated events that were found."""
    return _divide(float(found.total()), float(simulated))


def false_positive_rate(found, additional):
    """Fraction of calls that match no simulated event."""
    extra = float(additional.total())
    return _divide(extra, found.total() + extra)


def _near(a, b, max_dist):
    return a.chrom == b.chrom and abs(a.pos - b.pos) < max_dist


def _match(sim, call, max_dist, breakpoint_only):
    if _near(sim.start, call.start, max_dist):
        return breakpoint_only or _near(sim.stop, call.stop, max_dist)
    if _near(sim.stop, call.start, max_dist):
        return breakpoint_only or _near(sim.start, call.stop, max_dist)
    return False


def match_coords(sim, call, max_dist):
    """Whether a call matches a simulated event; INS and TRA calls need one breakpoint."""
    return _match(sim, call, max_dist, call.sv_type in (3, 4))


def match_coords_paper(sim, call, max_dist):
    """Like match_coords, but the simulated event's type decides the single-breakpoint rule."""
    return _match(sim, call, max_dist, sim.sv_type in (3, 4))


def _record(call):
    return call.header + "".join(call.calls[key] for key in sorted(call.calls)) + "\n"


def eval_calls(entries, simul, max_dist, output):
    """Compare calls with simulated events.

    Matching calls go to ``<output>_right.vcf``, the others to
    ``<output>addition.vcf``. Returns the reports of found, missed and
    additional events.
    """
    simul = [dataclasses.replace(s) for s in simul]
    not_found = Report()
    additional = Report()
    found = Report()

    with open(f"{output}_right.vcf", "w") as right, open(f"{output}addition.vcf", "w") as extra:
        for call in entries:
            hit = False
            for sim in simul:
                if sim.sv_type == call.sv_type and match_coords(sim, call, max_dist):
                    sim.identified = True
                    hit = True
            if hit:
                right.write(_record(call))
            else:
                extra.write(_record(call))
                additional.add(call.sv_type)

    print("Missing SVs: ")
    for sim in simul:
        if sim.identified:
            found.add(sim.sv_type)
        else:
            not_found.add(sim.sv_type)
            print(
                f"{sim.sv_type} {sim.start.chrom} {sim.start.pos} "
                f"END: {sim.stop.chrom} {sim.stop.pos}"
            )
    print()
    tp = true_positive_rate(len(simul), found)
    fp = false_positive_rate(found, additional)
    print(f" Overall: {len(simul)} {found} {not_found} {additional} {tp:g} {fp:g}")
    return found, not_found, additional


def summarize_simul(simul):
    """Print and return the number and average length of simulated events per type."""
    counts = [0.0] * 6
    lengths = [0.0] * 6
    for sim in simul:
        if not 0 <= sim.sv_type < 6:
            raise ValueError(f"unknown SV type: {sim.sv_type}")
        counts[sim.sv_type] += 1
        if sim.sv_type != 3:
            lengths[sim.sv_type] += sim.stop.pos - sim.start.pos

    lines = ["Simulated:", "type\t#events\tavg. length", ""]
    for code, name in enumerate(("DEL", "DUP", "INV", "TRA", "INS")):
        lines.append(f"{name}\t{counts[code]:g}\t{_divide(lengths[code], counts[code]):g}")
    text = "\n".join(lines) + "\n"
    print(text, end="")
    return text


def eval_calls_paper(entries, simul, max_dist):
    """Classify simulated events as found, incorrect or missed.

    Returns ``(found, incorrect, not_found, additional)``.
    """
    simul = [dataclasses.replace(s) for s in simul]
    additional = 0
    for call in entries:
        hit = False
        for sim in simul:
            if match_coords_paper(sim, call, max_dist) and sim.sv_type == call.sv_type:
                hit = True
                sim.identified = True
            elif match_coords_paper(sim, call, max_dist * 100):
                hit = True
                sim.wrong = True
        if not hit:
            additional += 1

    found = incorrect = not_found = 0
    per_type = {0: [0, 0, 0], 4: [0, 0, 0]}
    for sim in simul:
        if sim.identified:
            found += 1
            slot = 0
        elif sim.wrong:
            incorrect += 1
            slot = 1
        else:
            not_found += 1
            slot = 2
        if sim.sv_type in per_type:
            per_type[sim.sv_type][slot] += 1

    if any(sim.sv_type == 4 for sim in simul):
        print("DEL: " + " ".join(map(str, per_type[0])))
        print("INS: " + " ".join(map(str, per_type[4])))
    print(
        f"chr\tstart\tstop\tTYPE\tLEN\t{len(simul)}\t{found}\t{incorrect}\t{not_found}\t{additional}"
    )
    return found, incorrect, not_found, additional