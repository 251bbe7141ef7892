"""Data model for structural-variant calls gathered from several callers."""

from __future__ import annotations

from dataclasses import dataclass, field

# Flags are kept for DEL, DUP, INV, TRA, INS, UNK/BND and CNV.
SV_TYPE_COUNT = 7


@dataclass
class Settings:
    """Options that govern merging and output of structural variants."""

    version: str = "1.0.7"
    max_dist: float = 0.0
    max_caller: int = 0
    use_type: bool = False
    use_strand: bool = False
    dynamic_size: bool = False
    min_length: int = 0
    min_freq: float = -1.0
    min_support: int = 0


@dataclass(frozen=True)
class Breakpoint:
    """A position on a chromosome."""

    chrom: str
    position: int


@dataclass
class MetaData:
    """Per-call information taken from an input VCF record."""

    caller_id: int = 0
    genotype: str = "./."
    sv_len: int = -1
    pre_supp_vec: str = ""
    qv: int = -1
    num_reads: tuple[int, int] = (0, 0)
    vcf_id: str = "."
    alleles: tuple[str, str] = ("", "")


@dataclass
class Support:
    """Evidence for one merged variant contributed by one caller."""

    caller_id: int = 0
    length: int = 0
    quality: list[int] = field(default_factory=list)
    types: list[int] = field(default_factory=list)
    sv_lengths: list[int] = field(default_factory=list)
    starts: list[int] = field(default_factory=list)
    stops: list[int] = field(default_factory=list)
    num_support: tuple[int, int] = (0, 0)
    strand: tuple[bool, bool] = (False, False)
    genotype: str = "./."
    pre_supp_vec: str = ""
    alleles: tuple[str, str] = ("", "")
    vcf_id: str = ""


@dataclass
class SVNode:
    """A merged structural variant and the callers that support it."""

    first: Breakpoint
    second: Breakpoint
    sv_type: int = -1
    callers: list[Support] = field(default_factory=list)
    num_support: tuple[int, int] = (-1, -1)
    strand: tuple[bool, bool] = (False, False)
    genotype: str = "./."
    types: list[bool] = field(default_factory=lambda: [False] * SV_TYPE_COUNT)
    strands: list[bool] = field(default_factory=lambda: [False] * 4)

    @classmethod
    def create(cls, start, stop, sv_type, strands, meta):
        """Build a node holding a single call."""
        node = cls(
            first=start,
            second=stop,
            sv_type=sv_type,
            strand=tuple(strands),
            genotype=meta.genotype,
        )
        node._mark(sv_type, strands)
        length = stop.position - start.position if meta.sv_len == -1 else meta.sv_len
        node.callers.append(
            Support(
                caller_id=meta.caller_id,
                length=length,
                quality=[meta.qv],
                types=[sv_type],
                sv_lengths=[meta.sv_len],
                starts=[start.position],
                stops=[stop.position],
                num_support=tuple(meta.num_reads),
                strand=tuple(strands),
                genotype=meta.genotype,
                pre_supp_vec=meta.pre_supp_vec,
                alleles=tuple(meta.alleles),
                vcf_id=meta.vcf_id,
            )
        )
        return node

    def _mark(self, sv_type, strands):
        if 0 <= sv_type < len(self.types):
            self.types[sv_type] = True
        self.strands[0 if strands[0] else 1] = True
        self.strands[2 if strands[1] else 3] = True

    def add(self, start, stop, sv_type, strands, meta):
        """Merge another call into this node."""
        support = next(
            (s for s in reversed(self.callers) if s.caller_id == meta.caller_id),
            None,
        )
        if support is None:
            support = Support(caller_id=meta.caller_id)
            self.callers.append(support)

        self._mark(sv_type, strands)

        support.starts.append(start.position)
        support.stops.append(stop.position)
        support.types.append(sv_type)
        support.sv_lengths.append(meta.sv_len)
        support.num_support = (
            max(meta.num_reads[0], support.num_support[0]),
            max(meta.num_reads[1], support.num_support[1]),
        )
        support.genotype = meta.genotype
        support.strand = tuple(strands)
        support.pre_supp_vec = meta.pre_supp_vec
        support.quality.append(meta.qv)

        ref, alt = meta.alleles
        if len(ref) > len(support.alleles[0]) or len(alt) > len(support.alleles[1]):
            support.alleles = (ref, alt)

        if not meta.vcf_id.startswith("."):
            support.vcf_id = meta.vcf_id

        if support.length == 0:
            support.length = meta.sv_len
        else:
            support.length = max(meta.sv_len, support.length)