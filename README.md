# svkit

A library for working with structural variants (SVs) in genomic data. It uses
only the Python standard library and needs Python 3.10 or later.

It covers five jobs:

- **Merging calls** (`svkit.svnode`, `svkit.interval_tree`). Calls are put into
  a self-balancing tree, `IntervalTree`, ordered by start position. A call whose
  two breakpoints each lie within `Settings.max_dist` of an existing node is
  merged into that node's `SVNode`. If `Settings.use_type` or
  `Settings.use_strand` is set, the SV type or the strands must agree as well.
  Each `SVNode` keeps one `Support` record per caller.
- **Placing simulated SVs** (`svkit.sv_generation`). A parameter file is read,
  and duplications, indels, inversions, translocations, inverted deletions and
  inverted duplications are placed on a genome without overlapping each other.
- **Error profiles** (`svkit.error_scanner`). SAM lines that carry an `MD:Z:`
  tag are read, and a per-position table of stop, match, mismatch, insertion
  and deletion rates is written.
- **Read simulation** (`svkit.read_simulator`). Reads are drawn from a genome
  using such an error profile.
- **Evaluating calls** (`svkit.evaluation`). Called SVs are compared with a
  simulated truth set, and the found, missing and extra events are counted by
  type.

## Merging calls

```python
from svkit.svnode import Breakpoint, MetaData, Settings
from svkit.interval_tree import IntervalTree

settings = Settings(max_dist=1000, max_caller=2, min_support=1)
tree = IntervalTree(settings)
tree.insert(Breakpoint("1", 10000), Breakpoint("1", 12000), 0, (True, False),
            MetaData(caller_id=0, sv_len=2000))
tree.insert(Breakpoint("1", 10100), Breakpoint("1", 12050), 0, (True, False),
            MetaData(caller_id=1, sv_len=1950))

len(tree)                      # 1: the second call was merged into the first
tree.breakpoints_by_chrom()    # {"1": [SVNode(...)]}
tree.find_snp(Breakpoint("1", 11000))   # "DEL"
```

A `max_dist` below 1 is treated as a fraction of the call's length. For calls
between two chromosomes it becomes 1000. `breakpoints()` lists every node in
tree order. `breakpoints_by_chrom()` keeps only nodes with at least
`Settings.min_support` callers.

## Placing simulated SVs

```python
import random

from svkit.sv_generation import (
    generate_mutations, generate_parameter_file, parse_param, read_fasta,
)

generate_parameter_file("params.txt")   # edit the numbers, keep the layout
par = parse_param("params.txt")
genome = read_fasta("reference.fa", 10000)
svs = generate_mutations(par, genome, random.Random(7))
```

Each result is a `StructuralVariant` with a `pos` and a `target` `Position`.
`generate_mutations_ref` places only indels, inversions and translocations.
`choose_pos` raises `RuntimeError` when it cannot find a free region.
Translocations need at least two chromosomes, or `ValueError` is raised.

## Error profiles and reads

```python
import random

from svkit.error_scanner import generate_error_profile
from svkit.read_simulator import simulate_reads

with open("aln.sam") as sam:
    generate_error_profile(sam, 100, False, "profile.txt")

simulate_reads("reference.fa", "profile.txt", 10, "reads.fa", random.Random(1))
```

With `comp_error_mat=True`, a substitution table is also written to
`<output>_errormat.txt`. `generate_error_profile` raises `ValueError` if no
line has an MD tag. `simulate_reads` writes one name line and one sequence line
per read. The name is built from the FASTA header, which keeps its `>`, then the
start position and the strand. The function returns the number of reads it
wrote.

## Evaluating calls

`svkit.evaluation.eval_calls(entries, simul, max_dist, output)` takes a list of
`VcfCall` and a list of `SimulatedSV`. It writes matching calls to
`<output>_right.vcf` and the others to `<output>addition.vcf`. It returns three
`Report` objects: found, not found and additional. `eval_calls_paper` also
counts calls of the wrong type near a simulated event, and returns
`(found, incorrect, not_found, additional)`. `summarize_simul` gives the count
and average length of simulated events per type.

## SV type codes

Types are small integers. `svkit.evaluation.trans_type` turns a code into its
name:

| code | type |
|------|------|
| 0    | DEL  |
| 1    | DUP  |
| 2    | INV  |
| 3    | TRA  |
| 4    | INS  |
| 5    | BND  |

In `sv_generation` the codes are different: 0 duplication, 1 insertion,
2 inversion, 3 translocation, 4 deletion, 5 inverted duplication.

## What svkit does not do

- It has no command-line interface. Everything is called from Python.
- It does not read VCF or BED files. `VcfCall` and `SimulatedSV` objects must
  be built by the caller.
- It does not write the merged tree out as a VCF. You get the `SVNode` objects
  from the tree and decide how to use them.
- It places simulated SVs but does not apply them to the genome sequence. It
  does not add SNPs, and it does not write the altered genome or the event
  files.