import random

import pytest

from svkit.sv_generation import (
    Position,
    SimParameters,
    StructuralVariant,
    choose_pos,
    complement,
    generate_mutations,
    generate_mutations_ref,
    generate_parameter_file,
    get_pos,
    invert,
    is_overlapping,
    mut_char,
    parse_param,
    parse_value,
    percent_n,
    rand_seq,
    read_fasta,
)


def _genome(names, length, seed=1):
    rng = random.Random(seed)
    return {name: "".join(rng.choice("ACGT") for _ in range(length)) for name in names}


def test_parse_value_reads_number_after_space():
    assert parse_value("DUPLICATION_minimum_length: 100") == 100
    assert parse_value("INDEL_number: 1") == 1


def test_parse_value_without_value():
    assert parse_value("nothing_here") == -1
    assert parse_value("") == -1


def test_parameter_file_round_trip(tmp_path):
    path = tmp_path / "params.txt"
    generate_parameter_file(path)
    par = parse_param(path)
    assert (par.dup_min, par.dup_max, par.dup_num) == (100, 10000, 3)
    assert (par.indel_min, par.indel_max, par.indel_num) == (20, 500, 1)
    assert (par.translocations_min, par.translocations_max, par.translocations_num) == (
        1000,
        3000,
        2,
    )
    assert (par.inv_min, par.inv_max, par.inv_num) == (600, 800, 4)
    assert (par.inv_del_min, par.inv_del_max, par.inv_del_num) == (600, 800, 2)
    assert (par.inv_dup_min, par.inv_dup_max, par.inv_dup_num) == (600, 800, 2)
    assert par.intrachr_num == 0


def test_parse_param_without_complex_events(tmp_path):
    path = tmp_path / "params.txt"
    generate_parameter_file(path)
    lines = path.read_text().splitlines()[:13]
    path.write_text("\n".join(lines) + "\n")
    par = parse_param(path)
    assert par.inv_num == 4
    assert par.inv_del_num == 0
    assert par.inv_dup_num == 0


def test_parse_param_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_param(tmp_path / "missing.txt")


def test_read_fasta_filters_and_uppercases(tmp_path):
    path = tmp_path / "ref.fa"
    path.write_text(">chrB extra words\nacgt\nACGT\n>short\nAC\n>chrA\nggggcccc")
    genome = read_fasta(path, 5)
    assert list(genome) == ["chrA", "chrB"]
    assert genome["chrB"] == "ACGTACGT"
    assert genome["chrA"] == "GGGGCCCC"


def test_percent_n():
    assert percent_n("NNNN") == 1.0
    assert percent_n("ACGT") == 0.0
    assert percent_n("NNAA") == 0.5


def test_complement_and_invert():
    assert complement("A") == "T"
    assert complement("N") == "N"
    assert invert("AACG") == "CGTT"
    seq = "ACGTTGCAN"
    assert invert(invert(seq)) == seq


def test_rand_seq_alphabet_and_length():
    seq = rand_seq(200, random.Random(3))
    assert len(seq) == 200
    assert set(seq) <= set("ACGT")
    assert rand_seq(-5, random.Random(3)) == ""


def test_mut_char_changes_base():
    rng = random.Random(5)
    for base in "ACGT":
        for _ in range(20):
            new = mut_char(base, rng)
            assert new in "ACGT"
            assert new != base
    assert mut_char("N", rng) == "N"


def test_is_overlapping():
    svs = [StructuralVariant(4, Position("1", 100, 200))]
    assert is_overlapping(Position("1", 150, 300), svs)
    assert is_overlapping(Position("1", 200, 300), svs)
    assert not is_overlapping(Position("1", 201, 300), svs)
    assert not is_overlapping(Position("2", 150, 300), svs)


def test_get_pos_respects_size_range():
    genome = _genome(["1", "2"], 5000)
    rng = random.Random(11)
    for _ in range(50):
        pos = get_pos(genome, 100, 500, rng)
        assert pos.chrom in genome
        assert 100 <= pos.stop - pos.start < 500
        assert 0 <= pos.start
        assert pos.stop <= len(genome[pos.chrom])


def test_get_pos_empty_genome():
    with pytest.raises(ValueError):
        get_pos({}, 10, 20, random.Random(1))


def test_choose_pos_fails_when_all_covered():
    genome = _genome(["1"], 2000)
    svs = [StructuralVariant(4, Position("1", 0, 2000))]
    with pytest.raises(RuntimeError):
        choose_pos(genome, 10, 50, svs, random.Random(2))


def test_generate_mutations_counts_and_shapes():
    genome = _genome(["1", "2"], 50000)
    par = SimParameters(
        dup_min=100, dup_max=300, dup_num=1,
        indel_min=50, indel_max=200, indel_num=2,
        translocations_min=200, translocations_max=400, translocations_num=1,
        inv_min=100, inv_max=300, inv_num=1,
        inv_del_min=300, inv_del_max=500, inv_del_num=1,
        inv_dup_min=100, inv_dup_max=300, inv_dup_num=1,
    )
    svs = generate_mutations(par, genome, random.Random(7))
    assert len(svs) == 1 + 2 + 1 + 1 + 3 + 1
    assert [sv.sv_type for sv in svs][:1] == [0]
    assert all(sv.sv_type in (1, 4) for sv in svs[1:3])
    assert svs[3].sv_type == 2
    inv = svs[3]
    assert (inv.target.start, inv.target.stop) == (inv.pos.stop, inv.pos.start)
    tra = svs[4]
    assert tra.sv_type == 3
    assert tra.pos.chrom != tra.target.chrom
    assert tra.pos.stop - tra.pos.start == tra.target.stop - tra.target.start
    inv_del, before, after = svs[5:8]
    assert [inv_del.sv_type, before.sv_type, after.sv_type] == [2, 4, 4]
    assert before.pos.stop == inv_del.pos.start
    assert after.pos.start == inv_del.pos.stop
    assert before.pos.stop - before.pos.start == after.pos.stop - after.pos.start
    assert svs[8].sv_type == 5


def test_translocation_needs_two_chromosomes():
    genome = _genome(["1"], 20000)
    par = SimParameters(translocations_min=100, translocations_max=200, translocations_num=1)
    with pytest.raises(ValueError):
        generate_mutations(par, genome, random.Random(1))


def test_generate_mutations_ref_types():
    genome = _genome(["1", "2"], 50000)
    par = SimParameters(
        dup_num=5,
        indel_min=50, indel_max=200, indel_num=3,
        translocations_min=200, translocations_max=400, translocations_num=1,
        inv_min=100, inv_max=300, inv_num=2,
    )
    svs = generate_mutations_ref(par, genome, random.Random(9))
    assert len(svs) == 3 + 2 + 1
    assert all(sv.sv_type in (1, 4) for sv in svs[:3])
    assert [sv.sv_type for sv in svs[3:]] == [2, 2, 3]
    for i, sv in enumerate(svs[:5]):
        assert not is_overlapping(sv.pos, svs[:i])
        assert sv.pos.start < sv.pos.stop <= len(genome[sv.pos.chrom])