"""Balanced search tree that merges nearby structural-variant calls."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Optional

from .svnode import SVNode

_SNP_TYPE_NAMES = {0: "DEL", 1: "DUP", 2: "INV", 3: "TRA", 4: "INS", 5: "UNK", 6: "CNV"}


def is_same_strand(strands, flags):
    """Whether a call's strand pair agrees with a node's four strand flags."""
    forward, reverse = strands
    hits = (
        bool(flags[0]) and forward,
        bool(flags[1]) and not forward,
        bool(flags[2]) and reverse,
        bool(flags[3]) and not reverse,
    )
    return sum(bool(h) for h in hits) == 2


def same_type(sv_type, flags):
    """Whether an SV type is compatible with a node's type flags.

    Inversions and translocations are treated as matching unknown/BND events.
    """
    if 0 <= sv_type < len(flags) and flags[sv_type]:
        return True
    bnd = len(flags) > 5 and bool(flags[5])
    if sv_type in (2, 3) and bnd:
        return True
    return sv_type == 5 and (bool(flags[3]) or bool(flags[2]))


@dataclass(eq=False)
class _Node:
    data: SVNode
    left: Optional["_Node"] = None
    right: Optional["_Node"] = None
    height: int = 0


def _height(node):
    return -1 if node is None else node.height


def _fix_height(node):
    node.height = max(_height(node.left), _height(node.right)) + 1


def _rotate_with_left(p1):
    p2 = p1.left
    p1.left = p2.right
    p2.right = p1
    _fix_height(p1)
    p2.height = max(_height(p2.left), p1.height) + 1
    return p2


def _rotate_with_right(p1):
    p2 = p1.right
    p1.right = p2.left
    p2.left = p1
    _fix_height(p1)
    p2.height = max(p1.height, _height(p2.right)) + 1
    return p2


def _double_with_left(p1):
    p1.left = _rotate_with_right(p1.left)
    return _rotate_with_left(p1)


def _double_with_right(p1):
    p1.right = _rotate_with_left(p1.right)
    return _rotate_with_right(p1)


class IntervalTree:
    """AVL tree of merged SV calls, ordered by start position."""

    def __init__(self, settings):
        self.settings = settings
        self._root: Optional[_Node] = None

    # -- comparison -------------------------------------------------------

    def _overlap(self, start, stop, sv_type, strands, node):
        settings = self.settings
        max_dist = settings.max_dist
        if max_dist < 1 and start.chrom != stop.chrom:
            max_dist = 1000
        elif max_dist < 1:
            max_dist = math.floor((stop.position - start.position) * max_dist)

        limit = int(max_dist)
        strand_ok = not settings.use_strand or is_same_strand(strands, node.strands)
        type_ok = not settings.use_type or same_type(sv_type, node.types)
        if (
            strand_ok
            and type_ok
            and start.chrom == node.first.chrom
            and abs(start.position - node.first.position) < limit
            and stop.chrom == node.second.chrom
            and abs(stop.position - node.second.position) < limit
        ):
            return 0

        if start.chrom == node.first.chrom and abs(start.position - node.first.position) < max_dist:
            return stop.position - node.second.position
        dist = start.position - node.first.position
        return 100 if dist == 0 else dist

    def _overlap_snp(self, snp, node):
        max_dist = self.settings.max_dist
        if node.sv_type in (0, 1, 6) and node.first.chrom == snp.chrom:
            if node.first.position <= snp.position <= node.second.position:
                return 0
        if node.first.chrom == snp.chrom and abs(snp.position - node.first.position) <= max_dist:
            return 0
        if node.second.chrom == snp.chrom and abs(snp.position - node.second.position) <= max_dist:
            return 0
        dist = snp.position - node.first.position
        return 1 if dist == 0 else dist

    # -- insertion --------------------------------------------------------

    def insert(self, start, stop, sv_type, strands, meta):
        """Add a call, merging it into a matching node where one exists."""
        self._root, _ = self._insert(self._root, start, stop, sv_type, strands, meta)

    def _screen(self, node, start, stop, sv_type, strands, meta):
        if node is None:
            return False
        if self._screen(node.left, start, stop, sv_type, strands, meta):
            return True
        if self._overlap(start, stop, sv_type, strands, node.data) == 0:
            node.data.add(start, stop, sv_type, strands, meta)
            return True
        return self._screen(node.right, start, stop, sv_type, strands, meta)

    def _insert(self, node, start, stop, sv_type, strands, meta):
        if node is None:
            return _Node(SVNode.create(start, stop, sv_type, strands, meta)), False

        score = self._overlap(start, stop, sv_type, strands, node.data)
        if score == 0:
            node.data.add(start, stop, sv_type, strands, meta)
            return node, True
        if abs(score) < int(self.settings.max_dist):
            if self._screen(node, start, stop, sv_type, strands, meta):
                return node, True

        if score > 0:
            node.left, merged = self._insert(node.left, start, stop, sv_type, strands, meta)
            if merged:
                return node, True
            if _height(node.left) - _height(node.right) == 2:
                if self._overlap(start, stop, sv_type, strands, node.left.data) > 0:
                    node = _rotate_with_left(node)
                else:
                    node = _double_with_left(node)
        else:
            node.right, merged = self._insert(node.right, start, stop, sv_type, strands, meta)
            if merged:
                return node, True
            if _height(node.right) - _height(node.left) == 2:
                if self._overlap(start, stop, sv_type, strands, node.right.data) < 0:
                    node = _rotate_with_right(node)
                else:
                    node = _double_with_right(node)

        _fix_height(node)
        return node, False

    # -- queries ----------------------------------------------------------

    def find_snp(self, snp):
        """Name of the SV type overlapping or near a position, or "NA"."""
        node = self._root
        while node is not None:
            score = self._overlap_snp(snp, node.data)
            if score > 0:
                node = node.left
            elif score < 0:
                node = node.right
            else:
                return _SNP_TYPE_NAMES.get(node.data.sv_type, "")
        return "NA"

    def find_min(self):
        """The leftmost node's variant, or None for an empty tree."""
        node = self._root
        if node is None:
            return None
        while node.left is not None:
            node = node.left
        return node.data

    def find_max(self):
        """The rightmost node's variant, or None for an empty tree."""
        node = self._root
        if node is None:
            return None
        while node.right is not None:
            node = node.right
        return node.data

    def height(self):
        """Height of the tree; -1 when empty."""
        return _height(self._root)

    def _inorder(self, node=None, *, top=True) -> Iterator[SVNode]:
        if top:
            node = self._root
        if node is None:
            return
        yield from self._inorder(node.left, top=False)
        yield node.data
        yield from self._inorder(node.right, top=False)

    def __len__(self):
        return sum(1 for _ in self._inorder())

    def breakpoints(self):
        """All merged variants in tree order."""
        return list(self._inorder())

    def breakpoints_by_chrom(self):
        """Variants with enough supporting callers, grouped by first chromosome."""
        grouped: dict[str, list[SVNode]] = {}
        for data in self._inorder():
            if len(data.callers) >= self.settings.min_support:
                grouped.setdefault(data.first.chrom, []).append(data)
        return grouped