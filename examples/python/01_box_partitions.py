"""
Example 01: Box Partitions
==========================

Demonstrates boxes, prepartitions, hyperplane splitting, complements and
the lattice operations on prepartitions.

Use case: A quadrature routine needs to cover a rectangle with cells,
refine some of them, and fill whatever is left uncovered.
"""

from box_integral import (
    Box,
    Prepartition,
    Region,
    complement,
    cubical_refinement,
    split,
    split_center,
    split_many,
)

I = Box((0, 0), (2, 1))

# ── 1. Boxes ─────────────────────────────────────────────────────

print("=== 1. Boxes ===\n")

print(f"Box:        {I}")
print(f"Center:     {I.center}")
print(f"Volume:     {I.volume()}")
print(f"Distortion: {I.distortion()}")   # 2.0
print(f"(0, 0) in I? {I.contains((0, 0))}  (half-open: lower faces excluded)")
print(f"(2, 1) in I? {I.contains((2, 1))}")

# ── 2. Splitting ─────────────────────────────────────────────────

print("\n=== 2. Splitting ===\n")

halves = split(I, 0, 1.0)
print(f"split at x=1: {list(halves)}")

grid = split_many(I, {(0, 0.5), (0, 1.5), (1, 0.5)})
print(f"3x2 grid has {len(grid)} cells, partition: {grid.is_partition()}")

quarters = split_center(I)
print(f"split_center: {len(quarters)} cells of distortion {quarters.distortion()}")

# ── 3. Complements ───────────────────────────────────────────────

print("\n=== 3. Complements ===\n")

pi = Prepartition(I, [Box((0, 0), (0.5, 0.5)), Box((1.0, 0.25), (2, 1))])
c = complement(pi)
print(f"pi covers volume {pi.union.volume()}, complement covers {c.union.volume()}")
print(f"complement union == I minus pi: {c.union == Region.of(I) - pi.union}")
print(f"pi + complement is a partition: {pi.disj_union(c).is_partition()}")
print(f"complement distortion: {c.distortion()}")
print(f"after cubical refinement: {cubical_refinement(c, 2).distortion()}")

# ── 4. Lattice operations ────────────────────────────────────────

print("\n=== 4. Lattice Operations ===\n")

a = split(I, 0, 1.0)
b = split(I, 1, 0.5)
m = a & b
print(f"a & b has {len(m)} cells; refines a: {m <= a}, refines b: {m <= b}")

refined = a.bi_union(split_center)
print(f"a refined cell-by-cell: {len(refined)} cells")

left = a.restrict(Box((0, 0), (1, 1)))
print(f"a restricted to the left square: {list(left)}")
