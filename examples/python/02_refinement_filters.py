"""
Example 02: Refinement Filters
==============================

Demonstrates gauges, tagged partitions, integration parameters and the
filters along which Riemann sums converge.

Use case: Comparing how the Riemann, Henstock, McShane and GP
disciplines judge the same tagged partition.
"""

from box_integral import (
    Box,
    Gauge,
    GaugeFamily,
    IntegrationParams,
    Prepartition,
    TaggedPrepartition,
    subordinate_partition,
)

I = Box((0, 0), (1, 1))

# ── 1. Gauges and subbox induction ───────────────────────────────

print("=== 1. Subordinate Partitions ===\n")

# A gauge that shrinks near the left edge
r = Gauge(lambda x: 0.05 + 0.3 * x[0])
tp = subordinate_partition(I, r)
print(f"cells: {len(tp)}, partition: {tp.is_partition()}")
print(f"Henstock: {tp.is_henstock()}, r-subordinate: {tp.is_subordinate(r)}")

# ── 2. Integration parameters ────────────────────────────────────

print("\n=== 2. Integration Parameters ===\n")

for name in ("RIEMANN", "HENSTOCK", "MCSHANE", "GP"):
    l = getattr(IntegrationParams, name)
    print(f"{name:9s} finer than RIEMANN: {l <= IntegrationParams.RIEMANN}")

# Off-cell tag: McShane accepts it, Henstock does not
off_tag = TaggedPrepartition.single(I, Box((0, 0), (0.5, 1)), (0.75, 0.5))
for l in (IntegrationParams.HENSTOCK, IntegrationParams.MCSHANE):
    check = l.check_base_set(I, 2.0, Gauge.const(1.0), off_tag)
    print(f"{l!r}: accepted={check.accepted} (henstock ok={check.is_henstock})")

# ── 3. Filters ───────────────────────────────────────────────────

print("\n=== 3. Filters ===\n")

f = IntegrationParams.GP.to_filter(I)
family = GaugeFamily(lambda c: Gauge.const(0.25 / c), constant=True)
w = f.witness(family)
print(f"{f!r}")
print(f"witness: {len(w)} cells, member: {w in f.basis_set(family)}")

pi0 = Prepartition(I, [Box((0, 0), (0.5, 0.5)), Box((0.5, 0.5), (1, 1))])
fu = IntegrationParams.GP.to_filter_union(I, pi0)
wu = fu.witness(family)
print(f"union witness keeps the union: {wu.union == pi0.union}")
