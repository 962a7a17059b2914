"""
box-integral: box partitions and refinement filters for box integrals.

Prepartitions of axis-aligned boxes in ℝⁿ, the combinators that refine
and merge them, and the Riemann / Henstock / McShane / GP families of
convergence filters on tagged partitions.
"""

import logging

__version__ = "0.1.0"

from box_integral.box import Box, OptionalBox, Point
from box_integral.region import Region
from box_integral.prepartition import Prepartition
from box_integral.split import (
    split,
    split_many,
    hyperplanes_of,
    complement,
    split_center,
    cubical_refinement,
    refine_to_distortion,
)
from box_integral.gauge import Gauge, GaugeFamily
from box_integral.tagged import (
    TaggedPrepartition,
    subordinate_partition,
    to_subordinate,
    DEFAULT_MAX_DEPTH,
)
from box_integral.integration_params import (
    IntegrationParams,
    BaseSetCheck,
    complement_candidates,
    complement_witness,
    exists_mem_base_set_is_partition,
    exists_mem_base_set_le_union_eq,
    union_compl_to_subordinate_mem_base_set,
    COMPLEMENT_REFINEMENT_LEVELS,
    DISTORTION_TOL,
)
from box_integral.filters import BasisSet, TaggedFilter, DistortionFilter, ParamFilter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Boxes
    "Box",
    "OptionalBox",
    "Point",
    "Region",
    # Prepartitions
    "Prepartition",
    # Splitting
    "split",
    "split_many",
    "hyperplanes_of",
    "complement",
    "split_center",
    "cubical_refinement",
    "refine_to_distortion",
    # Gauges and tagged prepartitions
    "Gauge",
    "GaugeFamily",
    "TaggedPrepartition",
    "subordinate_partition",
    "to_subordinate",
    "DEFAULT_MAX_DEPTH",
    # Integration parameters
    "IntegrationParams",
    "BaseSetCheck",
    "complement_candidates",
    "complement_witness",
    "exists_mem_base_set_is_partition",
    "exists_mem_base_set_le_union_eq",
    "union_compl_to_subordinate_mem_base_set",
    "COMPLEMENT_REFINEMENT_LEVELS",
    "DISTORTION_TOL",
    # Filters
    "BasisSet",
    "TaggedFilter",
    "DistortionFilter",
    "ParamFilter",
]
