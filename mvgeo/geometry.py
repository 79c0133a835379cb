# mvgeo/geometry.py
"""
Public geometry API.

Internals live in mvgeo/geometry_utils/.
Import from here in the rest of the codebase to avoid deep-path imports.
"""

from mvgeo.geometry_utils.autocalib import (
    AbsoluteDualQuadraticDecomposition,
    absolute_quadratic_to_h,
    create_projective_to_metric,
    decompose_abs_dual_quadratic,
    enforce_absolute_quadratic_constraints,
)
from mvgeo.geometry_utils.common import DecompositionError
from mvgeo.geometry_utils.constraints import (
    constraint_epipolar,
    constraint_homography,
    constraint_lll,
    constraint_pll,
    constraint_plp,
    constraint_ppl,
    constraint_ppp,
)
from mvgeo.geometry_utils.decompose import (
    decompose_essential,
    decompose_metric_camera,
    decompose_projection_matrix,
    projective_to_metric,
    projective_to_metric_known_k,
)
from mvgeo.geometry_utils.epipolar import (
    compute_fundamental_matrix,
    create_essential,
    create_fundamental,
    create_fundamental_motion,
    epipolar_distance,
    extract_epipoles_fundamental,
    fundamental_compatible3,
    fundamental_to_essential,
)
from mvgeo.geometry_utils.homography import (
    create_homography,
    decompose_homography,
    errors_homography_symm,
    homography_stereo_2lines,
    homography_stereo_3pts,
    homography_stereo_line_pt,
    induced_homography12,
    induced_homography13,
)
from mvgeo.geometry_utils.observations import AssociatedPair, AssociatedTriple, PairLineNorm, split2, split3
from mvgeo.geometry_utils.projective import (
    camera_center,
    fundamental_to_projective,
    fundamental_to_projective_three,
    projection_matrix,
    projective_to_fundamental,
    projective_to_identity_h,
)
from mvgeo.geometry_utils.transfer import (
    TrifocalTransfer,
    transfer_1_to_2,
    transfer_1_to_2_points,
    transfer_1_to_3,
    transfer_1_to_3_points,
)
from mvgeo.geometry_utils.trifocal import (
    TrifocalGeometryExtractor,
    TrifocalTensor,
    create_trifocal,
    create_trifocal_general,
    create_trifocal_motion,
    extract_camera_matrices,
    extract_epipoles,
    extract_fundamental,
)

__all__ = [
    # trifocal
    "TrifocalTensor",
    "TrifocalGeometryExtractor",
    "create_trifocal",
    "create_trifocal_general",
    "create_trifocal_motion",
    "extract_epipoles",
    "extract_fundamental",
    "extract_camera_matrices",
    # constraints
    "constraint_lll",
    "constraint_pll",
    "constraint_plp",
    "constraint_ppl",
    "constraint_ppp",
    "constraint_epipolar",
    "constraint_homography",
    # homographies
    "induced_homography13",
    "induced_homography12",
    "homography_stereo_3pts",
    "homography_stereo_line_pt",
    "homography_stereo_2lines",
    "create_homography",
    "decompose_homography",
    "errors_homography_symm",
    # epipolar
    "create_essential",
    "create_fundamental",
    "create_fundamental_motion",
    "compute_fundamental_matrix",
    "extract_epipoles_fundamental",
    "fundamental_to_essential",
    "fundamental_compatible3",
    "epipolar_distance",
    # projective
    "projection_matrix",
    "camera_center",
    "projective_to_fundamental",
    "projective_to_identity_h",
    "fundamental_to_projective",
    "fundamental_to_projective_three",
    # decomposition
    "decompose_metric_camera",
    "decompose_projection_matrix",
    "decompose_essential",
    "projective_to_metric",
    "projective_to_metric_known_k",
    # transfer
    "TrifocalTransfer",
    "transfer_1_to_3",
    "transfer_1_to_2",
    "transfer_1_to_3_points",
    "transfer_1_to_2_points",
    # auto-calibration
    "AbsoluteDualQuadraticDecomposition",
    "enforce_absolute_quadratic_constraints",
    "absolute_quadratic_to_h",
    "decompose_abs_dual_quadratic",
    "create_projective_to_metric",
    # observations
    "AssociatedPair",
    "AssociatedTriple",
    "PairLineNorm",
    "split2",
    "split3",
    "DecompositionError",
]
