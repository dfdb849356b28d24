"""Radiative exchange between forms.

Components:
    view_factors: Monte Carlo view-factor estimator with occlusion
"""

from .view_factors import (
    VF_T_MIN,
    ViewFactorMatrix,
    radiative_kernel,
    reciprocity_residual,
    view_factor,
    view_factors,
)

__all__ = [
    "VF_T_MIN",
    "ViewFactorMatrix",
    "radiative_kernel",
    "reciprocity_residual",
    "view_factor",
    "view_factors",
]
