"""Curve, stress and macro calculations."""

from metals_curve_dashboard.indicators.calculator import CurveCalculator, CurveDashboardResult
from metals_curve_dashboard.indicators.curve_builder import build_curve, build_curves

__all__ = ["CurveCalculator", "CurveDashboardResult", "build_curve", "build_curves"]
