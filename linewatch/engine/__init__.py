"""
Line processing engine.

Pipeline for one category:
1. Normalize raw bookmaker payloads into GameLines
2. Estimate public betting splits (heuristic)
3. Classify sharp action against opening and previous snapshots
"""

from linewatch.engine.alerts import build_alerts, has_sharp_action, is_display_move
from linewatch.engine.estimator import PublicMoneyEstimator
from linewatch.engine.normalizer import MarketLineNormalizer
from linewatch.engine.sharp_detector import DetectionConfig, SharpActionDetector

__all__ = [
    "DetectionConfig",
    "MarketLineNormalizer",
    "PublicMoneyEstimator",
    "SharpActionDetector",
    "build_alerts",
    "has_sharp_action",
    "is_display_move",
]
