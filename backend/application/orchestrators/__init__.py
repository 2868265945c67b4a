"""Orchestrators for food photo analysis workflows."""

from .analysis_orchestrator import FoodAnalysisOrchestrator

__all__ = [
    "FoodAnalysisOrchestrator",
]
