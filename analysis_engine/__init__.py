"""analysis_engine package"""
from .engine import AnalysisResult, SoFAnalysisEngine

__all__ = ["AnalysisResult", "SoFAnalysisEngine"]
