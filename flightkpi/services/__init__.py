"""Service layer for the FlightKPI backend."""

from .accuracy import aggregate_accuracy, analyze_accuracy, flight_accuracy
from .analysis_service import FlightAnalysisService
from .densifier import (
    DensificationRun,
    Densifier,
    GeneratedPoint,
    LinearInterpolator,
    PointGenerator,
    SimulationError,
    allocate_points,
)
from .disambiguator import AttachDecision, DisambiguationConfig, Disambiguator
from .flight_matcher import MatchingConfig, QualificationResult, QualifiedPair, qualify
from .flight_store import FlightStore, InMemoryFlightStore, SqlFlightStore
from .ingestion import FlightIngestionService
from .punctuality import analyze_punctuality
from .simulator_client import HttpTrajectorySimulator
from .time_extractor import (
    DurationExtraction,
    DurationPair,
    extract_all,
    extract_durations,
    parse_time_window,
)

__all__ = [
    "AttachDecision",
    "DensificationRun",
    "Densifier",
    "DisambiguationConfig",
    "Disambiguator",
    "DurationExtraction",
    "DurationPair",
    "FlightAnalysisService",
    "FlightIngestionService",
    "FlightStore",
    "GeneratedPoint",
    "HttpTrajectorySimulator",
    "InMemoryFlightStore",
    "LinearInterpolator",
    "MatchingConfig",
    "PointGenerator",
    "QualificationResult",
    "QualifiedPair",
    "SimulationError",
    "SqlFlightStore",
    "aggregate_accuracy",
    "allocate_points",
    "analyze_accuracy",
    "analyze_punctuality",
    "extract_all",
    "extract_durations",
    "flight_accuracy",
    "parse_time_window",
    "qualify",
]
