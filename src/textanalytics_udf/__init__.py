"""textanalytics-udf — batch NLP over row columns, within a remote API's size limits."""

from .pipeline import TextAnalyticsPipeline, PipelineConfig
from .comprehend import ComprehendCapability
from .presidio_layer import PresidioCapability
from .capability import TextAnalyticsCapability
from .config import create_pipeline, load_config, load_from_yaml
from .operations import Operation, operation_from_columns
from .errors import (
    TextAnalyticsError, PlanningInvariantError, CapabilityBatchError,
    CapabilityCallError, UnsupportedOperationError, UnknownOperationError,
)
from .types import Span, LanguageScore, SentimentResult, BatchResponse, BatchItemError

__all__ = [
    "TextAnalyticsPipeline", "PipelineConfig",
    "ComprehendCapability", "PresidioCapability", "TextAnalyticsCapability",
    "create_pipeline", "load_config", "load_from_yaml",
    "Operation", "operation_from_columns",
    "TextAnalyticsError", "PlanningInvariantError", "CapabilityBatchError",
    "CapabilityCallError", "UnsupportedOperationError", "UnknownOperationError",
    "Span", "LanguageScore", "SentimentResult", "BatchResponse", "BatchItemError",
]
__version__ = "0.1.0"
