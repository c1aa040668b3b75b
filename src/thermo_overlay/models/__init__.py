from .records import (
    BatchItemResult,
    CompositedArtifact,
    ExperimentRecord,
    ProcessedImage,
    ReadingsRecord,
)

__all__ = [
    "BatchItemResult",
    "CompositedArtifact",
    "ExperimentRecord",
    "ProcessedImage",
    "ReadingsRecord",
]
