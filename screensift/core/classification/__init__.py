"""Screenshot classification: judgement model and vision classifier."""

from screensift.core.classification.classifier import (
    OpenAIVisionClassifier,
    VisionClassifier,
)
from screensift.core.classification.judgement import (
    FolderCategory,
    ImportanceLevel,
    Judgement,
    RetentionPolicy,
    fallback_judgement,
)

__all__ = [
    "FolderCategory",
    "ImportanceLevel",
    "Judgement",
    "OpenAIVisionClassifier",
    "RetentionPolicy",
    "VisionClassifier",
    "fallback_judgement",
]
