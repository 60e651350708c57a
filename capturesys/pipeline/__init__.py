"""Queue drain pipeline."""

from capturesys.pipeline.assets import AssetStore
from capturesys.pipeline.service import (
    DrainReport,
    EnrichmentPipeline,
    PipelineError,
    build_pipeline,
    resolve_data_root,
)

__all__ = [
    "AssetStore",
    "DrainReport",
    "EnrichmentPipeline",
    "PipelineError",
    "build_pipeline",
    "resolve_data_root",
]
