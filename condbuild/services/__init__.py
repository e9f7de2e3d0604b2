"""
Service layer for condbuild.

Services orchestrate domain logic and infrastructure:
- BuildPipeline: decision and dispatch for one package
- RetentionService: pruning of old package versions
"""

from .collaborators import Collaborators
from .pipeline_service import BuildPipeline, PipelineResult
from .retention_service import RetentionService, RetentionReport

__all__ = [
    'Collaborators',
    'BuildPipeline',
    'PipelineResult',
    'RetentionService',
    'RetentionReport',
]
