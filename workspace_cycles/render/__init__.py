"""Render module for turning detected cycles into graph descriptions."""

from workspace_cycles.render.emitter import SUPPORTED_FORMATS, CycleEmitter

__all__ = ["SUPPORTED_FORMATS", "CycleEmitter"]
