"""Prompt construction for renderflow.

This module provides prompt templates, camera presets, and the builder
that turns generation requests into provider prompt text.
"""

from renderflow.prompts.builder import PromptBuilder, grid_shape, panel_labels
from renderflow.prompts.templates import CAMERA_INSTRUCTIONS, MULTICAM_PRESETS

__all__ = [
    "CAMERA_INSTRUCTIONS",
    "MULTICAM_PRESETS",
    "PromptBuilder",
    "grid_shape",
    "panel_labels",
]
