"""Capability inference for provider models."""

from .core import coerce_capabilities, infer_capabilities, is_reasoning_model, is_simulated_reasoning_model

__all__ = [
    "coerce_capabilities",
    "infer_capabilities",
    "is_reasoning_model",
    "is_simulated_reasoning_model",
]
