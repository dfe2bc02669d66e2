"""
Vision Describe package.

Provides:
- Streaming client for an Ollama-compatible multimodal generate endpoint
- Structured (JSON) image descriptions validated with pydantic
- A CLI that runs a natural and a structured description of one image
"""

__version__ = "0.1.0"
