"""
Prompt templates and builders for egg gender prediction.

This package contains:
- egg_prompts: System, image, measurement and expert prompt text
- base_builder: Abstract prompt builder interface
- builders: Image and measurement prompt builders
"""

__version__ = '1.0.0'
