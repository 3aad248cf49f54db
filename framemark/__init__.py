"""
FrameMark - a frame annotation editor for video review.

This package contains the main application modules:
- editor: Drawing surface, undo history, tools, pins and the Qt front end
- services: Application services (config, logging)
"""

__version__ = "0.1.0"
