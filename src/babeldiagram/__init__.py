"""
Babel Diagram Document Engine

The XML document is the single source of truth for a two-perspective
architecture diagram: the Object Map (backend) and the Site Map (frontend).

This package provides:
    - model / registry: the in-memory tree and its id index
    - parser / generator: the XML <-> tree transform
    - diff: change detection between two versions
    - backends.arrow_router: path geometry for linkTo edges
    - session: the validated mutation API with undo/redo

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - storage and access control
    - layout and painting
    - UI events

All of those live in the layers that call it.
"""

__version__ = "0.1.0"
