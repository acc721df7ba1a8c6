"""
Core package: data models, schemas and capability interfaces.

Everything else in the pipeline depends on this package; it depends on
nothing but the libraries it wraps.
"""
