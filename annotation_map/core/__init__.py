"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Projection limits, ring rules, interop encodings
- exceptions: Custom exception hierarchy
"""
