"""CLI layer — argument parsing, terminal output, and error boundary.

This package is the outermost layer of the application together with
``api``.  It may import from ``core``, ``infra`` and ``bootstrap``, but
no other layer may import from ``cli``.
"""
