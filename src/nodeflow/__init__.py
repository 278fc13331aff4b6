"""
Nodeflow: pull-based data-flow graphs of Python operations.

Nodes wrap registered operations, bind their parameters from upstream
results through path lookups or templates, and trigger named ports to
drive branching and iteration.
"""

__version__ = "0.1.0"
