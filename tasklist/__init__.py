"""
TaskList — single-page task list backed by a hosted database, object storage and auth service.
"""

__version__ = "1.0.0"
__all__ = ["engine", "ui", "viewmodel"]
