"""
Services -- External integration layer

- Git: HEAD commit, changed files, merge driver registration
"""

from .git import GitIntegration, FileChange

__all__ = ["GitIntegration", "FileChange"]
