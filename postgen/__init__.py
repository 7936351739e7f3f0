"""Top-level package for the blog article generator.

This package contains the application entrypoint and all supporting modules
for researching, writing, reviewing and publishing articles of a static blog.
"""

__all__ = []
