"""git-cache: a mirror cache for git clones"""

__version__ = "0.3.0"
