"""PRManager - Pull request reviewer assignment and rebalancing.

This package tracks pull requests and their assigned reviewers for teams of
engineers: it picks reviewers when a pull request is created, replaces them
on demand or when team members are deactivated, and reports reviewer load.
"""

__version__ = "0.1.0"
