"""Database query functions for PRManager.

This module provides async query functions for all database entities:
- Team creation, user lookup and active flag management
- Pull request creation, merge and reviewer replacement
- Bulk lookups used by the deactivation cascade
- Reviewer load statistics
"""

from prmanager.database.queries.pull_request import (
    create_pull_request,
    get_pull_request,
    list_assigned_reviewers,
    list_open_pull_requests_by_reviewers,
    list_pull_requests_by_reviewer,
    list_reviewers_for_pull_requests,
    replace_reviewer,
    set_pull_request_merged,
    update_need_more_reviewers,
)
from prmanager.database.queries.stats import (
    count_assignments_by_reviewer,
    count_open_pull_requests,
)
from prmanager.database.queries.team import (
    bulk_set_users_active,
    create_team,
    get_team,
    get_user,
    list_users_by_team,
    set_user_active,
)

__all__ = [
    # Team queries
    "create_team",
    "get_team",
    "get_user",
    "list_users_by_team",
    "set_user_active",
    "bulk_set_users_active",
    # Pull request queries
    "create_pull_request",
    "get_pull_request",
    "list_assigned_reviewers",
    "list_reviewers_for_pull_requests",
    "set_pull_request_merged",
    "replace_reviewer",
    "update_need_more_reviewers",
    "list_pull_requests_by_reviewer",
    "list_open_pull_requests_by_reviewers",
    # Stats queries
    "count_assignments_by_reviewer",
    "count_open_pull_requests",
]
