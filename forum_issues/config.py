"""
Default configuration for the ForumIssues cog.
"""

DEFAULT_GLOBAL_CONFIG = {
    "github_token": None,  # GitHub PAT with issues read/write
    "github_owner": None,  # owner or org
    "github_repo": None,  # repo name only
    "forum_channel": None,  # forum channel id whose threads are mirrored
    "lock_reason": "off-topic",  # sent when locking issues
}

# Reasons accepted by GitHub's lock endpoint
LOCK_REASONS = ("off-topic", "too heated", "resolved", "spam")

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
