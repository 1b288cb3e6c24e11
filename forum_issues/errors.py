class ForumIssuesError(Exception):
    pass


class NotConfigured(ForumIssuesError):
    """The GitHub token, owner or repository has not been set."""


class GraphQLError(ForumIssuesError):
    """GitHub's GraphQL endpoint answered with a bad status or an ``errors`` list."""
