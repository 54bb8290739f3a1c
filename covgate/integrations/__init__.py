from covgate.integrations.base import PlatformClient
from covgate.integrations.github import GitHubClient, Repository, parse_repository

__all__ = ["GitHubClient", "PlatformClient", "Repository", "parse_repository"]
