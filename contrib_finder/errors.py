"""Exception hierarchy shared across the package."""


class ContribFinderError(Exception):
    pass


class ProfileError(ContribFinderError, ValueError):
    pass


class ConfigError(ContribFinderError):
    pass


class StateSaveError(ContribFinderError):
    pass


class GitHubAPIError(ContribFinderError):
    pass


class GitHubAuthError(GitHubAPIError):
    pass


class RateLimitExceeded(GitHubAPIError):
    pass


class RankerError(ContribFinderError):
    pass


class ReportError(ContribFinderError):
    pass


class NotificationError(ContribFinderError):
    pass
