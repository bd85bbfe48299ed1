from __future__ import annotations


class CrawlError(Exception):
    """Base class for crawl failures."""


class PolicyDenied(CrawlError):
    def __init__(self, origin: str, user_agent: str):
        super().__init__(f"robots.txt disallows {origin} for {user_agent!r}")
        self.origin = origin
        self.user_agent = user_agent


class LaunchFailure(CrawlError):
    pass


class NavigationFailure(CrawlError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"navigation to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class NotADetailPage(CrawlError):
    def __init__(self, url: str):
        super().__init__(f"{url} is not a job detail page")
        self.url = url


class PersistenceFailure(CrawlError):
    pass
