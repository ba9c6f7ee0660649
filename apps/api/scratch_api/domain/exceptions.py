from __future__ import annotations


class GistSyncError(Exception):
    code = "gist_sync_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class NotAuthenticated(GistSyncError):
    code = "not_authenticated"


class RateLimited(GistSyncError):
    code = "rate_limited"

    def __init__(self, retry_after_s: int, message: str | None = None) -> None:
        super().__init__(message or f"rate limited, retry in {retry_after_s}s")
        self.retry_after_s = retry_after_s


class Offline(GistSyncError):
    code = "offline"


class ValidationError(GistSyncError):
    code = "validation_error"


class NotFound(GistSyncError):
    code = "not_found"


class NoMarkdownFile(GistSyncError):
    code = "no_markdown_file"

    def __init__(self, gist_id: str) -> None:
        super().__init__(f"gist {gist_id} has no markdown file")
        self.gist_id = gist_id


class RemoteError(GistSyncError):
    code = "remote_error"

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status

    @property
    def transient(self) -> bool:
        return self.status is None or self.status >= 500
