# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Share lifecycle errors.

Every failure the engine reports is a ``ShareError`` subclass carrying the
HTTP status the API answers with and a stable ``code`` clients can switch
on.  None of them is retried internally.
"""


class ShareError(Exception):
    status_code = 400
    code = "share_error"
    message = "Share request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ShareValidationError(ShareError):
    status_code = 400
    code = "validation_error"
    message = "Invalid share request"


class ShareNotFound(ShareError):
    status_code = 404
    code = "not_found"
    message = "Share not found"


class ShareForbidden(ShareError):
    status_code = 403
    code = "forbidden"
    message = "Access denied"


class ShareRevoked(ShareError):
    status_code = 410
    code = "revoked"
    message = "This link has been revoked"


class ShareExpired(ShareError):
    """
    The link's deadline has passed.  ``before_view`` separates a link that
    was never opened in its pre-view window from one whose short post-view
    window ran out.
    """

    status_code = 410

    def __init__(self, before_view: bool):
        self.before_view = before_view
        if before_view:
            self.code = "expired_before_view"
            message = "This link has expired - the initial access period ended before it was opened"
        else:
            self.code = "expired_after_view"
            message = "This link has expired after viewing"
        super().__init__(message)


class ShareAlreadyConsumed(ShareError):
    status_code = 410
    code = "already_consumed"
    message = "This link has already been used and can only be accessed once"


class ShareAlreadyInactive(ShareError):
    status_code = 400
    code = "already_inactive"
    message = "This link is already inactive"


class TokenCollision(ShareError):
    status_code = 409
    code = "token_collision"
    message = "Generated share token already exists"
