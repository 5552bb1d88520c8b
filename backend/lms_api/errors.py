"""Exceptions shared by the token components and the HTTP layer.

Expected outcomes (bad credentials, wrong role, not enrolled) are returned as
values; these classes cover the conditions that abort a request.
"""


class LmsApiError(Exception):
    """Base exception for all LMS API errors."""


class ConfigurationError(LmsApiError):
    """Required configuration (signing key, issuer, audience) is missing or unusable."""


class TokenRefreshError(LmsApiError):
    """A token pair was rejected. Subclasses never reveal which check failed to the caller."""

    public_detail = "The supplied token pair is invalid."


class InvalidTokenError(TokenRefreshError):
    """Access token has a bad signature, issuer, audience, structure or algorithm."""


class InvalidRefreshRequestError(TokenRefreshError):
    """Unknown subject, mismatched refresh token or expired refresh token."""


class RefreshConflictError(LmsApiError):
    """The refresh token was rotated by a concurrent request between read and update."""

    public_detail = "The refresh token has already been used. Sign in again."
