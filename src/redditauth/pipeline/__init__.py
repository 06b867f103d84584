"""Pluggable HTTP pipeline: transport, error translation, composition."""

from redditauth.pipeline.middleware import RaiseErrorMiddleware, build_pipeline
from redditauth.pipeline.transport import (
    Transport,
    create_session,
    retry_policy,
)

__all__ = [
    "RaiseErrorMiddleware",
    "Transport",
    "build_pipeline",
    "create_session",
    "retry_policy",
]
