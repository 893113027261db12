"""Sample host application used by the scanner and provider tests."""

from sample_app.models import User

__all__ = ["User"]
