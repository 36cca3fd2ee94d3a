"""Third-party analysis providers."""

from .base import HttpReviewProvider, ReviewProvider, SlidingWindowRateLimiter
from .codeclimate import CodeClimateProvider
from .config import ProviderConfig, RateLimits
from .semgrep import SemgrepProvider
from .sonarqube import SonarQubeProvider
from .templates import PROVIDER_TEMPLATES, ProviderTemplate

__all__ = [
    "CodeClimateProvider",
    "HttpReviewProvider",
    "PROVIDER_TEMPLATES",
    "ProviderConfig",
    "ProviderTemplate",
    "RateLimits",
    "ReviewProvider",
    "SemgrepProvider",
    "SlidingWindowRateLimiter",
    "SonarQubeProvider",
]
