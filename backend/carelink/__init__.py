"""CareLink: multi-role hospital onboarding and patient identity service."""

__version__ = "0.1.0"
