# LDK Server API Package
from .client import LdkServerClient, API_KEY_HEADER
from . import models

__all__ = [
    'LdkServerClient',
    'API_KEY_HEADER',
    'models',
]
