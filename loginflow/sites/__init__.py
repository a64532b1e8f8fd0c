"""Site login configurations."""

from .base import InterstitialConfig, LoginSurfaceConfig, SiteConfig
from .comply_advantage import COMPLY_ADVANTAGE_MESH
from .linkedin import LINKEDIN
from .registry import SiteRegistry

__all__ = [
    "COMPLY_ADVANTAGE_MESH",
    "InterstitialConfig",
    "LINKEDIN",
    "LoginSurfaceConfig",
    "SiteConfig",
    "SiteRegistry",
]
