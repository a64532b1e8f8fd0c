"""Registry of site login configurations."""

import logging
from typing import Dict, List

from .base import SiteConfig
from .comply_advantage import COMPLY_ADVANTAGE_MESH
from .linkedin import LINKEDIN

logger = logging.getLogger(__name__)


class SiteRegistry:
    """Lookup of site configurations by id."""

    _sites: Dict[str, SiteConfig] = {
        LINKEDIN.id: LINKEDIN,
        COMPLY_ADVANTAGE_MESH.id: COMPLY_ADVANTAGE_MESH,
    }

    @classmethod
    def get_site(cls, site_id: str) -> SiteConfig:
        """Return the configuration for a site."""
        site = cls._sites.get(site_id)
        if site is None:
            raise ValueError(f"Unsupported site: {site_id}")
        return site

    @classmethod
    def get_supported_sites(cls) -> List[str]:
        """Get list of supported site ids."""
        return list(cls._sites.keys())

    @classmethod
    def register_site(cls, site: SiteConfig) -> None:
        """Register or replace a site configuration."""
        cls._sites[site.id] = site
        logger.info(f"Registered login flow for site: {site.id}")
