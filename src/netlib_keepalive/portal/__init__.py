from .client import SiteLoginClient, launch_browser
from .selectors import SiteSelectors

__all__ = ["SiteLoginClient", "SiteSelectors", "launch_browser"]
