"""Models layer - SQLAlchemy ORM models.

All models inherit from the Base class defined in core.database.
"""

from pbnj.core.database import Base
from pbnj.models.pbn_site import PBNSite, PBNSiteSubmission

__all__ = [
    "Base",
    "PBNSite",
    "PBNSiteSubmission",
]
