from reconciler.sources.base import CertificationSource
from reconciler.sources.muis import MuisCertificationSource

__all__ = [
    "CertificationSource",
    "MuisCertificationSource",
]
