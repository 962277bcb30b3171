"""Certificate validation package."""

from prevoyance.validation.validator import CertificateValidator

__all__ = ["CertificateValidator"]
