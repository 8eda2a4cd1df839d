"""
Exceptions

Exception hierarchy for the Install Planner. Every error raised by the
library derives from InstallPlannerError.
"""


class InstallPlannerError(Exception):
    """Base exception for all Install Planner errors"""
    pass


class DecodeError(InstallPlannerError):
    """Raised when manifest text cannot be decoded or serialized"""
    pass


class MetadataError(DecodeError):
    """Raised when a decoded object carries no usable identity or kind"""
    pass


class AnnotationConstructionError(InstallPlannerError):
    """Raised when bundle properties cannot be serialized into the CSV annotation"""
    pass


class PermissionProjectionError(InstallPlannerError):
    """Raised when a CSV install strategy declares malformed permissions"""
    pass


class OptionalManifestParseError(InstallPlannerError):
    """Raised when the optional manifests property value is malformed"""
    pass


class ConfigurationError(InstallPlannerError):
    """Raised for invalid configuration files or command-line values"""
    pass


class BundleFormatError(InstallPlannerError):
    """Raised when a bundle file does not describe a bundle"""
    pass
