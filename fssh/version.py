"""Version information for fssh"""

__version__ = "0.3.0"


def get_version_string():
    """Get formatted version string"""
    return f"fssh {__version__}"
