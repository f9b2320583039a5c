"""cfgset — mark configuration fields as named, overridable setters."""

__version__ = "0.3.0"
