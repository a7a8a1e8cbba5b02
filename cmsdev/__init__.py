"""cmsdev - plugin development helper for the CMS platform."""

__version__ = "0.1.0"
__author__ = "cmsdev developers"
