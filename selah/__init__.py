# selah/__init__.py
from .constants import VERSION

__version__ = VERSION
