"""chunkstore - chunked resource uploads under a per-session byte budget."""
__version__ = "0.1.0"

from .scope import Scope
from . import config
