"""CLI command package"""

from .init import init
from .listen import listen
from .serve import serve
