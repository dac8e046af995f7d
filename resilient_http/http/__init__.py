from .client import ResilientClient, create_client
from .invoker import AttemptVerdict, Invoker, classify_status, parse_body

__all__ = [
    "ResilientClient",
    "create_client",
    "AttemptVerdict",
    "Invoker",
    "classify_status",
    "parse_body",
]
