from .endpoint import UDPEndpoint
from .receiver import receive_loop

__all__ = ["UDPEndpoint", "receive_loop"]
