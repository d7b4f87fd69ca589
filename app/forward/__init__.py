from .forwarder import WSForwarder
from .types import ForwardConfig

__all__ = ["WSForwarder", "ForwardConfig"]
