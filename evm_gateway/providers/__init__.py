"""External collaborators: node RPC and hardware signing devices."""

from .hardware import ExternalSignerDevice, HardwareDevice, HardwareDeviceError
from .node import NodeClient, NodeConnectionError, RpcError

__all__ = [
    "NodeClient",
    "NodeConnectionError",
    "RpcError",
    "HardwareDevice",
    "HardwareDeviceError",
    "ExternalSignerDevice",
]
