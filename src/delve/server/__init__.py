from .chat import ChatLog
from .host import Room, SessionHost
from .transport import Delivery, LocalTransport, Transport

__all__ = ["ChatLog", "Room", "SessionHost", "Delivery", "LocalTransport", "Transport"]
