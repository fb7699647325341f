"""
ARQ package - Selective Repeat ARQ protocol components.

Contains implementations for:
- Packet and message structures, checksum
- Sequence number arithmetic
- Sender with window management
- Receiver with out-of-order buffering
"""

from .packet import Packet, Message
from .network import Endpoint, NetworkLayer, TimerError
from .window import in_window
from .sender import SRSender, SenderState, RetransmitPolicy
from .receiver import SRReceiver, ReceiverState

__all__ = [
    'Packet',
    'Message',
    'Endpoint',
    'NetworkLayer',
    'TimerError',
    'in_window',
    'SRSender',
    'SenderState',
    'RetransmitPolicy',
    'SRReceiver',
    'ReceiverState'
]
