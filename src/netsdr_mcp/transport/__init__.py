"""Transports for the control (TCP) and data (UDP) connections."""

from .base import Transport
from .tcp_connection import TcpConnection
from .udp_connection import UdpConnection
