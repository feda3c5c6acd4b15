"""Serial communication layer."""

from lss_driver.serial.connection import SerialConnection, Transport
from lss_driver.serial.reader import StreamReader
from lss_driver.serial.writer import FrameWriter

__all__ = ["SerialConnection", "Transport", "StreamReader", "FrameWriter"]
