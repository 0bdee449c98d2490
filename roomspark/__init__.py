"""RoomSpark: room photo restyling and shoppable product discovery"""

__version__ = "1.0.0"
