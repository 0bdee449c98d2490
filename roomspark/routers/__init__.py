"""
HTTP routes for the RoomSpark API
"""
