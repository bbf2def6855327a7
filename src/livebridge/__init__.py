"""
LiveBridge

Shares one Gemini Live streaming session between any number of WebSocket clients.
"""

__version__ = "0.1.0"
