"""
VoiceAI Console
Client-side core of the VoiceAI / CallIQ admin console
"""
__version__ = "1.0.0"
