"""
Layers package - Application layer endpoints of the emulator.
"""

from .application_layer import MessageSource, ApplicationSink, DataVerifier

__all__ = [
    'MessageSource',
    'ApplicationSink',
    'DataVerifier'
]
