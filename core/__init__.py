"""
EchoLearn core
==============

Domain types, event bus, cooperative scheduler and the frame loop.
"""

__version__ = "1.0.0"
