"""
Plughost Plugin System - Plugin loading and lifecycle management.

This module handles:
- Plugin spec declaration and validation
- Capability registry
- Code loading by name
- Ordered initialization and shutdown
"""

__all__ = []
