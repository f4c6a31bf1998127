"""
Procurement Kernel

Shared foundation for the procurement engines:
- Typed exception hierarchy
- Structured JSON logging
- Pure domain value types for revisions and detected issues
- Injectable clock and id generation
"""

__version__ = "0.1.0"
