"""
Payroll Kernel

Lowest layer of the payroll engine:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- Decimal-only currency helpers
- SQLAlchemy declarative base and session management
"""

__version__ = "0.1.0"
