"""
Payroll Modules.

Thin orchestration over the kernel and the engines.  The payroll module
contains:
- Domain models (the nouns)
- Operational configuration
- The entry builder and the export serializers
- ORM persistence for computed entries

Actual calculation logic lives in ``payroll_engines``.
"""
