"""
payroll_kernel -- shared foundation for the payroll calculation engine.

Holds the input records consumed from the employee administration layer,
the Decimal rounding helpers every calculator goes through, the typed
exception hierarchy and structured logging.  Nothing in this package
imports from ``payroll_config``, ``payroll_engines`` or above.
"""
