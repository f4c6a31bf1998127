"""
Typed Exception Hierarchy for the Procurement Kernel.

===============================================================================
WHEN THE KERNEL RAISES
===============================================================================

The revision and detection engines are total over well-formed input: an
unknown rule id, a malformed version string, or a structure deeper than the
comparison depth all degrade to data (``False``, an empty list, a ``0``
segment) rather than an exception.  Exceptions are reserved for programming
and configuration errors that the caller must fix before the engines can be
used at all:

  - registering two detection rules under the same id
  - loading a configuration file with missing or contradictory settings

Every exception carries a class-level ``code`` and structured attributes so
that callers catch by type, never by message text:

    try:
        engine = DetectionEngine(rules)
    except DuplicateRuleError as e:
        log.error("duplicate rule", extra={"rule_id": e.rule_id})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ProcurementKernelError (base)
    |
    +-- RuleRegistrationError
    |   +-- DuplicateRuleError
    |
    +-- ConfigurationError
        +-- InvalidConfigurationError
        +-- ConfigurationNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Rules           | DUPLICATE_RULE              | Two rules share one id in an engine
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_CONFIGURATION       | Settings fail structural validation
                | CONFIGURATION_NOT_FOUND     | Requested configuration file is missing
"""


class ProcurementKernelError(Exception):
    """
    Base exception for all procurement kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PROCUREMENT_KERNEL_ERROR"


# Rule registry exceptions


class RuleRegistrationError(ProcurementKernelError):
    """Base exception for detection rule registration errors."""

    code: str = "RULE_REGISTRATION_ERROR"


class DuplicateRuleError(RuleRegistrationError):
    """Two detection rules were registered under the same id."""

    code: str = "DUPLICATE_RULE"

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Detection rule already registered: {rule_id}")


# Configuration exceptions


class ConfigurationError(ProcurementKernelError):
    """Base exception for engine configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidConfigurationError(ConfigurationError):
    """Engine settings failed structural validation."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, section: str, reason: str):
        self.section = section
        self.reason = reason
        super().__init__(f"Invalid configuration in '{section}': {reason}")


class ConfigurationNotFoundError(ConfigurationError):
    """The requested configuration file does not exist."""

    code: str = "CONFIGURATION_NOT_FOUND"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Configuration file not found: {path}")
