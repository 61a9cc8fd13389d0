# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Constraint, enumeration, and path-parameter checks for composed schemas."""

from specml.validation.checks import (
    CONSTRAINT_RULES,
    ConstraintRule,
    ValidationResult,
    validate,
)

__all__ = [
    "CONSTRAINT_RULES",
    "ConstraintRule",
    "ValidationResult",
    "validate",
]
