from quadint.algebraic import AlgebraicInteger
from quadint.errors import (
    AlgebraicDegreeOverflowError,
    ArithmeticOverflowError,
    NonEuclideanDomainError,
    NonUniqueFactorizationDomainError,
    NotDivisibleError,
    QuadIntError,
    UnsupportedDomainError,
    ValidationError,
)
from quadint.quad import apply_omega, apply_theta, infer_step, parse_quater_imaginary, quadint
from quadint.ring import QuadraticRing, RingKind

__all__ = [
    "AlgebraicDegreeOverflowError",
    "AlgebraicInteger",
    "ArithmeticOverflowError",
    "NonEuclideanDomainError",
    "NonUniqueFactorizationDomainError",
    "NotDivisibleError",
    "QuadIntError",
    "QuadraticRing",
    "RingKind",
    "UnsupportedDomainError",
    "ValidationError",
    "apply_omega",
    "apply_theta",
    "infer_step",
    "parse_quater_imaginary",
    "quadint",
]
