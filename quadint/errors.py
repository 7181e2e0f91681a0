from fractions import Fraction
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from quadint.quad import quadint
    from quadint.ring import QuadraticRing


class QuadIntError(Exception):
    """Base class for every failure raised by quadint."""


class ValidationError(QuadIntError, ValueError):
    """Bad construction parameters: radicand, denominator, parity, symbol arguments."""


class UnsupportedDomainError(QuadIntError, TypeError):
    """
    The number or ring is not something the requested algorithm handles.

    Attributes:
        values: The offending numbers or rings, for the caller to inspect.
    """

    def __init__(self, message: str, *values: Any) -> None:
        super().__init__(message)
        self.values = values


class AlgebraicDegreeOverflowError(QuadIntError, ArithmeticError):
    """
    Two operands come from rings that cannot be reconciled.

    Attributes:
        degree: The larger of the two algebraic degrees involved.
        a: The first operand.
        b: The second operand.
    """

    def __init__(self, message: str, degree: int, a: Any, b: Any) -> None:
        super().__init__(message)
        self.degree = degree
        self.a = a
        self.b = b


class NonUniqueFactorizationDomainError(QuadIntError, ArithmeticError):
    """Factorization was asked for in a ring not known to be a UFD."""

    def __init__(self, message: str, value: "quadint") -> None:
        super().__init__(message)
        self.value = value


class NonEuclideanDomainError(QuadIntError, ArithmeticError):
    """
    The Euclidean GCD was asked for outside the norm-Euclidean rings.

    The algorithm may still work for a particular pair of numbers, so the
    error hands back both operands and a way to run it regardless.
    """

    def __init__(self,
                 message: str,
                 a: "quadint",
                 b: "quadint",
                 attempt: Optional[Callable[["quadint", "quadint"], "quadint"]] = None) -> None:
        super().__init__(message)
        self.a = a
        self.b = b
        self._attempt = attempt

    def try_anyway(self) -> "quadint":
        """
        Run the Euclidean algorithm on the two operands without the domain check.

        Raises:
            ArithmeticError: If the remainders stop getting smaller.

        Returns:
            quadint: The GCD, if the descent worked out.
        """
        if self._attempt is None:
            raise ArithmeticError("No Euclidean algorithm was attached to this error")

        return self._attempt(self.a, self.b)


class NotDivisibleError(QuadIntError, ArithmeticError):
    """
    Exact division landed between lattice points.

    This is a failure the GCD and factorization algorithms consume: the
    bounding lattice points are the natural next quotients to try.

    Attributes:
        dividend: The number that was divided.
        divisor: The number it was divided by.
        quotient_real: Exact rational coefficient of 1 in the true quotient.
        quotient_surd: Exact rational coefficient of √d in the true quotient.
        bounding_integers: Lattice points around the true quotient, nearest first.
        real: Numeric real part of the true quotient.
        imag: Numeric imaginary part of the true quotient (0.0 in real rings).
    """

    def __init__(self,
                 message: str,
                 dividend: "quadint",
                 divisor: "quadint",
                 quotient_real: Fraction,
                 quotient_surd: Fraction,
                 bounding_integers: tuple["quadint", ...],
                 real: float,
                 imag: float) -> None:
        super().__init__(message)
        self.dividend = dividend
        self.divisor = divisor
        self.quotient_real = quotient_real
        self.quotient_surd = quotient_surd
        self.bounding_integers = bounding_integers
        self.real = real
        self.imag = imag

    @property
    def ring(self) -> "QuadraticRing":
        return self.dividend.ring

    @property
    def abs(self) -> float:
        """Numeric absolute value of the true quotient."""
        if self.ring.is_purely_real:
            return abs(self.real)

        return (self.real * self.real + self.imag * self.imag) ** 0.5


class ArithmeticOverflowError(QuadIntError, OverflowError):
    """A norm, trace or search coordinate left the fixed-width range."""
