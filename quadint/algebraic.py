from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AlgebraicInteger(Protocol):
    """
    What any representation of an algebraic integer has to provide.

    Arithmetic is deliberately not part of the contract. Implementations decide
    which operators they support; the calculator only relies on the methods
    below and on the ring to decide what it can do with a number.
    """

    @property
    def ring(self) -> Any:
        """The ring this number belongs to."""
        ...

    @property
    def real(self) -> float:
        """Numeric real part."""
        ...

    @property
    def imag(self) -> float:
        """Numeric imaginary part, divided by i. Always 0.0 in a purely real ring."""
        ...

    def algebraic_degree(self) -> int:
        """Degree of the minimal polynomial, 0 for the number 0."""
        ...

    def trace(self) -> int:
        ...

    def norm(self) -> int:
        ...

    def min_poly_coeffs(self) -> tuple[int, ...]:
        """Minimal polynomial coefficients, constant term first, padded to the ring's maximum degree."""
        ...

    def min_poly_string(self) -> str:
        ...

    def min_poly_string_tex(self) -> str:
        ...

    def min_poly_string_html(self) -> str:
        ...

    def to_ascii_string(self) -> str:
        ...

    def to_tex_string(self) -> str:
        ...

    def to_html_string(self) -> str:
        ...

    def abs(self) -> float:
        """Distance from 0."""
        ...

    def angle(self) -> float:
        """Polar angle in radians, in (-pi, pi]."""
        ...
