from dataclasses import dataclass, field
from enum import Enum
from math import sqrt
from typing import TYPE_CHECKING, Callable

from quadint.errors import UnsupportedDomainError, ValidationError
from quadint.utils import is_squarefree

if TYPE_CHECKING:
    from quadint.quad import quadint


class RingKind(Enum):
    """Which side of the real line the radicand sits on."""
    REAL = "real"
    IMAGINARY = "imaginary"


# TODO: Once Py3.9 support has been dropped, add slots=True
@dataclass(frozen=True)
class QuadraticRing:
    """
    The ring of algebraic integers of Q(√d), for squarefree d other than 0 and 1.

    When d ≡ 1 (mod 4) the ring also contains "half integers" (a + b√d)/2 with
    a and b both odd; otherwise every element is a + b√d.

    Rings are plain values: two rings with the same radicand are equal and hash
    the same, so they can be shared freely and used as dictionary keys.
    """
    radicand: int
    kind: RingKind = field(init=False, compare=False, repr=False)
    abs_radicand_sqrt: float = field(init=False, compare=False, repr=False)

    max_algebraic_degree = 2

    def __post_init__(self) -> None:
        d = self.radicand
        if d == 0:
            raise ValidationError("0 is not a valid radicand for a quadratic ring")
        if d == 1:
            raise ValidationError("Sorry, O_(Q(sqrt(1))) is not supported. Did you mean Z[i]?")
        if not is_squarefree(d):
            raise ValidationError(f"{d} is not squarefree")

        object.__setattr__(self, "kind", RingKind.REAL if d > 0 else RingKind.IMAGINARY)
        object.__setattr__(self, "abs_radicand_sqrt", sqrt(abs(d)))

    @classmethod
    def real(cls, d: int) -> "QuadraticRing":
        """Build a real quadratic ring, demanding d > 1."""
        if d < 1:
            raise ValidationError(f"Positive integer required for a real quadratic ring, not {d}")

        return cls(d)

    @classmethod
    def imaginary(cls, d: int) -> "QuadraticRing":
        """Build an imaginary quadratic ring, demanding d < 0."""
        if d > -1:
            raise ValidationError(f"Negative integer required for an imaginary quadratic ring, not {d}")

        return cls(d)

    @property
    def has_half_integers(self) -> bool:
        return self.radicand % 4 == 1

    @property
    def is_purely_real(self) -> bool:
        return self.kind is RingKind.REAL

    @property
    def abs_radicand(self) -> int:
        return abs(self.radicand)

    @property
    def discriminant(self) -> int:
        """d when d ≡ 1 (mod 4), otherwise 4d."""
        return self.radicand if self.has_half_integers else 4 * self.radicand

    @property
    def radicand_sqrt(self) -> float:
        """
        √d as a float.

        Raises:
            UnsupportedDomainError: For an imaginary ring, where √d is not a real number.
                Use abs_radicand_sqrt there.
        """
        getter = _RADICAND_SQRT.get(self.kind)
        if getter is None:
            raise UnsupportedDomainError(
                f"Since the radicand {self.radicand} is negative, this operation requires an object "
                "that can represent an imaginary number",
                self,
            )

        return getter(self)

    def one(self) -> "quadint":
        from quadint.quad import quadint
        return quadint(1, 0, self)

    def zero(self) -> "quadint":
        from quadint.quad import quadint
        return quadint(0, 0, self)

    # region Rendering
    def to_ascii_string(self) -> str:
        if self.radicand == -1:
            return "Z[i]"
        if self.has_half_integers:
            return f"O_(Q(sqrt({self.radicand})))"
        return f"Z[sqrt({self.radicand})]"

    def to_tex_string(self) -> str:
        if self.radicand == -1:
            return "\\mathbb Z[i]"
        if self.has_half_integers:
            return f"\\mathcal O_{{\\mathbb Q(\\sqrt{{{self.radicand}}})}}"
        return f"\\mathbb Z[\\sqrt{{{self.radicand}}}]"

    def to_html_string(self) -> str:
        if self.radicand == -1:
            return "<b>Z</b>[<i>i</i>]"
        rad = f"&radic;{_html_int(self.radicand)}"
        if self.has_half_integers:
            return f"<i>O</i><sub><b>Q</b>({rad})</sub>"
        return f"<b>Z</b>[{rad}]"

    def __str__(self) -> str:
        return self.to_ascii_string()
    # endregion


def _html_int(n: int) -> str:
    return f"&minus;{-n}" if n < 0 else str(n)


_RADICAND_SQRT: dict[RingKind, Callable[[QuadraticRing], float]] = {
    RingKind.REAL: lambda ring: ring.abs_radicand_sqrt,
}
