from fractions import Fraction
from math import atan2, ceil, floor, gcd, hypot
from typing import Callable, Iterator, Union

from quadint.errors import AlgebraicDegreeOverflowError, NotDivisibleError, ValidationError
from quadint.ring import QuadraticRing
from quadint.utils import check_denominator, check_int64, lowest_terms

OTHER_OP_TYPES = int
OP_TYPES = Union["quadint", OTHER_OP_TYPES]


class quadint:
    """
    Quadratic integer (a + b√d)/denom in the ring of integers of Q(√d).

    a is the "regular part" multiplier, b the "surd part" multiplier, and denom
    is 1 or 2. A denominator of 2 only happens in rings with d ≡ 1 (mod 4), and
    then a and b are both odd. Values are normalized on construction, so equal
    numbers always have equal (a, b, denom).

    Notes:
      - Values are immutable; every operation returns a new quadint.
      - Division with / is exact division. When the quotient is not in the ring,
        NotDivisibleError is raised, carrying the lattice points around the true
        quotient. divmod, // and % do nearest-lattice (Euclidean style) division.
      - The numeric real and imaginary parts are floats computed once, for
        display, angles and comparisons that do not need exactness.
    """

    __slots__ = ("a", "b", "ring", "denom", "_re", "_im")

    a: int
    b: int
    ring: QuadraticRing
    denom: int
    _re: float
    _im: float

    def __init__(self, a: int, b: int, ring: QuadraticRing, denom: int = 1) -> None:
        """
        Initialize a quadint.

        Args:
            a: Multiplier of the regular part.
            b: Multiplier of √d.
            ring: The ring the number belongs to.
            denom: 1 or 2. -1 and -2 are also accepted, the sign moves into a and b.

        Raises:
            ValidationError: If the denominator is not ±1 or ±2, or if it is ±2 and the
                number is not in the ring (wrong ring or a, b of different parity).
        """
        check_denominator(denom)
        a0, b0 = int(a), int(b)

        if denom < 0:
            a0, b0, denom = -a0, -b0, -denom

        if denom == 2:
            # (2m + 2n√d)/2 is just m + n√d
            _, reduced = lowest_terms(gcd(a0, b0), 2)
            if reduced == 1:
                a0, b0, denom = a0 // 2, b0 // 2, 1
            elif not ring.has_half_integers:
                raise ValidationError(
                    f"{ring} does not have half integers, so ({a0} + {b0}sqrt({ring.radicand}))/2 is not in it"
                )
            elif (a0 ^ b0) & 1:
                raise ValidationError(
                    f"For a denominator of 2, a and b must have the same parity, not {a0} and {b0}"
                )

        self.a, self.b, self.ring, self.denom = a0, b0, ring, denom

        if ring.is_purely_real:
            self._re = (a0 + b0 * ring.abs_radicand_sqrt) / denom
            self._im = 0.0
        else:
            self._re = a0 / denom
            self._im = b0 * ring.abs_radicand_sqrt / denom

    # region constructors / conversions
    @staticmethod
    def _make(A: int, B: int, ring: QuadraticRing) -> "quadint":
        """Construct a value from numerators A, B over a denominator of 2."""
        return quadint(A, B, ring, 2)

    def _from_obj(self, n: int) -> "quadint":
        """Promote a rational integer into this number's ring."""
        return quadint(int(n), 0, self.ring)

    def components2(self) -> tuple[int, int]:
        """Numerators (A, B) such that self == (A + B√d)/2."""
        if self.denom == 2:
            return self.a, self.b
        return 2 * self.a, 2 * self.b
    # endregion

    # region numeric parts
    @property
    def real(self) -> float:
        return self._re

    @property
    def imag(self) -> float:
        return self._im

    def abs(self) -> float:
        """Numeric absolute value. In a real ring, the magnitude of the number's signed value."""
        if self.ring.is_purely_real:
            return abs(self._re)
        return hypot(self._re, self._im)

    def __abs__(self) -> float:
        return self.abs()

    def angle(self) -> float:
        return atan2(self._im, self._re)
    # endregion

    def conjugate(self) -> "quadint":
        return quadint(self.a, -self.b, self.ring, self.denom)

    def algebraic_degree(self) -> int:
        if self.b != 0:
            return 2
        return 1 if self.a != 0 else 0

    def trace(self) -> int:
        return check_int64(2 * self.a // self.denom, f"the trace of {self.to_ascii_string()}")

    def norm(self) -> int:
        """
        (a^2 - d*b^2)/denom^2, always an integer for numbers in the ring.

        Raises:
            ArithmeticOverflowError: If the norm does not fit in 64 bits.

        Returns:
            int: The norm.
        """
        num = self.a * self.a - self.ring.radicand * self.b * self.b
        return check_int64(num // (self.denom * self.denom), f"the norm of {self.to_ascii_string()}")

    # region Arithmetic
    def __add__(self, other: OP_TYPES) -> "quadint":
        if isinstance(other, OTHER_OP_TYPES):
            other = self._from_obj(other)

        if not isinstance(other, quadint):
            return NotImplemented

        x, y = common_ring(self, other)
        A, B = x.components2()
        C, D = y.components2()
        return self._make(A + C, B + D, x.ring)

    def __radd__(self, other: OTHER_OP_TYPES) -> "quadint":
        return self.__add__(other)

    def __sub__(self, other: OP_TYPES) -> "quadint":
        if isinstance(other, OTHER_OP_TYPES):
            other = self._from_obj(other)

        if not isinstance(other, quadint):
            return NotImplemented

        x, y = common_ring(self, other)
        A, B = x.components2()
        C, D = y.components2()
        return self._make(A - C, B - D, x.ring)

    def __rsub__(self, other: OTHER_OP_TYPES) -> "quadint":
        return self.__neg__().__add__(other)

    def __neg__(self) -> "quadint":
        return quadint(-self.a, -self.b, self.ring, self.denom)

    def __pos__(self) -> "quadint":
        return self

    def __mul__(self, other: OP_TYPES) -> "quadint":
        if isinstance(other, OTHER_OP_TYPES):
            return quadint(self.a * other, self.b * other, self.ring, self.denom)

        if not isinstance(other, quadint):
            return NotImplemented

        x, y = common_ring(self, other)
        d = x.ring.radicand

        # (A + B√d)/2 * (C + D√d)/2 has denominator 4; we store with denominator 2,
        # so the numerators have to be halved.
        A, B = x.components2()
        C, D = y.components2()
        P = A * C + d * B * D
        Q = A * D + B * C

        if (P & 1) or (Q & 1):
            raise ArithmeticError("Non-integral product; parity constraint violated")

        return self._make(P // 2, Q // 2, x.ring)

    def __rmul__(self, other: OTHER_OP_TYPES) -> "quadint":
        return self.__mul__(other)

    def __pow__(self, exp: int) -> "quadint":
        e = int(exp)
        if e < 0:
            raise ValueError("Negative powers not supported")

        result = self.ring.one()
        base: quadint = self
        while e:
            if e & 1:
                result = result * base

            e >>= 1
            if e:
                base = base * base

        return result
    # endregion

    # region Division
    def divides(self, other: OP_TYPES) -> "quadint":
        """
        Exact division, self / other.

        Raises:
            ZeroDivisionError: If other is 0.
            AlgebraicDegreeOverflowError: If other is from a different ring and not a rational integer.
            NotDivisibleError: If the quotient is not in the ring. The error lists
                the lattice points bounding the true quotient, nearest first.

        Returns:
            quadint: The quotient.
        """
        if isinstance(other, OTHER_OP_TYPES):
            other = self._from_obj(other)

        if not isinstance(other, quadint):
            raise TypeError(f"Unable to divide quadint and type {type(other)}")

        x, y = common_ring(self, other)
        n = y.norm()
        if n == 0:
            raise ZeroDivisionError(f"Cannot divide {x.to_ascii_string()} by 0")

        # x/y = x * conj(y) / N(y); in numerator units the quotient is (A/n + B/n √d)/2
        A, B = (x * y.conjugate()).components2()
        if A % n == 0 and B % n == 0:
            QA, QB = A // n, B // n
            if is_lattice_point(QA, QB, x.ring):
                return self._make(QA, QB, x.ring)

        raise _not_divisible(x, y, Fraction(A, 2 * n), Fraction(B, 2 * n))

    def reciprocal(self) -> "quadint":
        """1/self, which is only in the ring for units."""
        return self.ring.one().divides(self)

    def __truediv__(self, other: OP_TYPES) -> "quadint":
        if not isinstance(other, (OTHER_OP_TYPES, quadint)):
            return NotImplemented

        return self.divides(other)

    def __rtruediv__(self, other: OTHER_OP_TYPES) -> "quadint":
        if isinstance(other, OTHER_OP_TYPES):
            return self._from_obj(other).divides(self)

        return NotImplemented

    def __divmod__(self, other: OP_TYPES) -> tuple["quadint", "quadint"]:
        """
        Nearest-lattice division: self = q * other + r.

        q is the lattice point next to the true quotient that leaves the remainder
        of smallest absolute norm. In a norm-Euclidean ring that remainder is
        usually, but for real rings not always, smaller than other.

        Raises:
            ZeroDivisionError: If other is 0.

        Returns:
            (q, r)
        """
        if isinstance(other, OTHER_OP_TYPES):
            other = self._from_obj(other)

        try:
            q = self.divides(other)
        except NotDivisibleError as e:
            q = e.bounding_integers[0]

        return q, self - q * other

    def __floordiv__(self, other: OP_TYPES) -> "quadint":
        q, _ = divmod(self, other)
        return q

    def __mod__(self, other: OP_TYPES) -> "quadint":
        _, r = divmod(self, other)
        return r

    def content(self) -> int:
        """
        Largest positive integer m such that self/m is still in the ring.

        Computed in numerator units, halving while the reduced pair breaks parity.

        Returns:
            int: The content, 0 for the number 0.
        """
        A, B = self.components2()
        g = gcd(A, B)
        if g == 0:
            return 0

        if is_lattice_point(A // g, B // g, self.ring):
            return g

        # A/g and B/g are coprime, so halving g makes them both even
        return g // 2
    # endregion

    # region Minimal polynomial
    def min_poly_coeffs(self) -> tuple[int, int, int]:
        """Coefficients of the minimal polynomial, constant term first: (c0, c1, c2)."""
        if self.b == 0:
            return -self.a, 1, 0
        return self.norm(), -self.trace(), 1

    def min_poly_string(self) -> str:
        return _render_poly(self.min_poly_coeffs(), "x", "x^2", "-")

    def min_poly_string_tex(self) -> str:
        # x^2 is already valid TeX, so this matches the plain form
        return _render_poly(self.min_poly_coeffs(), "x", "x^2", "-")

    def min_poly_string_html(self) -> str:
        return _render_poly(self.min_poly_coeffs(), "<i>x</i>", "<i>x</i><sup>2</sup>", "&minus;")
    # endregion

    # region Rendering
    def _render(self, root: str, minus: str, half: Callable[[str], str]) -> str:
        if self.b == 0:
            return f"{minus}{-self.a}" if self.a < 0 else str(self.a)

        mag = abs(self.b)
        surd = root if mag == 1 else f"{mag}{root}"
        reg = str(abs(self.a))
        if self.denom == 2:
            surd, reg = half(surd), half(reg)

        if self.a == 0:
            return f"{minus}{surd}" if self.b < 0 else surd

        sign = f" {minus} " if self.b < 0 else " + "
        return f"{minus if self.a < 0 else ''}{reg}{sign}{surd}"

    def to_ascii_string(self) -> str:
        d = self.ring.radicand
        root = "i" if d == -1 else f"sqrt({d})"
        return self._render(root, "-", lambda s: f"{s}/2")

    def to_tex_string(self) -> str:
        d = self.ring.radicand
        root = "i" if d == -1 else f"\\sqrt{{{d}}}"
        return self._render(root, "-", lambda s: f"\\frac{{{s}}}{{2}}")

    def to_html_string(self) -> str:
        d = self.ring.radicand
        root = "<i>i</i>" if d == -1 else ("&radic;&minus;" + str(-d) if d < 0 else f"&radic;{d}")
        return self._render(root, "&minus;", lambda s: f"{s}/2")

    def __str__(self) -> str:
        d = self.ring.radicand
        root = "i" if d == -1 else ("√−" + str(-d) if d < 0 else f"√{d}")
        return self._render(root, "−", lambda s: f"{s}/2")

    def __repr__(self) -> str:
        return self.to_ascii_string()
    # endregion

    def __bool__(self) -> bool:
        return (self.a | self.b) != 0

    def __iter__(self) -> Iterator[int]:
        return iter(self.components2())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OTHER_OP_TYPES):
            return self.b == 0 and self.a == other

        if not isinstance(other, quadint):
            return False

        if self.b == 0 and other.b == 0:
            # rational integers are the same number in every ring
            return self.a == other.a

        return (self.a, self.b, self.denom, self.ring) == (other.a, other.b, other.denom, other.ring)

    def __hash__(self) -> int:
        if self.b == 0:
            return hash(self.a)

        return hash((self.a, self.b, self.denom, self.ring.radicand))


def is_lattice_point(A: int, B: int, ring: QuadraticRing) -> bool:
    """Whether (A + B√d)/2 is in the ring: both even, or both odd when d ≡ 1 (mod 4)."""
    if (A ^ B) & 1:
        return False
    return not (A & 1) or ring.has_half_integers


def common_ring(x: quadint, y: quadint) -> tuple[quadint, quadint]:
    """
    Put x and y in the same ring.

    A number with no surd part is a rational integer and lives in every ring,
    so it can move to the other operand's ring.

    Raises:
        AlgebraicDegreeOverflowError: If both numbers have surd parts from different rings.

    Returns:
        tuple: x and y, over one ring.
    """
    if x.ring == y.ring:
        return x, y
    if y.b == 0:
        return x, quadint(y.a, 0, x.ring)
    if x.b == 0:
        return quadint(x.a, 0, y.ring), y

    raise AlgebraicDegreeOverflowError(
        f"{x.to_ascii_string()} is from {x.ring} but {y.to_ascii_string()} is from {y.ring}",
        2, x, y,
    )


def _not_divisible(x: quadint, y: quadint, re: Fraction, surd: Fraction) -> NotDivisibleError:
    """Build the failure for x / y landing on re + surd√d, with the lattice points around it."""
    ring = x.ring
    d = ring.radicand

    candidates: dict[tuple[int, int], Fraction] = {}

    def consider(A: int, B: int) -> None:
        dx = re - Fraction(A, 2)
        dy = surd - Fraction(B, 2)
        candidates[(A, B)] = abs(dx * dx - d * dy * dy)

    for a in {floor(re), ceil(re)}:
        for b in {floor(surd), ceil(surd)}:
            consider(2 * a, 2 * b)

    if ring.has_half_integers:
        for A in range(floor(2 * re) - 1, ceil(2 * re) + 2):
            for B in {floor(2 * surd), ceil(2 * surd)}:
                if not (A ^ B) & 1:
                    consider(A, B)

    ordered = sorted(candidates.items(), key=lambda kv: (kv[1], kv[0]))
    bounds = tuple(quadint._make(A, B, ring) for (A, B), _ in ordered)

    if ring.is_purely_real:
        real, imag = float(re) + float(surd) * ring.abs_radicand_sqrt, 0.0
    else:
        real, imag = float(re), float(surd) * ring.abs_radicand_sqrt

    return NotDivisibleError(
        f"{x.to_ascii_string()} is not divisible by {y.to_ascii_string()}",
        x, y, re, surd, bounds, real, imag,
    )


def _render_poly(coeffs: tuple[int, int, int], x: str, square: str, minus: str) -> str:
    c0, c1, c2 = coeffs
    if c2 == 0:
        text, terms = x, [(c0, "")]
    else:
        text, terms = square, [(c1, x), (c0, "")]

    for coeff, var in terms:
        if coeff == 0:
            continue
        sign = f" {minus} " if coeff < 0 else " + "
        mag = abs(coeff)
        text += f"{sign}{'' if mag == 1 and var else mag}{var}"

    return text


def infer_step(start: quadint, end: quadint) -> quadint:
    """
    The smallest lattice step that walks from start onto end.

    That is end - start with its integer content divided out, so repeatedly
    adding the step to start passes through every lattice point on the segment.

    Returns:
        quadint: The step, 0 if start == end.
    """
    diff = end - start
    if not diff:
        return diff

    return diff.divides(diff.content())


def parse_quater_imaginary(text: str) -> quadint:
    """
    Read a Gaussian integer written in base 2i (digits 0 to 3).

    A Gaussian integer may need one digit after the radix point: ".2" is -i,
    ".0" adds nothing. Anything else after the point is not a Gaussian integer.

    Raises:
        ValidationError: For digits outside 0-3 or a fractional part other than .0 or .2.

    Returns:
        quadint: The number, in Z[i].
    """
    gaussian = QuadraticRing(-1)
    whole, dot, fraction = text.replace(" ", "").partition(".")

    value = gaussian.zero()
    if dot:
        first = fraction[:1] or "0"
        if fraction[1:].strip("0"):
            raise ValidationError(f"{text!r} has nonzero digits past the first one after the radix point")
        if first == "2":
            value = quadint(0, -1, gaussian)
        elif first != "0":
            raise ValidationError(
                f"'{first}' after the radix point is not valid in the quater-imaginary form of a Gaussian integer"
            )

    base = quadint(0, 2, gaussian)
    power = gaussian.one()
    for digit in reversed(whole):
        if digit not in "0123":
            raise ValidationError(f"'{digit}' is not a valid quater-imaginary digit (should be one of 0, 1, 2, 3)")
        value = value + power * int(digit)
        power = power * base

    return value


def apply_theta(a: int, b: int, ring: QuadraticRing) -> quadint:
    """a + b*theta, where theta is (1 + √d)/2 in rings with half integers and √d otherwise."""
    if ring.has_half_integers:
        return quadint(2 * a + b, b, ring, 2)
    return quadint(a, b, ring)


def apply_omega(a: int, b: int) -> quadint:
    """a + b*omega in the Eisenstein integers, omega = (-1 + √-3)/2."""
    return quadint(2 * a - b, b, QuadraticRing(-3), 2)
