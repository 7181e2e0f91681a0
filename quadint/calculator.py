"""
Number theoretic functions for rational integers and quadratic integers.

Everything here is a plain function over immutable values. The quadratic
versions only know about quadint; anything else is rejected with
UnsupportedDomainError.
"""
import logging
from fractions import Fraction
from functools import cache
from math import floor, gcd, isqrt, log, pi, prod, sin, sqrt
from random import randrange
from typing import Callable, Generator, Iterable, Union

from sympy import divisors, factorint

from quadint.errors import (
    AlgebraicDegreeOverflowError,
    ArithmeticOverflowError,
    NonEuclideanDomainError,
    NonUniqueFactorizationDomainError,
    NotDivisibleError,
    UnsupportedDomainError,
    ValidationError,
)
from quadint.quad import common_ring, is_lattice_point, quadint
from quadint.ring import QuadraticRing, RingKind
from quadint.utils import INT32_MAX, cache_generator, is_squarefree

logger = logging.getLogger(__name__)

NUMBER = Union[int, quadint]

NORM_EUCLIDEAN_QUADRATIC_RINGS_D = (-11, -7, -3, -2, -1, 2, 3, 5, 6, 7, 11, 13, 17, 19, 21, 29, 33, 37, 41, 57, 73)
NORM_EUCLIDEAN_QUADRATIC_IMAGINARY_RINGS_D = tuple(d for d in NORM_EUCLIDEAN_QUADRATIC_RINGS_D if d < 0)
NORM_EUCLIDEAN_QUADRATIC_REAL_RINGS_D = tuple(d for d in NORM_EUCLIDEAN_QUADRATIC_RINGS_D if d > 0)
HEEGNER_NUMBERS = (-163, -67, -43, -19, -11, -7, -3, -2, -1)

RING_GAUSSIAN = QuadraticRing.imaginary(-1)
IMAG_UNIT_I = quadint(0, 1, RING_GAUSSIAN)
IMAG_UNIT_NEG_I = -IMAG_UNIT_I
RING_EISENSTEIN = QuadraticRing.imaginary(-3)
COMPLEX_CUBIC_ROOT_OF_UNITY = quadint(-1, 1, RING_EISENSTEIN, 2)
RING_ZPHI = QuadraticRing.real(5)
GOLDEN_RATIO = quadint(1, 1, RING_ZPHI, 2)

# How far (in half steps of the surd coordinate) the Euclidean algorithm looks
# past the bounding lattice points before giving up on a remainder.
_SEARCH_RADIUS = 12


def _require_quadratic(num: object) -> quadint:
    if not isinstance(num, quadint):
        raise UnsupportedDomainError(f"The domain of the number {num!r} is not yet supported", num)

    return num


# region Rational integers
def _is_prime_int(n: int) -> bool:
    if n in (-1, 0, 1):
        return False
    if n in (-2, 2):
        return True
    if n % 2 == 0:
        return False

    m = abs(n)
    factor = 3
    while factor * factor <= m:
        if m % factor == 0:
            return False
        factor += 2

    return True


def _prime_factors_int(n: int) -> list[int]:
    if n == 0:
        return [0]

    # factorint lists -1 as a factor of negative numbers, which sorts first
    return [p for p, e in sorted(factorint(n).items()) for _ in range(e)]


def moebius_mu(n: int) -> int:
    """
    The Möbius function: 0 unless n is squarefree, else (-1)^(number of prime factors).

    A -1 "factor" of a negative n is not counted.
    """
    if n in (-1, 1):
        return 1
    if not is_squarefree(n):
        return 0

    count = sum(1 for p in _prime_factors_int(n) if p != -1)
    return -1 if count % 2 else 1


def kernel(n: int) -> int:
    """Product of the distinct prime factors of n (including -1 for negative n)."""
    return prod(dict.fromkeys(_prime_factors_int(n)))


def random_squarefree_number(bound: int) -> int:
    """A pseudorandom squarefree number, at least 1, found by walking up from randrange(|bound|)."""
    n = randrange(abs(bound))
    while not is_squarefree(n):
        n += 1

    return n


def symbol_legendre(a: int, p: int) -> int:
    """
    The Legendre symbol (a/p), by Euler's criterion a^((p-1)/2) mod p.

    Raises:
        ValidationError: If p is not an odd prime.

    Returns:
        int: -1, 0 or 1.
    """
    if not _is_prime_int(p):
        raise ValidationError(f"{p} is not a prime number. Consider using the Jacobi symbol instead.")
    if p in (-2, 2):
        raise ValidationError(f"{p} is not an odd prime. Consider using the Kronecker symbol instead.")

    q = abs(p)
    r = pow(a % q, (q - 1) // 2, q)
    return -1 if r == q - 1 else r


def symbol_jacobi(n: int, m: int) -> int:
    """
    The Jacobi symbol (n/m), the product of Legendre symbols over the prime factors of m.

    Raises:
        ValidationError: If m is even or negative.

    Returns:
        int: -1, 0 or 1.
    """
    if m % 2 == 0:
        raise ValidationError(f"{m} is not an odd number. Consider using the Kronecker symbol instead.")
    if m < 0:
        raise ValidationError(f"{m} is not a positive number. Consider using the Kronecker symbol instead.")
    if m == 1:
        return 1
    if gcd(n, m) > 1:
        return 0

    return prod(symbol_legendre(n, p) ** e for p, e in factorint(m).items())


def _kronecker_two(n: int) -> int:
    r = n % 8
    if r in (1, 7):
        return 1
    if r in (3, 5):
        return -1
    return 0


def symbol_kronecker(n: int, m: int) -> int:
    """
    The Kronecker symbol (n/m), defined for every pair of integers.

    The factor -1 of m contributes the sign of n, each factor 2 contributes
    according to n mod 8, and odd primes contribute Legendre symbols.

    Returns:
        int: -1, 0 or 1.
    """
    if gcd(n, m) > 1:
        return 0
    if m == 1:
        return 1
    if m == 0:
        return 1 if n in (-1, 1) else 0

    symbol = 1
    for p in _prime_factors_int(m):
        if p == -1:
            symbol *= -1 if n < 0 else 1
        elif p == 2:
            symbol *= _kronecker_two(n)
        else:
            symbol *= symbol_legendre(n, p)

    return symbol
# endregion


# region Primality
def is_prime(num: NUMBER) -> bool:
    """
    Primality of a rational integer, or of a quadratic integer in its own ring.

    Rational integers: ±2 are prime, -1, 0 and 1 are not, otherwise trial
    division by odd numbers.

    Quadratic integers: a number whose norm is a rational prime is prime.
    Otherwise it can only be prime if it is a rational prime p (up to units)
    that stays inert in the ring, which is decided per ring: Gaussian and
    Eisenstein integers by congruences, 2 by the Kronecker symbol, any other
    prime by the Legendre symbol of the radicand.

    Raises:
        UnsupportedDomainError: For anything that is neither int nor quadint.

    Returns:
        bool: Whether num is prime.
    """
    if isinstance(num, int):
        return _is_prime_int(num)

    x = _require_quadratic(num)
    if _is_prime_int(x.norm()):
        return True

    d = x.ring.radicand
    if d == -1 and x.a == 0:
        return _is_prime_int(x.b) and abs(x.b) % 4 == 3

    if d == -3 and x.b != 0:
        turned = x * COMPLEX_CUBIC_ROOT_OF_UNITY
        if turned.b != 0:
            turned = turned * COMPLEX_CUBIC_ROOT_OF_UNITY
        if turned.b == 0:
            return _is_prime_int(turned.a) and abs(turned.a) % 3 == 2

    if x.b != 0:
        return False

    p = abs(x.a)
    if p == 2:
        # 2 ramifies when d ≡ 2, 3 (mod 4); Kronecker(d, 2) is 0 for even d
        return d % 4 != 3 and symbol_kronecker(d, 2) == -1

    if not _is_prime_int(p):
        return False

    if d == -3:
        return p % 3 == 2
    if d == -2:
        return p % 8 in (5, 7)
    if d == -1:
        return p % 4 == 3

    return symbol_legendre(d, p) == -1


def is_irreducible(num: quadint) -> bool:
    """
    Whether num has no factorization into two non-units.

    In the norm-Euclidean rings this is the same as being prime. Elsewhere it is
    decided by trial division by every lattice point whose norm properly divides
    the norm of num.

    Returns:
        bool: Whether num is irreducible. Units count as irreducible.
    """
    x = _require_quadratic(num)
    n = x.norm()
    if _is_prime_int(n) or abs(n) < 2:
        return True

    ring = x.ring
    if ring.radicand in NORM_EUCLIDEAN_QUADRATIC_RINGS_D:
        return is_prime(x)

    signs = (1, -1) if ring.is_purely_real else (1,)
    for m in divisors(abs(n)):
        if m in (1, abs(n)):
            continue
        for s in signs:
            for candidate in _elements_of_norm(ring, s * m):
                if is_divisible_by(x, candidate):
                    logger.debug("%s is divisible by %s", x, candidate)
                    return False

    return True


def is_divisible_by(a: quadint, b: quadint) -> bool:
    """
    Whether b divides a in their (common) ring.

    Raises:
        AlgebraicDegreeOverflowError: If a and b are from different rings.

    Returns:
        bool: False when b is 0, True when a is 0 and b is not, otherwise
            whether exact division succeeds.
    """
    x = _require_quadratic(a)
    y = _require_quadratic(b)
    if x.ring != y.ring:
        raise AlgebraicDegreeOverflowError(
            f"Ring mismatch: {x.to_ascii_string()} is from {x.ring} but {y.to_ascii_string()} is from {y.ring}",
            max(x.algebraic_degree(), y.algebraic_degree()), x, y,
        )

    if y.norm() == 0:
        return False
    if x.norm() == 0:
        return True

    try:
        x.divides(y)
    except NotDivisibleError:
        return False

    return True
# endregion


# region Factoring
def prime_factors(num: NUMBER) -> list:
    """
    Prime factorization of a rational integer or of a quadratic integer.

    Rational integers: primes in ascending order with multiplicity, led by -1
    for negative numbers; 0 factors as [0].

    Quadratic integers: only in the rings known here to be unique factorization
    domains, the 9 imaginary rings of the Heegner numbers and the 16
    norm-Euclidean real rings. Some real rings outside that list are UFDs
    too and are still rejected. The result starts with a unit (omitted if it
    is 1), the primes follow in ascending order of absolute norm, none with a
    negative real part, and the product of the list is num.

    Raises:
        NonUniqueFactorizationDomainError: Outside the supported rings.
        UnsupportedDomainError: For anything that is neither int nor quadint.

    Returns:
        list: The factors.
    """
    if isinstance(num, int):
        return _prime_factors_int(num)

    x = _require_quadratic(num)
    ring = x.ring
    if ring.radicand not in HEEGNER_NUMBERS and ring.radicand not in NORM_EUCLIDEAN_QUADRATIC_REAL_RINGS_D:
        raise NonUniqueFactorizationDomainError(f"{ring} is not a unique factorization domain", x)

    if abs(x.norm()) < 2:
        return [x]

    remaining = x
    primes: list[quadint] = []
    for p, e in sorted(factorint(abs(x.norm())).items()):
        rational = quadint(p, 0, ring)
        if is_prime(rational):
            # inert: p itself is prime and has norm p^2
            for _ in range(e // 2):
                remaining = remaining.divides(rational)
                primes.append(rational)
            continue

        prime = _prime_of_norm(p, ring)
        for _ in range(e):
            try:
                remaining = remaining.divides(prime)
                primes.append(prime)
            except NotDivisibleError:
                remaining = remaining.divides(prime.conjugate())
                primes.append(prime.conjugate())

    logger.debug("Factored %s as %s times the unit %s", x, primes, remaining)

    unit = remaining
    factors: list[quadint] = []
    for factor in primes:
        if factor.a < 0 or (factor.a == 0 and factor.b < 0):
            factor, unit = -factor, -unit
        factors.append(factor)

    factors = sort_by_norm(factors)
    if unit == 1:
        return factors
    return [unit] + factors


def sort_by_norm(values: Iterable[quadint]) -> list[quadint]:
    """Stable sort by ascending absolute norm."""
    return sorted(values, key=lambda x: abs(x.norm()))


def _surd_limit(ring: QuadraticRing, norm: int) -> int:
    """
    Bound on B (over a denominator of 2) that covers every number of the given norm.

    In a real ring only up to units: every number is an associate of one whose
    value lies in [sqrt|n|, sqrt|n| * unit), and that one has |B|√d at most
    sqrt|n| * (unit + 1).
    """
    m = abs(norm)
    if not ring.is_purely_real:
        return isqrt(4 * m // ring.abs_radicand)

    unit = fundamental_unit(ring).real
    return int(sqrt(m) * (unit + 1) / ring.abs_radicand_sqrt) + 1


@cache_generator
def _elements_of_norm(ring: QuadraticRing, norm: int) -> Generator[quadint, None, None]:
    """
    Lattice points of the given norm, smallest surd part first.

    Up to sign, and in real rings also up to units. Both a number and its
    conjugate are produced.

    Results are kept for every (ring, norm) pair ever asked for and are never
    evicted, so a long-running process pays memory for each distinct norm.
    """
    d = ring.radicand
    step = 1 if ring.has_half_integers else 2
    for B in range(0, _surd_limit(ring, norm) + 1, step):
        square = 4 * norm + d * B * B
        if square < 0:
            if ring.is_purely_real:
                continue
            return

        A = isqrt(square)
        if A * A != square or not is_lattice_point(A, B, ring):
            continue

        candidate = quadint(A, B, ring, 2)
        yield candidate
        if A and B:
            yield candidate.conjugate()


def _prime_of_norm(p: int, ring: QuadraticRing) -> quadint:
    """
    A prime of norm ±p, for a rational prime p that is not inert in the ring.

    Raises:
        ArithmeticError: If the lattice has no such number, which cannot happen
            in a principal ideal domain.

    Returns:
        quadint: The first prime found.
    """
    norms = (p, -p) if ring.is_purely_real else (p,)
    for norm in norms:
        for candidate in _elements_of_norm(ring, norm):
            if is_prime(candidate):
                return candidate

    raise ArithmeticError(f"No number of norm {p} found in {ring}")
# endregion


# region GCD
def euclidean_gcd(a: NUMBER, b: NUMBER) -> NUMBER:
    """
    Greatest common divisor by the Euclidean algorithm.

    For rational integers the result is nonnegative and gcd(0, 0) == 0.

    For quadratic integers the ring has to be one of the 21 norm-Euclidean
    ones. A rational integer operand (int, or quadint without surd part) joins
    the other operand's ring. Each step tries exact division; if that fails,
    the lattice points bounding the true quotient are tried, nearest first,
    until one leaves a remainder of smaller norm. The result is normalized to
    a nonnegative real part, and in Z[i] to a real number when it is purely
    imaginary.

    Raises:
        NonEuclideanDomainError: Outside the norm-Euclidean rings. Its
            try_anyway() runs the algorithm regardless.
        AlgebraicDegreeOverflowError: For numbers from two different rings.
        UnsupportedDomainError: For anything that is neither int nor quadint.

    Returns:
        int or quadint: The GCD.
    """
    if isinstance(a, int) and isinstance(b, int):
        return gcd(a, b)

    if isinstance(a, int) and isinstance(b, quadint):
        a = quadint(a, 0, b.ring)
    elif isinstance(b, int) and isinstance(a, quadint):
        b = quadint(b, 0, a.ring)

    x, y = common_ring(_require_quadratic(a), _require_quadratic(b))
    if x.ring.radicand not in NORM_EUCLIDEAN_QUADRATIC_RINGS_D:
        raise NonEuclideanDomainError(f"{x.ring} is not a norm-Euclidean domain", x, y, _euclidean_descent)

    return _euclidean_descent(x, y)


def _euclidean_descent(a: quadint, b: quadint) -> quadint:
    if abs(a.norm()) < abs(b.norm()):
        a, b = b, a

    while b.norm() != 0:
        a, b = b, _euclidean_remainder(a, b)

    if a.ring.radicand == -1 and a.a == 0:
        a = a * IMAG_UNIT_NEG_I
    if a.a < 0:
        a = -a

    return a


def _euclidean_remainder(a: quadint, b: quadint) -> quadint:
    """
    A remainder of a by b with smaller absolute norm than b.

    Raises:
        ArithmeticError: If no nearby quotient gives one.

    Returns:
        quadint: The remainder.
    """
    try:
        return a - a.divides(b) * b
    except NotDivisibleError as e:
        bound = abs(b.norm())
        for q in e.bounding_integers:
            r = a - q * b
            if abs(r.norm()) < bound:
                return r

        logger.debug("No bounding point of %s / %s works, widening the search", a, b)
        for q in _nearby_quotients(e):
            r = a - q * b
            if abs(r.norm()) < bound:
                return r

        raise ArithmeticError("Euclidean descent failed (non-decreasing remainder norm)") from e


def _nearby_quotients(e: NotDivisibleError) -> list[quadint]:
    """
    Lattice points around the true quotient of a failed division, best first.

    In a real ring the norm is small along the two lines through the quotient
    with slope ±1/√d, so besides the points right next to the quotient this
    also looks along those lines.
    """
    ring = e.ring
    d = ring.radicand
    X = 2 * e.quotient_real
    Y = 2 * e.quotient_surd

    scored: dict[tuple[int, int], Fraction] = {}
    B0 = floor(Y)
    for B in range(B0 - _SEARCH_RADIUS, B0 + _SEARCH_RADIUS + 2):
        dy = Y - B
        centers = [float(X)]
        if ring.is_purely_real:
            shift = ring.abs_radicand_sqrt * abs(float(dy))
            centers += [float(X) + shift, float(X) - shift]

        for c in centers:
            for A in range(floor(c) - 2, floor(c) + 4):
                if is_lattice_point(A, B, ring):
                    dx = X - A
                    scored[(A, B)] = abs(dx * dx - d * dy * dy)

    ordered = sorted(scored.items(), key=lambda kv: (kv[1], kv[0]))
    return [quadint(A, B, ring, 2) for (A, B), _ in ordered]
# endregion


# region Units
def fundamental_unit(ring: QuadraticRing) -> quadint:
    """
    The smallest unit greater than 1 of a real quadratic ring.

    Found by walking up the surd coordinate b and testing the lattice points
    just above b√d (a = floor(b√d) and a + 1) for norm ±1; rings with half
    integers get a second pass over (a + b√d)/2, and the smaller unit wins.

    Raises:
        ValidationError: For an imaginary ring, whose unit group is finite.
        UnsupportedDomainError: For anything that is not a quadratic ring.
        ArithmeticOverflowError: If the search passes 32-bit coordinates.

    Returns:
        quadint: The fundamental unit.
    """
    if not isinstance(ring, QuadraticRing):
        raise UnsupportedDomainError(f"Fundamental unit function not yet supported for {ring!r}", ring)
    if ring.kind is RingKind.IMAGINARY:
        raise ValidationError(f"Since {ring} has a finite unit group, there is no fundamental unit")
    if ring.kind is not RingKind.REAL:
        raise UnsupportedDomainError(f"Fundamental unit function not yet supported for {ring}", ring)

    return _fundamental_unit(ring)


@cache
def _fundamental_unit(ring: QuadraticRing) -> quadint:
    d = ring.radicand

    unit = None
    surd = 1
    while unit is None:
        reg = isqrt(surd * surd * d)
        if reg >= INT32_MAX:
            raise ArithmeticOverflowError(
                f"Overflow occurred, the fundamental unit of {ring} is greater than {quadint(reg, surd, ring)}"
            )

        candidate = quadint(reg, surd, ring)
        if candidate.norm() == -1:
            unit = candidate
        elif (candidate + 1).norm() == 1:
            unit = candidate + 1
        surd += 1

    if ring.has_half_integers:
        threshold = unit.abs()
        surd = 1
        while True:
            reg = isqrt(surd * surd * d - 4)
            reg += reg % 2 - 1  # odd, like surd

            candidate = quadint(reg, surd, ring, 2)
            if candidate.norm() == -1:
                unit = candidate
                break
            if (candidate + 1).norm() == 1:
                unit = candidate + 1
                break
            if candidate.abs() >= threshold:
                break
            surd += 2

    logger.debug("Fundamental unit of %s is %s", ring, unit)
    return unit


def _in_gaussian_sector(x: quadint) -> bool:
    """Angle in (-45°, 45°]."""
    return x.a > 0 and -x.a < x.b <= x.a


def _in_eisenstein_sector(x: quadint) -> bool:
    """Angle in (-30°, 30°]: with x = (A + B√-3)/2, tan(angle) = B√3/A."""
    A, B = x.components2()
    return A > 0 and -A < 3 * B <= A


_SECTOR_TURNS: dict[int, tuple[Callable[[quadint], bool], quadint]] = {
    -1: (_in_gaussian_sector, IMAG_UNIT_NEG_I),
    -3: (_in_eisenstein_sector, quadint(1, -1, RING_EISENSTEIN, 2)),  # -omega
}


def place_in_primary_sector(num: quadint) -> quadint:
    """
    The associate of num in the canonical sector of the complex plane.

    Gaussian integers are turned by -i into (-45°, 45°], Eisenstein integers by
    -omega into (-30°, 30°]. In every other ring the only units used are ±1, and
    the sign is chosen so the real part (or else the surd part) is nonnegative.
    """
    x = _require_quadratic(num)
    if not x:
        return x

    turn = _SECTOR_TURNS.get(x.ring.radicand)
    if turn is None:
        return -x if x.a < 0 or (x.a == 0 and x.b < 0) else x

    in_sector, unit = turn
    while not in_sector(x):
        x = x * unit

    return x


def divide_out_units(num: quadint) -> quadint:
    """
    A canonical representative of the associates of num.

    In a real ring: make num positive, then multiply or divide by the
    fundamental unit until it is the smallest associate that is still at least 1.
    Imaginary rings go through place_in_primary_sector.
    """
    x = _require_quadratic(num)
    if x.norm() == 0:
        return x
    if not x.ring.is_purely_real:
        return place_in_primary_sector(x)

    unit = fundamental_unit(x.ring)
    n = -x if x.real < 0.0 else x
    while n.real < 1.0:
        n = n * unit

    while True:
        smaller = n.divides(unit)
        if smaller.real < 1.0:
            return n
        n = smaller
# endregion


# region Ring invariants
def get_one_in_ring(ring: QuadraticRing) -> quadint:
    if not isinstance(ring, QuadraticRing):
        raise UnsupportedDomainError(f"1 from given ring function not yet supported for {ring!r}", ring)

    return ring.one()


_UNIT_COUNTS = {-3: 6, -1: 4}


def field_class_number(ring: QuadraticRing) -> int:
    """
    Class number of Q(√d) from the analytic class number formula.

    With D the discriminant and chi the Kronecker symbol (D/.):
        imaginary: h = w/(2D) * sum_{a<|D|} chi(a) * a, w = 6, 4 or 2 roots of unity
        real:      h = -1/(2 log(unit)) * sum_{a<D} chi(a) * log(sin(pi * a/D))

    Returns:
        int: The class number, rounded to the nearest integer.
    """
    if not isinstance(ring, QuadraticRing):
        raise UnsupportedDomainError(f"Class number function not yet supported for {ring!r}", ring)

    D = ring.discriminant
    if ring.kind is RingKind.IMAGINARY:
        w = _UNIT_COUNTS.get(ring.radicand, 2)
        total = sum(symbol_kronecker(D, a) * a for a in range(1, -D))
        return round(w * total / (2 * D))

    if ring.kind is RingKind.REAL:
        unit = fundamental_unit(ring).real
        total_log = sum(symbol_kronecker(D, a) * log(sin(pi * a / D)) for a in range(1, D))
        return round(-total_log / (2 * log(unit)))

    raise UnsupportedDomainError(f"Class number function not yet supported for {ring}", ring)
# endregion
