import os

from fractions import Fraction
from math import isclose, pi, sqrt
from pathlib import Path
from typing import Union

import pytest

from sympy import I, Poly, Rational, minimal_polynomial, symbols
from sympy import sqrt as sym_sqrt

import quadint.quad

from quadint import (
    AlgebraicDegreeOverflowError,
    AlgebraicInteger,
    ArithmeticOverflowError,
    NotDivisibleError,
    QuadIntError,
    QuadraticRing,
    RingKind,
    UnsupportedDomainError,
    ValidationError,
    apply_omega,
    apply_theta,
    infer_step,
    parse_quater_imaginary,
    quadint,
)


@pytest.mark.skipif(os.environ.get("QUADINT_USE_MYPYC") != "1", reason="only for mypyc-compiled builds")
def test_compiled_tests():
    """Verify that we are running these tests with a compiled version of quadint"""
    path = Path(quadint.quad.__file__)
    assert path.suffix.lower() != '.py'


def test_is_instance():
    """Verify that basic isinstance checks work"""
    x = quadint(1, 2, QuadraticRing(-1))
    assert isinstance(x, quadint)
    assert isinstance(x, AlgebraicInteger)
    assert not isinstance(complex(1, 2), quadint)


class QuadIntTests:
    """Support methods for testing quadint"""
    gaussian, eisenstein, zsqrt2, zphi = None, None, None, None

    def setup_method(self, _):
        """Setup some rings"""
        self.gaussian = QuadraticRing(-1)
        self.eisenstein = QuadraticRing(-3)
        self.zsqrt2 = QuadraticRing(2)
        self.zphi = QuadraticRing(5)

    @staticmethod
    def assert_equal(res: Union[tuple, list, quadint], res_int: quadint):
        """Validate the quadint matches the expected numerators over 2, and that it is still backed by integers"""
        assert list(res) == list(res_int)

        assert isinstance(res_int.a, int)
        assert isinstance(res_int.b, int)
        assert res_int.denom in (1, 2)

        assert isinstance(res_int, quadint)


class TestRing(QuadIntTests):
    """Tests for QuadraticRing"""

    def test_construction(self):
        """Valid radicands build rings of the right kind"""
        assert QuadraticRing.real(2).kind is RingKind.REAL
        assert QuadraticRing.imaginary(-7).kind is RingKind.IMAGINARY
        assert QuadraticRing(-5).max_algebraic_degree == 2

    @pytest.mark.parametrize("d", [0, 1, 4, -4, 12, -12, 18])
    def test_bad_radicand(self, d):
        """0, 1 and non-squarefree radicands are rejected"""
        with pytest.raises(ValidationError):
            QuadraticRing(d)

    def test_wrong_variant(self):
        """Real rings need d > 1, imaginary ones d < 0"""
        with pytest.raises(ValidationError):
            QuadraticRing.real(1)
        with pytest.raises(ValidationError):
            QuadraticRing.real(-7)
        with pytest.raises(ValidationError):
            QuadraticRing.imaginary(-12)
        with pytest.raises(ValidationError):
            QuadraticRing.imaginary(3)

    def test_half_integers(self):
        """Half integers exist exactly when d is 1 mod 4"""
        assert self.eisenstein.has_half_integers
        assert self.zphi.has_half_integers
        assert QuadraticRing(-7).has_half_integers
        assert not self.gaussian.has_half_integers
        assert not self.zsqrt2.has_half_integers
        assert not QuadraticRing(3).has_half_integers

    def test_discriminant(self):
        assert self.gaussian.discriminant == -4
        assert self.eisenstein.discriminant == -3
        assert self.zsqrt2.discriminant == 8
        assert self.zphi.discriminant == 5

    def test_radicand_sqrt(self):
        """The square root is only real for real rings"""
        assert isclose(self.zsqrt2.radicand_sqrt, sqrt(2))
        assert isclose(self.gaussian.abs_radicand_sqrt, 1.0)

        with pytest.raises(UnsupportedDomainError):
            _ = self.gaussian.radicand_sqrt

    def test_value_semantics(self):
        """Rings with equal radicands are interchangeable"""
        assert QuadraticRing(-5) == QuadraticRing(-5)
        assert QuadraticRing(-5) != QuadraticRing(5)
        assert len({QuadraticRing(-5), QuadraticRing(-5), QuadraticRing(5)}) == 2

    def test_strings(self):
        assert str(self.gaussian) == "Z[i]"
        assert str(self.eisenstein) == "O_(Q(sqrt(-3)))"
        assert str(QuadraticRing(-2)) == "Z[sqrt(-2)]"
        assert self.zsqrt2.to_tex_string() == "\\mathbb Z[\\sqrt{2}]"
        assert self.zphi.to_tex_string() == "\\mathcal O_{\\mathbb Q(\\sqrt{5})}"
        assert QuadraticRing(-2).to_html_string() == "<b>Z</b>[&radic;&minus;2]"


class TestConstruction(QuadIntTests):
    """Tests for quadint.__init__"""

    def test_reduces_even_halves(self):
        """(2m + 2n√d)/2 is stored as m + n√d"""
        x = quadint(2, 4, self.eisenstein, 2)
        assert (x.a, x.b, x.denom) == (1, 2, 1)

        # Even works where there are no half integers
        y = quadint(6, -2, self.gaussian, 2)
        assert (y.a, y.b, y.denom) == (3, -1, 1)

    def test_negative_denominator(self):
        x = quadint(1, 1, self.eisenstein, -2)
        assert (x.a, x.b, x.denom) == (-1, -1, 2)

        y = quadint(3, 2, self.gaussian, -1)
        assert (y.a, y.b, y.denom) == (-3, -2, 1)

    def test_parity_mismatch(self):
        with pytest.raises(ValidationError):
            quadint(1, 2, self.eisenstein, 2)

    def test_no_half_integers(self):
        with pytest.raises(ValidationError):
            quadint(1, 1, self.gaussian, 2)

    @pytest.mark.parametrize("denom", [0, 3, -4])
    def test_bad_denominator(self, denom):
        with pytest.raises(ValidationError):
            quadint(1, 1, self.eisenstein, denom)

    def test_errors_share_a_base(self):
        """Every failure is a QuadIntError as well as the matching builtin"""
        with pytest.raises(QuadIntError):
            quadint(1, 2, self.eisenstein, 2)
        with pytest.raises(ValueError):
            quadint(1, 2, self.eisenstein, 2)


class TestNormTrace(QuadIntTests):
    """Tests for norm and trace"""

    def test_exact(self):
        """norm = (a^2 - d*b^2)/denom^2 and trace = 2a/denom"""
        for d in (-1, -2, -3, -7, 2, 3, 5, 13):
            ring = QuadraticRing(d)
            for a in range(-5, 6):
                for b in range(-5, 6):
                    denom = 2 if ring.has_half_integers and (a - b) % 2 == 0 else 1
                    x = quadint(a, b, ring, denom)
                    assert x.norm() == (x.a * x.a - d * x.b * x.b) // (x.denom * x.denom)
                    assert x.norm() * x.denom * x.denom == x.a * x.a - d * x.b * x.b
                    assert x.trace() == 2 * x.a // x.denom
                    assert x.norm() == x * x.conjugate()
                    assert x.trace() == x + x.conjugate()

    def test_values(self):
        assert quadint(3, 2, self.gaussian).norm() == 13
        assert quadint(3, 2, self.gaussian).trace() == 6
        assert quadint(1, 1, self.eisenstein, 2).norm() == 1
        assert quadint(1, 1, self.eisenstein, 2).trace() == 1
        assert quadint(1, 1, self.zsqrt2).norm() == -1

    def test_overflow(self):
        with pytest.raises(ArithmeticOverflowError):
            quadint(2 ** 40, 0, self.gaussian).norm()
        with pytest.raises(ArithmeticOverflowError):
            quadint(2 ** 62, 0, self.gaussian).trace()
        with pytest.raises(OverflowError):
            quadint(3, 2 ** 40, self.zsqrt2).norm()


class TestAdd(QuadIntTests):
    """Tests for __add__"""

    def test_add(self):
        """Test quadint + quadint"""
        res_int = quadint(3, 2, self.gaussian) + quadint(1, -1, self.gaussian)
        self.assert_equal((8, 2), res_int)

    def test_add_halves(self):
        """Two half integers add up to a whole one"""
        res_int = quadint(1, 1, self.eisenstein, 2) + quadint(1, 1, self.eisenstein, 2)
        self.assert_equal((2, 2), res_int)
        assert res_int.denom == 1

    def test_add_int(self):
        """Test quadint + int"""
        for i in range(100):
            res_int = quadint(1, 2, self.gaussian) + i

            self.assert_equal((2 + i * 2, 4), res_int)

    def test_add_int_reversed(self):
        """Test int + quadint"""
        for i in range(100):
            res_int = i + quadint(1, 2, self.gaussian)

            self.assert_equal((2 + i * 2, 4), res_int)

    def test_add_rational_across_rings(self):
        """A rational integer from one ring joins the other operand's ring"""
        res_int = quadint(3, 0, QuadraticRing(-2)) + quadint(1, 1, self.gaussian)
        assert res_int == quadint(4, 1, self.gaussian)
        assert res_int.ring == self.gaussian

    def test_add_mismatched_rings(self):
        with pytest.raises(AlgebraicDegreeOverflowError) as info:
            quadint(1, 1, self.gaussian) + quadint(1, 1, QuadraticRing(-2))

        assert info.value.degree == 2


class TestSub(QuadIntTests):
    """Tests for __sub__"""

    def test_sub(self):
        """Test quadint - quadint"""
        res_int = quadint(3, 2, self.gaussian) - quadint(1, -1, self.gaussian)
        self.assert_equal((4, 6), res_int)

    def test_sub_int(self):
        """Test quadint - int"""
        for i in range(100):
            res_int = quadint(1, 2, self.gaussian) - i

            self.assert_equal((2 - i * 2, 4), res_int)

    def test_sub_int_reversed(self):
        """Test int - quadint"""
        for i in range(100):
            res_int = i - quadint(1, 2, self.gaussian)

            self.assert_equal((i * 2 - 2, -4), res_int)


class TestNegPos(QuadIntTests):
    """Tests for __neg__ and __pos__"""

    def test_neg(self):
        self.assert_equal((-1, -1), -quadint(1, 1, self.eisenstein, 2))

    def test_pos(self):
        self.assert_equal((2, 4), +quadint(1, 2, self.gaussian))


class TestMul(QuadIntTests):
    """Tests for __mul__ and __pow__"""

    def test_mul(self):
        """Test quadint * quadint"""
        res_int = quadint(3, 2, self.gaussian) * quadint(1, -1, self.gaussian)
        assert res_int == quadint(5, -1, self.gaussian)

    def test_mul_sympy(self):
        """Products agree with sympy's exact arithmetic"""
        for d in (-7, -3, -2, 3, 5, 13):
            ring = QuadraticRing(d)
            x = quadint(3, 1, ring, 2 if ring.has_half_integers else 1)
            y = quadint(1, -5, ring, 2 if ring.has_half_integers else 1)
            expected = ((x.a + x.b * sym_sqrt(d)) / x.denom * (y.a + y.b * sym_sqrt(d)) / y.denom).expand()

            res_int = x * y
            got = (res_int.a + res_int.b * sym_sqrt(d)) / res_int.denom
            assert (got - expected).expand() == 0

    def test_mul_int(self):
        """Test quadint * int"""
        for i in range(100):
            res_int = quadint(1, 2, self.gaussian) * i

            self.assert_equal((2 * i, 4 * i), res_int)

    def test_mul_int_reversed(self):
        """Test int * quadint"""
        for i in range(100):
            res_int = i * quadint(1, 1, self.eisenstein, 2)

            self.assert_equal((i, i), res_int)

    def test_pow(self):
        """Known identities: i^2 = -1, omega^3 = 1, phi^2 = phi + 1"""
        i = quadint(0, 1, self.gaussian)
        omega = quadint(-1, 1, self.eisenstein, 2)
        phi = quadint(1, 1, self.zphi, 2)

        assert i ** 2 == -1
        assert i ** 4 == 1
        assert omega ** 3 == 1
        assert phi ** 2 == phi + 1
        assert phi ** 0 == 1

    def test_negative_pow(self):
        with pytest.raises(ValueError):
            quadint(1, 1, self.gaussian) ** -1


class TestDiv(QuadIntTests):
    """Tests for divides, __truediv__ and __divmod__"""

    def test_div(self):
        """Test quadint / quadint"""
        res_int = quadint(5, -1, self.gaussian) / quadint(1, -1, self.gaussian)
        assert res_int == quadint(3, 2, self.gaussian)

    def test_div_half(self):
        """Division can land on a half integer"""
        omega = quadint(-1, 1, self.eisenstein, 2)
        res_int = (omega * quadint(2, 1, self.eisenstein)).divides(quadint(2, 1, self.eisenstein))
        assert res_int == omega

    def test_not_divisible(self):
        """The failure carries the quotient and the lattice points around it"""
        with pytest.raises(NotDivisibleError) as info:
            quadint(3, 2, self.gaussian) / 2

        err = info.value
        assert isinstance(err, ArithmeticError)
        assert err.quotient_real == Fraction(3, 2)
        assert err.quotient_surd == Fraction(1)
        assert err.bounding_integers[0] == quadint(1, 1, self.gaussian)
        assert set(err.bounding_integers) == {quadint(1, 1, self.gaussian), quadint(2, 1, self.gaussian)}
        assert err.ring == self.gaussian
        assert err.real == 1.5
        assert err.imag == 1.0
        assert isclose(err.abs, sqrt(1.5 ** 2 + 1))

    def test_not_divisible_half_ring(self):
        """Bounding points include half integers where the ring has them"""
        with pytest.raises(NotDivisibleError) as info:
            quadint(1, 0, self.eisenstein).divides(quadint(0, 1, self.eisenstein))

        assert info.value.quotient_surd == Fraction(-1, 3)
        assert quadint(1, -1, self.eisenstein, 2) in info.value.bounding_integers
        for q in info.value.bounding_integers:
            assert q.ring == self.eisenstein

    def test_div_zero(self):
        with pytest.raises(ZeroDivisionError):
            quadint(3, 2, self.gaussian) / 0

    def test_div_bad_type(self):
        with pytest.raises(TypeError):
            quadint(3, 2, self.gaussian).divides(1.5)

    def test_reciprocal(self):
        assert quadint(0, 1, self.gaussian).reciprocal() == quadint(0, -1, self.gaussian)
        assert 1 / quadint(1, 1, self.zsqrt2) == quadint(-1, 1, self.zsqrt2)

    def test_divmod(self):
        q, r = divmod(quadint(3, 2, self.gaussian), 2)
        assert q == quadint(1, 1, self.gaussian)
        assert r == 1

        x, y = quadint(27, 23, self.gaussian), quadint(8, 1, self.gaussian)
        q, r = divmod(x, y)
        assert q * y + r == x
        assert abs(r.norm()) < abs(y.norm())
        assert x // y == q
        assert x % y == r


class TestContent(QuadIntTests):
    """Tests for content"""

    def test_main(self):
        assert quadint(6, 4, self.gaussian).content() == 2
        assert quadint(2, 2, self.gaussian).content() == 2
        assert quadint(0, 0, self.gaussian).content() == 0

    def test_half_ring(self):
        """2 + 2√-3 is 4 times a half integer"""
        assert quadint(2, 2, self.eisenstein).content() == 4
        assert quadint(3, 3, self.eisenstein, 2).content() == 3
        assert quadint(1, 3, self.eisenstein, 2).content() == 1


class TestStrings(QuadIntTests):
    """Tests for the string renderings"""

    def test_ascii(self):
        assert quadint(1, 1, self.eisenstein, 2).to_ascii_string() == "1/2 + sqrt(-3)/2"
        assert quadint(1, 1, self.gaussian).to_ascii_string() == "1 + i"
        assert quadint(-1, -1, self.gaussian).to_ascii_string() == "-1 - i"
        assert quadint(0, -2, QuadraticRing(-2)).to_ascii_string() == "-2sqrt(-2)"
        assert quadint(-5, 0, QuadraticRing(-2)).to_ascii_string() == "-5"
        assert repr(quadint(2, 3, QuadraticRing(7))) == "2 + 3sqrt(7)"

    def test_tex(self):
        assert quadint(1, 1, self.eisenstein, 2).to_tex_string() == "\\frac{1}{2} + \\frac{\\sqrt{-3}}{2}"
        assert quadint(2, -1, self.zsqrt2).to_tex_string() == "2 - \\sqrt{2}"

    def test_html(self):
        assert quadint(1, -1, QuadraticRing(-5)).to_html_string() == "1 &minus; &radic;&minus;5"
        assert quadint(0, 1, self.gaussian).to_html_string() == "<i>i</i>"

    def test_str(self):
        assert str(quadint(2, 3, QuadraticRing(7))) == "2 + 3√7"
        assert str(quadint(0, 1, QuadraticRing(-2))) == "√−2"
        assert str(quadint(-3, 1, self.eisenstein, 2)) == "−3/2 + √−3/2"


class TestMinPoly(QuadIntTests):
    """Tests for the minimal polynomial"""

    def test_coeffs(self):
        assert quadint(3, 2, self.gaussian).min_poly_coeffs() == (13, -6, 1)
        assert quadint(5, 0, self.gaussian).min_poly_coeffs() == (-5, 1, 0)
        assert quadint(0, 0, self.gaussian).min_poly_coeffs() == (0, 1, 0)

    def test_sympy(self):
        """Coefficients agree with sympy's minimal_polynomial"""
        x = symbols("x")
        cases = [
            (quadint(3, 2, self.gaussian), 3 + 2 * I),
            (quadint(1, 1, self.zphi, 2), (1 + sym_sqrt(5)) / 2),
            (quadint(-3, 1, self.eisenstein, 2), Rational(-3, 2) + sym_sqrt(-3) / 2),
            (quadint(4, -3, self.zsqrt2), 4 - 3 * sym_sqrt(2)),
            (quadint(7, 0, self.zsqrt2), 7),
        ]
        for value, expr in cases:
            coeffs = Poly(minimal_polynomial(expr, x), x).all_coeffs()
            expected = [int(c) for c in reversed(coeffs)]
            got = list(value.min_poly_coeffs())
            assert got[:len(expected)] == expected
            assert all(c == 0 for c in got[len(expected):])

    def test_strings(self):
        value = quadint(3, 2, self.gaussian)
        assert value.min_poly_string() == "x^2 - 6x + 13"
        assert value.min_poly_string_tex() == "x^2 - 6x + 13"
        assert value.min_poly_string_html() == "<i>x</i><sup>2</sup> &minus; 6<i>x</i> + 13"

        assert quadint(1, 1, self.eisenstein, 2).min_poly_string() == "x^2 - x + 1"
        assert quadint(5, 0, self.gaussian).min_poly_string() == "x - 5"
        assert quadint(0, 0, self.gaussian).min_poly_string() == "x"


class TestNumeric(QuadIntTests):
    """Tests for real, imag, abs and angle"""

    def test_imaginary(self):
        x = quadint(3, 4, self.gaussian)
        assert x.real == 3.0
        assert x.imag == 4.0
        assert x.abs() == 5.0
        assert abs(x) == 5.0
        assert isclose(quadint(0, 1, self.gaussian).angle(), pi / 2)

    def test_real(self):
        x = quadint(1, -2, self.zsqrt2)
        assert isclose(x.real, 1 - 2 * sqrt(2))
        assert x.imag == 0.0
        assert isclose(x.abs(), 2 * sqrt(2) - 1)
        assert isclose(x.angle(), pi)

    def test_algebraic_degree(self):
        assert quadint(0, 0, self.gaussian).algebraic_degree() == 0
        assert quadint(3, 0, self.gaussian).algebraic_degree() == 1
        assert quadint(3, 1, self.gaussian).algebraic_degree() == 2


class TestEq(QuadIntTests):
    """Tests for __eq__ and __hash__"""

    def test_main(self):
        assert quadint(1, 2, self.gaussian) == quadint(1, 2, self.gaussian)
        assert quadint(1, 2, self.gaussian) != quadint(2, 1, self.gaussian)
        assert quadint(1, 1, self.gaussian) != quadint(1, 1, QuadraticRing(-2))

    def test_rational(self):
        """Rational integers are equal across rings and to ints"""
        assert quadint(3, 0, self.gaussian) == 3
        assert quadint(3, 0, self.gaussian) == quadint(3, 0, self.zsqrt2)
        assert hash(quadint(3, 0, self.gaussian)) == hash(quadint(3, 0, self.zsqrt2)) == hash(3)

    def test_iter_bool(self):
        assert list(quadint(1, 1, self.eisenstein, 2)) == [1, 1]
        assert list(quadint(1, 2, self.gaussian)) == [2, 4]
        assert not quadint(0, 0, self.gaussian)
        assert quadint(0, 1, self.gaussian)


class TestHelpers(QuadIntTests):
    """Tests for infer_step, parse_quater_imaginary, apply_theta and apply_omega"""

    def test_infer_step(self):
        start, end = quadint(1, 1, self.gaussian), quadint(7, 5, self.gaussian)
        assert infer_step(start, end) == quadint(3, 2, self.gaussian)
        assert infer_step(start, start) == 0

    def test_infer_step_half(self):
        """Steps may be half integers"""
        start, end = quadint(0, 0, self.eisenstein), quadint(2, 2, self.eisenstein)
        assert infer_step(start, end) == quadint(1, 1, self.eisenstein, 2)

    @pytest.mark.parametrize("text, a, b", [
        ("0", 0, 0),
        ("1", 1, 0),
        ("10", 0, 2),
        ("100", -4, 0),
        ("103", -1, 0),
        ("10.2", 0, 1),
        ("0.2", 0, -1),
        ("3.0", 3, 0),
    ])
    def test_quater_imaginary(self, text, a, b):
        assert parse_quater_imaginary(text) == quadint(a, b, self.gaussian)

    @pytest.mark.parametrize("text", ["4", "1a", "1.1", "1.3", "1.21"])
    def test_quater_imaginary_invalid(self, text):
        with pytest.raises(ValidationError):
            parse_quater_imaginary(text)

    def test_apply_theta(self):
        assert apply_theta(1, 1, self.zphi) == quadint(3, 1, self.zphi, 2)
        assert apply_theta(1, 1, QuadraticRing(-2)) == quadint(1, 1, QuadraticRing(-2))

    def test_apply_omega(self):
        assert apply_omega(0, 1) == quadint(-1, 1, self.eisenstein, 2)
        assert apply_omega(1, 1) == quadint(1, 1, self.eisenstein, 2)
        assert apply_omega(0, 1) ** 3 == 1
