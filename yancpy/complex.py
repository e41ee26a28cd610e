"""Immutable complex scalar.

:class:`Complex` is the unifying scalar representation: a value with
``im == 0`` is still a :class:`Complex`, there is no separate real type.
Arrays of complex values (transform inputs and outputs, eigenvalues) are
NumPy ``complex128`` arrays; :meth:`Complex.from_value` and ``complex(z)``
convert between the two worlds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Number

import numpy as np

from yancpy.errors import DomainError


@dataclass(frozen=True, slots=True)
class Complex:
    re: float = 0.0
    im: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "re", float(self.re))
        object.__setattr__(self, "im", float(self.im))

    @classmethod
    def from_value(cls, value) -> Complex:
        """Coerce a Python/NumPy number or a :class:`Complex` into a :class:`Complex`."""
        if isinstance(value, Complex):
            return value
        if isinstance(value, (Number, np.number)):
            z = complex(value)
            return cls(z.real, z.imag)
        raise DomainError(f"cannot interpret {value!r} as a complex number")

    @classmethod
    def from_polar(cls, modulus: float, argument: float) -> Complex:
        return cls(modulus * math.cos(argument), modulus * math.sin(argument))

    def add(self, other) -> Complex:
        other = Complex.from_value(other)
        return Complex(self.re + other.re, self.im + other.im)

    def sub(self, other) -> Complex:
        other = Complex.from_value(other)
        return Complex(self.re - other.re, self.im - other.im)

    def mul(self, other) -> Complex:
        other = Complex.from_value(other)
        return Complex(
            self.re * other.re - self.im * other.im,
            self.re * other.im + self.im * other.re,
        )

    def div(self, other) -> Complex:
        """Divide by ``other``.

        Uses Smith's algorithm so that intermediate products do not overflow
        for operands of very different magnitude.

        Raises
        ------
        DomainError
            If ``other`` has zero modulus.
        """
        other = Complex.from_value(other)
        c, d = other.re, other.im
        if c == 0.0 and d == 0.0:
            raise DomainError(f"division of {self} by zero-modulus complex {other}")
        if abs(c) >= abs(d):
            ratio = d / c
            denom = c + d * ratio
            return Complex(
                (self.re + self.im * ratio) / denom,
                (self.im - self.re * ratio) / denom,
            )
        ratio = c / d
        denom = c * ratio + d
        return Complex(
            (self.re * ratio + self.im) / denom,
            (self.im * ratio - self.re) / denom,
        )

    def conj(self) -> Complex:
        return Complex(self.re, -self.im)

    def modulus(self) -> float:
        return math.hypot(self.re, self.im)

    def argument(self) -> float:
        """Principal argument in ``(-pi, pi]``."""
        return math.atan2(self.im, self.re)

    def is_close(self, other, *, rel_tol: float = 1e-9, abs_tol: float = 0.0) -> bool:
        other = Complex.from_value(other)
        scale = max(self.modulus(), other.modulus())
        return self.sub(other).modulus() <= max(rel_tol * scale, abs_tol)

    def __add__(self, other):
        return self.add(other)

    __radd__ = __add__

    def __sub__(self, other):
        return self.sub(other)

    def __rsub__(self, other):
        return Complex.from_value(other).sub(self)

    def __mul__(self, other):
        return self.mul(other)

    __rmul__ = __mul__

    def __truediv__(self, other):
        return self.div(other)

    def __rtruediv__(self, other):
        return Complex.from_value(other).div(self)

    def __neg__(self):
        return Complex(-self.re, -self.im)

    def __abs__(self):
        return self.modulus()

    def __complex__(self):
        return complex(self.re, self.im)

    def __str__(self):
        sign = "-" if math.copysign(1.0, self.im) < 0 else "+"
        return f"({self.re:g}{sign}{abs(self.im):g}j)"
