"""
Automation Functions - composable continuous-domain functions.

A Function wraps a pure mapping from a domain (usually time in seconds) to
a codomain (usually an amplitude). Functions compose, combine pointwise
with arithmetic operators, and can be sampled into discrete sequences,
which is how gain curves are turned into per-frame gains by the mixer.

Key Features:
- Construct from callables or constants (a constant becomes a flat curve)
- Composition: f(g) returns x -> f(g(x))
- Pointwise + - * / % and negation, with Functions or plain numbers
- clamp / max / min combinators
- Seedable stochastic curves (uniform and normal noise)
- Vectorized evaluation over numpy arrays for fast sampling

Thread safety: stochastic Functions draw from the numpy Generator they were
built with. Sampling one of them from several threads at once needs
external locking, or one Generator per thread.

Example:
    >>> fade_in = Func1x1(lambda t: min(t, 1.0))
    >>> gain = fade_in * 0.5 + 0.25
    >>> gain.sample(0.0, 2.0, 0.5).tolist()
    [0.25, 0.5, 0.75, 0.75]
"""

from typing import Any, Callable, Generic, NamedTuple, Optional, TypeVar
import inspect
import math

import numpy as np

from .config import make_rng
from .utils import count_sample_points

I = TypeVar("I")
O = TypeVar("O")

TWO_PI = 2.0 * math.pi


class Vec2(NamedTuple):
    """Two-component vector with pointwise arithmetic."""
    x: float
    y: float

    def __add__(self, other):
        ox, oy = _vec2_parts(other)
        return Vec2(self.x + ox, self.y + oy)

    __radd__ = __add__

    def __sub__(self, other):
        ox, oy = _vec2_parts(other)
        return Vec2(self.x - ox, self.y - oy)

    def __rsub__(self, other):
        ox, oy = _vec2_parts(other)
        return Vec2(ox - self.x, oy - self.y)

    def __mul__(self, other):
        ox, oy = _vec2_parts(other)
        return Vec2(self.x * ox, self.y * oy)

    __rmul__ = __mul__

    def __truediv__(self, other):
        ox, oy = _vec2_parts(other)
        return Vec2(self.x / ox, self.y / oy)

    def __mod__(self, other):
        ox, oy = _vec2_parts(other)
        return Vec2(math.fmod(self.x, ox), math.fmod(self.y, oy))

    def __neg__(self):
        return Vec2(-self.x, -self.y)


def _vec2_parts(value):
    if isinstance(value, tuple):
        return value[0], value[1]
    return value, value


def _fmod(a, b):
    """Floating modulus with the sign of the dividend, like C fmod."""
    if isinstance(a, Vec2):
        return a % b
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        return np.fmod(a, b)
    if isinstance(a, int) and isinstance(b, int):
        return int(math.fmod(a, b))
    return math.fmod(a, b)


def unwrap_scalar(values):
    """Unwrap 0-d numpy results to Python floats."""
    if isinstance(values, np.ndarray) and values.ndim == 0:
        return float(values)
    return values


class Function(Generic[I, O]):
    """
    A pure mapping from I to O supporting composition and pointwise math.

    Attributes:
        f: The wrapped callable
        vectorized: True when f accepts a numpy array of inputs and
                    returns an array of outputs of the same shape
    """

    def __init__(self, f: Any = 0, vectorized: bool = False):
        """
        Wrap a callable or a constant.

        Args:
            f: Callable taking one argument, another Function, or a constant
               value (the default constant is 0)
            vectorized: Whether f may be called with numpy arrays. Constants
                        are always vectorized.
        """
        if isinstance(f, Function):
            self.f = f.f
            self.vectorized = f.vectorized
        elif callable(f):
            self.f = f
            self.vectorized = bool(vectorized)
        else:
            value = f
            self.f = lambda x: value
            self.vectorized = True

    @classmethod
    def _from_callable(cls, f: Callable, vectorized: bool):
        """Wrap f without any argument adaptation a subclass might apply."""
        obj = cls.__new__(cls)
        Function.__init__(obj, f, vectorized)
        return obj

    @classmethod
    def lift(cls, value: Any) -> "Function":
        """Coerce a Function, callable or constant into a Function."""
        if isinstance(value, Function):
            return value
        return Function(value)

    # =========================================================================
    # Application and composition
    # =========================================================================

    def __call__(self, x):
        if isinstance(x, Function):
            return self.compose(x)
        return self.f(x)

    def compose(self, g: "Function") -> "Function":
        """Return x -> self(g(x))."""
        g = Function.lift(g)
        outer = self.f
        inner = g.f
        return Function._from_callable(
            lambda x: outer(inner(x)),
            self.vectorized and g.vectorized,
        )

    # =========================================================================
    # Pointwise arithmetic
    # =========================================================================

    def _combine(self, other, op: Callable, reverse: bool = False) -> "Function":
        other = Function.lift(other)
        a, b = (other, self) if reverse else (self, other)
        fa, fb = a.f, b.f
        return self._from_callable(
            lambda x: op(fa(x), fb(x)),
            a.vectorized and b.vectorized,
        )

    def __add__(self, other):
        return self._combine(other, lambda a, b: a + b)

    def __radd__(self, other):
        return self._combine(other, lambda a, b: a + b, reverse=True)

    def __sub__(self, other):
        return self._combine(other, lambda a, b: a - b)

    def __rsub__(self, other):
        return self._combine(other, lambda a, b: a - b, reverse=True)

    def __mul__(self, other):
        return self._combine(other, lambda a, b: a * b)

    def __rmul__(self, other):
        return self._combine(other, lambda a, b: a * b, reverse=True)

    def __truediv__(self, other):
        return self._combine(other, lambda a, b: a / b)

    def __rtruediv__(self, other):
        return self._combine(other, lambda a, b: a / b, reverse=True)

    def __mod__(self, other):
        return self._combine(other, _fmod)

    def __rmod__(self, other):
        return self._combine(other, _fmod, reverse=True)

    def __neg__(self):
        f = self.f
        return self._from_callable(lambda x: -f(x), self.vectorized)

    # =========================================================================
    # Combinators
    # =========================================================================

    @classmethod
    def clamp(cls, a, lower, upper) -> "Function":
        """Clamp a between lower and upper at each input."""
        a, lower, upper = cls.lift(a), cls.lift(lower), cls.lift(upper)
        fa, fl, fu = a.f, lower.f, upper.f
        vectorized = a.vectorized and lower.vectorized and upper.vectorized
        if vectorized:
            f = lambda x: unwrap_scalar(np.clip(fa(x), fl(x), fu(x)))
        else:
            f = lambda x: min(max(fa(x), fl(x)), fu(x))
        return cls._from_callable(f, vectorized)

    @classmethod
    def max(cls, a, b) -> "Function":
        """Pointwise maximum of two functions."""
        a, b = cls.lift(a), cls.lift(b)
        fa, fb = a.f, b.f
        vectorized = a.vectorized and b.vectorized
        if vectorized:
            f = lambda x: unwrap_scalar(np.maximum(fa(x), fb(x)))
        else:
            f = lambda x: max(fa(x), fb(x))
        return cls._from_callable(f, vectorized)

    @classmethod
    def min(cls, a, b) -> "Function":
        """Pointwise minimum of two functions."""
        a, b = cls.lift(a), cls.lift(b)
        fa, fb = a.f, b.f
        vectorized = a.vectorized and b.vectorized
        if vectorized:
            f = lambda x: unwrap_scalar(np.minimum(fa(x), fb(x)))
        else:
            f = lambda x: min(fa(x), fb(x))
        return cls._from_callable(f, vectorized)

    # =========================================================================
    # Stochastic curves
    # =========================================================================

    @classmethod
    def uniform_distribution(
        cls,
        lower,
        upper,
        rng: Optional[np.random.Generator] = None
    ) -> "Function":
        """
        Uniform noise between two bounding functions.

        Args:
            lower: Lower bound (Function or constant)
            upper: Upper bound (Function or constant)
            rng: Generator to draw from. Defaults to a new one seeded from
                 the engine configuration.
        """
        lower, upper = cls.lift(lower), cls.lift(upper)
        rng = rng if rng is not None else make_rng()
        fl, fu = lower.f, upper.f

        def draw(x):
            size = x.shape if isinstance(x, np.ndarray) else None
            return unwrap_scalar(rng.uniform(fl(x), fu(x), size=size))

        return cls._from_callable(draw, lower.vectorized and upper.vectorized)

    @classmethod
    def normal_distribution(
        cls,
        mean,
        sigma,
        rng: Optional[np.random.Generator] = None
    ) -> "Function":
        """
        Gaussian noise around a mean function.

        Where sigma is not positive the mean is returned unchanged.

        Args:
            mean: Mean (Function or constant)
            sigma: Standard deviation (Function or constant)
            rng: Generator to draw from. Defaults to a new one seeded from
                 the engine configuration.
        """
        mean, sigma = cls.lift(mean), cls.lift(sigma)
        rng = rng if rng is not None else make_rng()
        fm, fs = mean.f, sigma.f

        def draw(x):
            m = fm(x)
            s = fs(x)
            if isinstance(x, np.ndarray):
                s = np.broadcast_to(s, x.shape)
                m = np.broadcast_to(m, x.shape)
                spread = np.where(s > 0, s, 1.0)
                return np.where(s > 0, rng.normal(m, spread, size=x.shape), m)
            if s <= 0:
                return m
            return float(rng.normal(m, s))

        return cls._from_callable(draw, mean.vectorized and sigma.vectorized)

    # =========================================================================
    # Sampling
    # =========================================================================

    def _evaluate(self, domain: np.ndarray) -> np.ndarray:
        if self.vectorized:
            values = np.asarray(self.f(domain), dtype=np.float64)
            return np.broadcast_to(values, domain.shape).copy()
        return np.asarray([self.f(float(x)) for x in domain])

    def sample(self, start: float, end: float, step: float) -> np.ndarray:
        """
        Evaluate at start, start + step, ... for every point in [start, end).

        Returns:
            Array of outputs in domain order; empty when end <= start
        """
        n = count_sample_points(start, end, step)
        domain = start + step * np.arange(n, dtype=np.float64)
        return self._evaluate(domain)

    def sample_frames(self, first_frame: int, num_frames: int, sample_rate: int) -> np.ndarray:
        """
        Evaluate at the times of frames first_frame ... first_frame + num_frames - 1.

        Exactly num_frames values are produced regardless of float rounding.
        """
        frames = first_frame + np.arange(max(0, num_frames), dtype=np.float64)
        return self._evaluate(frames / sample_rate)


class Func1x1(Function[float, float]):
    """Real function of one real variable."""

    def exp(self) -> "Func1x1":
        """e raised to this function."""
        f = self.f
        if self.vectorized:
            return Func1x1._from_callable(lambda t: unwrap_scalar(np.exp(f(t))), True)
        return Func1x1._from_callable(lambda t: math.exp(f(t)), False)

    def periodize(self, period=1.0) -> "Func1x1":
        """
        Repeat the portion of this function on [0, period) forever.

        Args:
            period: Period length (Function or constant), one second by default
        """
        f = self.f
        p = Function.lift(period)
        fp = p.f
        if self.vectorized and p.vectorized:
            return Func1x1._from_callable(lambda t: f(np.mod(t, fp(t))), True)
        return Func1x1._from_callable(lambda t: f(float(np.mod(t, fp(t)))), False)

    @staticmethod
    def adsr(
        attack: float,
        decay: float,
        sustain: float,
        release: float,
        sustain_level: float,
        attack_exp: float = 1.0,
        decay_exp: float = 1.0,
        release_exp: float = 1.0
    ) -> "Func1x1":
        """
        ADSR envelope ranging from 0 to 1.

        Exponents shape each ramp: 1 is linear, values below 1 move quickly
        toward the target first, values above 1 do the opposite.

        Args:
            attack: Attack length in seconds
            decay: Decay length in seconds
            sustain: Sustain length in seconds
            release: Release length in seconds
            sustain_level: Level held during sustain
            attack_exp: Attack curve exponent
            decay_exp: Decay curve exponent
            release_exp: Release curve exponent
        """
        t_decay = attack
        t_sustain = attack + decay
        t_release = attack + decay + sustain
        t_end = t_release + release

        def envelope(time):
            scalar = np.ndim(time) == 0
            t = np.atleast_1d(np.asarray(time, dtype=np.float64))
            with np.errstate(divide='ignore', invalid='ignore'):
                rising = np.power(np.clip(t / attack, 0.0, 1.0), attack_exp)
                falling = 1.0 - (1.0 - sustain_level) * np.power(
                    np.clip((t - t_decay) / decay, 0.0, 1.0), decay_exp
                )
                releasing = sustain_level * (1.0 - np.power(
                    np.clip((t - t_release) / release, 0.0, 1.0), release_exp
                ))
                out = np.select(
                    [t < 0, t < t_decay, t < t_sustain, t < t_release, t < t_end],
                    [0.0, rising, falling, sustain_level, releasing],
                    default=0.0,
                )
            return float(out[0]) if scalar else out

        return Func1x1._from_callable(envelope, True)

    # Periodic shapes with period 2*pi, all in phase with sine.
    sine: "Func1x1"
    square: "Func1x1"
    saw: "Func1x1"
    triangle: "Func1x1"


Func1x1.sine = Func1x1._from_callable(
    lambda t: unwrap_scalar(np.sin(t)), True
)
Func1x1.square = Func1x1._from_callable(
    lambda t: unwrap_scalar(np.where(np.mod(t, TWO_PI) < math.pi, 1.0, -1.0)), True
)
Func1x1.saw = Func1x1._from_callable(
    lambda t: unwrap_scalar(np.mod(np.asarray(t) + math.pi, TWO_PI) / math.pi - 1.0), True
)
Func1x1.triangle = Func1x1._from_callable(
    lambda t: unwrap_scalar(
        2.0 / math.pi * np.abs(np.mod(np.asarray(t) - math.pi / 2, TWO_PI) - math.pi) - 1.0
    ),
    True,
)


def _positional_arity(f: Callable) -> Optional[int]:
    try:
        params = inspect.signature(f).parameters.values()
    except (TypeError, ValueError):
        return None
    return sum(
        1 for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    )


class Func2x1(Function[Vec2, float]):
    """
    Real function of a 2D input, typically (time, frequency).

    Callables taking two arguments receive (x, y); callables taking one
    argument receive only x unless vec2_input is set, in which case they
    receive the Vec2 itself.
    """

    def __init__(self, f: Any = 0, vec2_input: bool = False):
        if callable(f) and not isinstance(f, Function) and not vec2_input:
            arity = _positional_arity(f)
            if arity == 2:
                g = f
                f = lambda v: g(v[0], v[1])
            elif arity == 1:
                g = f
                f = lambda v: g(v[0])
        super().__init__(f)

    def __call__(self, x, y=None):
        if y is not None:
            return self.f(Vec2(x, y))
        if isinstance(x, Function):
            return self.compose(x)
        return self.f(Vec2(*x))


class Func2x2(Function[Vec2, Vec2]):
    """2D function of a 2D input."""

    def __call__(self, x, y=None):
        if y is not None:
            return self.f(Vec2(x, y))
        if isinstance(x, Function):
            return self.compose(x)
        return self.f(Vec2(*x))
