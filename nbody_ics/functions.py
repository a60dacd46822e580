"""
nbody_ics.functions

Scalar density functions evaluated by regions.

A density function is any object exposing ``evaluate(position) -> float``.
Parsing textual expressions is left to the caller; plain Python callables
(``f(position)`` with ``position`` a length-3 array) are wrapped with
:class:`CallableFunction`.

Evaluation failures are never coerced to zero: an exception raised by the
wrapped callable, or a NaN/inf result, is re-raised as
:class:`FunctionEvaluationError`.
"""
from __future__ import annotations

from typing import Callable

import numpy as np

__all__ = [
    "FunctionEvaluationError",
    "DensityFunction",
    "CallableFunction",
    "ConstantFunction",
    "as_density_function",
]


class FunctionEvaluationError(RuntimeError):
    """A density function failed or returned a non-finite value."""

    def __init__(self, message: str, position=None):
        super().__init__(message)
        self.position = None if position is None else np.asarray(position)


class DensityFunction:
    """Base class for scalar functions of position.

    Subclasses implement :meth:`_evaluate`; :meth:`evaluate_many` falls back to
    a Python loop unless a subclass can do better.
    """

    name: str = "f"

    def _evaluate(self, position: np.ndarray) -> float:
        raise NotImplementedError

    def evaluate(self, position) -> float:
        """Value of the function at a single ``(3,)`` position."""
        position = np.asarray(position, dtype=float)
        try:
            value = float(self._evaluate(position))
        except FunctionEvaluationError:
            raise
        except (ArithmeticError, ValueError, TypeError) as exc:
            raise FunctionEvaluationError(
                f"{self.name} failed at {position}: {exc}", position
            ) from exc
        if not np.isfinite(value):
            raise FunctionEvaluationError(
                f"{self.name} returned {value} at {position}", position
            )
        return value

    def evaluate_many(self, positions) -> np.ndarray:
        """Values at ``(N, 3)`` positions, shape ``(N,)``."""
        positions = np.asarray(positions, dtype=float)
        return np.array([self.evaluate(p) for p in positions], dtype=float)

    def release(self) -> None:
        """Drop references to any wrapped objects."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class CallableFunction(DensityFunction):
    """Adapter turning ``func(position)`` into a :class:`DensityFunction`.

    Parameters
    ----------
    func : Callable
        Called with a ``(3,)`` array (or an ``(N, 3)`` array when
        *vectorized* is True, in which case it must return shape ``(N,)``).
    vectorized : bool, optional
        Whether *func* accepts a batch of positions at once.
    name : str, optional
        Label used in error messages. Defaults to ``func.__name__``.
    """

    def __init__(
        self,
        func: Callable,
        *,
        vectorized: bool = False,
        name: str | None = None,
    ):
        if not callable(func):
            raise TypeError(f"Expected a callable, got {type(func).__name__}")
        self._func = func
        self.vectorized = bool(vectorized)
        self.name = name or getattr(func, "__name__", "f")

    def _evaluate(self, position: np.ndarray) -> float:
        if self._func is None:
            raise FunctionEvaluationError(f"{self.name} has been released")
        if self.vectorized:
            return np.asarray(self._func(position.reshape(1, 3))).reshape(-1)[0]
        return self._func(position)

    def evaluate_many(self, positions) -> np.ndarray:
        positions = np.asarray(positions, dtype=float)
        if not self.vectorized or self._func is None:
            return super().evaluate_many(positions)

        with np.errstate(all="ignore"):
            try:
                values = np.asarray(self._func(positions), dtype=float)
            except (ArithmeticError, ValueError, TypeError) as exc:
                raise FunctionEvaluationError(
                    f"{self.name} failed on a batch of {len(positions)} "
                    f"positions: {exc}"
                ) from exc
        values = np.broadcast_to(values, (len(positions),)).copy()
        bad = ~np.isfinite(values)
        if np.any(bad):
            idx = int(np.argmax(bad))
            raise FunctionEvaluationError(
                f"{self.name} returned {values[idx]} at {positions[idx]}",
                positions[idx],
            )
        return values

    def release(self) -> None:
        self._func = None


class ConstantFunction(DensityFunction):
    """Function with the same value everywhere."""

    def __init__(self, value: float):
        value = float(value)
        if not np.isfinite(value):
            raise FunctionEvaluationError(f"constant must be finite, got {value}")
        self.value = value
        self.name = repr(value)

    def _evaluate(self, position: np.ndarray) -> float:
        return self.value

    def evaluate_many(self, positions) -> np.ndarray:
        return np.full(len(np.asarray(positions)), self.value, dtype=float)


def as_density_function(obj) -> DensityFunction:
    """Coerce *obj* into a :class:`DensityFunction`.

    Accepts an existing ``DensityFunction``, a number (constant), or a
    callable of one position. Any other object exposing ``evaluate`` is
    wrapped through its bound method.
    """
    if isinstance(obj, DensityFunction):
        return obj
    if isinstance(obj, (int, float, np.integer, np.floating)):
        return ConstantFunction(obj)
    evaluate = getattr(obj, "evaluate", None)
    if callable(evaluate):
        return CallableFunction(evaluate, name=type(obj).__name__)
    if callable(obj):
        return CallableFunction(obj)
    raise TypeError(
        f"Cannot use object of type {type(obj).__name__} as a density function"
    )
