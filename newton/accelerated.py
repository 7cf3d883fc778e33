"""Vectorised Newton iteration over a whole sampling grid with TensorFlow."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .polynomial import Polynomial

NO_STEP_LIMIT = -1


def _coefficient_tensor(polynomial: Polynomial) -> tf.Tensor:
    values = np.array(
        [(c.real, c.imaginary) for c in polynomial.coefficients],
        dtype=np.float64,
    ).reshape(-1, 2)
    return tf.constant(values, dtype=tf.float64)


def _multiply(a_re, a_im, b_re, b_im):
    return a_re * b_re - a_im * b_im, a_re * b_im + a_im * b_re


def _evaluate(coefficients: tf.Tensor, re: tf.Tensor, im: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
    """Evaluate term by term with repeated multiplication, like ``Polynomial.evaluate``."""

    total_re = tf.zeros_like(re)
    total_im = tf.zeros_like(im)
    for degree in range(coefficients.shape[0]):
        term_re = coefficients[degree, 0] + tf.zeros_like(re)
        term_im = coefficients[degree, 1] + tf.zeros_like(im)
        if degree > 0:
            power_re, power_im = re, im
            for _ in range(degree - 1):
                power_re, power_im = _multiply(power_re, power_im, re, im)
            term_re, term_im = _multiply(term_re, term_im, power_re, power_im)
        total_re = total_re + term_re
        total_im = total_im + term_im
    return total_re, total_im


def _divide(a_re, a_im, b_re, b_im):
    num_re, num_im = _multiply(a_re, a_im, b_re, -b_im)
    denominator = b_re * b_re + b_im * b_im
    return num_re / denominator, num_im / denominator


@tf.function
def _newton_step(
    re: tf.Tensor,
    im: tf.Tensor,
    counted: tf.Tensor,
    steps: tf.Tensor,
    active: tf.Tensor,
    coefficients: tf.Tensor,
    derivative: tf.Tensor,
    max_iterations: tf.Tensor,
    tolerance: tf.Tensor,
    step_limit: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform one Newton step for the points that still have budget left."""

    p_re, p_im = _evaluate(coefficients, re, im)
    d_re, d_im = _evaluate(derivative, re, im)
    delta_re, delta_im = _divide(p_re, p_im, d_re, d_im)

    re = tf.where(active, re - delta_re, re)
    im = tf.where(active, im - delta_im, im)
    steps = steps + tf.cast(active, tf.int32)

    magnitude = tf.sqrt(delta_re * delta_re + delta_im * delta_im)
    small = tf.logical_or(magnitude < tolerance, tf.math.is_nan(magnitude))
    counted = counted + tf.cast(tf.logical_and(active, small), tf.int32)

    active = tf.logical_and(active, counted < max_iterations)
    unlimited = step_limit < 0
    active = tf.logical_and(active, tf.logical_or(unlimited, steps < step_limit))
    return re, im, counted, steps, active


@tf.function
def _newton_run(
    re: tf.Tensor,
    im: tf.Tensor,
    coefficients: tf.Tensor,
    derivative: tf.Tensor,
    max_iterations: tf.Tensor,
    tolerance: tf.Tensor,
    step_limit: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate every point using a TensorFlow while loop."""

    counted = tf.zeros_like(re, tf.int32)
    steps = tf.zeros_like(re, tf.int32)
    active = counted < max_iterations
    active = tf.logical_and(active, tf.logical_or(step_limit < 0, steps < step_limit))

    def cond(re, im, counted, steps, active):
        return tf.reduce_any(active)

    def body(re, im, counted, steps, active):
        return _newton_step(
            re, im, counted, steps, active,
            coefficients, derivative, max_iterations, tolerance, step_limit,
        )

    return tf.while_loop(cond, body, (re, im, counted, steps, active))


def iterate_grid(
    real: np.ndarray,
    imaginary: np.ndarray,
    polynomial: Polynomial,
    derivative: Optional[Polynomial] = None,
    *,
    max_iterations: int,
    tolerance: float,
    step_limit: Optional[int] = None,
    device: Optional[str] = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Run Newton's method for every starting point in the given arrays.

    Returns the final real parts, imaginary parts and physical step counts,
    shaped like the inputs.
    """

    if derivative is None:
        derivative = polynomial.derive()

    real = np.asarray(real, dtype=np.float64)
    imaginary = np.asarray(imaginary, dtype=np.float64)
    if real.shape != imaginary.shape:
        raise ValueError("real and imaginary grids must have the same shape.")

    with tf.device(device if device is not None else "/CPU:0"):
        re, im, _, steps, _ = _newton_run(
            tf.convert_to_tensor(real, dtype=tf.float64),
            tf.convert_to_tensor(imaginary, dtype=tf.float64),
            _coefficient_tensor(polynomial),
            _coefficient_tensor(derivative),
            tf.constant(max_iterations, dtype=tf.int32),
            tf.constant(tolerance, dtype=tf.float64),
            tf.constant(NO_STEP_LIMIT if step_limit is None else step_limit, dtype=tf.int32),
        )

    return re.numpy(), im.numpy(), steps.numpy()
