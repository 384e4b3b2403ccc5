"""Tests for the gradient descent minimizer."""

import os
import sys
import unittest

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from classifier_errors import InvalidArgumentError
from gradient_descent import GradientDescent


def quadratic(center: np.ndarray):
    """f(w) = ||w - center||^2 with its gradient."""
    def objective(w):
        diff = w - center
        return float(diff @ diff), 2.0 * diff
    return objective


class TestMinimize(unittest.TestCase):

    def test_converges_on_quadratic(self):
        center = np.array([1.0, -2.0, 0.5])
        optimizer = GradientDescent(learning_rate=0.1, n_iterations=1000, tolerance=1e-12)
        w, history = optimizer.minimize(quadratic(center), np.zeros(3))
        np.testing.assert_allclose(w, center, atol=1e-5)
        self.assertLess(history[-1], 1e-10)

    def test_single_step(self):
        """f(x) = x^2, x0 = 3, lr = 0.1 -> x1 = 3 - 0.1 * 6 = 2.4"""
        optimizer = GradientDescent(learning_rate=0.1, n_iterations=1)
        w, history = optimizer.minimize(quadratic(np.zeros(1)), np.array([3.0]))
        np.testing.assert_allclose(w, [2.4])
        self.assertEqual(len(history), 2)
        self.assertAlmostEqual(history[0], 9.0)
        self.assertAlmostEqual(history[1], 5.76)

    def test_history_non_increasing(self):
        optimizer = GradientDescent(learning_rate=0.3, n_iterations=200)
        _, history = optimizer.minimize(quadratic(np.array([4.0, 4.0])), np.zeros(2))
        self.assertTrue(all(b <= a for a, b in zip(history, history[1:])))

    def test_backoff_recovers_from_large_step(self):
        """lr = 10 overshoots x^2 wildly; rejected steps shrink it until progress is made."""
        optimizer = GradientDescent(learning_rate=10.0, n_iterations=500, tolerance=1e-12)
        w, history = optimizer.minimize(quadratic(np.zeros(1)), np.array([5.0]))
        self.assertLess(abs(w[0]), 1e-3)
        self.assertTrue(all(b <= a for a, b in zip(history, history[1:])))

    def test_stops_on_tolerance(self):
        optimizer = GradientDescent(learning_rate=0.5, n_iterations=1000, tolerance=1e-3)
        _, history = optimizer.minimize(quadratic(np.array([1.0])), np.zeros(1))
        self.assertLess(len(history), 1000)

    def test_zero_gradient_no_update(self):
        optimizer = GradientDescent(learning_rate=0.1, n_iterations=10)
        w, history = optimizer.minimize(quadratic(np.array([2.0])), np.array([2.0]))
        np.testing.assert_array_equal(w, [2.0])
        self.assertEqual(history[0], 0.0)

    def test_stops_on_step_size_underflow(self):
        """An uphill gradient rejects every step: lr 1 -> 0.5 -> 0.25 -> 0.125 -> 0.0625 < 0.1."""
        def uphill(w):
            return float(w @ w), -2.0 * w

        optimizer = GradientDescent(learning_rate=1.0, n_iterations=100, min_learning_rate=0.1)
        with self.assertLogs("gradient_descent", level="INFO") as logs:
            w, history = optimizer.minimize(uphill, np.array([1.0]))
        np.testing.assert_array_equal(w, [1.0])
        self.assertEqual(history, [1.0])
        self.assertIn("stopping after 4 iterations: step size underflow", logs.output[-1])

    def test_does_not_modify_initial_point(self):
        w0 = np.array([3.0, 3.0])
        GradientDescent(n_iterations=5).minimize(quadratic(np.zeros(2)), w0)
        np.testing.assert_array_equal(w0, [3.0, 3.0])


class TestSettings(unittest.TestCase):

    def test_defaults(self):
        optimizer = GradientDescent()
        self.assertEqual(optimizer.learning_rate, 0.5)
        self.assertEqual(optimizer.n_iterations, 1000)

    def test_invalid_learning_rate(self):
        with self.assertRaises(InvalidArgumentError):
            GradientDescent(learning_rate=0.0)

    def test_invalid_iterations(self):
        with self.assertRaises(InvalidArgumentError):
            GradientDescent(n_iterations=0)

    def test_invalid_tolerance(self):
        with self.assertRaises(InvalidArgumentError):
            GradientDescent(tolerance=-1.0)

    def test_invalid_backoff(self):
        with self.assertRaises(InvalidArgumentError):
            GradientDescent(backoff=1.0)

    def test_nan_settings_rejected(self):
        for kwargs in ({"learning_rate": np.nan}, {"tolerance": np.nan},
                       {"backoff": np.nan}, {"min_learning_rate": np.nan}):
            with self.subTest(**kwargs):
                with self.assertRaises(InvalidArgumentError):
                    GradientDescent(**kwargs)

    def test_invalid_min_learning_rate(self):
        for value in (0.0, -1e-3):
            with self.subTest(min_learning_rate=value):
                with self.assertRaises(InvalidArgumentError):
                    GradientDescent(min_learning_rate=value)

    def test_min_learning_rate_not_below_learning_rate(self):
        with self.assertRaises(InvalidArgumentError):
            GradientDescent(learning_rate=0.1, min_learning_rate=0.1)
        with self.assertRaises(InvalidArgumentError):
            GradientDescent(learning_rate=0.1, min_learning_rate=0.5)


if __name__ == "__main__":
    unittest.main()
