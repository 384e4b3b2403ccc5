"""Tests for the linear classifier training surface, exercised through SoftmaxClassifier."""

import os
import sys
import unittest

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from classifier_errors import InvalidArgumentError, InvalidStateError
from gradient_descent import GradientDescent
from linear_classifier import add_bias_column, check_features, check_targets, count_classes
from softmax_classifier import SoftmaxClassifier, Stage


def three_blobs(n_per_class: int = 50, seed: int = 42):
    rng = np.random.RandomState(seed)
    X0 = rng.randn(n_per_class, 2) + np.array([0, 3])
    X1 = rng.randn(n_per_class, 2) + np.array([-3, -1])
    X2 = rng.randn(n_per_class, 2) + np.array([3, -1])
    X = np.vstack([X0, X1, X2])
    y = np.array([0] * n_per_class + [1] * n_per_class + [2] * n_per_class)
    return X, y


class TestHelpers(unittest.TestCase):

    def test_add_bias_column(self):
        X = np.array([[2.0, 3.0], [4.0, 5.0]])
        np.testing.assert_array_equal(add_bias_column(X), [[1.0, 2.0, 3.0], [1.0, 4.0, 5.0]])

    def test_add_bias_column_1d(self):
        np.testing.assert_array_equal(add_bias_column(np.array([7.0, 8.0])), [[1.0, 7.0], [1.0, 8.0]])

    def test_check_features_rejects_nan(self):
        with self.assertRaises(InvalidArgumentError):
            check_features(np.array([[1.0, np.nan]]))

    def test_check_features_rejects_empty(self):
        with self.assertRaises(InvalidArgumentError):
            check_features(np.zeros((0, 2)))

    def test_check_targets_column_vector(self):
        y = check_targets(np.array([[0], [1], [2]]), 3)
        np.testing.assert_array_equal(y, [0, 1, 2])
        self.assertTrue(np.issubdtype(y.dtype, np.integer))

    def test_check_targets_integer_valued_floats(self):
        np.testing.assert_array_equal(check_targets(np.array([0.0, 1.0]), 2), [0, 1])

    def test_check_targets_rejects_fractional(self):
        with self.assertRaises(InvalidArgumentError):
            check_targets(np.array([0.5, 1.0]), 2)

    def test_check_targets_rejects_strings(self):
        with self.assertRaises(InvalidArgumentError):
            check_targets(np.array(["a", "b"]), 2)

    def test_check_targets_length(self):
        with self.assertRaises(InvalidArgumentError):
            check_targets(np.array([0, 1]), 3)

    def test_count_classes(self):
        self.assertEqual(count_classes(np.array([2, 0, 1, 1])), 3)

    def test_count_classes_gap_in_labels(self):
        with self.assertRaises(InvalidArgumentError):
            count_classes(np.array([0, 2, 2]))

    def test_count_classes_single_class(self):
        with self.assertRaises(InvalidArgumentError):
            count_classes(np.array([0, 0, 0]))


class TestFit(unittest.TestCase):

    def test_linearly_separable_data(self):
        X, y = three_blobs()
        model = SoftmaxClassifier().fit(X, y, GradientDescent(learning_rate=0.5, n_iterations=500))
        self.assertEqual(model.stage, Stage.TRAINED)
        self.assertEqual(model.num_classes, 3)
        self.assertEqual(model.w.shape, (3 * 2,))
        self.assertGreater(model.score(X, y), 0.95)

    def test_loss_decreases(self):
        rng = np.random.RandomState(42)
        X = rng.randn(100, 4)
        y = rng.randint(0, 3, 100)
        model = SoftmaxClassifier(lambda_=0.01).fit(X, y, GradientDescent(n_iterations=100))
        self.assertLess(model.history[-1], model.history[0])
        self.assertAlmostEqual(model.history[0], np.log(3))

    def test_fit_returns_new_instance(self):
        X, y = three_blobs(n_per_class=10)
        untrained = SoftmaxClassifier()
        trained = untrained.fit(X, y, GradientDescent(n_iterations=20))
        self.assertIsNot(trained, untrained)
        self.assertEqual(untrained.stage, Stage.UNTRAINED)
        self.assertEqual(untrained.history, [])

    def test_fit_on_trained_model_rejected(self):
        X, y = three_blobs(n_per_class=10)
        trained = SoftmaxClassifier().fit(X, y, GradientDescent(n_iterations=5))
        with self.assertRaises(InvalidStateError):
            trained.fit(X, y)

    def test_fit_on_sized_model(self):
        X, y = three_blobs(n_per_class=10)
        trained = SoftmaxClassifier().with_class_count(3).fit(X, y, GradientDescent(n_iterations=5))
        self.assertEqual(trained.num_classes, 3)

    def test_fit_on_sized_model_with_other_class_count(self):
        X, y = three_blobs(n_per_class=10)
        with self.assertRaises(InvalidStateError):
            SoftmaxClassifier().with_class_count(4).fit(X, y)

    def test_invalid_label_encoding(self):
        X = np.array([[0.0], [1.0], [2.0]])
        with self.assertRaises(InvalidArgumentError):
            SoftmaxClassifier().fit(X, np.array([0, 2, 2]))

    def test_two_classes_warns_and_trains(self):
        rng = np.random.RandomState(42)
        X = np.vstack([rng.randn(30, 2) + [-2, 0], rng.randn(30, 2) + [2, 0]])
        y = np.array([0] * 30 + [1] * 30)
        with self.assertLogs("softmax_classifier", level="WARNING"):
            model = SoftmaxClassifier().fit(X, y, GradientDescent(n_iterations=300))
        self.assertEqual(model.w.shape, (3,))
        self.assertGreater(model.score(X, y), 0.90)

    def test_single_feature(self):
        rng = np.random.RandomState(42)
        X = np.concatenate([rng.randn(20) - 3, rng.randn(20), rng.randn(20) + 3])
        y = np.array([0] * 20 + [1] * 20 + [2] * 20)
        model = SoftmaxClassifier().fit(X, y, GradientDescent(n_iterations=500))
        self.assertGreater(model.score(X, y), 0.80)

    def test_regularization_shrinks_weights(self):
        X, y = three_blobs()
        optimizer = GradientDescent(n_iterations=300)
        weak = SoftmaxClassifier(lambda_=0.001).fit(X, y, optimizer)
        strong = SoftmaxClassifier(lambda_=1.0).fit(X, y, optimizer)

        def feature_norm(model):
            return np.linalg.norm(model.w.reshape((3, 2), order="F")[1:])

        self.assertLess(feature_norm(strong), feature_norm(weak))


class TestPredict(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.X, cls.y = three_blobs(n_per_class=20)
        cls.model = SoftmaxClassifier(lambda_=0.1).fit(cls.X, cls.y, GradientDescent(n_iterations=200))

    def test_predict_proba_row_stochastic(self):
        P = self.model.predict_proba(self.X)
        self.assertEqual(P.shape, (60, 3))
        np.testing.assert_allclose(P.sum(axis=1), np.ones(60))

    def test_predict_vs_predict_proba(self):
        np.testing.assert_array_equal(
            self.model.predict(self.X), np.argmax(self.model.predict_proba(self.X), axis=1)
        )

    def test_predict_uses_bias_column(self):
        X_bias = add_bias_column(self.X)
        np.testing.assert_allclose(
            self.model.predict_proba(self.X), self.model.probabilities(self.model.w, X_bias)
        )

    def test_predict_single_sample(self):
        pred = self.model.predict(np.array([[0.0, 3.0]]))
        self.assertEqual(pred.shape, (1,))
        self.assertEqual(pred[0], 0)

    def test_predict_before_fit(self):
        with self.assertRaises(InvalidStateError):
            SoftmaxClassifier().predict(self.X)

    def test_predict_proba_on_sized_model(self):
        with self.assertRaises(InvalidStateError):
            SoftmaxClassifier().with_class_count(3).predict_proba(self.X)

    def test_wrong_feature_count(self):
        with self.assertRaises(InvalidArgumentError):
            self.model.predict(np.zeros((2, 3)))


if __name__ == "__main__":
    unittest.main()
