"""
Linear Classifier - shared training and prediction surface for linear models.

Subclasses supply the model math on an explicit parameter vector w and a
design matrix whose first column is the bias term. This base owns everything
around it: input validation, the bias column, discovering the number of
classes, running the optimizer and freezing the result into a new instance.
Models are immutable; every lifecycle transition returns a new object.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from classifier_errors import InvalidArgumentError, InvalidStateError
from gradient_descent import GradientDescent


def check_features(X: np.ndarray) -> np.ndarray:
    """
    Validate a feature matrix.

    Args:
        X: Input features, shape (n_samples,) or (n_samples, n_features)

    Returns:
        Float64 array of shape (n_samples, n_features)
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.ndim != 2:
        raise InvalidArgumentError(f"features must be 1-D or 2-D, got shape {X.shape}")
    if X.shape[0] == 0:
        raise InvalidArgumentError("features must contain at least one sample")
    if not np.all(np.isfinite(X)):
        raise InvalidArgumentError("features contain NaN or infinite values")
    return X


def check_targets(y: np.ndarray, n_samples: int, num_classes: Optional[int] = None) -> np.ndarray:
    """
    Validate a vector of integer class labels.

    Args:
        y: Class labels, shape (n_samples,) or (n_samples, 1)
        n_samples: Expected number of labels
        num_classes: If given, every label must lie in [0, num_classes)

    Returns:
        Integer array of shape (n_samples,)
    """
    y = np.asarray(y)
    if y.ndim == 2 and y.shape[1] == 1:
        y = y.ravel()
    if y.ndim != 1:
        raise InvalidArgumentError(f"targets must be 1-D, got shape {y.shape}")
    if y.shape[0] != n_samples:
        raise InvalidArgumentError(
            f"number of targets ({y.shape[0]}) does not match number of samples ({n_samples})"
        )
    if not np.issubdtype(y.dtype, np.number) or not np.all(np.mod(y, 1) == 0):
        raise InvalidArgumentError("targets must be integer class labels")

    y = y.astype(np.int64)
    if num_classes is not None and (np.any(y < 0) or np.any(y >= num_classes)):
        raise InvalidArgumentError(f"targets must lie in [0, {num_classes})")
    return y


def count_classes(y: np.ndarray) -> int:
    """
    Number of classes encoded in y; labels must be exactly 0..K-1 with K >= 2.
    """
    classes = np.unique(y)
    if classes.shape[0] < 2:
        raise InvalidArgumentError("targets must contain at least two classes")
    if not np.array_equal(classes, np.arange(classes.shape[0])):
        raise InvalidArgumentError(
            f"invalid encoding of classes: expected labels 0..{classes.shape[0] - 1}, "
            f"got {classes.tolist()}"
        )
    return int(classes.shape[0])


def add_bias_column(X: np.ndarray) -> np.ndarray:
    """Prepend a column of ones, shape (n, d) -> (n, d + 1)."""
    X = check_features(X)
    return np.column_stack([np.ones(X.shape[0]), X])


class LinearClassifier(ABC):
    """Immutable linear classifier trained by minimizing loss(w, X, y)."""

    _history: Tuple[float, ...] = ()

    @property
    @abstractmethod
    def num_classes(self) -> Optional[int]:
        ...

    @property
    @abstractmethod
    def w(self) -> Optional[np.ndarray]:
        ...

    @abstractmethod
    def with_class_count(self, num_classes: int) -> "LinearClassifier":
        """Return a copy with the number of classes fixed."""

    @abstractmethod
    def with_parameters(self, w: np.ndarray) -> "LinearClassifier":
        """Return a copy holding trained parameters w."""

    @abstractmethod
    def initial_parameters(self, num_features: int) -> np.ndarray:
        """Starting point for the optimizer, X having num_features columns."""

    @abstractmethod
    def probabilities(self, w: np.ndarray, X: np.ndarray) -> np.ndarray:
        """Class probabilities for a design matrix X that includes the bias column."""

    @abstractmethod
    def predict_labels(self, w: np.ndarray, X: np.ndarray) -> np.ndarray:
        """Class predictions for a design matrix X that includes the bias column."""

    @abstractmethod
    def evaluate(self, w: np.ndarray, X: np.ndarray, y: np.ndarray) -> Tuple[float, np.ndarray]:
        """Loss and its gradient with respect to w."""

    @property
    def is_fitted(self) -> bool:
        return self.w is not None

    @property
    def history(self) -> List[float]:
        """Loss after every accepted optimizer step of the run that produced this model."""
        return list(self._history)

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        optimizer: Optional[GradientDescent] = None,
    ) -> "LinearClassifier":
        """
        Train on (X, y) and return a new trained model.

        The bias column is added internally; X holds raw features only.

        Args:
            X: Input features, shape (n_samples,) or (n_samples, n_features)
            y: Class labels 0..K-1, shape (n_samples,)
            optimizer: Minimizer to use, defaults to GradientDescent()

        Returns:
            Trained model; self is left unchanged
        """
        if self.is_fitted:
            raise InvalidStateError("fit called on a model that is already trained")

        X_bias = add_bias_column(X)
        y = check_targets(y, X_bias.shape[0])
        num_classes = count_classes(y)

        sized = self if self.num_classes == num_classes else self.with_class_count(num_classes)
        optimizer = optimizer if optimizer is not None else GradientDescent()

        w0 = sized.initial_parameters(X_bias.shape[1])
        w, history = optimizer.minimize(lambda w: sized.evaluate(w, X_bias, y), w0)

        trained = sized.with_parameters(w)
        trained._history = tuple(history)
        return trained

    def _require_fitted(self) -> np.ndarray:
        if self.w is None:
            raise InvalidStateError("Model has not been fitted. Call fit() first.")
        return self.w

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """
        Return predicted probability distributions.

        Args:
            X: Input features, shape (n_samples,) or (n_samples, n_features)

        Returns:
            Probabilities, shape (n_samples, num_classes)
        """
        w = self._require_fitted()
        return self.probabilities(w, add_bias_column(X))

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Return predicted class labels.

        Args:
            X: Input features, shape (n_samples,) or (n_samples, n_features)

        Returns:
            Class predictions, shape (n_samples,)
        """
        w = self._require_fitted()
        return self.predict_labels(w, add_bias_column(X))

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """Classification accuracy on (X, y)."""
        y_pred = self.predict(X)
        y = check_targets(y, y_pred.shape[0])
        return float(np.mean(y_pred == y))
