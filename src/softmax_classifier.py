"""
Softmax Classifier - multinomial logistic regression with ridge regularization.

Reduced-rank softmax: the last class is the pivot with an implicit score of 0,
so only K - 1 weight columns are learned (see softmax_parameters). Training
minimizes the mean negative log-likelihood plus (lambda / 2) * ||W[1:]||^2,
where row 0 of W (the bias row) is not penalized.

The kernel operations take the parameter vector explicitly so an optimizer can
evaluate trial parameters without building new model instances:

    probabilities(w, X)   -> P, shape (n, K), rows sum to 1
    predict_labels(w, X)  -> argmax of P per row
    loss(w, X, y)         -> regularized negative log-likelihood
    loss_grad(w, X, y)    -> gradient of loss, same shape as w
    evaluate(w, X, y)     -> (loss, gradient) from a single probability pass

Every call is self-contained: nothing computed by one call is reused by the
next, so the kernel can be shared between threads.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from classifier_errors import InvalidArgumentError, InvalidStateError
from linear_classifier import LinearClassifier, check_targets
from softmax_parameters import SoftmaxParameterization

logger = logging.getLogger(__name__)


def pivot_softmax(z: np.ndarray) -> np.ndarray:
    """
    Softmax over K - 1 free scores plus an implicit pivot score of 0.

    Each row is shifted by the larger of its maximum score and the pivot's 0
    before exponentiating, so the largest exponent is exactly 0: no overflow,
    and every row sum is at least 1.

    Args:
        z: Scores of the free classes, shape (n, K - 1)

    Returns:
        Probabilities, shape (n, K), pivot class in the last column
    """
    z = np.asarray(z, dtype=np.float64)
    shift = np.maximum(np.max(z, axis=1, keepdims=True), 0.0)
    exp_z = np.exp(z - shift)
    # pivot: exp(0 - shift)
    exp_pivot = np.exp(-shift)
    unnormalized = np.hstack([exp_z, exp_pivot])
    return unnormalized / np.sum(unnormalized, axis=1, keepdims=True)


def log_pivot_softmax(z: np.ndarray) -> np.ndarray:
    """
    Log of pivot_softmax computed in log space (log-sum-exp).

    Stays finite where pivot_softmax underflows to 0.

    Args:
        z: Scores of the free classes, shape (n, K - 1)

    Returns:
        Log-probabilities, shape (n, K)
    """
    z = np.asarray(z, dtype=np.float64)
    z_full = np.hstack([z, np.zeros((z.shape[0], 1))])
    z_shifted = z_full - np.max(z_full, axis=1, keepdims=True)
    return z_shifted - np.log(np.sum(np.exp(z_shifted), axis=1, keepdims=True))


def l2_penalty(W: np.ndarray, lambda_: float) -> float:
    """L2 regularization penalty: (lambda / 2) * sum(W_ij^2)."""
    return float(0.5 * lambda_ * np.sum(W ** 2))


def l2_gradient(W: np.ndarray, lambda_: float) -> np.ndarray:
    """L2 regularization gradient: lambda * W."""
    return lambda_ * W


class Stage(Enum):
    """Lifecycle stage of a classifier instance."""

    UNTRAINED = "untrained"
    SIZED = "sized"
    TRAINED = "trained"


class SoftmaxClassifier(LinearClassifier):
    """
    Immutable softmax regression model.

    Examples:
        model = SoftmaxClassifier()
        model = SoftmaxClassifier(lambda_=1.5)
        trained = model.fit(X, y)
    """

    def __init__(self, lambda_: Optional[float] = None):
        """
        Args:
            lambda_: L2 regularization strength. Omit for no regularization;
                     an explicit value must be strictly positive.
        """
        if lambda_ is None:
            lambda_ = 0.0
        elif not (np.isfinite(lambda_) and lambda_ > 0):
            raise InvalidArgumentError(
                f"L2 regularization strength must be positive and finite, got {lambda_}"
            )

        self._lambda = float(lambda_)
        self._num_classes: Optional[int] = None
        self._w: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def lambda_(self) -> float:
        return self._lambda

    @property
    def num_classes(self) -> Optional[int]:
        return self._num_classes

    @property
    def w(self) -> Optional[np.ndarray]:
        return self._w

    @property
    def stage(self) -> Stage:
        if self._num_classes is None:
            return Stage.UNTRAINED
        if self._w is None:
            return Stage.SIZED
        return Stage.TRAINED

    def _copy(self, num_classes: Optional[int], w: Optional[np.ndarray]) -> "SoftmaxClassifier":
        clone = SoftmaxClassifier()
        clone._lambda = self._lambda
        clone._num_classes = num_classes
        clone._w = w
        return clone

    def with_class_count(self, num_classes: int) -> "SoftmaxClassifier":
        """
        Return a copy with the number of classes fixed.

        Args:
            num_classes: Number of classes K, at least 2

        Returns:
            New classifier in the SIZED stage
        """
        if self._num_classes is not None:
            raise InvalidStateError(f"num_classes is already set to {self._num_classes}")
        if num_classes < 2:
            raise InvalidArgumentError(f"num_classes must be at least 2, got {num_classes}")

        if num_classes == 2:
            logger.warning(
                "Detected a binary classification problem, "
                "consider using a logistic regression model"
            )
        return self._copy(int(num_classes), self._w)

    def with_parameters(self, w: np.ndarray) -> "SoftmaxClassifier":
        """
        Return a copy holding the parameter vector w.

        Args:
            w: Flat parameter vector, length num_features * (num_classes - 1)

        Returns:
            New classifier in the TRAINED stage
        """
        num_classes = self._require_num_classes()
        w = np.array(w, dtype=np.float64)
        if w.ndim != 1 or w.shape[0] == 0 or w.shape[0] % (num_classes - 1) != 0:
            raise InvalidArgumentError(
                f"parameter vector of shape {w.shape} does not fit {num_classes} classes"
            )
        w.setflags(write=False)
        return self._copy(num_classes, w)

    def _require_num_classes(self) -> int:
        if self._num_classes is None:
            raise InvalidStateError("num_classes is not set; call with_class_count() or fit() first")
        return self._num_classes

    def parameterization(self, num_features: int) -> SoftmaxParameterization:
        """Parameter layout for a design matrix with num_features columns."""
        return SoftmaxParameterization(num_features, self._require_num_classes())

    def initial_parameters(self, num_features: int) -> np.ndarray:
        return self.parameterization(num_features).init_parameters()

    # ------------------------------------------------------------------
    # Probability engine
    # ------------------------------------------------------------------

    def _scores(self, w: np.ndarray, X: np.ndarray) -> Tuple[np.ndarray, np.ndarray, SoftmaxParameterization]:
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise InvalidArgumentError(f"design matrix must be 2-D, got shape {X.shape}")
        if X.shape[0] == 0:
            raise InvalidArgumentError("design matrix must contain at least one sample")
        layout = self.parameterization(X.shape[1])
        W = layout.to_matrix(w)
        # (n, d) @ (d, K-1) -> (n, K-1)
        Z = X @ W
        return Z, W, layout

    def probabilities(self, w: np.ndarray, X: np.ndarray) -> np.ndarray:
        """
        Class probabilities under parameters w.

        Args:
            w: Flat parameter vector
            X: Design matrix including the bias column, shape (n, d)

        Returns:
            Row-stochastic matrix, shape (n, num_classes)
        """
        Z, _, _ = self._scores(w, X)
        return pivot_softmax(Z)

    def predict_labels(self, w: np.ndarray, X: np.ndarray) -> np.ndarray:
        return np.argmax(self.probabilities(w, X), axis=1)

    # ------------------------------------------------------------------
    # Loss and gradient engines
    # ------------------------------------------------------------------

    def _regularized_nll(self, log_P: np.ndarray, y: np.ndarray, W: np.ndarray,
                         layout: SoftmaxParameterization) -> float:
        n = y.shape[0]
        data_loss = -np.sum(log_P[np.arange(n), y]) / n
        return float(data_loss) + l2_penalty(layout.penalized_rows(W), self._lambda)

    def _gradient(self, P: np.ndarray, X: np.ndarray, y: np.ndarray, W: np.ndarray,
                  layout: SoftmaxParameterization) -> np.ndarray:
        n = X.shape[0]
        P_free = P[:, :layout.num_free_classes]

        # Samples of the pivot class keep an all-zero indicator row
        indicator = np.zeros_like(P_free)
        free = y != layout.pivot
        indicator[np.flatnonzero(free), y[free]] = 1.0

        # (d, n) @ (n, K-1) -> (d, K-1)
        G = -(X.T @ (indicator - P_free)) / n
        G_penalized = layout.penalized_rows(G)
        G_penalized += l2_gradient(layout.penalized_rows(W), self._lambda)
        return layout.to_vector(G)

    def loss(self, w: np.ndarray, X: np.ndarray, y: np.ndarray) -> float:
        """
        Regularized negative log-likelihood.

        Args:
            w: Flat parameter vector
            X: Design matrix including the bias column, shape (n, d)
            y: Class labels in [0, num_classes), shape (n,)

        Returns:
            mean(-log P[i, y_i]) + (lambda / 2) * ||W[1:]||^2
        """
        Z, W, layout = self._scores(w, X)
        y = check_targets(y, Z.shape[0], layout.num_classes)
        return self._regularized_nll(log_pivot_softmax(Z), y, W, layout)

    def loss_grad(self, w: np.ndarray, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        """
        Gradient of loss() with respect to w.

        Args:
            w: Flat parameter vector
            X: Design matrix including the bias column, shape (n, d)
            y: Class labels in [0, num_classes), shape (n,)

        Returns:
            Gradient, same shape as w
        """
        Z, W, layout = self._scores(w, X)
        y = check_targets(y, Z.shape[0], layout.num_classes)
        return self._gradient(pivot_softmax(Z), np.asarray(X, dtype=np.float64), y, W, layout)

    def evaluate(self, w: np.ndarray, X: np.ndarray, y: np.ndarray) -> Tuple[float, np.ndarray]:
        """
        Loss and gradient from one pass over the data.

        Returns:
            Tuple of (loss, gradient), equal to (loss(w, X, y), loss_grad(w, X, y))
        """
        Z, W, layout = self._scores(w, X)
        y = check_targets(y, Z.shape[0], layout.num_classes)
        log_P = log_pivot_softmax(Z)
        loss = self._regularized_nll(log_P, y, W, layout)
        grad = self._gradient(np.exp(log_P), np.asarray(X, dtype=np.float64), y, W, layout)
        return loss, grad

    def __repr__(self) -> str:
        return (
            f"SoftmaxClassifier(lambda_={self._lambda}, num_classes={self._num_classes}, "
            f"stage={self.stage.value})"
        )
