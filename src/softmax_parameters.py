"""
Softmax Parameterization - reduced-rank, pivot-class parameter layout.

Softmax probabilities are invariant to adding the same constant to every
class score, so one class (the pivot) can be fixed at a score of 0 and given
no parameters at all. With d features (bias included) and K classes the model
therefore has d * (K - 1) free weights.

Layout of the flattened parameter vector is column-major: the d weights of
free class k occupy w[k * d:(k + 1) * d], and the first entry of each class
column is the bias weight. Viewed as a (d, K - 1) matrix, row 0 is the bias
row and is never regularized.
"""

from typing import Sequence, Union

import numpy as np

from classifier_errors import InvalidArgumentError

ArrayLike = Union[np.ndarray, Sequence[float]]


class SoftmaxParameterization:
    """Maps between the flat parameter vector and per-class weight columns."""

    def __init__(self, num_features: int, num_classes: int):
        """
        Args:
            num_features: Number of columns of the design matrix, bias included
            num_classes: Number of classes K, at least 2
        """
        if num_features < 1:
            raise InvalidArgumentError(f"num_features must be at least 1, got {num_features}")
        if num_classes < 2:
            raise InvalidArgumentError(f"num_classes must be at least 2, got {num_classes}")

        self._num_features = int(num_features)
        self._num_classes = int(num_classes)

    @property
    def num_features(self) -> int:
        return self._num_features

    @property
    def num_classes(self) -> int:
        return self._num_classes

    @property
    def pivot(self) -> int:
        """Index of the class with an implicit score of 0 (the last class)."""
        return self._num_classes - 1

    @property
    def num_free_classes(self) -> int:
        return self._num_classes - 1

    @property
    def shape(self):
        return self._num_features, self.num_free_classes

    @property
    def size(self) -> int:
        return self._num_features * self.num_free_classes

    def check_vector(self, w: ArrayLike) -> np.ndarray:
        """
        Validate a flat parameter vector against this layout.

        Args:
            w: Parameter vector, shape (size,)

        Returns:
            The vector as a float64 array

        Raises:
            InvalidArgumentError: If w is not 1-D or has the wrong length
        """
        w = np.asarray(w, dtype=np.float64)
        if w.ndim != 1:
            raise InvalidArgumentError(f"parameter vector must be 1-D, got shape {w.shape}")
        if w.shape[0] != self.size:
            raise InvalidArgumentError(
                f"expected {self.size} parameters "
                f"({self._num_features} features x {self.num_free_classes} free classes), "
                f"got {w.shape[0]}"
            )
        return w

    def to_matrix(self, w: ArrayLike) -> np.ndarray:
        """
        View the flat vector as a (num_features, num_classes - 1) matrix.

        Args:
            w: Parameter vector, shape (size,)

        Returns:
            Weight matrix, column k holds the weights of class k
        """
        w = self.check_vector(w)
        return w.reshape(self.shape, order="F")

    def to_vector(self, W: np.ndarray) -> np.ndarray:
        """
        Flatten a (num_features, num_classes - 1) matrix, column-major.

        Args:
            W: Weight or gradient matrix

        Returns:
            Flat vector, shape (size,)
        """
        W = np.asarray(W, dtype=np.float64)
        if W.shape != self.shape:
            raise InvalidArgumentError(f"expected matrix of shape {self.shape}, got {W.shape}")
        return W.ravel(order="F")

    def class_weights(self, w: ArrayLike, k: int) -> np.ndarray:
        """
        Weights of a single class; the pivot class has all-zero weights.

        Args:
            w: Parameter vector, shape (size,)
            k: Class index in [0, num_classes)

        Returns:
            Weight column, shape (num_features,)
        """
        if not 0 <= k < self._num_classes:
            raise InvalidArgumentError(f"class index {k} out of range [0, {self._num_classes})")
        if k == self.pivot:
            return np.zeros(self._num_features)
        w = self.check_vector(w)
        return w[k * self._num_features:(k + 1) * self._num_features].copy()

    def penalized_rows(self, W: np.ndarray) -> np.ndarray:
        """
        Rows of the weight matrix subject to L2 regularization (all but the bias row).

        Returns a view: in-place updates on the result write through to W.
        """
        return W[1:, :]

    def init_parameters(self) -> np.ndarray:
        return np.zeros(self.size)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SoftmaxParameterization):
            return NotImplemented
        return self.shape == other.shape

    def __hash__(self) -> int:
        return hash(self.shape)

    def __repr__(self) -> str:
        return (
            f"SoftmaxParameterization(num_features={self._num_features}, "
            f"num_classes={self._num_classes})"
        )
