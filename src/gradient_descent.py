"""
Gradient Descent - full-batch minimizer with step-size backoff.

Drives any objective that returns its value and gradient together. A step
that would increase the objective (or make it non-finite) is rejected and the
step size is shrunk, so a learning rate that is too large for the problem
degrades gracefully instead of diverging.
"""

import logging
from typing import Callable, List, Tuple

import numpy as np

from classifier_errors import InvalidArgumentError

logger = logging.getLogger(__name__)

Objective = Callable[[np.ndarray], Tuple[float, np.ndarray]]


class GradientDescent:
    """Gradient descent on a flat parameter vector."""

    def __init__(
        self,
        learning_rate: float = 0.5,
        n_iterations: int = 1000,
        tolerance: float = 1e-7,
        backoff: float = 0.5,
        min_learning_rate: float = 1e-10,
    ):
        """
        Args:
            learning_rate: Initial step size
            n_iterations: Maximum number of iterations, accepted or rejected
            tolerance: Convergence threshold (stop if loss decrease < tolerance)
            backoff: Factor in (0, 1) applied to the step size after a rejected step
            min_learning_rate: Stop once the step size falls below this value
        """
        if not learning_rate > 0:
            raise InvalidArgumentError(f"learning_rate must be positive, got {learning_rate}")
        if n_iterations < 1:
            raise InvalidArgumentError(f"n_iterations must be at least 1, got {n_iterations}")
        if not tolerance >= 0:
            raise InvalidArgumentError(f"tolerance must be non-negative, got {tolerance}")
        if not 0 < backoff < 1:
            raise InvalidArgumentError(f"backoff must be in (0, 1), got {backoff}")
        if not 0 < min_learning_rate < learning_rate:
            raise InvalidArgumentError(
                f"min_learning_rate must be in (0, learning_rate), got {min_learning_rate}"
            )

        self.learning_rate = learning_rate
        self.n_iterations = n_iterations
        self.tolerance = tolerance
        self.backoff = backoff
        self.min_learning_rate = min_learning_rate

    def minimize(self, objective: Objective, w0: np.ndarray) -> Tuple[np.ndarray, List[float]]:
        """
        Minimize the objective starting from w0.

        Args:
            objective: Callable mapping w to (loss, gradient), gradient shaped like w
            w0: Initial parameters, shape (d,)

        Returns:
            Tuple of (w, history) where history holds the loss after every accepted step,
            starting with the loss at w0
        """
        w = np.array(w0, dtype=np.float64)
        loss, grad = objective(w)
        history = [float(loss)]
        lr = self.learning_rate

        for iteration in range(self.n_iterations):
            candidate = w - lr * grad
            candidate_loss, candidate_grad = objective(candidate)

            if not np.isfinite(candidate_loss) or candidate_loss > loss:
                lr *= self.backoff
                logger.debug("iteration %d: step rejected, learning rate -> %.3g", iteration, lr)
                if lr < self.min_learning_rate:
                    logger.info("stopping after %d iterations: step size underflow", iteration + 1)
                    break
                continue

            improvement = loss - candidate_loss
            w, loss, grad = candidate, candidate_loss, candidate_grad
            history.append(float(loss))

            if iteration % 100 == 0:
                logger.debug("iteration %d: loss = %.6f", iteration, loss)

            if improvement < self.tolerance:
                logger.info("converged after %d iterations, loss = %.6f", iteration + 1, loss)
                break

        return w, history
