"""
Softmax Classifier Demo - Examples, sklearn comparison, and visualizations.

Generates:
- viz/*.png - Individual visualization files
- report.pdf - Comprehensive PDF report
"""

import logging
import os
import sys
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.colors import ListedColormap
from sklearn.datasets import load_iris, make_blobs
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from gradient_descent import GradientDescent
from linear_classifier import add_bias_column
from softmax_classifier import SoftmaxClassifier

SEED = 42
np.random.seed(SEED)

VIZ_DIR = Path(__file__).parent / "viz"
VIZ_DIR.mkdir(exist_ok=True)


def example_1_three_class_2d():
    """3-class 2D classification with decision boundary visualization."""
    print("=" * 60)
    print("Example 1: 3-Class 2D Classification with Decision Boundaries")
    print("=" * 60)

    X, y = make_blobs(n_samples=300, centers=3, n_features=2,
                      cluster_std=1.0, random_state=SEED)
    X_scaled = StandardScaler().fit_transform(X)

    model = SoftmaxClassifier(lambda_=0.01).fit(X_scaled, y, GradientDescent(learning_rate=0.5))

    accuracy = model.score(X_scaled, y)
    print(f"Training Accuracy: {accuracy:.4f}")
    print(f"Final Loss: {model.history[-1]:.6f}")
    print(f"Accepted steps: {len(model.history) - 1}")

    fig, ax = plt.subplots(figsize=(10, 8))

    x_min, x_max = X_scaled[:, 0].min() - 1, X_scaled[:, 0].max() + 1
    y_min, y_max = X_scaled[:, 1].min() - 1, X_scaled[:, 1].max() + 1
    xx, yy = np.meshgrid(np.linspace(x_min, x_max, 200),
                         np.linspace(y_min, y_max, 200))
    grid_points = np.c_[xx.ravel(), yy.ravel()]

    Z = model.predict(grid_points).reshape(xx.shape)

    colors = ['#e74c3c', '#3498db', '#27ae60']
    cmap_light = ListedColormap(['#fadbd8', '#d4e6f1', '#d5f5e3'])
    cmap_bold = ListedColormap(colors)

    ax.contourf(xx, yy, Z, alpha=0.4, cmap=cmap_light)
    ax.contour(xx, yy, Z, colors='k', linewidths=0.5, alpha=0.5)

    scatter = ax.scatter(X_scaled[:, 0], X_scaled[:, 1], c=y, cmap=cmap_bold,
                         edgecolors='white', s=50, linewidths=0.5)

    ax.set_xlabel("Feature 1 (standardized)")
    ax.set_ylabel("Feature 2 (standardized)")
    ax.set_title(f"Softmax Classifier Decision Boundaries (class 2 = pivot)\nAccuracy: {accuracy:.2%}")
    ax.legend(*scatter.legend_elements(), title="Classes", loc="upper right")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(VIZ_DIR / "01_decision_boundaries.png", dpi=150)
    plt.close(fig)

    print(f"Saved: {VIZ_DIR / '01_decision_boundaries.png'}")

    return {"title": "3-Class Decision Boundaries", "fig_path": VIZ_DIR / "01_decision_boundaries.png",
            "accuracy": accuracy, "final_loss": model.history[-1]}


def example_2_regularization_path():
    """Loss curves and weight norms for increasing lambda."""
    print("\n" + "=" * 60)
    print("Example 2: Ridge Regularization Strength")
    print("=" * 60)

    X, y = make_blobs(n_samples=200, centers=3, n_features=2,
                      cluster_std=1.2, random_state=SEED)
    X_scaled = StandardScaler().fit_transform(X)

    lambdas = [None, 0.01, 0.1, 1.0]
    histories = {}
    norms = {}

    for lam in lambdas:
        label = "0" if lam is None else str(lam)
        model = SoftmaxClassifier(lambda_=lam).fit(X_scaled, y, GradientDescent(n_iterations=500))
        W = model.w.reshape((3, 2), order="F")
        histories[label] = model.history
        norms[label] = float(np.linalg.norm(W[1:]))
        print(f"lambda={label}: Final loss = {model.history[-1]:.6f}, "
              f"||W[1:]|| = {norms[label]:.4f}, Accuracy = {model.score(X_scaled, y):.4f}")

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    colors = ['#e74c3c', '#f39c12', '#27ae60', '#3498db']
    for (label, history), color in zip(histories.items(), colors):
        axes[0].plot(history, label=f'lambda={label}', color=color, linewidth=1.5)

    axes[0].set_xlabel("Accepted step")
    axes[0].set_ylabel("Regularized NLL")
    axes[0].set_title("Training Loss")
    axes[0].legend()
    axes[0].grid(True, alpha=0.3)

    axes[1].bar(list(norms.keys()), list(norms.values()), color=colors, alpha=0.8)
    axes[1].set_xlabel("lambda")
    axes[1].set_ylabel("||W[1:]|| (bias row excluded)")
    axes[1].set_title("Weight Norm vs Regularization")
    axes[1].grid(True, alpha=0.3, axis='y')

    fig.tight_layout()
    fig.savefig(VIZ_DIR / "02_regularization.png", dpi=150)
    plt.close(fig)

    print(f"Saved: {VIZ_DIR / '02_regularization.png'}")

    return {"title": "Regularization Strength", "fig_path": VIZ_DIR / "02_regularization.png",
            "final_losses": {k: v[-1] for k, v in histories.items()}, "norms": norms}


def example_3_gradient_check():
    """Analytical gradient vs central differences on a small problem."""
    print("\n" + "=" * 60)
    print("Example 3: Gradient Check")
    print("=" * 60)

    rng = np.random.RandomState(SEED)
    X = add_bias_column(rng.randn(8, 3))
    y = np.arange(8) % 4
    model = SoftmaxClassifier(lambda_=0.1).with_class_count(4)
    w = rng.randn(model.parameterization(X.shape[1]).size)

    loss, analytical = model.evaluate(w, X, y)
    eps = 1e-6
    numerical = np.zeros_like(w)
    for i in range(w.shape[0]):
        step = np.zeros_like(w)
        step[i] = eps
        numerical[i] = (model.loss(w + step, X, y) - model.loss(w - step, X, y)) / (2 * eps)

    max_err = float(np.max(np.abs(analytical - numerical)))
    print(f"Loss: {loss:.6f}")
    print(f"Parameters: {w.shape[0]} (4 features x 3 free classes)")
    print(f"Max |analytical - numerical|: {max_err:.2e}")

    fig, ax = plt.subplots(figsize=(10, 5))
    idx = np.arange(w.shape[0])
    ax.bar(idx - 0.2, analytical, 0.4, label='Analytical', color='steelblue', alpha=0.8)
    ax.bar(idx + 0.2, numerical, 0.4, label='Central difference', color='coral', alpha=0.8)
    ax.set_xlabel("Parameter index (column-major, 4 per class)")
    ax.set_ylabel("dLoss/dw")
    ax.set_title(f"Gradient Check (max error {max_err:.1e})")
    ax.legend()
    ax.grid(True, alpha=0.3, axis='y')

    fig.tight_layout()
    fig.savefig(VIZ_DIR / "03_gradient_check.png", dpi=150)
    plt.close(fig)

    print(f"Saved: {VIZ_DIR / '03_gradient_check.png'}")

    return {"title": "Gradient Check", "fig_path": VIZ_DIR / "03_gradient_check.png",
            "max_err": max_err}


def example_4_sklearn_comparison():
    """Compare against sklearn's multinomial LogisticRegression on Iris."""
    print("\n" + "=" * 60)
    print("Example 4: Sklearn Comparison (Iris)")
    print("=" * 60)

    iris = load_iris()
    X_train, X_test, y_train, y_test = train_test_split(
        iris.data, iris.target, test_size=0.3, random_state=SEED, stratify=iris.target
    )
    scaler = StandardScaler()
    X_train_scaled = scaler.fit_transform(X_train)
    X_test_scaled = scaler.transform(X_test)

    model = SoftmaxClassifier(lambda_=0.01).fit(
        X_train_scaled, y_train, GradientDescent(learning_rate=1.0, n_iterations=3000)
    )
    our_train_acc = model.score(X_train_scaled, y_train)
    our_test_acc = model.score(X_test_scaled, y_test)
    our_probs = model.predict_proba(X_test_scaled)

    # sklearn penalizes all K weight columns with C = 1 / (n * lambda)
    sklearn_model = LogisticRegression(C=1.0 / (len(y_train) * 0.01), max_iter=5000)
    sklearn_model.fit(X_train_scaled, y_train)
    sklearn_train_acc = sklearn_model.score(X_train_scaled, y_train)
    sklearn_test_acc = sklearn_model.score(X_test_scaled, y_test)
    sklearn_probs = sklearn_model.predict_proba(X_test_scaled)

    print("Our Implementation:")
    print(f"  Train Accuracy: {our_train_acc:.4f}")
    print(f"  Test Accuracy:  {our_test_acc:.4f}")
    print("\nSklearn LogisticRegression:")
    print(f"  Train Accuracy: {sklearn_train_acc:.4f}")
    print(f"  Test Accuracy:  {sklearn_test_acc:.4f}")

    prob_diff = np.abs(our_probs - sklearn_probs)
    print("\nProbability Difference Statistics:")
    print(f"  Mean: {prob_diff.mean():.6f}")
    print(f"  Max:  {prob_diff.max():.6f}")

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    axes[0].bar(['Ours', 'Sklearn'], [our_test_acc, sklearn_test_acc],
                color=['steelblue', 'coral'], alpha=0.8)
    axes[0].set_ylim(0, 1.05)
    axes[0].set_ylabel("Test Accuracy")
    axes[0].set_title("Iris Test Accuracy")
    axes[0].grid(True, alpha=0.3, axis='y')

    axes[1].scatter(sklearn_probs.ravel(), our_probs.ravel(), alpha=0.5, s=10, color='steelblue')
    axes[1].plot([0, 1], [0, 1], 'k--', linewidth=1)
    axes[1].set_xlabel("Sklearn probability")
    axes[1].set_ylabel("Our probability")
    axes[1].set_title("Predicted Probabilities")
    axes[1].grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(VIZ_DIR / "04_sklearn_comparison.png", dpi=150)
    plt.close(fig)

    print(f"Saved: {VIZ_DIR / '04_sklearn_comparison.png'}")

    return {"title": "Sklearn Comparison", "fig_path": VIZ_DIR / "04_sklearn_comparison.png",
            "our_test_acc": our_test_acc, "sklearn_test_acc": sklearn_test_acc,
            "mean_prob_diff": float(prob_diff.mean())}


def generate_pdf_report(results):
    """Generate comprehensive PDF report."""
    print("\n" + "=" * 60)
    print("Generating PDF Report")
    print("=" * 60)

    report_path = Path(__file__).parent / "report.pdf"

    with PdfPages(report_path) as pdf:
        fig, ax = plt.subplots(figsize=(8.5, 11))
        ax.axis('off')

        ax.text(0.5, 0.7, "Softmax Classifier\nDemo Report", transform=ax.transAxes, fontsize=24,
                ha='center', va='center', fontweight='bold')

        subtitle = (
            "Pivot-class softmax regression with ridge regularization\n\n"
            "Topics Covered:\n"
            "- Decision boundary visualization\n"
            "- Regularization strength and weight norms\n"
            "- Analytical vs numerical gradient\n"
            "- Sklearn comparison on Iris"
        )
        ax.text(0.5, 0.4, subtitle, transform=ax.transAxes, fontsize=12,
                ha='center', va='center')
        ax.text(0.5, 0.1, f"SEED = {SEED} for reproducibility", transform=ax.transAxes,
                fontsize=10, ha='center', va='center', style='italic', color='gray')

        pdf.savefig(fig)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(8.5, 11))
        ax.axis('off')
        ax.text(0.5, 0.95, "Summary of Results", transform=ax.transAxes, fontsize=18,
                ha='center', va='top', fontweight='bold')

        summary_lines = []

        if 'example_1' in results:
            r = results['example_1']
            summary_lines.append("1. 3-Class Decision Boundaries")
            summary_lines.append(f"   - Training Accuracy: {r['accuracy']:.2%}")
            summary_lines.append(f"   - Final Loss: {r['final_loss']:.6f}")
            summary_lines.append("")

        if 'example_2' in results:
            r = results['example_2']
            summary_lines.append("2. Regularization Strength")
            for lam, loss in r['final_losses'].items():
                summary_lines.append(f"   - lambda={lam}: Loss = {loss:.6f}, ||W[1:]|| = {r['norms'][lam]:.4f}")
            summary_lines.append("")

        if 'example_3' in results:
            summary_lines.append("3. Gradient Check")
            summary_lines.append(f"   - Max error: {results['example_3']['max_err']:.2e}")
            summary_lines.append("")

        if 'example_4' in results:
            r = results['example_4']
            summary_lines.append("4. Sklearn Comparison")
            summary_lines.append(f"   - Our Test Accuracy: {r['our_test_acc']:.4f}")
            summary_lines.append(f"   - Sklearn Test Accuracy: {r['sklearn_test_acc']:.4f}")
            summary_lines.append(f"   - Mean Probability Difference: {r['mean_prob_diff']:.6f}")

        ax.text(0.1, 0.85, "\n".join(summary_lines), transform=ax.transAxes, fontsize=11,
                ha='left', va='top', family='monospace')

        pdf.savefig(fig)
        plt.close(fig)

        for key in ['example_1', 'example_2', 'example_3', 'example_4']:
            if key in results:
                r = results[key]
                img = plt.imread(r['fig_path'])

                fig, ax = plt.subplots(figsize=(11, 8.5))
                ax.imshow(img)
                ax.axis('off')
                ax.set_title(r['title'], fontsize=14, fontweight='bold', pad=10)

                fig.tight_layout()
                pdf.savefig(fig)
                plt.close(fig)

    print(f"Saved: {report_path}")
    return report_path


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("SOFTMAX CLASSIFIER - DEMO")
    print("=" * 60)
    print(f"SEED = {SEED}")
    print(f"Output directory: {VIZ_DIR}")
    print()

    results = {}

    results['example_1'] = example_1_three_class_2d()
    results['example_2'] = example_2_regularization_path()
    results['example_3'] = example_3_gradient_check()
    results['example_4'] = example_4_sklearn_comparison()

    report_path = generate_pdf_report(results)

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)
    print("\nGenerated files:")
    for png_file in sorted(VIZ_DIR.glob("*.png")):
        print(f"  - {png_file}")
    print(f"  - {report_path}")


if __name__ == "__main__":
    main()
