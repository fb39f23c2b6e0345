from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib
matplotlib.use("Agg")  # headless-safe for servers/CI
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402


def _ensure_parent(path: Path) -> Path:
    path = Path(path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def plot_convergence(history: Sequence[float], out_path: Path, title: str = "Total scene light") -> Path:
    """
    Save total light per solver pass, with the relative change on a log axis.
    """
    values = np.asarray(list(history), dtype=float)
    if values.size == 0:
        raise ValueError("Need at least one solver pass to plot convergence")
    out_path = _ensure_parent(out_path)

    passes = np.arange(1, values.size + 1)
    fig, (ax_total, ax_change) = plt.subplots(2, 1, figsize=(6.5, 5.5), sharex=True)
    ax_total.plot(passes, values, marker="o", markersize=3)
    ax_total.set_ylabel("total light")
    ax_total.set_title(title)
    ax_total.grid(True, alpha=0.3)

    if values.size > 1:
        prev = np.concatenate(([0.0], values[:-1]))
        with np.errstate(divide="ignore", invalid="ignore"):
            change = np.abs(prev / values - 1.0)
        change = np.where(np.isfinite(change) & (change > 0.0), change, np.nan)
        ax_change.semilogy(passes, change, marker="o", markersize=3, color="tab:orange")
    ax_change.set_xlabel("pass")
    ax_change.set_ylabel("relative change")
    ax_change.grid(True, which="both", alpha=0.3)

    fig.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path


def plot_transfer_matrix(transfers: np.ndarray, out_path: Path, title: str = "Transfer matrix") -> Path:
    """
    Save the transfer matrix as an image (receivers down, sources across).
    """
    T = np.asarray(transfers, dtype=float)
    if T.ndim != 2 or T.shape[0] != T.shape[1] or T.size == 0:
        raise ValueError(f"transfer matrix must be square and non-empty, got shape {T.shape}")
    out_path = _ensure_parent(out_path)

    fig, ax = plt.subplots(figsize=(6.0, 5.0))
    im = ax.imshow(T, cmap="inferno", interpolation="nearest", aspect="equal")
    ax.set_title(title)
    ax.set_xlabel("source element j")
    ax.set_ylabel("receiver element i")
    cbar = fig.colorbar(im, ax=ax)
    cbar.set_label("T[i, j]")
    fig.text(0.01, 0.01, f"max row sum={T.sum(axis=1).max():.3f}", fontsize=8)
    fig.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path
