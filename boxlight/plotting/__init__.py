from boxlight.plotting.plots import plot_convergence, plot_transfer_matrix

__all__ = ["plot_convergence", "plot_transfer_matrix"]
