import numpy as np
import plotly.graph_objects as go


def build_convergence_figure(history, title="PSO convergence"):
    """
    Line chart of the global best fitness per iteration.
    history: list of (iteration, global_best_fitness) records.
    """
    iterations = np.array([it for it, _ in history], dtype=int)
    values = np.array([fit for _, fit in history], dtype=float)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=iterations,
            y=values,
            mode="lines+markers",
            marker=dict(size=4),
            line=dict(width=2),
            name="Global best",
        )
    )
    if len(values):
        # Mark the final best specially
        fig.add_trace(
            go.Scatter(
                x=[iterations[-1]],
                y=[values[-1]],
                mode="markers",
                marker=dict(size=8, symbol="star", color="red"),
                name=f"Final best ({values[-1]:.4f})",
            )
        )
    fig.update_layout(
        title=title,
        xaxis_title="Iteration",
        yaxis_title="Global best fitness",
    )
    return fig


def plot_convergence(history, output_plot_path, title="PSO convergence"):
    fig = build_convergence_figure(history, title=title)
    fig.write_html(
        output_plot_path,
        auto_open=False,
        include_plotlyjs="cdn",
        config={"responsive": True},
    )
    return output_plot_path
