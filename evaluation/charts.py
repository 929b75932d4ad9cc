"""
Charts for the gender distribution summary.
"""

from pathlib import Path
from typing import Optional, Tuple

from matplotlib.figure import Figure

from evaluation.aggregation import GenderSummary

MALE_COLOR = '#3b82f6'
FEMALE_COLOR = '#ec4899'


def plot_gender_distribution(
    summary: GenderSummary,
    output_path: Optional[str] = None,
    title: str = 'Analysis Summary',
    figsize: Tuple[int, int] = (6, 5)
):
    """
    Plot a Male/Female bar chart with counts and percentages.

    Args:
        summary: Summary to draw
        output_path: Where to save the PNG; the figure is returned either way
        title: Chart title
        figsize: Figure size

    Returns:
        The matplotlib Figure. It is not registered with pyplot, so nothing
        stays open once the caller drops it.
    """
    fig = Figure(figsize=figsize)
    ax = fig.subplots()

    labels = ['Male', 'Female']
    percentages = [summary.male_pct, summary.female_pct]
    counts = [summary.male_count, summary.female_count]

    bars = ax.bar(labels, percentages, color=[MALE_COLOR, FEMALE_COLOR], alpha=0.85)
    ax.set_ylim(0, 100)
    ax.set_ylabel('Share of predictions (%)', fontsize=11)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(axis='y', alpha=0.3)

    for bar, pct, count in zip(bars, percentages, counts):
        ax.text(
            bar.get_x() + bar.get_width() / 2,
            bar.get_height() + 1.5,
            f'{pct:.1f}%\n{count} Eggs',
            ha='center',
            va='bottom',
            fontsize=10
        )

    ax.set_xlabel(f'Total Predictions: {summary.total}', fontsize=11)
    fig.tight_layout()

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=120)

    return fig
