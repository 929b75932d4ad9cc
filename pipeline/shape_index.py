"""
Egg shape index.

The shape index is the short axis expressed as a percentage of the long
axis. Rounder eggs score higher. Callers validate the measurements first;
this function does no checking and no rounding.
"""


def derive(long_axis_mm: float, short_axis_mm: float) -> float:
    """
    Compute the shape index of an egg.

    Args:
        long_axis_mm: Length of the egg, strictly positive
        short_axis_mm: Width of the egg, strictly positive and below the length

    Returns:
        (short_axis_mm / long_axis_mm) * 100
    """
    return (short_axis_mm / long_axis_mm) * 100


def format_shape_index(shape_index: float) -> str:
    """Two-decimal display form, e.g. '74.32'."""
    return f"{shape_index:.2f}"
