"""
ASCII plotting for max-weight progress visualization.

Creates terminal-friendly plots of one exercise's max weight over time.
"""

from .selection import ChartPoint


def create_weight_plot(
    points: list[ChartPoint],
    width: int = 60,
    height: int = 16,
    exercise_name: str = "",
    weight_unit: str = "lbs",
    predicted_weight: float | None = None,
) -> str:
    """
    Create an ASCII plot of max weight per session.

    Args:
        points: Chart points, oldest first
        width: Plot width in characters
        height: Plot height in lines
        exercise_name: Display name shown in chart title
        weight_unit: Unit shown on the axis label
        predicted_weight: Suggested next weight; drawn as ○ one column past the last point

    Returns:
        ASCII art string
    """
    if not points:
        return "No weighted sets recorded for this exercise yet."

    min_date = points[0].date
    max_date = points[-1].date
    date_range = (max_date - min_date).days or 1

    values = [p.max_weight for p in points]
    if predicted_weight is not None:
        values.append(predicted_weight)
    y_min = max(0.0, min(values) - 5)
    y_max = max(values) + 5
    y_range = y_max - y_min or 1

    plot_width = width - 8  # Leave room for y-axis labels
    plot_height = height - 3  # Leave room for x-axis and title
    if predicted_weight is not None:
        plot_width -= 2

    grid = [[" " for _ in range(plot_width + 2)] for _ in range(plot_height)]

    def _row(value: float) -> int:
        y = int(((value - y_min) / y_range) * (plot_height - 1))
        return plot_height - 1 - y  # Flip y-axis

    plot_points: list[tuple[int, int]] = []
    for p in points:
        x = int(((p.date - min_date).days / date_range) * (plot_width - 1))
        plot_points.append((x, _row(p.max_weight)))

    # Connecting lines: horizontal run on the earlier row, vertical step at the later column
    for (x1, y1), (x2, y2) in zip(plot_points, plot_points[1:]):
        for x in range(x1 + 1, x2):
            if grid[y1][x] == " ":
                grid[y1][x] = "─"
        for r in range(min(y1, y2) + 1, max(y1, y2)):
            if grid[r][x2] == " ":
                grid[r][x2] = "│"

    for x, y in plot_points:
        grid[y][x] = "●"

    if predicted_weight is not None:
        last_x = plot_points[-1][0]
        grid[_row(predicted_weight)][min(last_x + 2, plot_width + 1)] = "○"

    lines = []
    title = f"Max Weight Progress ({exercise_name})" if exercise_name else "Max Weight Progress"
    lines.append(title)
    lines.append("─" * width)

    for i, row in enumerate(grid):
        y_val = y_max - (i / (plot_height - 1)) * y_range if plot_height > 1 else y_max
        lines.append(f"{y_val:6.0f} ┤" + "".join(row))

    lines.append("─" * width)

    label_line = [" "] * (plot_width + 2)
    mid_date = min_date + (max_date - min_date) / 2
    for x_pos, date in ((0, min_date), (plot_width // 2, mid_date), (plot_width - 6, max_date)):
        for i, c in enumerate(date.strftime("%b %d")):
            if 0 <= x_pos + i < len(label_line):
                label_line[x_pos + i] = c
    lines.append("        " + "".join(label_line))

    legend = f"● max weight ({weight_unit})"
    if predicted_weight is not None:
        legend += f"   ○ suggested next ({predicted_weight:g} {weight_unit})"
    lines.append(legend)

    return "\n".join(lines)
