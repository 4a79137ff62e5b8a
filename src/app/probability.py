from __future__ import annotations

from protocol import Die


def win_probability(first: Die, second: Die) -> float:
    """Probability that a throw of `first` beats a throw of `second` (ties count as no win)."""
    wins = sum(1 for a in first.faces for b in second.faces if a > b)
    return wins / (len(first) * len(second))


def format_table(dice: list[Die]) -> str:
    if not dice:
        return "(no dice)"

    corner = "User dice v"
    labels = [str(d) for d in dice]
    label_w = max(len(corner), *(len(lbl) for lbl in labels))
    cell_w = max(7, *(len(lbl) for lbl in labels))

    lines: list[str] = []
    header = f"{corner:<{label_w}}  " + "  ".join(f"{lbl:>{cell_w}}" for lbl in labels)
    lines.append(header)
    lines.append("-" * len(header))
    for i, row_die in enumerate(dice):
        cells = []
        for j, col_die in enumerate(dice):
            cell = "-" if i == j else f"{win_probability(row_die, col_die):.2%}"
            cells.append(f"{cell:>{cell_w}}")
        lines.append(f"{labels[i]:<{label_w}}  " + "  ".join(cells))
    return "\n".join(lines)
