"""
Weekly Points Report
Reads an Asana task export (CSV) and a meeting-time log (Excel), converts effort
into points, and outputs completed-work, allocation, and outstanding-task charts
for one reporting week as PNGs.

Features:
  - Free-text effort labels parsed into points (1 hour = 0.5 points)
  - Meeting time folded into each team member's week
  - Allocation against a 20-point (40-hour) weekly capacity with target bands
  - Per-member avatar images on the allocation chart
  - Table of tasks yet to be completed, sorted by member, workstream and due date
  - JSON config overrides and a meeting-tracking Excel template
"""

import argparse
import io
import json
import math
import os
import re
import sys
import zipfile
from contextlib import redirect_stdout
from dataclasses import dataclass, field, fields
from datetime import datetime

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.offsetbox import AnnotationBbox, OffsetImage
from matplotlib.ticker import MultipleLocator
import numpy as np
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.datavalidation import DataValidation


# ── Constants ────────────────────────────────────────────────────────────────

_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_TASKS_INPUT = os.path.join(_DIR, "All_Projects.csv")
DEFAULT_MEETINGS_INPUT = os.path.join(_DIR, "meeting tracking.xlsx")
DEFAULT_MEETINGS_SHEET = "Sheet1"
DEFAULT_OUTDIR = os.path.join(_DIR, "output")

COMPLETED_FILENAME = "completed_this_week.png"
ALLOCATION_FILENAME = "allocated_this_week.png"
UNCOMPLETED_FILENAME = "uncompleted_this_week.png"
SUMMARY_FILENAME = "summary.txt"

CAPACITY_POINTS = 20          # one 40-hour week
HOURS_PER_POINT = 2
DEFAULT_EFFORT = 0.5          # hours, before conversion to points
MEETINGS_WORKSTREAM = "Meetings"
UNASSIGNED_LABEL = "(unassigned)"

BELOW_TARGET_THRESHOLD = 0.75
ABOVE_TARGET_THRESHOLD = 1.0
BAND_COLORS = {
    "Below Target": "#FFDAB9",
    "On Target": "#90EE90",
    "Above Target": "#F08080",
}

# Source headers after clean_column_name(), mapped to canonical names.
TASK_RENAMES = {
    "task_id": "id",
    "section_column": "section",
    "effort_level": "effort_label",
}
MEETING_RENAMES = {
    "assignee_nickname": "assignee",
    "section_column": "section",
}
TASK_COLUMNS = ["id", "created_at", "completed_at", "name", "section",
                "assignee", "due_date", "effort_label", "workstream"]
MEETING_COLUMNS = ["assignee", "section", "hours"]

COMPLETED_COLUMNS = ["assignee", "workstream", "points"]
ALLOCATION_COLUMNS = ["assignee", "points", "percent"]
DETAIL_COLUMNS = ["assignee", "workstream", "effort_label", "name", "due_date"]
DETAIL_HEADERS = {
    "assignee": "Name",
    "workstream": "Workstream",
    "effort_label": "Effort Level",
    "name": "Task",
    "due_date": "Due Date",
}

# Assigned in workstream display order, so Meetings gets the first color by default.
WORKSTREAM_PALETTE = [
    "#1696d2", "#55b748", "#ec008b", "#fdbf11", "#d2d2d2",
    "#0a4c6a", "#db2b27", "#98cf90", "#a2d4ec", "#332d2f",
]

STYLE = {
    "title_size": 12,
    "subtitle_size": 9,
    "label_size": 9,
    "tick_size": 8.5,
    "small_size": 7.5,
    "table_font_size": 8.5,
    "bg_color": "#FFFFFF",
    "text_primary": "#000000",
    "text_secondary": "#555555",
    "text_muted": "#999999",
    "grid_color": "#DEDDDD",
    "capacity_line_color": "#000000",
    "marker_color": "#1696d2",
    "band_alpha": 0.35,
    "bar_height": 0.65,
    "avatar_size": 0.08,      # fraction of figure height
    "table_header_bg": "#1696d2",
    "table_row_shade": "#F5F5F5",
}

MEETING_TEMPLATE_HEADERS = ["Assignee Nickname", "Section/Column", "Workstream", "Hours", "Notes"]


# ── Configuration ────────────────────────────────────────────────────────────

@dataclass
class ReportConfig:
    """Options passed explicitly to the aggregation and chart functions."""

    capacity: float = CAPACITY_POINTS
    default_effort: float = DEFAULT_EFFORT
    below_target: float = BELOW_TARGET_THRESHOLD
    above_target: float = ABOVE_TARGET_THRESHOLD
    assignee_order: list = field(default_factory=list)
    workstream_order: list = field(default_factory=lambda: [MEETINGS_WORKSTREAM])
    workstream_colors: dict = field(default_factory=dict)
    avatars: dict = field(default_factory=dict)
    team: list = field(default_factory=list)
    fig_width: float = 8
    fig_height: float = 6
    dpi: int = 150
    font_family: list = field(default_factory=lambda: ["Lato", "DejaVu Sans"])


NUMERIC_CONFIG_FIELDS = ["capacity", "default_effort", "below_target", "above_target",
                         "dpi", "fig_width", "fig_height"]


def load_config(path):
    """Load ReportConfig overrides from a JSON object.

    Unknown keys are reported and ignored. Relative avatar paths are resolved
    against the directory holding the config file.
    """
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object, got {type(data).__name__}")

    known = {f.name for f in fields(ReportConfig)}
    overrides = {}
    for key, value in data.items():
        if key not in known:
            print(f"  WARNING: Unknown config key '{key}' in {path}, ignoring.")
            continue
        overrides[key] = value
    config = ReportConfig(**overrides)

    base = os.path.dirname(os.path.abspath(path))
    config.avatars = {
        name: image if os.path.isabs(image) else os.path.join(base, image)
        for name, image in config.avatars.items()
    }
    return config


def validate_config(config):
    """Return a list of error strings for settings that would break the report."""
    errors = []
    for name in NUMERIC_CONFIG_FIELDS:
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            errors.append(f"{name} must be a number, got {value!r}.")
    if errors:
        return errors

    if config.capacity <= 0:
        errors.append(f"capacity must be positive, got {config.capacity}.")
    if config.default_effort < 0:
        errors.append(f"default_effort must not be negative, got {config.default_effort}.")
    if not 0 < config.below_target <= config.above_target:
        errors.append(f"Band thresholds must satisfy 0 < below_target <= above_target "
                      f"(got {config.below_target} and {config.above_target}).")
    if config.dpi <= 0:
        errors.append(f"dpi must be positive, got {config.dpi}.")
    if config.fig_width <= 0 or config.fig_height <= 0:
        errors.append(f"Figure size must be positive, got {config.fig_width} x {config.fig_height}.")
    return errors


# ── Errors ───────────────────────────────────────────────────────────────────

class MissingColumnError(ValueError):
    """A source table lacks one or more required columns."""

    def __init__(self, source, missing, found):
        self.source = source
        self.missing = sorted(missing)
        self.found = list(found)
        super().__init__(
            f"{source} is missing column(s): {', '.join(self.missing)}. "
            f"Found: {', '.join(self.found) or '(none)'}"
        )


# ── Helpers ──────────────────────────────────────────────────────────────────

def clean_str(val):
    """Return stripped string or empty string for NaN/None/NaT."""
    if val is None or val is pd.NaT or (isinstance(val, float) and math.isnan(val)):
        return ""
    return str(val).strip()


def clean_column_name(name):
    """Snake-case a header: 'Section/Column' -> 'section_column', 'createdAt' -> 'created_at'."""
    text = clean_str(name)
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    text = re.sub(r"[^0-9A-Za-z]+", "_", text)
    return text.strip("_").lower()


def clean_names(df):
    """Return a copy of df with snake-cased headers. Repeated names get _2, _3 suffixes."""
    seen = {}
    columns = []
    for col in df.columns:
        name = clean_column_name(col) or "x"
        seen[name] = seen.get(name, 0) + 1
        columns.append(name if seen[name] == 1 else f"{name}_{seen[name]}")
    out = df.copy()
    out.columns = columns
    return out


def require_columns(df, required, source):
    """Raise MissingColumnError if any required column is absent from df."""
    missing = set(required) - set(df.columns)
    if missing:
        raise MissingColumnError(source, missing, df.columns)


def order_categories(values, preferred=()):
    """Preferred names first (when present), then the rest alphabetically."""
    present = list(dict.fromkeys(values))
    head = [v for v in preferred if v in present]
    tail = sorted(v for v in present if v not in head)
    return head + tail


def workstream_colors(workstreams, config):
    """Map each workstream to its configured color, or the next palette color."""
    colors = {}
    palette_idx = 0
    for name in workstreams:
        if name in config.workstream_colors:
            colors[name] = config.workstream_colors[name]
            continue
        colors[name] = WORKSTREAM_PALETTE[palette_idx % len(WORKSTREAM_PALETTE)]
        palette_idx += 1
    return colors


def capacity_band(percent, below_target=BELOW_TARGET_THRESHOLD, above_target=ABOVE_TARGET_THRESHOLD):
    """Classify an allocation percent (1.0 == full capacity) into a target band."""
    if percent < below_target:
        return "Below Target"
    if percent <= above_target:
        return "On Target"
    return "Above Target"


def format_percent(percent):
    """0.8612 -> '86%'. Rounded to two decimals before display."""
    return f"{round(percent, 2) * 100:.0f}%"


def capacity_label(capacity):
    return f"{capacity:g} points = {capacity * HOURS_PER_POINT:g} hours"


def effort_note(config):
    return (f"Note: 1 hour = {1 / HOURS_PER_POINT:g} points. Tasks with a missing level of "
            f"effort were assigned {config.default_effort / HOURS_PER_POINT:g} points.")


class _TeeWriter:
    """Write to two streams simultaneously (for summary.txt capture)."""
    def __init__(self, a, b):
        self.a, self.b = a, b
    def write(self, data):
        self.a.write(data)
        self.b.write(data)
    def flush(self):
        self.a.flush()
        self.b.flush()


# ── Point Normalization ──────────────────────────────────────────────────────

_PARENTHETICAL_RE = re.compile(r"\([^)]+\)")


def parse_effort(label):
    """Parse a free-text effort label into hours, ignoring parenthetical notes.

    '(hrs) 3' -> 3.0, '1.5 (hours)' -> 1.5. Returns None when nothing numeric
    remains ('', 'abc', '(hrs)') or the number is negative or not finite.
    """
    text = _PARENTHETICAL_RE.sub("", clean_str(label)).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def effort_points(label, default_effort=DEFAULT_EFFORT):
    """Convert an effort label to points, substituting default_effort when unparseable."""
    hours = parse_effort(label)
    if hours is None:
        hours = default_effort
    return hours / HOURS_PER_POINT


def hours_to_points(hours):
    return hours / HOURS_PER_POINT


def malformed_effort_labels(labels):
    """Count labels that carry text but no parseable number, e.g. 'abc' or 'TBD (hrs)'.

    Blank labels and unit-only labels like '(hrs)' count as missing, not malformed.
    """
    counts = {}
    for label in labels:
        text = clean_str(label)
        if not _PARENTHETICAL_RE.sub("", text).strip():
            continue
        if parse_effort(text) is None:
            counts[text] = counts.get(text, 0) + 1
    return counts


# ── Data Loading ─────────────────────────────────────────────────────────────

def load_tasks(filepath, default_effort=DEFAULT_EFFORT):
    """Load the task export CSV as canonical task rows with a points column.

    Every cell is read as text so a blank completed_at stays '' instead of NaN.
    Rows with an empty section have not been triaged into a week and are dropped.
    """
    df = pd.read_csv(filepath, dtype=str, keep_default_na=False)
    df = clean_names(df).rename(columns=TASK_RENAMES)
    require_columns(df, TASK_COLUMNS, f"Task export {os.path.basename(filepath)}")
    for col in df.columns:
        df[col] = df[col].map(clean_str)

    before = len(df)
    df = df[df["section"] != ""].reset_index(drop=True)
    if len(df) < before:
        print(f"  Skipped {before - len(df)} task(s) with no section")

    for label, count in sorted(malformed_effort_labels(df["effort_label"]).items()):
        print(f"  WARNING: Effort level {label!r} is not a number ({count} task{'s' if count != 1 else ''}); "
              f"using the default of {default_effort:g} hours.")

    df["points"] = df["effort_label"].map(lambda label: effort_points(label, default_effort)).astype(float)
    return df


def load_meetings(filepath, sheet_name=DEFAULT_MEETINGS_SHEET):
    """Load meeting time from one sheet of the tracking workbook.

    Hours become points under the 'Meetings' workstream. Rows whose hours are
    blank, non-numeric or negative are reported and skipped, as are rows with
    no section.
    """
    df = pd.read_excel(filepath, sheet_name=sheet_name, engine="openpyxl")
    df = df.dropna(how="all")
    df = clean_names(df).rename(columns=MEETING_RENAMES)
    require_columns(df, MEETING_COLUMNS, f"Meeting log {os.path.basename(filepath)} [{sheet_name}]")

    hours = pd.to_numeric(df["hours"], errors="coerce")
    bad = hours.isna() | (hours < 0)
    for idx in df.index[bad]:
        print(f"  WARNING: Meeting row {idx + 2}: invalid hours {clean_str(df.at[idx, 'hours'])!r}, skipping.")

    meetings = pd.DataFrame({
        "assignee": df["assignee"].map(clean_str),
        "section": df["section"].map(clean_str),
        "workstream": MEETINGS_WORKSTREAM,
        "hours": hours.astype(float),
    })
    meetings = meetings.loc[~bad].reset_index(drop=True)

    before = len(meetings)
    meetings = meetings[meetings["section"] != ""].reset_index(drop=True)
    if len(meetings) < before:
        print(f"  Skipped {before - len(meetings)} meeting(s) with no section")
    meetings["points"] = hours_to_points(meetings["hours"])
    return meetings


def available_periods(tasks):
    """Distinct section labels in the order they first appear."""
    return list(dict.fromkeys(tasks["section"]))


# ── Aggregation ──────────────────────────────────────────────────────────────

def _empty_frame(columns):
    return pd.DataFrame({
        col: pd.Series(dtype=float if col in ("points", "percent") else object)
        for col in columns
    })


def _sum_points(rows, keys):
    summed = rows.groupby(keys, as_index=False, sort=False)["points"].sum()
    summed["points"] = summed["points"].astype(float)
    return summed.sort_values(keys, kind="mergesort").reset_index(drop=True)


def period_tasks(tasks, period):
    """Every task in the reporting period, completed or not."""
    return tasks[tasks["section"] == period].reset_index(drop=True)


def _is_completed(tasks):
    return tasks["completed_at"].map(clean_str) != ""


def completed_tasks(tasks, period):
    rows = period_tasks(tasks, period)
    return rows[_is_completed(rows)].reset_index(drop=True)


def uncompleted_tasks(tasks, period):
    rows = period_tasks(tasks, period)
    return rows[~_is_completed(rows)].reset_index(drop=True)


def period_meetings(meetings, period):
    return meetings[meetings["section"] == period].reset_index(drop=True)


def completed_by_assignee_workstream(tasks, meetings, period):
    """Points of completed work per (assignee, workstream), meetings included.

    Completed tasks are unioned with the period's meeting rows and summed per
    (assignee, workstream). Sorted by assignee, then workstream.
    """
    frames = [rows[COMPLETED_COLUMNS]
              for rows in (completed_tasks(tasks, period), period_meetings(meetings, period))
              if not rows.empty]
    if not frames:
        return _empty_frame(COMPLETED_COLUMNS)
    return _sum_points(pd.concat(frames, ignore_index=True), ["assignee", "workstream"])


def allocation_by_assignee(tasks, meetings, period, capacity=CAPACITY_POINTS, team=None):
    """Total assigned points per member (all period tasks plus meetings) against capacity.

    Rows with a blank assignee, or one outside ``team`` when a roster is given,
    are left out with a warning. Sorted by points (largest first), then assignee.
    """
    frames = [rows[["assignee", "points"]]
              for rows in (period_tasks(tasks, period), period_meetings(meetings, period))
              if not rows.empty]
    if not frames:
        return _empty_frame(ALLOCATION_COLUMNS)
    combined = pd.concat(frames, ignore_index=True)

    unmapped = combined["assignee"] == ""
    if team:
        unmapped |= ~combined["assignee"].isin(list(team))
    if unmapped.any():
        dropped = combined[unmapped]
        names = sorted(set(dropped["assignee"]) - {""})
        detail = f": {', '.join(names)}" if names else ""
        print(f"  WARNING: {len(dropped)} row(s) ({dropped['points'].sum():.4g} points) without a "
              f"recognised assignee excluded from allocation{detail}")
        combined = combined[~unmapped]
    if combined.empty:
        return _empty_frame(ALLOCATION_COLUMNS)

    totals = _sum_points(combined, ["assignee"])
    totals["percent"] = totals["points"] / capacity
    return totals.sort_values(["points", "assignee"], ascending=[False, True],
                              kind="mergesort").reset_index(drop=True)


def uncompleted_detail(tasks, period):
    """Uncompleted tasks for the period, sorted by assignee, workstream and due date.

    Due dates are compared as dates where they parse; unparseable or blank
    ones sort last within their group. Naive and timezone-aware dates are both
    compared in UTC.
    """
    rows = uncompleted_tasks(tasks, period)
    if rows.empty:
        return _empty_frame(DETAIL_COLUMNS)
    detail = rows[DETAIL_COLUMNS].copy()
    detail["_due"] = pd.to_datetime(detail["due_date"], errors="coerce", format="mixed", utc=True)
    detail = detail.sort_values(["assignee", "workstream", "_due", "due_date", "name"],
                                na_position="last", kind="mergesort")
    return detail.drop(columns="_due").reset_index(drop=True)


# ── Chart Styling ────────────────────────────────────────────────────────────

def _rc_params(config):
    """rcParams for one figure; applied via plt.rc_context so nothing leaks between charts."""
    return {
        "font.family": "sans-serif",
        "font.sans-serif": list(config.font_family) + ["DejaVu Sans"],
        "font.size": STYLE["label_size"],
        "axes.facecolor": STYLE["bg_color"],
        "figure.facecolor": STYLE["bg_color"],
        "axes.edgecolor": STYLE["grid_color"],
        "axes.linewidth": 0.8,
        "xtick.color": STYLE["text_secondary"],
        "ytick.color": STYLE["text_secondary"],
        "xtick.labelsize": STYLE["tick_size"],
        "ytick.labelsize": STYLE["tick_size"],
        "text.color": STYLE["text_primary"],
        "axes.formatter.useoffset": False,
    }


def style_axes(ax, xlabel="", show_grid_x=True):
    """Apply consistent axis styling to a horizontal chart."""
    if xlabel:
        ax.set_xlabel(xlabel, fontsize=STYLE["label_size"], color=STYLE["text_secondary"])
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    ax.spines["left"].set_linewidth(0.6)
    ax.spines["bottom"].set_linewidth(0.6)
    ax.tick_params(axis="y", length=0)
    if show_grid_x:
        ax.grid(axis="x", alpha=0.6, linewidth=0.5, color=STYLE["grid_color"])
    ax.set_axisbelow(True)


def add_header_footer(fig, title, subtitle="", caption=""):
    """Add a left-aligned title block, a caption note and a generation timestamp."""
    fig.suptitle(title, fontsize=STYLE["title_size"], fontweight="bold",
                 color=STYLE["text_primary"], x=0.02, y=0.98, ha="left")
    if subtitle:
        fig.text(0.02, 0.925, subtitle, fontsize=STYLE["subtitle_size"],
                 color=STYLE["text_secondary"], ha="left")
    if caption:
        fig.text(0.02, 0.035, caption, fontsize=STYLE["small_size"],
                 color=STYLE["text_secondary"], ha="left")
    fig.text(0.98, 0.005, f"Generated {datetime.now().strftime('%d %b %Y %H:%M')}",
             ha="right", fontsize=STYLE["small_size"], color=STYLE["text_muted"])


def _save_figure(fig, output_path, config):
    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    fig.savefig(output_path, dpi=config.dpi, bbox_inches="tight", facecolor=STYLE["bg_color"])
    plt.close(fig)


def _display_name(assignee):
    return assignee or UNASSIGNED_LABEL


# ── Chart: Completed This Week ───────────────────────────────────────────────

def render_completed(completed, period, output_path, config=None):
    """Render completed points per member as horizontal bars stacked by workstream."""
    config = config or ReportConfig()
    if completed.empty:
        print(f"  No completed tasks or meetings for '{period}'. Skipping completed chart.")
        return None

    members = order_categories(completed["assignee"], config.assignee_order)
    streams = order_categories(completed["workstream"], config.workstream_order)
    colors = workstream_colors(streams, config)
    grid = (completed.pivot_table(index="assignee", columns="workstream", values="points",
                                  aggfunc="sum", fill_value=0.0)
            .reindex(index=members, columns=streams, fill_value=0.0))

    with plt.rc_context(_rc_params(config)):
        fig, ax = plt.subplots(figsize=(config.fig_width, config.fig_height))
        fig.subplots_adjust(left=0.18, right=0.76, top=0.86, bottom=0.14)

        y = np.arange(len(members))
        left = np.zeros(len(members))
        for stream in streams:
            values = grid[stream].to_numpy(dtype=float)
            ax.barh(y, values, left=left, height=STYLE["bar_height"], color=colors[stream],
                    edgecolor="white", linewidth=0.5, label=stream, zorder=3)
            left += values

        ax.set_yticks(y)
        ax.set_yticklabels([_display_name(m) for m in members])
        ax.set_ylim(len(members) - 0.5, -0.5)

        x_max = max(config.capacity * 1.25, float(left.max()) * 1.1)
        ax.set_xlim(0, x_max)
        ax.xaxis.set_major_locator(MultipleLocator(max(config.capacity / 4, 1)))

        ax.axvline(config.capacity, color=STYLE["capacity_line_color"],
                   linestyle="--", linewidth=1, zorder=4)
        ax.text(config.capacity, 1.01, capacity_label(config.capacity),
                transform=ax.get_xaxis_transform(), ha="center", va="bottom",
                fontsize=STYLE["small_size"] + 0.5, color=STYLE["text_primary"])

        handles = [mpatches.Patch(facecolor=colors[s], edgecolor="white", label=s) for s in streams]
        ax.legend(handles=handles, loc="center left", bbox_to_anchor=(1.02, 0.5),
                  fontsize=STYLE["small_size"] + 0.5, frameon=False)

        style_axes(ax)
        add_header_footer(fig, f"Tasks Completed by Team Member and Workstream (Week of {period})",
                          caption=effort_note(config))
        _save_figure(fig, output_path, config)
    print(f"  Completed chart saved: {output_path}")
    return output_path


# ── Chart: Allocation ────────────────────────────────────────────────────────

def _avatar_zoom(image, config):
    target_points = config.fig_height * 72 * STYLE["avatar_size"]
    return target_points / max(image.shape[0], 1)


def _draw_avatar(ax, x, y, image_path, config):
    """Place the member's avatar at (x, y); fall back to a plain marker."""
    if image_path and os.path.exists(image_path):
        image = plt.imread(image_path)
        box = AnnotationBbox(OffsetImage(image, zoom=_avatar_zoom(image, config)),
                             (x, y), frameon=False, zorder=5)
        ax.add_artist(box)
        return box
    if image_path:
        print(f"  WARNING: Avatar image not found: {image_path}. Using a marker instead.")
    return ax.scatter([x], [y], s=140, color=STYLE["marker_color"],
                      edgecolor="white", linewidth=1, zorder=5)


def render_allocation(allocation, period, output_path, config=None):
    """Render each member's assigned points against the capacity bands."""
    config = config or ReportConfig()
    if allocation.empty:
        print(f"  No assigned tasks or meetings for '{period}'. Skipping allocation chart.")
        return None

    data = allocation.sort_values(["points", "assignee"], ascending=[False, True], kind="mergesort")
    members = list(data["assignee"])
    below_x = config.capacity * config.below_target
    target_x = config.capacity * config.above_target
    x_max = max(config.capacity * 2, float(data["points"].max()) * 1.1)
    below_pct = f"{config.below_target * 100:g}"
    above_pct = f"{config.above_target * 100:g}"
    bands = [
        (0, below_x, "Below Target", f"Below Target\n(0-{below_pct}%)"),
        (below_x, target_x, "On Target", f"On Target\n({below_pct}-{above_pct}%)"),
        (target_x, x_max, "Above Target", f"Above Target\n(>{above_pct}%)"),
    ]

    with plt.rc_context(_rc_params(config)):
        fig, ax = plt.subplots(figsize=(config.fig_width, config.fig_height))
        fig.subplots_adjust(left=0.18, right=0.96, top=0.78, bottom=0.16)

        for start, end, band, text in bands:
            if end <= start:
                continue
            ax.axvspan(start, end, color=BAND_COLORS[band], alpha=STYLE["band_alpha"],
                       linewidth=0, zorder=0)
            ax.text((start + end) / 2, 1.01, text, transform=ax.get_xaxis_transform(),
                    ha="center", va="bottom", fontsize=STYLE["small_size"] + 0.5)
        for edge in (below_x, target_x):
            ax.axvline(edge, color=STYLE["capacity_line_color"], linestyle="--",
                       linewidth=1, zorder=1)

        for y, (_, row) in enumerate(data.iterrows()):
            _draw_avatar(ax, row["points"], y, config.avatars.get(row["assignee"]), config)
            ax.annotate(format_percent(row["percent"]), (row["points"], y),
                        xytext=(0, -16), textcoords="offset points",
                        ha="center", va="top", fontsize=STYLE["small_size"] + 0.5)

        ax.set_yticks(np.arange(len(members)))
        ax.set_yticklabels([_display_name(m) for m in members])
        ax.set_ylim(len(members) - 0.4, -0.6)
        ax.set_xlim(0, x_max)
        ax.xaxis.set_major_locator(MultipleLocator(max(config.capacity / 4, 1)))

        style_axes(ax, xlabel="Number of points", show_grid_x=False)
        add_header_footer(fig, f"Team Allocation for Week of {period}",
                          subtitle="Includes all tasks assigned (completed and uncompleted) "
                                   "as well as meeting time.",
                          caption=effort_note(config))
        _save_figure(fig, output_path, config)
    print(f"  Allocation chart saved: {output_path}")
    return output_path


# ── Table: Uncompleted Tasks ─────────────────────────────────────────────────

def render_uncompleted_table(detail, period, output_path, config=None):
    """Render the uncompleted-task detail rows as a table image."""
    config = config or ReportConfig()
    if detail.empty:
        print(f"  No uncompleted tasks for '{period}'. Skipping table.")
        return None

    table_df = detail[DETAIL_COLUMNS].rename(columns=DETAIL_HEADERS)
    n_rows = len(table_df)
    fig_height = max(1.8, 0.3 * (n_rows + 1) + 0.9)

    with plt.rc_context(_rc_params(config)):
        fig, ax = plt.subplots(figsize=(config.fig_width * 1.25, fig_height))
        ax.axis("off")
        table = ax.table(
            cellText=table_df.map(clean_str).values.tolist(),
            colLabels=list(table_df.columns),
            cellLoc="center", loc="upper center",
        )
        table.auto_set_font_size(False)
        table.set_fontsize(STYLE["table_font_size"])
        table.auto_set_column_width(list(range(len(table_df.columns))))
        table.scale(1, 1.35)

        for (row, _col), cell in table.get_celld().items():
            cell.set_edgecolor(STYLE["grid_color"])
            if row == 0:
                cell.set_facecolor(STYLE["table_header_bg"])
                cell.get_text().set_color("white")
                cell.get_text().set_fontweight("bold")
            elif row % 2 == 0:
                cell.set_facecolor(STYLE["table_row_shade"])

        ax.set_title(f"Tasks Yet to Be Completed for Week of {period}",
                     fontsize=STYLE["title_size"], fontweight="bold", pad=10)
        _save_figure(fig, output_path, config)
    print(f"  Uncompleted table saved: {output_path}")
    return output_path


# ── Summary ──────────────────────────────────────────────────────────────────

def print_summary(tasks, meetings, period, allocation, config=None):
    """Print the week's executive summary to the console."""
    config = config or ReportConfig()
    rows = period_tasks(tasks, period)
    done = completed_tasks(tasks, period)
    mtg = period_meetings(meetings, period)
    open_count = len(rows) - len(done)
    meeting_points = float(mtg["points"].sum()) if not mtg.empty else 0.0
    done_points = float(done["points"].sum()) if not done.empty else 0.0
    malformed = malformed_effort_labels(rows["effort_label"]) if not rows.empty else {}

    print()
    print("=" * 60)
    print(f"  WEEKLY SUMMARY: {period}")
    print("=" * 60)
    print(f"  Tasks:         {len(rows)} total ({len(done)} completed, {open_count} uncompleted)")
    print(f"  Completed:     {done_points:.4g} points of tasks")
    print(f"  Meetings:      {meeting_points:.4g} points ({len(mtg)} entr{'ies' if len(mtg) != 1 else 'y'})")
    print(f"  Capacity:      {capacity_label(config.capacity)} per person")
    if not allocation.empty:
        print("  Allocation:")
        for _, row in allocation.iterrows():
            band = capacity_band(row["percent"], config.below_target, config.above_target)
            print(f"    {_display_name(row['assignee'])}: {row['points']:.4g} / {config.capacity:g} points "
                  f"({format_percent(row['percent'])}) - {band}")
        over = allocation[allocation["percent"] > config.above_target]
        if not over.empty:
            print(f"  Over capacity: {', '.join(_display_name(a) for a in over['assignee'])}")
    if malformed:
        total = sum(malformed.values())
        print(f"  Effort labels: {total} not numeric, assigned "
              f"{config.default_effort / HOURS_PER_POINT:g} points each")
    print("=" * 60)
    print()


# ── Template Generation ─────────────────────────────────────────────────────

def generate_meeting_template(output_path, sheet_name=DEFAULT_MEETINGS_SHEET):
    """Create a meeting-tracking workbook with headers, example rows and hour validation."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="1696D2", end_color="1696D2", fill_type="solid")
    thin_border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )

    ws.append(MEETING_TEMPLATE_HEADERS)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = thin_border

    examples = [
        ["Team Member 1", "Mar 11-15", MEETINGS_WORKSTREAM, 4, "Stand-ups and planning"],
        ["Team Member 2", "Mar 11-15", MEETINGS_WORKSTREAM, 2.5, ""],
    ]
    for row in examples:
        ws.append(row)
    for row in ws.iter_rows(min_row=2, max_row=ws.max_row):
        for cell in row:
            cell.border = thin_border

    hours_dv = DataValidation(type="decimal", operator="greaterThanOrEqual", formula1="0",
                              allow_blank=False, showErrorMessage=True,
                              errorTitle="Invalid hours", error="Hours must be a number of 0 or more.")
    hours_dv.add("D2:D500")
    ws.add_data_validation(hours_dv)

    for letter, width in zip("ABCDE", (22, 16, 14, 10, 36)):
        ws.column_dimensions[letter].width = width
    ws.freeze_panes = "A2"

    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    wb.save(output_path)
    print(f"Meeting template created: {output_path}")
    print(f"  - Sheet '{sheet_name}' with columns: {', '.join(MEETING_TEMPLATE_HEADERS)}")
    print("  - Hours: 1 hour = 0.5 points; Section/Column must match the task export's week labels")
    return output_path


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Weekly Points Report: completed-work, allocation, and outstanding-task "
                    "charts from a task export and a meeting log"
    )
    parser.add_argument(
        "--tasks", default=DEFAULT_TASKS_INPUT,
        help="Path to the task export CSV (default: All_Projects.csv)"
    )
    parser.add_argument(
        "--meetings", default=DEFAULT_MEETINGS_INPUT,
        help="Path to the meeting-tracking workbook (default: 'meeting tracking.xlsx')"
    )
    parser.add_argument(
        "--sheet", default=DEFAULT_MEETINGS_SHEET,
        help="Sheet holding meeting time (default: Sheet1)"
    )
    parser.add_argument(
        "--period", default=None,
        help="Reporting week, exactly as written in the section column (e.g. \"Mar 11-15\")"
    )
    parser.add_argument(
        "--outdir", default=DEFAULT_OUTDIR,
        help="Output directory for charts and summary.txt (default: output/)"
    )
    parser.add_argument(
        "--charts", default=["all"], nargs="+",
        choices=["all", "completed", "allocation", "uncompleted"],
        help="Which outputs to render (default: all)"
    )
    parser.add_argument(
        "--config", default=None,
        help="JSON file of report settings (capacity, orders, colors, avatars, team)"
    )
    parser.add_argument(
        "--capacity", type=float, default=None,
        help=f"Weekly capacity in points (default: {CAPACITY_POINTS})"
    )
    parser.add_argument(
        "--template", action="store_true",
        help="Generate a blank meeting-tracking workbook at --meetings and exit"
    )
    args = parser.parse_args(argv)

    if args.template:
        generate_meeting_template(args.meetings, args.sheet)
        return

    if not args.period:
        parser.error("--period is required (e.g. --period \"Mar 11-15\")")

    # Config
    config = ReportConfig()
    if args.config:
        if not os.path.exists(args.config):
            print(f"Error: Config file not found: {args.config}")
            sys.exit(1)
        try:
            config = load_config(args.config)
        except (ValueError, TypeError) as e:
            print(f"  ERROR: Could not read config {args.config}: {e}")
            sys.exit(1)
    if args.capacity is not None:
        config.capacity = args.capacity
    errors = validate_config(config)
    if errors:
        for e in errors:
            print(f"  ERROR: {e}")
        sys.exit(1)

    for path in (args.tasks, args.meetings):
        if not os.path.exists(path):
            print(f"Error: Input file not found: {path}")
            if path == args.meetings:
                print("Run with --template to create a meeting-tracking workbook.")
            sys.exit(1)

    # Load
    try:
        print(f"Loading tasks from: {args.tasks}")
        tasks = load_tasks(args.tasks, config.default_effort)
        print(f"Loading meetings from: {args.meetings} [{args.sheet}]")
        meetings = load_meetings(args.meetings, args.sheet)
    except (ValueError, OSError, zipfile.BadZipFile, InvalidFileException) as e:
        print(f"  ERROR: {e}")
        sys.exit(1)
    print(f"  Tasks: {len(tasks)}")
    print(f"  Meeting entries: {len(meetings)}")

    if period_tasks(tasks, args.period).empty and period_meetings(meetings, args.period).empty:
        known = available_periods(tasks)
        hint = f" Known periods: {', '.join(known)}" if known else ""
        print(f"  WARNING: No tasks or meetings found for '{args.period}'.{hint}")

    # Aggregate
    completed = completed_by_assignee_workstream(tasks, meetings, args.period)
    allocation = allocation_by_assignee(tasks, meetings, args.period,
                                        capacity=config.capacity, team=config.team)
    detail = uncompleted_detail(tasks, args.period)

    os.makedirs(args.outdir, exist_ok=True)

    # Summary (captured for summary.txt)
    summary_capture = io.StringIO()
    with redirect_stdout(_TeeWriter(sys.stdout, summary_capture)):
        print_summary(tasks, meetings, args.period, allocation, config)
    summary_text = summary_capture.getvalue()

    # Render
    charts = args.charts
    gen_all = "all" in charts
    output_files = []

    if gen_all or "completed" in charts:
        output_files.append(render_completed(
            completed, args.period, os.path.join(args.outdir, COMPLETED_FILENAME), config))
    if gen_all or "allocation" in charts:
        output_files.append(render_allocation(
            allocation, args.period, os.path.join(args.outdir, ALLOCATION_FILENAME), config))
    if gen_all or "uncompleted" in charts:
        output_files.append(render_uncompleted_table(
            detail, args.period, os.path.join(args.outdir, UNCOMPLETED_FILENAME), config))

    summary_path = os.path.join(args.outdir, SUMMARY_FILENAME)
    with open(summary_path, "w", encoding="utf-8") as sf:
        sf.write(summary_text)
    output_files.append(summary_path)

    print()
    print("  Output:")
    for f in output_files:
        if f:
            print(f"    {os.path.abspath(f)}")
    print("\nDone.")


if __name__ == "__main__":
    main()
