# experiments/plot_heatmap.py
"""
Plot TinyMT32 state-recovery results written by run_experiments.

Left panel: mean success per (oracle truncation, samples), with a marker at
the 127 observations the GF(2) system needs before it can have full rank.
Right panel: mean attacker wall time per cell, so the cost of adding samples
shows next to the success it buys.

CSV columns: samples, output_bits, output_select, trial, success, time_s
(output_select and time_s may be missing in older runs).

Usage:
    python -m tinymt32.experiments.plot_heatmap --csv results/experiments_XXXX.csv --out heatmap.png
"""

import argparse
import os

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..attacker.recover import STATE_RANK

REQUIRED_COLUMNS = {'samples', 'output_bits', 'trial', 'success'}


def load_results(path):
    df = pd.read_csv(path)
    if not REQUIRED_COLUMNS.issubset(set(df.columns)):
        raise SystemExit(f"CSV must contain columns: {sorted(REQUIRED_COLUMNS)}. Found: {df.columns.tolist()}")
    df['samples'] = df['samples'].astype(int)
    df['output_bits'] = df['output_bits'].astype(int)
    df['success'] = df['success'].astype(float)
    if 'output_select' not in df.columns:
        df['output_select'] = 'high'
    if 'time_s' in df.columns:
        df['time_s'] = df['time_s'].astype(float)
    # the low output bit is what the attack reads; label rows by whether it is visible
    df['truncation'] = [
        f"{bits} bits" if bits >= 32 else f"{bits} {select}"
        for bits, select in zip(df['output_bits'], df['output_select'])
    ]
    return df


def _pivot(df, value):
    agg = df.groupby(['output_bits', 'truncation', 'samples'], as_index=False)[value].mean()
    pivot = agg.pivot(index=['output_bits', 'truncation'], columns='samples', values=value)
    # widest outputs on top
    pivot = pivot.sort_index(ascending=False)
    pivot.index = pivot.index.get_level_values('truncation')
    return pivot


def prepare_pivot(df):
    """Mean success per truncation (rows) and sample count (columns)."""
    if 'truncation' not in df.columns:
        df = df.assign(truncation=[f"{b} bits" for b in df['output_bits']])
    return _pivot(df, 'success')


def prepare_time_pivot(df):
    """Mean attacker wall time per cell, or None when the CSV has no timings."""
    if 'time_s' not in df.columns:
        return None
    return _pivot(df, 'time_s')


def rank_threshold_position(samples):
    """x position of the boundary where sample counts reach STATE_RANK, or None."""
    for j, n in enumerate(samples):
        if n >= STATE_RANK:
            return j - 0.5 if j else None
    return None


def _draw_panel(ax, fig, pivot, vmin, vmax, fmt, label, cmap=None):
    rows = pivot.index.tolist()
    cols = pivot.columns.tolist()
    data = pivot.values.astype(float)
    im = ax.imshow(data, aspect='auto', interpolation='nearest', vmin=vmin, vmax=vmax, cmap=cmap)
    ax.set_xticks(np.arange(len(cols)))
    ax.set_yticks(np.arange(len(rows)))
    ax.set_xticklabels(cols)
    ax.set_yticklabels(rows)
    ax.set_xlabel('Outputs observed (samples)')
    plt.setp(ax.get_xticklabels(), rotation=45, ha='right')
    mid = (vmin + vmax) / 2.0
    for i in range(len(rows)):
        for j in range(len(cols)):
            val = data[i, j]
            if np.isnan(val):
                ax.text(j, i, 'N/A', ha='center', va='center', color='gray', fontsize=8)
            else:
                ax.text(j, i, fmt.format(val), ha='center', va='center',
                        color='white' if val > mid else 'black', fontsize=8)
    x = rank_threshold_position(cols)
    if x is not None:
        ax.axvline(x, color='red', linestyle='--', linewidth=1.2)
    cbar = fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    cbar.set_label(label)
    return im


def plot_results(success, timing=None, title='TinyMT32 state recovery', out_file=None, show=True):
    panels = 2 if timing is not None else 1
    cols = len(success.columns)
    fig, axes = plt.subplots(1, panels, figsize=(panels * (0.8 * cols + 3), 0.6 * len(success.index) + 2.5),
                             squeeze=False)
    ax = axes[0][0]
    _draw_panel(ax, fig, success, 0.0, 1.0, '{:.2f}', 'Mean success rate (0-1)')
    ax.set_ylabel('Oracle output truncation')
    ax.set_title(f'Success (dashed: {STATE_RANK} samples = state rank)')
    if timing is not None:
        tmax = float(np.nanmax(timing.values)) if np.isfinite(timing.values).any() else 1.0
        _draw_panel(axes[0][1], fig, timing, 0.0, tmax or 1.0, '{:.1f}s', 'Mean attacker time (s)', cmap='magma')
        axes[0][1].set_title('Mean solve time')
    fig.suptitle(title)
    fig.tight_layout()
    try:
        if out_file:
            os.makedirs(os.path.dirname(out_file) or '.', exist_ok=True)
            fig.savefig(out_file, dpi=200)
            print(f"Heatmap saved to {out_file}")
        if show and matplotlib.get_backend().lower() != 'agg':
            plt.show()
    finally:
        plt.close(fig)
    return out_file


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument('--csv', required=True, help='Path to experiments CSV')
    parser.add_argument('--out', default='results/heatmap_success_rate.png', help='Output PNG path')
    parser.add_argument('--title', default='TinyMT32 state recovery', help='Plot title')
    parser.add_argument('--no-show', action='store_true', help='only save the figure')
    args = parser.parse_args(argv)

    df = load_results(args.csv)
    plot_results(prepare_pivot(df), prepare_time_pivot(df), title=args.title,
                 out_file=args.out, show=not args.no_show)


if __name__ == '__main__':
    main()
