"""
Visualization Engine
====================
The presentation shell around the simulation:
  1. Trajectory (altitude vs downrange) with speed trace
  2. Tick-integrator error vs timestep
  3. Animated trajectory (saved as GIF)
  4. Live view: a matplotlib timer is the tick source, one
     ``session.tick()`` per frame, position readout redrawn each frame

None of this owns simulation state; it only feeds ticks in and reads
positions out.
"""

import logging
import os
from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, PillowWriter

from .config import DT, TICK_INTERVAL_MS
from .constants import VERTICAL_AXIS
from .integrator import TrajectoryResult
from .session import SimulationSession
from .validation import ReferenceComparison

log = logging.getLogger(__name__)


# ── Style Configuration ───────────────────────────────────────────────────
STYLE = {
    'bg_color': '#0a0a0a',
    'text_color': '#e0e0e0',
    'grid_color': '#333333',
    'accent_colors': ['#00d4ff', '#ff6b35', '#00e676', '#ffeb3b',
                      '#e040fb', '#ff5252'],
    'font_family': 'monospace',
}


def _apply_dark_style(fig, axes):
    """Apply consistent dark theme to figure and axes."""
    fig.patch.set_facecolor(STYLE['bg_color'])
    if not isinstance(axes, np.ndarray):
        axes = [axes]
    else:
        axes = axes.flatten()

    for ax in axes:
        ax.set_facecolor(STYLE['bg_color'])
        ax.tick_params(colors=STYLE['text_color'])
        ax.xaxis.label.set_color(STYLE['text_color'])
        ax.yaxis.label.set_color(STYLE['text_color'])
        ax.title.set_color(STYLE['text_color'])
        ax.grid(True, color=STYLE['grid_color'], alpha=0.4, linewidth=0.5)
        for spine in ax.spines.values():
            spine.set_color(STYLE['grid_color'])


def _legend(ax):
    ax.legend(fontsize=10, facecolor='#1a1a1a', edgecolor='#444',
              labelcolor=STYLE['text_color'])


def _save(fig, save_path):
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])
        log.info("saved %s", save_path)


def ensure_output_dir(path: str = 'outputs'):
    os.makedirs(path, exist_ok=True)
    return path


def format_position(position) -> str:
    """Readout line shown under the form."""
    return "Position: (" + ", ".join(f"{c:.2f}" for c in position) + ")"


# ══════════════════════════════════════════════════════════════════════════
#  1. Trajectory Plot
# ══════════════════════════════════════════════════════════════════════════

def plot_trajectory(result: TrajectoryResult, save_path: str = None,
                    show: bool = False) -> plt.Figure:
    """Altitude vs downrange, and speed vs time."""
    fig, axes = plt.subplots(1, 2, figsize=(16, 6),
                             gridspec_kw={'width_ratios': [2, 1]})
    _apply_dark_style(fig, axes)

    ax = axes[0]
    ax.plot(result.x, result.y, color=STYLE['accent_colors'][0],
            linewidth=2.5, label=f'dt={result.dt:g}s')
    ax.plot(result.x[0], result.y[0], 'o', color='#00e676', markersize=10,
            label='Launch', zorder=5)
    ax.plot(result.x[-1], result.y[-1], 'x', color='#ff5252', markersize=12,
            markeredgewidth=3,
            label='Diverged' if result.diverged else 'Last tick', zorder=5)

    idx_max = int(np.argmax(result.y))
    ax.plot(result.x[idx_max], result.y[idx_max], '^', color='#ffeb3b',
            markersize=10, label='Apex', zorder=5)

    p = result.params
    ax.set_xlabel('Downrange (m)', fontsize=12)
    ax.set_ylabel('Altitude (m)', fontsize=12)
    ax.set_title(f'Trajectory — v₀={p.muzzle_velocity:.0f} m/s, '
                 f'θ={p.elevation_deg:.0f}°, BC={p.ballistic_coefficient:g}',
                 fontsize=13, fontweight='bold')
    _legend(ax)

    ax = axes[1]
    ax.plot(result.time, result.speed, color=STYLE['accent_colors'][1],
            linewidth=2)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Speed (m/s)')
    ax.set_title('Speed vs Time', fontweight='bold')

    plt.tight_layout()
    _save(fig, save_path)
    if show:
        plt.show()
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  2. Error vs Timestep
# ══════════════════════════════════════════════════════════════════════════

def plot_error_convergence(comparisons: Sequence[ReferenceComparison],
                           save_path: str = None) -> plt.Figure:
    """Position error over time per dt, and final error vs dt (log-log)."""
    fig, axes = plt.subplots(1, 2, figsize=(16, 6))
    _apply_dark_style(fig, axes)

    ax = axes[0]
    for comp, color in zip(comparisons, STYLE['accent_colors'] * 4):
        ax.plot(comp.result.time, comp.error, color=color, linewidth=2,
                label=f'dt={comp.dt:g}s')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Position Error (m)')
    ax.set_title('Drift from Reference Solution', fontweight='bold')
    _legend(ax)

    ax = axes[1]
    dts = np.array([c.dt for c in comparisons])
    errs = np.array([c.final_error for c in comparisons])
    ax.loglog(dts, errs, 's-', color='#00d4ff', linewidth=2, markersize=8,
              label='Semi-implicit Euler')
    ax.loglog(dts, errs[0] * dts / dts[0], '--', color='#888',
              label='First order')
    ax.set_xlabel('Timestep (s)')
    ax.set_ylabel('Final Error (m)')
    ax.set_title('Convergence', fontweight='bold')
    _legend(ax)

    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  3. Animated Trajectory (GIF)
# ══════════════════════════════════════════════════════════════════════════

def create_trajectory_animation(result: TrajectoryResult,
                                save_path: str = 'outputs/trajectory_anim.gif',
                                frames: int = 100) -> str:
    """Create animated GIF of trajectory with trail."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    x, y = result.x, result.y
    ax.set_xlim(min(x.min(), 0.0), max(x.max(), 1.0) * 1.05)
    ax.set_ylim(min(y.min(), 0.0), max(y.max(), 1.0) * 1.15)
    ax.set_xlabel('Downrange (m)', fontsize=12)
    ax.set_ylabel('Altitude (m)', fontsize=12)
    ax.set_title('Trajectory Animation', fontsize=14, fontweight='bold')

    trail_line, = ax.plot([], [], color='#00d4ff', linewidth=1.5, alpha=0.6)
    point, = ax.plot([], [], 'o', color='#00d4ff', markersize=8)
    time_text = ax.text(0.02, 0.95, '', transform=ax.transAxes,
                        color=STYLE['text_color'], fontsize=11,
                        fontfamily=STYLE['font_family'])

    # Subsample for animation
    total_pts = len(x)
    step = max(1, total_pts // frames)
    indices = list(range(0, total_pts, step))
    if indices[-1] != total_pts - 1:
        indices.append(total_pts - 1)

    def animate(frame_idx):
        idx = indices[min(frame_idx, len(indices) - 1)]
        trail_line.set_data(x[:idx+1], y[:idx+1])
        point.set_data([x[idx]], [y[idx]])
        time_text.set_text(
            f't={result.time[idx]:.2f}s | v={result.speed[idx]:.0f} m/s | '
            f'{format_position(result.position[idx])}'
        )
        return trail_line, point, time_text

    anim = FuncAnimation(fig, animate, frames=len(indices), interval=50, blit=True)
    anim.save(save_path, writer=PillowWriter(fps=20),
              savefig_kwargs={'facecolor': STYLE['bg_color']})
    plt.close(fig)
    log.info("animation saved: %s", save_path)
    return save_path


# ══════════════════════════════════════════════════════════════════════════
#  4. Live View
# ══════════════════════════════════════════════════════════════════════════

class LiveTrajectoryView:
    """
    Interactive window driven by a matplotlib timer.

    Every frame advances the session by one tick of ``dt`` simulated
    seconds and redraws the marker, trail and position readout. The
    timer period is logical; matplotlib does not guarantee it.
    """

    def __init__(self, session: SimulationSession, dt: float = DT,
                 interval_ms: int = TICK_INTERVAL_MS,
                 extent: Optional[tuple] = None,
                 max_trail: int = 5000):
        self.session = session
        self.dt = dt
        self.interval_ms = interval_ms
        self.max_trail = max_trail
        self.trail = []

        self.fig, self.ax = plt.subplots(figsize=(12, 6))
        _apply_dark_style(self.fig, self.ax)
        if extent is not None:
            self.ax.set_xlim(extent[0], extent[1])
            self.ax.set_ylim(extent[2], extent[3])
        self.ax.set_xlabel('Downrange (m)')
        self.ax.set_ylabel('Altitude (m)')
        self.ax.set_title('Ballistic Calculator', fontweight='bold')

        self.trail_line, = self.ax.plot([], [], color='#00d4ff',
                                        linewidth=1.5, alpha=0.6)
        self.point, = self.ax.plot([], [], 'o', color='#00d4ff', markersize=8)
        self.readout = self.ax.text(0.02, 0.95, '', transform=self.ax.transAxes,
                                    color=STYLE['text_color'], fontsize=11,
                                    fontfamily=STYLE['font_family'])
        self.animation = None

    def update(self, _frame=None):
        """One tick plus one redraw."""
        self.session.tick(self.dt)
        pos = self.session.position
        self.trail.append((pos[0], pos[VERTICAL_AXIS]))
        if len(self.trail) > self.max_trail:
            del self.trail[0]

        xs, ys = zip(*self.trail)
        self.trail_line.set_data(xs, ys)
        self.point.set_data([pos[0]], [pos[VERTICAL_AXIS]])
        status = ' [halted]' if self.session.halted else ''
        self.readout.set_text(format_position(pos) + status)
        self.ax.relim()
        self.ax.autoscale_view()
        return self.trail_line, self.point, self.readout

    def start(self, show: bool = True):
        self.animation = FuncAnimation(self.fig, self.update,
                                       interval=self.interval_ms,
                                       cache_frame_data=False)
        if show:
            plt.show()
        return self.animation
