#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
  BALLISTIC CALCULATOR — Main Runner
═══════════════════════════════════════════════════════════════════════════════

  Executes the simulation pipeline for one set of form inputs:
    1. Input acceptance (wind, elevation, caliber, ballistic coefficient)
    2. Tick-by-tick flight from the origin until it returns to y = 0
    3. Accuracy check against a high-order reference solution
    4. Animated trajectory GIF

  Or, with --live, opens a window ticking every 10 ms with a position
  readout, the way the interactive calculator runs.

  Usage:
    python main.py                          # Form defaults
    python main.py --elevation 30 --bc 1e6 --no-clamp-bc  # Custom inputs
    python main.py --quick                  # Skip animation
    python main.py --live                   # Interactive window
═══════════════════════════════════════════════════════════════════════════════
"""

import argparse
import sys
import time

import matplotlib

from ballistic_calculator import config
from ballistic_calculator.errors import InvalidParameterError
from ballistic_calculator.integrator import fly
from ballistic_calculator.parameters import accept_parameters, validate_dt


def banner():
    print("""
╔═══════════════════════════════════════════════════════════════════════╗
║                                                                       ║
║     BALLISTIC CALCULATOR                                              ║
║     ─────────────────────────────────────────────                     ║
║     Gravity · Wind · Drag(caliber, BC) │ Semi-implicit Euler ticks    ║
║                                                                       ║
╚═══════════════════════════════════════════════════════════════════════╝
""")


def section(title):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def build_parser():
    parser = argparse.ArgumentParser(description="Projectile trajectory under gravity, wind and drag.")
    parser.add_argument('--wind', default=str(config.DEFAULT_WIND), help="cross-wind (m/s)")
    parser.add_argument('--elevation', default=str(config.DEFAULT_ELEVATION_DEG), help="launch angle (deg)")
    parser.add_argument('--caliber', default=str(config.DEFAULT_CALIBER), help="diameter (m)")
    parser.add_argument('--bc', default=str(config.DEFAULT_BALLISTIC_COEFFICIENT),
                        help="ballistic coefficient")
    parser.add_argument('--no-clamp-bc', action='store_true',
                        help="allow a ballistic coefficient outside [0, 1]")
    parser.add_argument('--dt', type=float, default=config.DT, help="seconds per tick")
    parser.add_argument('--max-time', type=float, default=config.MAX_FLIGHT_TIME)
    parser.add_argument('--out', default=config.OUTPUT_DIR)
    parser.add_argument('--quick', action='store_true', help="skip animation")
    parser.add_argument('--live', action='store_true', help="open the interactive view")
    parser.add_argument('--log-level', default=None)
    return parser


def run_live(params, dt):
    from ballistic_calculator.session import SimulationSession
    from ballistic_calculator.visualization import LiveTrajectoryView

    session = SimulationSession(params)
    session.fire()
    LiveTrajectoryView(session, dt=dt).start(show=True)


def run_accuracy(params, result, out):
    import matplotlib.pyplot as plt
    from ballistic_calculator.validation import convergence_order, error_vs_timestep
    from ballistic_calculator.visualization import plot_error_convergence

    if result.diverged:
        section("PHASE 3: Accuracy check SKIPPED (flight diverged)")
        return

    duration = min(1.0, result.flight_time)
    dts = [result.dt * f for f in (4, 2, 1, 0.5)]
    # Every run needs at least two ticks to compare against
    if duration < 2 * max(dts):
        section("PHASE 3: Accuracy check SKIPPED (flight too short)")
        print(f"  {duration:g} s of flight is under two ticks at dt={max(dts):g}")
        return

    section("PHASE 3: Accuracy vs Reference Solution")
    try:
        comparisons = error_vs_timestep(params, dts, duration=duration)
    except RuntimeError as exc:
        print(f"  ✗ {exc}")
        return
    for comp in comparisons:
        print(f"  dt={comp.dt:<8g} final error {comp.final_error:>10.4g} m  "
              f"max {comp.max_error:>10.4g} m")
    try:
        print(f"  Observed order: {convergence_order(comparisons):.2f}")
    except ValueError as exc:
        print(f"  Observed order: n/a ({exc})")
    fig = plot_error_convergence(comparisons, save_path=f'{out}/02_convergence.png')
    plt.close(fig)
    print(f"\n  ✓ Saved: {out}/02_convergence.png")


def run_batch(params, args):
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt
    from ballistic_calculator.visualization import (
        create_trajectory_animation, ensure_output_dir, plot_trajectory,
    )

    out = ensure_output_dir(args.out)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 2: Flight
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 2: Flight")
    result = fly(params, dt=args.dt, max_time=args.max_time)
    print(result.summary())
    if result.diverged:
        print("\n  ✗ Drag is too strong for this timestep; the flight was cut off")
        print("    at the last finite tick. Try a smaller --dt or a larger --bc")
        print("    (with --no-clamp-bc).")

    fig = plot_trajectory(result, save_path=f'{out}/01_trajectory.png')
    plt.close(fig)
    print(f"\n  ✓ Saved: {out}/01_trajectory.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 3: Accuracy
    # ══════════════════════════════════════════════════════════════════════
    run_accuracy(params, result, out)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 4: Animation
    # ══════════════════════════════════════════════════════════════════════
    if not args.quick:
        section("PHASE 4: Trajectory Animation (GIF)")
        create_trajectory_animation(result, save_path=f'{out}/03_trajectory_animation.gif')
        print(f"  ✓ Saved: {out}/03_trajectory_animation.gif")
    else:
        section("PHASE 4: Animation SKIPPED (--quick mode)")


def main(argv=None):
    args = build_parser().parse_args(argv)
    config.configure_logging(args.log_level)
    start_time = time.time()

    banner()

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 1: Inputs
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 1: Inputs")
    try:
        params = accept_parameters(
            wind=args.wind,
            elevation=args.elevation,
            caliber=args.caliber,
            ballistic_coefficient=args.bc,
            clamp_bc=not args.no_clamp_bc,
        )
        dt = validate_dt(args.dt)
    except InvalidParameterError as exc:
        print(f"  ✗ {exc}")
        return 2
    print(f"  Wind {params.wind} m/s | Elevation {params.elevation_deg}° | "
          f"Caliber {params.caliber} m | BC {params.ballistic_coefficient}")

    if args.live:
        run_live(params, dt)
        return 0

    run_batch(params, args)

    section("COMPLETE")
    print(f"\n  Total runtime: {time.time() - start_time:.1f} seconds\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
