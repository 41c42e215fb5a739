"""
Unit Tests for the Ballistic Calculator Core
============================================
Drag model, projectile state, and the tick integrator.
Run: python -m pytest tests/ -v
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from ballistic_calculator.constants import AIR_DENSITY, GRAVITY, MUZZLE_VELOCITY
from ballistic_calculator.drag_model import DragModel, drag_coefficient, drag_magnitude
from ballistic_calculator.errors import InvalidParameterError, NumericalInstabilityError
from ballistic_calculator.integrator import TrajectoryIntegrator, fly, until_ground
from ballistic_calculator.parameters import SimulationParameters
from ballistic_calculator.projectile import (
    FlightState, Projectile, compute_acceleration, launch_velocity,
)

# Form defaults: drag here is ~1.9e10 m/s² at muzzle speed
FORM_DEFAULTS = SimulationParameters(wind=0.0, caliber=0.00762,
                                     ballistic_coefficient=0.4)
# Same caliber, coefficient large enough that a 10 ms tick stays stable
STABLE = SimulationParameters(wind=0.0, caliber=0.00762,
                              ballistic_coefficient=2.0e5)


class TestDragModel:
    """Verify the drag formula and its sign."""

    def test_coefficient_formula(self):
        assert drag_coefficient(0.01, 0.5) == pytest.approx(1.0 / (0.5 * 1e-4))

    def test_magnitude_formula(self):
        cd = 1.0 / (0.4 * 0.00762 ** 2)
        expected = -0.5 * cd * AIR_DENSITY * 300.0 ** 2
        assert drag_magnitude(300.0, 0.00762, 0.4) == pytest.approx(expected)

    @pytest.mark.parametrize("speed", [1e-6, 0.5, 10.0, 850.0, 3000.0])
    @pytest.mark.parametrize("caliber,bc", [(0.00762, 0.4), (0.155, 1.0), (0.05, 2e5)])
    def test_drag_is_negative_when_moving(self, speed, caliber, bc):
        assert drag_magnitude(speed, caliber, bc) < 0

    def test_drag_zero_only_at_rest(self):
        assert drag_magnitude(0.0, 0.00762, 0.4) == 0.0

    def test_drag_grows_with_speed_squared(self):
        d1 = drag_magnitude(100.0, 0.01, 0.5)
        d2 = drag_magnitude(200.0, 0.01, 0.5)
        assert d2 == pytest.approx(4.0 * d1)

    def test_higher_bc_means_less_drag(self):
        assert abs(drag_magnitude(500.0, 0.01, 0.8)) < abs(drag_magnitude(500.0, 0.01, 0.2))

    def test_zero_inputs_divide_by_zero(self):
        """The raw formula has no guard; the parameter boundary is the guard."""
        with pytest.raises(ZeroDivisionError):
            drag_magnitude(100.0, 0.0, 0.4)
        with pytest.raises(ZeroDivisionError):
            drag_magnitude(100.0, 0.00762, 0.0)

    def test_model_acceleration_opposes_motion(self):
        model = DragModel(0.00762, 0.4)
        v = np.array([100.0, 50.0])
        a = model.acceleration(v)
        assert np.dot(a, v) < 0
        assert np.linalg.norm(a) == pytest.approx(abs(model.magnitude(np.linalg.norm(v))))

    def test_model_acceleration_zero_at_rest(self):
        assert np.allclose(DragModel(0.01, 0.5).acceleration(np.zeros(3)), 0.0)

    def test_magnitude_array_matches_scalar(self):
        model = DragModel(0.02, 0.7)
        speeds = np.array([0.0, 10.0, 400.0])
        expected = [model.magnitude(s) for s in speeds]
        np.testing.assert_allclose(model.magnitude_array(speeds), expected)


class TestProjectile:
    """Projectile state and force composition."""

    def test_starts_at_rest_at_origin(self):
        p = Projectile.at_origin()
        assert p.dimensions == 2
        assert p.speed == 0.0
        assert np.array_equal(p.position, [0.0, 0.0])

    def test_three_dimensional(self):
        assert Projectile.at_origin(3).dimensions == 3

    def test_rejects_mismatched_vectors(self):
        with pytest.raises(ValueError):
            Projectile([0.0, 0.0], [1.0, 0.0, 0.0])

    def test_rejects_unsupported_dimension(self):
        with pytest.raises(ValueError):
            Projectile([0.0], [0.0])

    @pytest.mark.parametrize("elevation,expected", [
        (0.0, (MUZZLE_VELOCITY, 0.0)),
        (90.0, (0.0, MUZZLE_VELOCITY)),
    ])
    def test_launch_decomposition(self, elevation, expected):
        v = launch_velocity(elevation, MUZZLE_VELOCITY)
        np.testing.assert_allclose(v, expected, rtol=0, atol=1e-9)

    def test_launch_velocity_3d_has_no_crossrange(self):
        v = launch_velocity(30.0, 100.0, dimensions=3)
        assert v[2] == 0.0
        assert np.linalg.norm(v) == pytest.approx(100.0)

    def test_acceleration_at_rest_is_gravity_plus_wind(self):
        params = SimulationParameters(wind=3.0, caliber=0.00762, ballistic_coefficient=0.4)
        acc = compute_acceleration(np.zeros(2), params)
        np.testing.assert_array_equal(acc, [3.0, -GRAVITY])

    def test_wind_never_acts_vertically(self):
        params = SimulationParameters(wind=(2.0, 50.0, -1.0), caliber=0.01,
                                      ballistic_coefficient=0.5)
        acc = compute_acceleration(np.zeros(3), params)
        np.testing.assert_array_equal(acc, [2.0, -GRAVITY, -1.0])

    def test_drag_distributed_along_velocity(self):
        vel = np.array([30.0, 40.0])
        acc = compute_acceleration(vel, STABLE, gravity=0.0)
        drag = drag_magnitude(50.0, STABLE.caliber, STABLE.ballistic_coefficient)
        np.testing.assert_allclose(acc, [drag * 0.6, drag * 0.8])

    def test_acceleration_is_forces_plus_drag_model(self):
        params = STABLE.with_changes(wind=3.0)
        vel = np.array([120.0, -35.0])
        model = DragModel(params.caliber, params.ballistic_coefficient)
        expected = np.array([3.0, -GRAVITY]) + model.acceleration(vel)
        np.testing.assert_allclose(compute_acceleration(vel, params), expected)


class TestIntegrator:
    """Semi-implicit Euler stepping."""

    def test_zero_speed_step_applies_only_gravity(self):
        for caliber, bc in [(0.00762, 0.4), (0.1, 0.9), (1.0, 5.0)]:
            dt = 0.01
            integ = TrajectoryIntegrator()
            params = SimulationParameters(wind=0.0, caliber=caliber,
                                          ballistic_coefficient=bc)
            integ.step(dt, params)
            _, vel = integ.state()
            assert vel[0] == 0.0
            assert vel[1] == 0.0 - 9.81 * dt

    def test_position_uses_updated_velocity(self):
        """Semi-implicit, not explicit, Euler: x moves by the *new* v."""
        integ = TrajectoryIntegrator()
        integ.step(1.0, STABLE)
        pos, vel = integ.state()
        np.testing.assert_array_equal(vel, [0.0, -9.81])
        np.testing.assert_array_equal(pos, [0.0, -9.81])

    def test_launch_keeps_position(self):
        integ = TrajectoryIntegrator(Projectile([5.0, 2.0], [0.0, 0.0]))
        integ.launch(90.0, MUZZLE_VELOCITY)
        pos, vel = integ.state()
        np.testing.assert_array_equal(pos, [5.0, 2.0])
        np.testing.assert_allclose(vel, [0.0, MUZZLE_VELOCITY], atol=1e-9)

    def test_state_machine(self):
        integ = TrajectoryIntegrator()
        assert integ.flight_state is FlightState.AT_REST
        integ.launch(10.0)
        assert integ.flight_state is FlightState.IN_FLIGHT

    def test_exposed_vectors_are_read_only(self):
        integ = TrajectoryIntegrator()
        integ.launch(45.0)
        pos = integ.position
        with pytest.raises(ValueError):
            pos[0] = 100.0
        integ.step(0.01, STABLE)
        assert pos[0] == 0.0  # snapshot, not a live view

    @pytest.mark.parametrize("speed", [1.0, 50.0, 850.0])
    def test_speed_decays_without_gravity_or_wind(self, speed):
        integ = TrajectoryIntegrator(Projectile([0.0, 0.0], [0.6 * speed, 0.8 * speed]),
                                     gravity=0.0)
        speeds = [integ.projectile.speed]
        for _ in range(200):
            integ.step(0.01, STABLE)
            speeds.append(integ.projectile.speed)
        assert all(b < a for a, b in zip(speeds, speeds[1:]))

    def test_end_to_end_one_second(self):
        params = STABLE.with_changes(elevation_deg=45.0)
        integ = TrajectoryIntegrator()
        integ.launch(45.0, MUZZLE_VELOCITY)

        positions, velocities = [], []
        for _ in range(100):
            integ.step(0.01, params)
            pos, vel = integ.state()
            positions.append(pos)
            velocities.append(vel)

        assert np.linalg.norm(velocities[0]) < MUZZLE_VELOCITY
        ys = [p[1] for p in positions]
        assert ys[0] > 0.0
        assert all(b > a for a, b in zip(ys[:10], ys[1:10]))
        # Path bends downward every tick: slope vy/vx strictly falls
        slopes = [v[1] / v[0] for v in velocities]
        assert all(b < a for a, b in zip(slopes, slopes[1:]))
        assert np.all(np.isfinite(positions))
        assert integ.time == pytest.approx(1.0)

    def test_form_defaults_overshoot_then_refuse_to_overflow(self):
        """Explicit drag at 0.4 BC / 7.62 mm is far too stiff for 10 ms ticks."""
        integ = TrajectoryIntegrator()
        integ.launch(45.0)
        integ.step(0.01, FORM_DEFAULTS)
        assert integ.velocity[0] < 0.0  # drag reversed the motion

        for _ in range(50):
            before = integ.state()
            try:
                integ.step(0.01, FORM_DEFAULTS)
            except NumericalInstabilityError:
                break
        else:
            pytest.fail("expected the step to be refused")

        after = integ.state()
        np.testing.assert_array_equal(after[0], before[0])
        np.testing.assert_array_equal(after[1], before[1])
        assert np.all(np.isfinite(after[0])) and np.all(np.isfinite(after[1]))

    @pytest.mark.parametrize("bad", [
        SimulationParameters(caliber=0.0, ballistic_coefficient=0.4),
        SimulationParameters(caliber=0.00762, ballistic_coefficient=0.0),
        SimulationParameters(caliber=-1.0, ballistic_coefficient=0.4),
        SimulationParameters(wind=float('nan')),
        SimulationParameters(caliber=float('inf')),
    ])
    def test_invalid_parameters_rejected_without_mutation(self, bad):
        integ = TrajectoryIntegrator()
        integ.launch(30.0)
        before = integ.state()
        with pytest.raises(InvalidParameterError):
            integ.step(0.01, bad)
        after = integ.state()
        np.testing.assert_array_equal(before[0], after[0])
        np.testing.assert_array_equal(before[1], after[1])
        assert integ.steps == 0

    @pytest.mark.parametrize("dt", [0.0, -0.01, float('nan'), float('inf')])
    def test_invalid_dt_rejected(self, dt):
        integ = TrajectoryIntegrator()
        with pytest.raises(InvalidParameterError):
            integ.step(dt, STABLE)

    def test_launch_rejects_non_finite_elevation(self):
        with pytest.raises(InvalidParameterError):
            TrajectoryIntegrator().launch(float('nan'))

    def test_crosswind_drifts_3d_projectile(self):
        params = STABLE.with_changes(wind=(0.0, 0.0, 5.0))
        integ = TrajectoryIntegrator(dimensions=3)
        integ.launch(20.0)
        for _ in range(50):
            integ.step(0.01, params)
        assert integ.position[2] > 0.0


class TestFly:
    """Batch driver and recorded history."""

    def test_returns_to_ground(self):
        params = STABLE.with_changes(elevation_deg=45.0)
        result = fly(params, dt=0.01)
        assert not result.diverged
        assert result.y[-1] < 0.0
        assert np.all(result.y[1:-1] >= 0.0)
        assert result.range_total > 0
        assert result.max_altitude > 0
        assert "Range" in result.summary()

    def test_fixed_tick_count_without_stop(self):
        result = fly(STABLE.with_changes(elevation_deg=45.0), dt=0.01,
                     max_time=1.0, stop=None)
        assert len(result.time) == 101
        assert result.position.shape == (101, 2)

    def test_diverging_flight_keeps_finite_history(self):
        result = fly(FORM_DEFAULTS.with_changes(elevation_deg=45.0), dt=0.01,
                     max_time=1.0, stop=None)
        assert result.diverged
        assert len(result.time) < 101
        assert np.all(np.isfinite(result.position))
        assert "DIVERGED" in result.summary()

    def test_headwind_reduces_range(self):
        base = STABLE.with_changes(elevation_deg=30.0, ballistic_coefficient=1e7)
        calm = fly(base)
        headwind = fly(base.with_changes(wind=-5.0))
        assert headwind.range_total < calm.range_total

    def test_until_ground_needs_a_step(self):
        integ = TrajectoryIntegrator()
        assert not until_ground(integ)


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
