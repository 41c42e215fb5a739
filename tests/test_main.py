"""Batch runner end to end (Agg backend, no animation)."""

import sys
import os

import matplotlib
matplotlib.use('Agg')
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import main


class TestRunner:

    def test_form_defaults_complete(self, tmp_path):
        """Defaults hit the ground on the first tick; accuracy is skipped."""
        assert main.main(['--quick', '--out', str(tmp_path)]) == 0
        assert (tmp_path / '01_trajectory.png').exists()
        assert not (tmp_path / '02_convergence.png').exists()

    def test_stable_flight_runs_accuracy_phase(self, tmp_path):
        argv = ['--quick', '--out', str(tmp_path), '--elevation', '45',
                '--bc', '1e6', '--no-clamp-bc', '--max-time', '2']
        assert main.main(argv) == 0
        assert (tmp_path / '01_trajectory.png').exists()
        assert (tmp_path / '02_convergence.png').exists()

    def test_rejected_input_exits_with_usage_code(self, tmp_path):
        assert main.main(['--quick', '--out', str(tmp_path), '--caliber', '0']) == 2


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
