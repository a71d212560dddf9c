"""
Smoke tests for the rendering and analysis scripts.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT / "src", ROOT / "src" / "scripts"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import analyse_flow  # type: ignore[import]
import plot_flow  # type: ignore[import]
import run_sim  # type: ignore[import]
from fhp_sim import LatticeGasConfig, LatticeGasSimulator, utils


@pytest.fixture
def small_result():
    sim = LatticeGasSimulator(LatticeGasConfig(rows=6, cols=8, seed=2, verbose=False))
    sim.run(3)
    return sim.result()


def test_render_frame_writes_png(tmp_path, small_result):
    out = tmp_path / "frame.png"
    fig = plot_flow.render_frame(
        small_result.frames[-1], 6, 8, small_result.kind, title="t=3", output=str(out)
    )
    assert out.exists() and out.stat().st_size > 0
    plot_flow.plt.close(fig)

    with pytest.raises(ValueError):
        plot_flow.render_frame(np.zeros(10), 6, 8, small_result.kind)


def test_render_animation_writes_gif(tmp_path, small_result):
    out = tmp_path / "flow.gif"
    plot_flow.render_animation(small_result, str(out), fps=10, dpi=40)
    assert out.exists() and out.stat().st_size > 0

    with pytest.raises(ValueError):
        plot_flow.render_animation(small_result, str(tmp_path / "flow.mp4"))


def test_format_title():
    assert plot_flow.format_title({}) is None
    title = plot_flow.format_title({"model": "fhp", "rows": 4, "cols": 5, "seed": 1}, t=7)
    assert title == "Model=fhp | 4x5 | seed=1 | t=7"


def test_parabolic_profile_fit():
    rows, cols = 9, 4
    row_idx = np.arange(rows)
    u = 1.5 - 0.1 * (row_idx - 4.0) ** 2
    frames = np.repeat(u, cols)[None, :].repeat(3, axis=0)
    kind = np.zeros(rows * cols, dtype=np.uint8)
    kind[:cols] = 1
    kind[-cols:] = 1

    air_rows, profile = analyse_flow.row_profile(frames, rows, cols, kind)
    np.testing.assert_array_equal(air_rows, np.arange(1, rows - 1))
    np.testing.assert_allclose(profile, u[1:-1])

    a, b, r2 = analyse_flow.fit_parabolic_profile(air_rows, profile)
    assert a == pytest.approx(1.5)
    assert b == pytest.approx(-0.1)
    assert r2 == pytest.approx(1.0)


def test_particle_series():
    counts = np.array([[1, 2, 3], [0, 0, 6]])
    np.testing.assert_array_equal(analyse_flow.particle_series(counts), [6, 6])


def test_run_sim_cli(tmp_path, capsys):
    npz = tmp_path / "run.npz"
    code = run_sim.main(
        ["--rows", "5", "--cols", "6", "--steps", "4", "--seed", "3",
         "--npz", str(npz), "--no-render", "--quiet"]
    )
    assert code == 0
    result = utils.load_run_result(npz)
    assert result.frames.shape == (5, 30)
    assert result.meta["seed"] == 3
    assert "Simulation completed" in capsys.readouterr().out
