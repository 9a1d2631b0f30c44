import numpy as np
import pytest
from PIL import Image

import analyse
import experiment


@pytest.fixture
def png_file(tmp_path):
    src = np.zeros((4, 8, 3), dtype=np.uint8)
    src[:, 4:] = (200, 0, 0)
    path = tmp_path / "halves.png"
    Image.fromarray(src).save(path)
    return str(path)


def test_aggregate_and_average():
    a = {'png': {'encode': 1, 'decode': 2, 'size': 3}, 'qoi': {'encode': 4, 'decode': 5, 'size': 6}}
    total = experiment.aggregate(a, a)
    assert total['qoi'] == {'encode': 8, 'decode': 10, 'size': 12}
    assert experiment.average(total, 2) == a
    assert experiment.aggregate(experiment.empty_stats(), a) == a


def test_run_benchmark(png_file):
    stats = experiment.run_benchmark(png_file)
    assert set(stats) == {'png', 'qoi'}
    assert stats['qoi']['size'] > 0
    assert stats['png']['encode'] >= 0


def test_op_freq(png_file):
    freq = experiment.op_freq(png_file)
    assert list(freq) == list(experiment.qoi_ops)
    assert sum(freq.values()) > 0
    assert freq['QOI_OP_RGBA'] == 0
    assert freq['QOI_OP_RUN'] > 0


def test_pix_count(png_file):
    assert experiment.pix_count(png_file) == [8, 4]


def test_hash_counts():
    grid = np.array([[(10, 10, 10), (10, 10, 10), (0, 0, 0)]], dtype=np.uint8)
    counts = analyse.hash_counts(grid)
    assert counts.sum() == 3
    assert counts[11] == 2
    assert counts[(255 * 11) % 64] == 1
