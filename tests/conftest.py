import numpy as np
import pytest
import torch


@pytest.fixture(params=["numpy", "torch"])
def backend(request):
    return request.param


@pytest.fixture
def convert(backend):
    """Convert a NumPy array to the backend under test (float64)."""

    def _convert(x):
        x = np.asarray(x, dtype=np.float64)
        if backend == "torch":
            return torch.as_tensor(x)
        return x

    return _convert


@pytest.fixture
def to_numpy():
    def _to_numpy(x):
        if isinstance(x, torch.Tensor):
            return x.detach().cpu().numpy()
        return np.asarray(x)

    return _to_numpy


@pytest.fixture
def corner_positions():
    """Three frames turning a right-angled corner; unit speeds give t = [0, 1, 2]."""
    return np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0]])
