"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import pandas as pd
from pathlib import Path

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def mtcars():
    """The classic 32-row mtcars table."""
    return pd.read_csv(FIXTURES / "mtcars.csv")


@pytest.fixture
def mtcars_csv():
    """Path to the mtcars CSV."""
    return FIXTURES / "mtcars.csv"


@pytest.fixture
def grouped_data():
    """Three-group dataset with a linear signal, a noise column and missing values."""
    rng = np.random.default_rng(42)
    n = 90

    x = rng.normal(size=n)
    df = pd.DataFrame(
        {
            "outcome": 2.0 * x + rng.normal(scale=0.5, size=n),
            "signal": x,
            "noise": rng.normal(size=n),
            "site": np.repeat(["north", "south", "west"], n // 3),
            "sex": np.tile(["F", "M"], n // 2),
        }
    )
    df.loc[[3, 40], "noise"] = np.nan
    df.loc[[5, 70], "site"] = None
    return df


@pytest.fixture
def temp_outdir(tmp_path):
    """Provide temporary output directory."""
    outdir = tmp_path / "derived"
    outdir.mkdir()
    return outdir
