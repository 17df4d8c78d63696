"""
Test configuration and fixtures.
"""

import numpy as np
import pandas as pd
import pytest

from penguin_pca_core import MEASUREMENT_COLUMNS, load_dataset

# Species means (bill length, bill depth, flipper length, body mass) and home island.
SPECIES_PROFILES = {
    "Adelie": (38.8, 18.3, 190.0, 3700.0, "Torgersen"),
    "Chinstrap": (48.8, 18.4, 195.8, 3733.0, "Dream"),
    "Gentoo": (47.5, 15.0, 217.2, 5076.0, "Biscoe"),
}
ROWS_PER_SPECIES = 40


@pytest.fixture(autouse=True)
def clear_dataset_cache():
    """Each test reads its own files; never serve a frame cached by another test."""
    load_dataset.cache_clear()
    yield
    load_dataset.cache_clear()


@pytest.fixture
def penguins():
    """Provide a penguin-like table with a shared size factor and three incomplete specimens."""
    rng = np.random.default_rng(7)
    frames = []
    for species, (bill_length, bill_depth, flipper, mass, island) in SPECIES_PROFILES.items():
        size = rng.normal(0.0, 1.0, ROWS_PER_SPECIES)
        frames.append(
            pd.DataFrame(
                {
                    "species": species,
                    "island": island,
                    "bill_length_mm": bill_length + 2.5 * size + rng.normal(0.0, 1.5, ROWS_PER_SPECIES),
                    "bill_depth_mm": bill_depth + 0.6 * size + rng.normal(0.0, 0.6, ROWS_PER_SPECIES),
                    "flipper_length_mm": flipper + 5.0 * size + rng.normal(0.0, 3.0, ROWS_PER_SPECIES),
                    "body_mass_g": mass + 350.0 * size + rng.normal(0.0, 200.0, ROWS_PER_SPECIES),
                    "sex": rng.choice(["female", "male"], ROWS_PER_SPECIES),
                    "year": rng.choice(["2007", "2008", "2009"], ROWS_PER_SPECIES),
                }
            )
        )
    df = pd.concat(frames, ignore_index=True)
    # Two specimens without any measurement and one without body mass.
    df.loc[[3, 50], MEASUREMENT_COLUMNS] = np.nan
    df.loc[90, "body_mass_g"] = np.nan
    df.loc[10, "sex"] = np.nan
    return df


@pytest.fixture
def penguins_csv(tmp_path, penguins):
    """Write the synthetic table the way the published CSV looks: literal NA and integer years."""
    raw = penguins.copy()
    raw["year"] = raw["year"].astype(int)
    path = tmp_path / "penguins.csv"
    raw.to_csv(path, index=False, na_rep="NA")
    return path
