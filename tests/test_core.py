"""
Unit tests for the data, correlation and PCA helpers.
"""

import numpy as np
import pandas as pd
import pytest

from penguin_pca_core import (
    ID_COLUMNS,
    MEASUREMENT_COLUMNS,
    build_pca_pipeline,
    component_titles,
    correlation_table,
    drop_incomplete_rows,
    group_summary,
    load_dataset,
    loadings_long,
    loadings_wide,
    pca_loadings,
    pca_variance,
    prepare_pca,
    stretch_correlation,
    summary_statistics,
)


# Loading

def test_load_dataset_coerces_measurements_and_ids(penguins_csv):
    df = load_dataset(str(penguins_csv))

    assert len(df) == 120
    for column in MEASUREMENT_COLUMNS:
        assert df[column].dtype == np.float64
    assert df["year"].dropna().isin(["2007", "2008", "2009"]).all()
    assert df.loc[3, MEASUREMENT_COLUMNS].isna().all()
    assert pd.isna(df.loc[10, "sex"])


def test_load_dataset_keeps_integer_years_when_one_is_missing(tmp_path, penguins):
    raw = penguins.copy()
    raw["year"] = raw["year"].astype(int)
    raw = raw.astype({"year": object})
    raw.loc[5, "year"] = None
    path = tmp_path / "penguins.csv"
    raw.to_csv(path, index=False, na_rep="NA")

    df = load_dataset(str(path))

    assert sorted(df["year"].dropna().unique()) == ["2007", "2008", "2009"]
    assert pd.isna(df.loc[5, "year"])


def test_load_dataset_turns_invalid_measurements_into_nan(tmp_path, penguins):
    raw = penguins.astype({"bill_length_mm": object})
    raw.loc[0, "bill_length_mm"] = "not measured"
    path = tmp_path / "penguins.csv"
    raw.to_csv(path, index=False)

    df = load_dataset(str(path))

    assert np.isnan(df.loc[0, "bill_length_mm"])
    assert df["bill_length_mm"].dtype == np.float64


def test_load_dataset_reads_excel(tmp_path, penguins):
    path = tmp_path / "penguins.xlsx"
    penguins.to_excel(path, index=False)

    df = load_dataset(str(path))

    assert list(df.columns) == list(penguins.columns)
    assert len(df) == len(penguins)


def test_load_dataset_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_dataset(str(tmp_path / "absent.csv"))


def test_load_dataset_missing_columns(tmp_path, penguins):
    path = tmp_path / "penguins.csv"
    penguins.drop(columns=["body_mass_g"]).to_csv(path, index=False)

    with pytest.raises(ValueError, match="body_mass_g"):
        load_dataset(str(path))


# Missing values

def test_drop_incomplete_rows_keeps_every_complete_row(penguins):
    complete = drop_incomplete_rows(penguins, MEASUREMENT_COLUMNS)

    assert len(complete) <= len(penguins)
    assert len(complete) == 117
    expected = penguins.index[penguins[MEASUREMENT_COLUMNS].notna().all(axis=1)]
    assert complete.index.equals(expected)
    assert complete[MEASUREMENT_COLUMNS].notna().all().all()


def test_drop_incomplete_rows_is_identity_on_complete_data(penguins):
    complete = drop_incomplete_rows(penguins, MEASUREMENT_COLUMNS)

    again = drop_incomplete_rows(complete, MEASUREMENT_COLUMNS)

    pd.testing.assert_frame_equal(again, complete)


def test_drop_incomplete_rows_ignores_other_columns(penguins):
    # Row 10 lacks only its sex, which is not a measurement.
    complete = drop_incomplete_rows(penguins, MEASUREMENT_COLUMNS)

    assert 10 in complete.index


# Summaries

def test_summary_statistics_has_one_row_per_measurement(penguins):
    stats = summary_statistics(penguins, MEASUREMENT_COLUMNS)

    assert list(stats.index) == MEASUREMENT_COLUMNS
    assert stats.loc["body_mass_g", "count"] == 117


def test_group_summary_counts_and_means(penguins):
    summary = group_summary(penguins, ["species"], ["flipper_length_mm", "body_mass_g"])

    assert list(summary.columns) == ["species", "n", "flipper_length_mm", "body_mass_g"]
    assert summary["n"].tolist() == [40, 40, 40]
    gentoo = summary.set_index("species").loc["Gentoo"]
    assert gentoo["body_mass_g"] == pytest.approx(
        penguins.loc[penguins["species"] == "Gentoo", "body_mass_g"].mean()
    )


def test_group_summary_skips_missing_groups(penguins):
    summary = group_summary(penguins, ["species", "sex"], ["bill_depth_mm"])

    assert summary["sex"].notna().all()
    assert summary["n"].sum() == len(penguins) - 1


# Correlation

def test_correlation_table_is_symmetric_with_unit_diagonal(penguins):
    corr = correlation_table(penguins, MEASUREMENT_COLUMNS)

    values = corr.to_numpy()
    np.testing.assert_allclose(values, values.T)
    np.testing.assert_allclose(np.diag(values), 1.0)
    assert list(corr.index) == list(corr.columns)
    assert sorted(corr.columns) == sorted(MEASUREMENT_COLUMNS)


def test_correlation_table_without_rearrange_keeps_order(penguins):
    corr = correlation_table(penguins, MEASUREMENT_COLUMNS, rearrange=False)

    assert list(corr.columns) == MEASUREMENT_COLUMNS


def test_correlation_table_rearrange_keeps_coefficients(penguins):
    plain = correlation_table(penguins, MEASUREMENT_COLUMNS, rearrange=False)
    ordered = correlation_table(penguins, MEASUREMENT_COLUMNS)

    pd.testing.assert_frame_equal(ordered.loc[MEASUREMENT_COLUMNS, MEASUREMENT_COLUMNS], plain)


def test_correlation_table_groups_flipper_with_body_mass(penguins):
    order = list(correlation_table(penguins, MEASUREMENT_COLUMNS).columns)

    # Bill depth is negatively related to the rest, so it ends up at one edge.
    assert order.index("bill_depth_mm") in (0, len(order) - 1)


def test_correlation_table_with_constant_column(penguins):
    df = penguins.assign(bill_depth_mm=15.0)

    corr = correlation_table(df, MEASUREMENT_COLUMNS)

    assert list(corr.columns) == MEASUREMENT_COLUMNS
    assert corr["bill_depth_mm"].drop("bill_depth_mm").isna().all()


def test_stretch_correlation_lists_unique_pairs_by_strength(penguins):
    pairs = stretch_correlation(correlation_table(penguins, MEASUREMENT_COLUMNS))

    assert len(pairs) == 6
    assert list(pairs.columns) == ["x", "y", "r"]
    strengths = pairs["r"].abs().tolist()
    assert strengths == sorted(strengths, reverse=True)
    assert not (pairs["x"] == pairs["y"]).any()


# Pipeline

def test_build_pca_pipeline_steps():
    assert list(build_pca_pipeline("drop").named_steps) == ["normalize", "pca"]
    assert list(build_pca_pipeline("median").named_steps) == ["impute", "normalize", "pca"]


def test_build_pca_pipeline_rejects_unknown_strategy():
    with pytest.raises(ValueError, match="Unknown impute strategy"):
        build_pca_pipeline("interpolate")


def test_prepare_pca_drops_incomplete_rows(penguins):
    scores, pipeline = prepare_pca(penguins, MEASUREMENT_COLUMNS, ID_COLUMNS)

    assert len(scores) == 117
    assert list(scores.columns) == ID_COLUMNS + ["PC1", "PC2", "PC3", "PC4"]
    assert scores.index.isin(penguins.index).all()
    pd.testing.assert_series_equal(scores["species"], penguins.loc[scores.index, "species"])
    assert pipeline.named_steps["pca"].n_components_ == 4


def test_prepare_pca_scores_are_centered(penguins):
    scores, _ = prepare_pca(penguins)

    np.testing.assert_allclose(scores[["PC1", "PC2", "PC3", "PC4"]].mean(), 0.0, atol=1e-10)


def test_prepare_pca_with_imputation_keeps_all_rows(penguins):
    scores, pipeline = prepare_pca(penguins, impute_strategy="mean")

    assert len(scores) == len(penguins)
    assert scores[["PC1", "PC2"]].notna().all().all()
    assert "impute" in pipeline.named_steps


def test_prepare_pca_rejects_measurement_without_observations(penguins):
    adelie = penguins[penguins["species"] == "Adelie"].copy()
    adelie["body_mass_g"] = np.nan

    for strategy in ("mean", "median", "drop"):
        with pytest.raises(ValueError, match="body_mass_g"):
            prepare_pca(adelie, impute_strategy=strategy)


def test_prepare_pca_imputes_partially_missing_group(penguins):
    adelie = penguins[penguins["species"] == "Adelie"].copy()
    adelie.loc[adelie.index[:5], "body_mass_g"] = np.nan

    _, pipeline = prepare_pca(adelie, impute_strategy="mean")

    loadings = pca_loadings(pipeline, MEASUREMENT_COLUMNS)
    assert set(loadings["terms"]) == set(MEASUREMENT_COLUMNS)


def test_prepare_pca_limits_components(penguins):
    scores, _ = prepare_pca(penguins, n_components=2)

    assert [column for column in scores.columns if column.startswith("PC")] == ["PC1", "PC2"]


def test_prepare_pca_skips_absent_id_columns(penguins):
    scores, _ = prepare_pca(penguins.drop(columns=["island", "year"]))

    assert list(scores.columns[:2]) == ["species", "sex"]


def test_prepare_pca_does_not_mutate_input(penguins):
    before = penguins.copy()

    prepare_pca(penguins, impute_strategy="median")

    pd.testing.assert_frame_equal(penguins, before)


# Loadings and variance

def test_pca_loadings_long_format(penguins):
    _, pipeline = prepare_pca(penguins)

    loadings = pca_loadings(pipeline, MEASUREMENT_COLUMNS)

    assert list(loadings.columns) == ["terms", "value", "component"]
    assert len(loadings) == 16
    assert loadings["component"].unique().tolist() == ["PC1", "PC2", "PC3", "PC4"]
    assert loadings.loc[loadings["component"] == "PC1", "terms"].tolist() == MEASUREMENT_COLUMNS


def test_pca_loadings_are_orthonormal(penguins):
    _, pipeline = prepare_pca(penguins)

    wide = loadings_wide(pca_loadings(pipeline, MEASUREMENT_COLUMNS))
    vectors = wide[["PC1", "PC2", "PC3", "PC4"]].to_numpy()

    np.testing.assert_allclose(vectors.T @ vectors, np.eye(4), atol=1e-10)


def test_pc1_is_a_size_axis(penguins):
    _, pipeline = prepare_pca(penguins)

    pc1 = loadings_wide(pca_loadings(pipeline)).set_index("terms")["PC1"]

    # Flipper length and body mass load together, bill depth against them.
    assert np.sign(pc1["flipper_length_mm"]) == np.sign(pc1["body_mass_g"])
    assert np.sign(pc1["bill_depth_mm"]) != np.sign(pc1["body_mass_g"])


def test_pca_variance_percent_sums_to_100(penguins):
    _, pipeline = prepare_pca(penguins)

    variance = pca_variance(pipeline)

    percent = variance.loc[variance["terms"] == "percent variance", "value"]
    cumulative = variance.loc[variance["terms"] == "cumulative percent variance", "value"]
    assert percent.sum() == pytest.approx(100.0)
    assert cumulative.iloc[-1] == pytest.approx(100.0)
    assert cumulative.is_monotonic_increasing
    assert percent.is_monotonic_decreasing


def test_pca_variance_table_shape(penguins):
    _, pipeline = prepare_pca(penguins)

    variance = pca_variance(pipeline)

    assert len(variance) == 16
    assert variance["terms"].unique().tolist() == [
        "variance",
        "cumulative variance",
        "percent variance",
        "cumulative percent variance",
    ]
    assert variance["component"].unique().tolist() == [1, 2, 3, 4]


def test_pca_variance_with_fewer_components(penguins):
    _, pipeline = prepare_pca(penguins, n_components=2)

    variance = pca_variance(pipeline)

    percent = variance.loc[variance["terms"] == "percent variance", "value"]
    assert len(percent) == 2
    assert percent.sum() < 100.0


def test_component_titles(penguins):
    _, pipeline = prepare_pca(penguins)

    titles = component_titles(pca_variance(pipeline))

    assert set(titles) == {"PC1", "PC2", "PC3", "PC4"}
    assert titles["PC1"].startswith("PC1 (")
    assert titles["PC1"].endswith("%)")


# Reshaping

def test_loadings_long_wide_long_round_trip(penguins):
    _, pipeline = prepare_pca(penguins)
    long = pca_loadings(pipeline, MEASUREMENT_COLUMNS)

    restored = loadings_long(loadings_wide(long))

    pd.testing.assert_frame_equal(restored, long)


def test_loadings_wide_long_wide_round_trip():
    wide = pd.DataFrame(
        {
            "terms": ["body_mass_g", "bill_depth_mm"],
            "PC1": [0.6, -0.8],
            "PC2": [0.8, 0.6],
        }
    )

    restored = loadings_wide(loadings_long(wide))

    pd.testing.assert_frame_equal(restored, wide)


def test_loadings_wide_keeps_first_seen_order():
    long = pd.DataFrame(
        {
            "terms": ["z", "a", "z", "a"],
            "value": [1.0, 2.0, 3.0, 4.0],
            "component": ["PC2", "PC2", "PC1", "PC1"],
        }
    )

    wide = loadings_wide(long)

    assert wide["terms"].tolist() == ["z", "a"]
    assert list(wide.columns) == ["terms", "PC2", "PC1"]
    assert wide.loc[1, "PC1"] == 4.0
