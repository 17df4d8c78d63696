"""
Core module annotations: the constants and functions below support data loading, correlation analysis, the
preprocessing + PCA pipeline, and the Plotly visualizations used throughout the penguin article.
"""

# Allow future-style annotations such as list[str] even on older Python versions.
from __future__ import annotations

# Module-level logger configured by the entry points (Streamlit app and export CLI).
import logging
# Read optional overrides such as the dataset path from the environment.
import os
# Cache dataset reads via an LRU decorator so repeated calls are inexpensive.
from functools import lru_cache
# Represent filesystem locations in a cross-platform way.
from pathlib import Path
# Provide type hints for iterable parameters.
from typing import Iterable

# Numerical routines used for ordering, masking and cumulative sums.
import numpy as np
# Pandas supplies tabular structures and I/O helpers.
import pandas as pd
# Plotly Express builds quick exploratory charts.
import plotly.express as px
# Plotly Graph Objects provides fine-grained plot assembly (e.g., for the biplot).
import plotly.graph_objects as go
# Use scikit-learn's PCA implementation.
from sklearn.decomposition import PCA
# Fill missing measurements when the caller prefers imputation over dropping rows.
from sklearn.impute import SimpleImputer
# Chain the preprocessing steps and the rotation into one declarative object.
from sklearn.pipeline import Pipeline
# Standardize columns so each has zero mean and unit variance.
from sklearn.preprocessing import StandardScaler


logger = logging.getLogger(__name__)

# Point to the source table, typically data/penguins.csv; PENGUIN_PCA_DATA_PATH overrides it.
DATA_PATH = Path(os.getenv("PENGUIN_PCA_DATA_PATH", "data/penguins.csv"))

# Default logging level for the entry points, e.g. "DEBUG" to trace pipeline fits.
LOG_LEVEL = os.getenv("PENGUIN_PCA_LOG_LEVEL", "INFO")

# Categorical column used to color and group specimens.
GROUP_COLUMN = "species"

# Columns that identify a specimen rather than measure it; they ride along with the PCA scores.
ID_COLUMNS: list[str] = ["species", "island", "sex", "year"]

# Readable axis labels keyed by measurement column, e.g. "bill_length_mm" -> "Bill length (mm)".
MEASUREMENT_LABELS: dict[str, str] = {
    "bill_length_mm": "Bill length (mm)",
    "bill_depth_mm": "Bill depth (mm)",
    "flipper_length_mm": "Flipper length (mm)",
    "body_mass_g": "Body mass (g)",
}

# Continuous measurements fed to the correlation table and the PCA pipeline.
MEASUREMENT_COLUMNS: list[str] = list(MEASUREMENT_LABELS.keys())

# One fixed color per species so every chart in the article agrees.
SPECIES_COLORS: dict[str, str] = {
    "Adelie": "#ff8c00",
    "Chinstrap": "#a034f0",
    "Gentoo": "#159090",
}

# Accepted ways of handling missing measurements before the decomposition.
IMPUTE_STRATEGIES: tuple[str, ...] = ("drop", "mean", "median")

# Statistic names emitted by pca_variance, in display order.
VARIANCE_TERMS: tuple[str, ...] = (
    "variance",
    "cumulative variance",
    "percent variance",
    "cumulative percent variance",
)

# Shared Plotly configuration turns off the logo and enables responsive resizing.
PLOTLY_CONFIG: dict[str, object] = {
    "displaylogo": False,
    "responsive": True,
}

_ARROW_COLOR = "#0a537d"
_MARGIN = dict(l=0, r=0, t=40, b=0)


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler; repeated calls are no-ops once a handler exists."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_table(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in {".xlsx", ".xls"}:
        return pd.read_excel(path)
    return pd.read_csv(path)


def _identity_strings(values: pd.Series) -> pd.Series:
    # A single NA turns an integer column such as year into floats; render 2007.0 back as "2007".
    if pd.api.types.is_float_dtype(values):
        observed = values.dropna()
        if (observed == observed.round()).all():
            values = values.astype("Int64")
    return values.astype(str).where(values.notna())


# Cache load_dataset results to avoid repeatedly reading from disk.
@lru_cache(maxsize=4)
def load_dataset(path: str = str(DATA_PATH)) -> pd.DataFrame:
    """
    Read and sanitize the penguin measurements table.

    Example argument:
        path="data/penguins.csv"
    Example return row:
        {"species": "Adelie", "island": "Torgersen", "bill_length_mm": 39.1, ..., "sex": "male", "year": "2007"}
    """

    # Convert the input string to a Path for existence checks.
    dataset_path = Path(path)
    # Raise a FileNotFoundError so the caller can warn the user if the file is missing.
    if not dataset_path.exists():
        raise FileNotFoundError(dataset_path)
    logger.info("Loading dataset: %s", dataset_path)
    # pandas already maps the literal "NA" used by the published CSV to NaN.
    df = _read_table(dataset_path).copy()

    # Refuse tables that lack the grouping column or any measurement.
    required = [GROUP_COLUMN, *MEASUREMENT_COLUMNS]
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise ValueError(f"Missing expected columns {missing} in {dataset_path}")

    # Cast measurements to floats; invalid entries become NaN for safe math operations.
    df[MEASUREMENT_COLUMNS] = df[MEASUREMENT_COLUMNS].apply(pd.to_numeric, errors="coerce")
    # Normalize identity columns to strings (e.g., year 2007 -> "2007") while keeping NaN as missing.
    for column in ID_COLUMNS:
        if column in df.columns:
            df[column] = _identity_strings(df[column])

    logger.info("Loaded %d specimens with columns %s", len(df), list(df.columns))
    # Return the cleaned dataset.
    return df


def drop_incomplete_rows(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """
    Keep only rows with a value in every one of ``columns``.

    Complete rows are never removed and keep their original index labels, so the result can be joined back to
    ``df``.
    """

    columns = list(columns)
    complete = df.dropna(subset=columns)
    dropped = len(df) - len(complete)
    if dropped:
        logger.info("Dropped %d of %d rows with missing values in %s", dropped, len(df), columns)
    return complete.copy()


def summary_statistics(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    return df[list(columns)].describe().T


def group_summary(
    df: pd.DataFrame,
    group_columns: Iterable[str],
    value_columns: Iterable[str],
) -> pd.DataFrame:
    """
    Average each value column within groups, ignoring missing values.

    Example argument:
        group_columns=["species"], value_columns=["flipper_length_mm", "body_mass_g"]
    Example return row:
        {"species": "Gentoo", "n": 124, "flipper_length_mm": 217.2, "body_mass_g": 5076.0}
    """

    group_columns = list(group_columns)
    value_columns = list(value_columns)
    grouped = df.groupby(group_columns, dropna=True)
    summary = grouped[value_columns].mean()
    # Count specimens per group so small groups are easy to spot next to their means.
    summary.insert(0, "n", grouped.size())
    return summary.reset_index()


def _leading_eigenvector_order(corr: pd.DataFrame) -> list[str]:
    # An undefined coefficient (e.g. a constant column) leaves the original order untouched.
    if corr.isna().to_numpy().any():
        return list(corr.columns)
    _, eigenvectors = np.linalg.eigh(corr.to_numpy())
    order = np.argsort(eigenvectors[:, -1], kind="stable")
    return [corr.columns[i] for i in order]


def correlation_table(
    df: pd.DataFrame,
    columns: Iterable[str],
    method: str = "pearson",
    rearrange: bool = True,
) -> pd.DataFrame:
    """
    Compute the pairwise correlation matrix of ``columns`` over complete rows.

    Example argument:
        columns=["bill_length_mm", "bill_depth_mm", "flipper_length_mm", "body_mass_g"]
    Example return:
        square DataFrame with corr.loc["flipper_length_mm", "body_mass_g"] == 0.87 and ones on the diagonal

    When ``rearrange`` is true, variables are reordered along the leading eigenvector of the matrix so that
    strongly correlated measurements sit next to each other.
    """

    # Materialize the columns so they can be used for both subsetting and ordering.
    columns = list(columns)
    # Use the same complete-case rows the PCA pipeline sees by default.
    complete = drop_incomplete_rows(df, columns)
    # Delegate the coefficients to pandas (pearson, spearman or kendall).
    corr = complete[columns].corr(method=method)
    # Optionally reorder rows and columns together so the matrix stays symmetric.
    if rearrange:
        order = _leading_eigenvector_order(corr)
        corr = corr.loc[order, order]
    return corr


def stretch_correlation(corr: pd.DataFrame) -> pd.DataFrame:
    """Flatten the upper triangle of ``corr`` into (x, y, r) rows, strongest relationships first."""

    names = list(corr.columns)
    rows = [
        {"x": names[i], "y": names[j], "r": corr.iloc[i, j]}
        for i in range(len(names))
        for j in range(i + 1, len(names))
    ]
    pairs = pd.DataFrame(rows, columns=["x", "y", "r"])
    return pairs.sort_values("r", key=lambda r: r.abs(), ascending=False, ignore_index=True)


def build_pca_pipeline(impute_strategy: str = "drop", n_components: int | None = None) -> Pipeline:
    """
    Assemble the impute -> normalize -> rotate pipeline.

    With ``impute_strategy="drop"`` the pipeline has no imputation step and callers must pass complete rows
    (see ``prepare_pca``); "mean" and "median" fill gaps with a ``SimpleImputer`` instead.
    """

    if impute_strategy not in IMPUTE_STRATEGIES:
        raise ValueError(
            f"Unknown impute strategy {impute_strategy!r}; expected one of {', '.join(IMPUTE_STRATEGIES)}"
        )
    steps: list[tuple[str, object]] = []
    if impute_strategy != "drop":
        steps.append(("impute", SimpleImputer(strategy=impute_strategy)))
    # StandardScaler both centers and scales each measurement.
    steps.append(("normalize", StandardScaler()))
    steps.append(("pca", PCA(n_components=n_components)))
    return Pipeline(steps)


def _component_labels(count: int) -> list[str]:
    return [f"PC{i + 1}" for i in range(count)]


def prepare_pca(
    df: pd.DataFrame,
    numeric_columns: Iterable[str] = MEASUREMENT_COLUMNS,
    id_columns: Iterable[str] = ID_COLUMNS,
    impute_strategy: str = "drop",
    n_components: int | None = None,
) -> tuple[pd.DataFrame, Pipeline]:
    """
    Fit the preprocessing + PCA pipeline and score every specimen used in the fit.

    Example return:
        scores_df head -> species="Adelie", island="Torgersen", ..., PC1=-1.85, PC2=-0.03, PC3=0.23, PC4=0.49;
        pipeline.named_steps["pca"].components_.shape == (4, 4)
    """

    # Ensure numeric_columns is materialized as a list for index operations.
    numeric_columns = list(numeric_columns)
    # Carry only the identity columns this table actually has.
    id_columns = [column for column in id_columns if column in df.columns]
    # Build the pipeline first so an unknown strategy fails before any data work.
    pipeline = build_pca_pipeline(impute_strategy, n_components)
    # An imputer would silently discard a column it cannot fill, leaving fewer components than measurements.
    empty = [column for column in numeric_columns if df[column].notna().sum() == 0]
    if empty:
        raise ValueError(f"No observed values in measurement columns {empty}")
    # Drop incomplete specimens unless the pipeline is going to impute them.
    data = drop_incomplete_rows(df, numeric_columns) if impute_strategy == "drop" else df
    # Fit the pipeline and compute each row's score along every retained component.
    components = pipeline.fit_transform(data[numeric_columns])
    # Wrap the scores in a DataFrame using the original index for easy joins.
    scores = pd.DataFrame(components, columns=_component_labels(components.shape[1]), index=data.index)
    logger.info(
        "Fitted PCA pipeline (%s) on %d rows x %d measurements; kept %d components",
        " -> ".join(pipeline.named_steps),
        len(data),
        len(numeric_columns),
        components.shape[1],
    )
    # Return the identity columns next to the scores, plus the fitted pipeline.
    return pd.concat([data[id_columns], scores], axis=1), pipeline


def loadings_long(wide: pd.DataFrame) -> pd.DataFrame:
    """
    Melt a wide loadings table (terms, PC1, PC2, ...) into one row per (term, component).

    Example return row:
        {"terms": "bill_length_mm", "value": 0.45, "component": "PC1"}
    """

    long = wide.melt(id_vars="terms", var_name="component", value_name="value")
    return long[["terms", "value", "component"]]


def loadings_wide(long: pd.DataFrame) -> pd.DataFrame:
    """Pivot the long loadings table back to one row per term, keeping the original term and component order."""

    terms = list(dict.fromkeys(long["terms"]))
    components = list(dict.fromkeys(long["component"]))
    wide = long.pivot(index="terms", columns="component", values="value")
    wide = wide.loc[terms, components].reset_index()
    wide.columns.name = None
    return wide


def pca_loadings(pipeline: Pipeline, numeric_columns: Iterable[str] = MEASUREMENT_COLUMNS) -> pd.DataFrame:
    """Extract the fitted rotation as a long table with terms, value and component columns."""

    pca = pipeline.named_steps["pca"]
    wide = pd.DataFrame(pca.components_.T, columns=_component_labels(pca.n_components_))
    wide.insert(0, "terms", list(numeric_columns))
    return loadings_long(wide)


def pca_variance(pipeline: Pipeline) -> pd.DataFrame:
    """
    Summarize the variance captured by each component.

    Example return rows:
        {"terms": "percent variance", "value": 68.6, "component": 1}
        {"terms": "cumulative percent variance", "value": 88.1, "component": 2}
    """

    # Access the fitted PCA step at the end of the pipeline.
    pca = pipeline.named_steps["pca"]
    # Eigenvalues of the standardized data, one per retained component.
    variance = pca.explained_variance_
    # Share of the total variance, expressed in percent so retained components sum to 100 when all are kept.
    percent = pca.explained_variance_ratio_ * 100
    statistics = dict(
        zip(VARIANCE_TERMS, [variance, np.cumsum(variance), percent, np.cumsum(percent)])
    )
    # Components are numbered from 1 to match the "PCn" labels elsewhere.
    components = np.arange(1, len(variance) + 1)
    frames = [
        pd.DataFrame({"terms": name, "value": values, "component": components})
        for name, values in statistics.items()
    ]
    return pd.concat(frames, ignore_index=True)


def component_titles(variance: pd.DataFrame) -> dict[str, str]:
    """Map "PC1" to "PC1 (68.6%)" using the percent variance rows of ``variance``."""

    percent = variance[variance["terms"] == "percent variance"]
    return {
        f"PC{component}": f"PC{component} ({value:.1f}%)"
        for component, value in zip(percent["component"], percent["value"])
    }


def plot_correlation_heatmap(corr: pd.DataFrame) -> go.Figure:
    fig = px.imshow(
        corr,
        text_auto=".2f",
        aspect="auto",
        color_continuous_scale="RdBu",
        zmin=-1,
        zmax=1,
        labels=dict(color="Correlation"),
    )
    fig.update_layout(margin=_MARGIN)
    return fig


def plot_pair_matrix(
    df: pd.DataFrame,
    columns: Iterable[str] = MEASUREMENT_COLUMNS,
    group_column: str = GROUP_COLUMN,
) -> go.Figure:
    """Scatter every pair of measurements against each other, one color per group."""

    columns = list(columns)
    complete = drop_incomplete_rows(df, columns)
    fig = px.scatter_matrix(
        complete,
        dimensions=columns,
        color=group_column,
        color_discrete_map=SPECIES_COLORS,
        labels={column: MEASUREMENT_LABELS.get(column, column) for column in columns},
        opacity=0.7,
    )
    # Only the lower triangle is informative; the diagonal would plot each variable against itself.
    fig.update_traces(diagonal_visible=False, showupperhalf=False, marker=dict(size=4))
    fig.update_layout(height=700, margin=_MARGIN)
    return fig


def plot_variance(variance: pd.DataFrame, max_components: int = 4) -> go.Figure:
    """
    Render a bar chart of the percent variance explained by each component.

    Example:
        percent variance rows -> [68.6, 19.5, 9.2, 2.7]
    """

    # Keep only the percent rows of the leading components.
    percent = variance[(variance["terms"] == "percent variance") & (variance["component"] <= max_components)]
    fig = px.bar(
        percent,
        x="component",
        y="value",
        text_auto=".1f",
        labels={"component": "Principal Component", "value": "% of total variance"},
    )
    # Customize bar colors to match the article palette.
    fig.update_traces(marker_color="#577590")
    # Show one tick per component rather than fractional positions.
    fig.update_xaxes(dtick=1)
    fig.update_layout(margin=_MARGIN)
    return fig


def plot_loadings(
    loadings: pd.DataFrame,
    components: Iterable[str] = ("PC1", "PC2", "PC3", "PC4"),
) -> go.Figure:
    """
    Display the absolute loading of each measurement per component, colored by the loading's sign.

    Example:
        loadings rows {"terms": "bill_depth_mm", "value": -0.40, "component": "PC1"} -> bar of length 0.40,
        colored as a negative contribution in the PC1 panel
    """

    # Keep the requested components that the table actually contains, in the requested order.
    available = set(loadings["component"])
    components = [component for component in components if component in available]
    if not components:
        raise ValueError("None of the requested components are present in the loadings table")
    # Work on a copy so the derived columns do not leak into the caller's table.
    tidy = loadings[loadings["component"].isin(components)].copy()
    tidy["contribution"] = tidy["value"].abs()
    tidy["Positive?"] = np.where(tidy["value"] > 0, "Yes", "No")
    fig = px.bar(
        tidy,
        x="contribution",
        y="terms",
        color="Positive?",
        orientation="h",
        facet_col="component",
        facet_col_wrap=2,
        category_orders={"component": components, "Positive?": ["Yes", "No"]},
        color_discrete_map={"Yes": "#2b9348", "No": "#f94144"},
        labels={"contribution": "Absolute value of contribution", "terms": ""},
    )
    # Sort bars within each panel independently so the dominant measurement is always on top.
    fig.update_yaxes(matches=None, showticklabels=True, categoryorder="total ascending")
    # Facet titles read "component=PC1" by default; keep only the component name.
    fig.for_each_annotation(lambda annotation: annotation.update(text=annotation.text.split("=")[-1]))
    fig.update_layout(margin=_MARGIN)
    return fig


def plot_biplot(
    scores: pd.DataFrame,
    wide: pd.DataFrame,
    x: str = "PC1",
    y: str = "PC2",
    group_column: str | None = GROUP_COLUMN,
    axis_titles: dict[str, str] | None = None,
    arrow_scale: float | None = None,
) -> go.Figure:
    """
    Build a biplot that positions specimens on the x/y component plane and overlays the loading vectors.

    Example inputs:
        scores.iloc[0][["species", "PC1", "PC2"]] -> ("Adelie", -1.85, -0.03)
        wide.iloc[0] -> {"terms": "bill_length_mm", "PC1": 0.45, "PC2": -0.60, ...}
    """

    # Reject components that are missing from either table before drawing anything.
    for axis in (x, y):
        if axis not in scores.columns or axis not in wide.columns:
            raise ValueError(f"Unknown component {axis!r}")
    axis_titles = axis_titles or {}

    # Start with an empty figure to which scatter points and arrows are added incrementally.
    fig = go.Figure()
    # Plot one trace per group so the legend doubles as a species key.
    if group_column and group_column in scores.columns:
        groups = [(str(name), subset) for name, subset in scores.groupby(group_column, sort=True)]
    else:
        groups = [("Specimens", scores)]
    for name, subset in groups:
        fig.add_trace(
            go.Scatter(
                x=subset[x],
                y=subset[y],
                mode="markers",
                marker=dict(size=7, opacity=0.8, color=SPECIES_COLORS.get(name, "#277da1")),
                name=name,
            )
        )

    # Derive a scaling factor from the scatter extent so arrow lengths remain readable.
    if arrow_scale is None:
        extent = np.nanmax(np.abs(scores[[x, y]].to_numpy()))
        reach = np.max(np.abs(wide[[x, y]].to_numpy()))
        arrow_scale = 0.9 * extent / reach if reach else 1.0

    for _, row in wide.iterrows():
        # Extract the end point of each variable arrow.
        tip_x, tip_y = row[x] * arrow_scale, row[y] * arrow_scale
        # Draw a line segment from the origin to the scaled loading vector.
        fig.add_trace(
            go.Scatter(
                x=[0, tip_x],
                y=[0, tip_y],
                mode="lines",
                line=dict(color=_ARROW_COLOR, width=2),
                showlegend=False,
                hoverinfo="none",
            )
        )
        # Annotate the arrow tip with the variable name.
        fig.add_annotation(
            x=tip_x,
            y=tip_y,
            ax=0,
            ay=0,
            axref="x",
            ayref="y",
            xanchor="left",
            yanchor="top",
            text=row["terms"],
            font=dict(color=_ARROW_COLOR),
            arrowhead=2,
            arrowsize=1,
            arrowwidth=1,
            arrowcolor=_ARROW_COLOR,
        )

    # Configure axis titles and zero lines.
    fig.update_layout(
        xaxis_title=axis_titles.get(x, x),
        yaxis_title=axis_titles.get(y, y),
        legend_title_text=(group_column or "").title(),
        margin=_MARGIN,
        xaxis=dict(zeroline=True, zerolinewidth=1, zerolinecolor="#999999"),
        yaxis=dict(zeroline=True, zerolinewidth=1, zerolinecolor="#999999"),
    )
    # Return the constructed biplot.
    return fig
