"""
Line-by-line commenting convention: each block explains its purpose in English and, when helpful, includes
example data structures so that the PCA page flow can be understood by reading downward.
"""

# Import __future__ annotations so forward references can be used in type hints.
from __future__ import annotations

# Import Streamlit to render the page and provide interactivity.
import streamlit as st

# Import constants and helpers required by the PCA page from the core module.
from penguin_pca_core import (
    # DATA_PATH: path to the measurements table, for example data/penguins.csv.
    DATA_PATH,
    # MEASUREMENT_COLUMNS: the four continuous measurements such as ["bill_length_mm", ...].
    MEASUREMENT_COLUMNS,
    # PLOTLY_CONFIG: shared Plotly configuration like {"displaylogo": False, "responsive": True}.
    PLOTLY_CONFIG,
    # configure_logging: installs the root log handler at PENGUIN_PCA_LOG_LEVEL.
    configure_logging,
    # load_dataset: function that reads the table and performs basic cleanup.
    load_dataset,
    # loadings_wide: pivots the long loadings table to one row per measurement.
    loadings_wide,
    # pca_loadings: extracts the rotation as rows like {"terms": ..., "value": ..., "component": "PC1"}.
    pca_loadings,
    # pca_variance: variance, cumulative variance and their percentages per component.
    pca_variance,
    # plot_variance: renders the percent-variance bar chart.
    plot_variance,
)
# Import the sidebar controls shared with the other pages.
from penguin_pca_ui import fit_pca_or_stop, group_filter, impute_strategy_selector


# Install the log handler before any data work happens.
configure_logging()
# Render the page title "PCA".
st.title("PCA")

# Abort early with an error message when the dataset cannot be found.
if not DATA_PATH.exists():
    st.error(f"Dataset not found at {DATA_PATH}.")
    st.stop()

# Load the dataset; sample row contains columns such as species, island, bill_length_mm, sex, year.
df = load_dataset(str(DATA_PATH))
# Apply the sidebar filter so only the selected species remain in filtered_df.
filtered_df, _ = group_filter(df)
# Let the reader choose between dropping and imputing incomplete specimens.
impute_strategy = impute_strategy_selector()

# Fit the pipeline producing scores (identity columns + PC1..PC4); too few rows or an all-missing measurement stop the page.
scores, pipeline = fit_pca_or_stop(filtered_df, impute_strategy)

# Introduce the PCA results with descriptive Markdown text.
st.subheader("Preprocessing Pipeline")
st.markdown(
    """
    Missing measurements are handled first, then every measurement is centered and scaled to unit variance, and
    finally the standardized table is rotated onto its principal components.
    """
)
# Show the fitted steps, e.g. ["normalize", "pca"] for the drop strategy.
st.code(" -> ".join(pipeline.named_steps), language=None)
# Report how many specimens entered the fit next to the total available.
st.metric("Specimens used in the decomposition", f"{len(scores)} / {len(filtered_df)}")

# Compute the long variance table, e.g. {"terms": "percent variance", "value": 68.6, "component": 1}.
variance = pca_variance(pipeline)
# Render the variance chart; its bars show percent variance for the leading components.
st.markdown("### Variance Explained")
st.plotly_chart(plot_variance(variance), config=PLOTLY_CONFIG, width="stretch")
# Display the same numbers as a table with one row per component and one column per statistic.
st.dataframe(variance.pivot(index="component", columns="terms", values="value"), width="stretch")

# Build the wide loading matrix where rows correspond to measurements and columns correspond to PC indices.
loadings = loadings_wide(pca_loadings(pipeline, MEASUREMENT_COLUMNS))
# Display the loadings table so the influence of each variable per component is visible.
st.markdown("### Component Loadings")
st.dataframe(loadings, width="stretch")
