from __future__ import annotations

import streamlit as st

from penguin_pca_core import (
    DATA_PATH,
    MEASUREMENT_COLUMNS,
    PLOTLY_CONFIG,
    configure_logging,
    correlation_table,
    load_dataset,
    plot_correlation_heatmap,
    plot_pair_matrix,
    stretch_correlation,
    summary_statistics,
)
from penguin_pca_ui import group_filter


configure_logging()
st.title("Data & Correlation")

if not DATA_PATH.exists():
    st.error(f"Dataset not found at {DATA_PATH}.")
    st.stop()

df = load_dataset(str(DATA_PATH))
filtered_df, _ = group_filter(df)

st.markdown("### Summary Statistics")
st.dataframe(summary_statistics(filtered_df, MEASUREMENT_COLUMNS), width="stretch")

st.markdown("### Correlation Heatmap")
method = st.radio("Correlation method", ["pearson", "spearman", "kendall"], horizontal=True)
corr = correlation_table(filtered_df, MEASUREMENT_COLUMNS, method=method)
st.plotly_chart(plot_correlation_heatmap(corr), config=PLOTLY_CONFIG, width="stretch")

st.markdown("### Correlation Pairs")
st.dataframe(stretch_correlation(corr), width="stretch")

st.markdown("### Pairwise Plot Matrix")
st.plotly_chart(plot_pair_matrix(filtered_df, MEASUREMENT_COLUMNS), config=PLOTLY_CONFIG, width="stretch")
