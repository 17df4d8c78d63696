from __future__ import annotations

import streamlit as st

from penguin_pca_core import (
    DATA_PATH,
    GROUP_COLUMN,
    MEASUREMENT_COLUMNS,
    PLOTLY_CONFIG,
    component_titles,
    configure_logging,
    group_summary,
    load_dataset,
    loadings_wide,
    pca_loadings,
    pca_variance,
    plot_biplot,
)
from penguin_pca_ui import (
    component_pair_selector,
    fit_pca_or_stop,
    group_filter,
    impute_strategy_selector,
)


configure_logging()
st.title("Biplots")

if not DATA_PATH.exists():
    st.error(f"Dataset not found at {DATA_PATH}.")
    st.stop()

df = load_dataset(str(DATA_PATH))
impute_strategy = impute_strategy_selector()
# Fit on every specimen so the axes stay fixed while the filter hides species.
scores, pipeline = fit_pca_or_stop(df, impute_strategy)
wide = loadings_wide(pca_loadings(pipeline, MEASUREMENT_COLUMNS))
titles = component_titles(pca_variance(pipeline))

filtered_scores, _ = group_filter(scores)
components = [column for column in scores.columns if column.startswith("PC")]
x, y = component_pair_selector(components)

st.markdown(f"### {x} vs {y}")
if filtered_scores.empty:
    st.info("No specimens match the current selection for the biplot.")
else:
    st.plotly_chart(
        plot_biplot(filtered_scores, wide, x, y, axis_titles=titles),
        config=PLOTLY_CONFIG,
        width="stretch",
    )

st.markdown("### Mean Scores by Species")
st.dataframe(group_summary(filtered_scores, [GROUP_COLUMN], [x, y]), width="stretch")
