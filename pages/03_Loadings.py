from __future__ import annotations

import streamlit as st

from penguin_pca_core import (
    DATA_PATH,
    MEASUREMENT_COLUMNS,
    PLOTLY_CONFIG,
    configure_logging,
    load_dataset,
    pca_loadings,
    plot_loadings,
)
from penguin_pca_ui import fit_pca_or_stop, group_filter, impute_strategy_selector


configure_logging()
st.title("Loadings")

if not DATA_PATH.exists():
    st.error(f"Dataset not found at {DATA_PATH}.")
    st.stop()

df = load_dataset(str(DATA_PATH))
filtered_df, _ = group_filter(df)
impute_strategy = impute_strategy_selector()

_, pipeline = fit_pca_or_stop(filtered_df, impute_strategy)
loadings = pca_loadings(pipeline, MEASUREMENT_COLUMNS)

components = list(dict.fromkeys(loadings["component"]))
selected = st.multiselect("Components", components, default=components)
if not selected:
    st.info("Select at least one component.")
    st.stop()

st.subheader("Contribution of Each Measurement")
st.markdown(
    """
    Bars show the absolute loading of each measurement on a component; the color says whether the measurement pushes
    the component up or down. Signs are arbitrary per component, so only relative directions within a panel matter.
    """
)
st.plotly_chart(plot_loadings(loadings, selected), config=PLOTLY_CONFIG, width="stretch")

st.markdown("### Long Format")
st.dataframe(loadings[loadings["component"].isin(selected)], width="stretch")
