from __future__ import annotations

import streamlit as st

from penguin_pca_core import (
    DATA_PATH,
    GROUP_COLUMN,
    configure_logging,
    group_summary,
    load_dataset,
)


configure_logging()
st.title("Conclusion")

if not DATA_PATH.exists():
    st.error(f"Dataset not found at {DATA_PATH}.")
    st.stop()

df = load_dataset(str(DATA_PATH))

st.subheader("What the Components Say")
st.markdown(
    """
    **Key Findings**

    * Two components capture most of the variation in four body measurements.
    * PC1 is a size axis that isolates Gentoo penguins, which have the longest flippers and the heaviest bodies.
    * PC2 contrasts bill depth with bill length and separates Adelie from Chinstrap penguins.
    * Within each species, males tend to have deeper and longer bills than females.
    """
)

st.markdown("### Size by Species")
st.dataframe(
    group_summary(df, [GROUP_COLUMN], ["flipper_length_mm", "body_mass_g"]),
    width="stretch",
)

if "sex" in df.columns:
    st.markdown("### Bill Shape by Species and Sex")
    st.dataframe(
        group_summary(df, [GROUP_COLUMN, "sex"], ["bill_depth_mm", "bill_length_mm"]),
        width="stretch",
    )
