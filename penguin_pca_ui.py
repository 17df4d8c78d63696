"""UI helper module: sidebar controls shared by the article and its pages."""

# Enable future-style annotations to keep type hints concise.
from __future__ import annotations

# Import Streamlit to render sidebar controls.
import streamlit as st

from penguin_pca_core import GROUP_COLUMN, IMPUTE_STRATEGIES, MEASUREMENT_COLUMNS, prepare_pca


IMPUTE_STATE_KEY = "impute_strategy"


def group_filter(df, group_column=GROUP_COLUMN):
    """
    Restrict a specimen table to the groups ticked in the sidebar.

    Example argument:
        group_column="species" with values ["Adelie", "Chinstrap", "Gentoo"]
    Example return:
        (rows of Adelie and Gentoo only, ["Adelie", "Gentoo"])

    An empty selection means "everything", so the pages never render an empty analysis by accident.
    """

    label = group_column.replace("_", " ").title()
    groups = sorted(df[group_column].dropna().unique().tolist())
    st.sidebar.header(f"{label} Filter")
    if not groups:
        st.sidebar.info(f"No {label.lower()} labels available; showing all specimens.")
        return df, groups

    # One key per column, shared by every page; seeded with all groups and pruned to labels this table has.
    state_key = f"{group_column}_filter"
    previous = st.session_state.get(state_key, groups)
    st.session_state[state_key] = [group for group in previous if group in groups]
    chosen = st.sidebar.multiselect(f"Select {label.lower()}", options=groups, key=state_key)
    chosen = chosen or groups
    return df[df[group_column].isin(chosen)], chosen


def impute_strategy_selector():
    """Let the reader choose how missing measurements are handled before the PCA pipeline runs."""

    st.sidebar.header("Missing Values")
    return st.sidebar.selectbox(
        "Handling strategy",
        options=list(IMPUTE_STRATEGIES),
        index=0,
        key=IMPUTE_STATE_KEY,
        help="'drop' removes incomplete specimens; 'mean' and 'median' fill the gaps instead.",
    )


def fit_pca_or_stop(df, impute_strategy):
    """Run prepare_pca on ``df``, turning unusable selections into an on-page message instead of a traceback."""

    if len(df) < len(MEASUREMENT_COLUMNS):
        st.info("Not enough specimens match the current selection to run PCA.")
        st.stop()
    try:
        return prepare_pca(df, MEASUREMENT_COLUMNS, impute_strategy=impute_strategy)
    except ValueError as exc:
        st.error(f"PCA cannot run on this selection: {exc}")
        st.stop()


def component_pair_selector(components, default=("PC1", "PC2")):
    """Pick the two components plotted on the biplot axes; returns (x, y)."""

    st.sidebar.header("Biplot Axes")
    x = st.sidebar.selectbox("Horizontal axis", components, index=components.index(default[0]))
    remaining = [component for component in components if component != x]
    y_default = default[1] if default[1] in remaining else remaining[0]
    y = st.sidebar.selectbox("Vertical axis", remaining, index=remaining.index(y_default))
    return x, y
