import io

import pandas as pd
import streamlit as st

from penguin_pca_core import (
    DATA_PATH,
    GROUP_COLUMN,
    ID_COLUMNS,
    MEASUREMENT_COLUMNS,
    PLOTLY_CONFIG,
    component_titles,
    configure_logging,
    correlation_table,
    group_summary,
    load_dataset,
    loadings_wide,
    pca_loadings,
    pca_variance,
    plot_biplot,
    plot_correlation_heatmap,
    plot_loadings,
    plot_pair_matrix,
    plot_variance,
    prepare_pca,
    stretch_correlation,
    summary_statistics,
)
from penguin_pca_ui import group_filter, impute_strategy_selector

st.set_page_config(
    page_title="Principal Component Analysis with Penguins",
    page_icon="🐧",
    layout="wide",
)


def render_data(df: pd.DataFrame, filtered: pd.DataFrame) -> None:
    st.subheader("The Data")
    st.markdown(
        """
        Each row is one penguin observed on the Palmer Archipelago, Antarctica. Besides its species, island, sex and
        study year, every specimen carries four continuous measurements: bill length, bill depth, flipper length and
        body mass.
        """
    )
    info_columns = pd.DataFrame(
        {
            "Column": df.columns,
            "Type": pd.Series([df[col].dtype for col in df.columns], dtype="string"),
            "Missing": [int(df[col].isna().sum()) for col in df.columns],
        }
    )
    info_columns["Column"] = info_columns["Column"].astype("string")
    st.dataframe(info_columns, width="stretch")

    st.markdown("### Summary Statistics")
    st.dataframe(summary_statistics(filtered, MEASUREMENT_COLUMNS), width="stretch")


def render_correlation(filtered: pd.DataFrame) -> None:
    st.subheader("Correlation")
    st.markdown(
        """
        Before reducing dimensions it helps to see how the measurements move together. The matrix below is computed on
        complete specimens only, and its rows are reordered so that strongly correlated measurements sit side by side.
        """
    )
    corr = correlation_table(filtered, MEASUREMENT_COLUMNS)
    st.plotly_chart(plot_correlation_heatmap(corr), config=PLOTLY_CONFIG, width="stretch")

    st.markdown("### Strongest Pairs")
    st.dataframe(stretch_correlation(corr), width="stretch")
    st.markdown(
        """
        Flipper length and body mass are almost interchangeable, and both rise with bill length. Bill depth is the odd
        one out: across all species it is negatively related to the other three, a sign that species differences
        dominate the pooled picture.
        """
    )

    st.markdown("### Pairwise Plot Matrix")
    st.plotly_chart(plot_pair_matrix(filtered, MEASUREMENT_COLUMNS), config=PLOTLY_CONFIG, width="stretch")


def render_pca(scores: pd.DataFrame, variance: pd.DataFrame, loadings: pd.DataFrame, impute_strategy: str) -> None:
    st.subheader("Principal Component Analysis")
    st.markdown(
        f"""
        The measurements go through a declarative pipeline: missing values are handled (strategy: **{impute_strategy}**),
        every measurement is centered and scaled to unit variance, and the standardized table is rotated onto its
        principal components. {len(scores)} specimens enter the decomposition.
        """
    )

    st.markdown("### Variance Explained")
    st.plotly_chart(plot_variance(variance), config=PLOTLY_CONFIG, width="stretch")
    st.dataframe(
        variance.pivot(index="component", columns="terms", values="value")[list(dict.fromkeys(variance["terms"]))],
        width="stretch",
    )

    st.markdown("### Component Loadings")
    st.dataframe(loadings_wide(loadings), width="stretch")
    st.plotly_chart(plot_loadings(loadings), config=PLOTLY_CONFIG, width="stretch")
    st.markdown(
        """
        The first component is a size axis: flipper length, body mass and bill length load on it together, with bill
        depth pulling the other way. The second component is driven mostly by bill depth and bill length, which
        separates deep-billed penguins from long-billed ones.
        """
    )

    csv_buffer = io.StringIO()
    loadings_wide(loadings).to_csv(csv_buffer, index=False)
    st.download_button(
        label="⬇️ Download Loadings (CSV)",
        data=csv_buffer.getvalue(),
        file_name="penguin_pca_loadings.csv",
        mime="text/csv",
    )


def render_biplots(scores: pd.DataFrame, wide: pd.DataFrame, titles: dict[str, str]) -> None:
    st.subheader("Biplots")
    st.markdown("### PC1 vs PC2")
    st.plotly_chart(
        plot_biplot(scores, wide, "PC1", "PC2", axis_titles=titles),
        config=PLOTLY_CONFIG,
        width="stretch",
    )
    st.markdown(
        """
        Gentoo penguins separate cleanly along PC1: they have the longest flippers and the heaviest bodies. Adelie and
        Chinstrap penguins overlap on PC1 and are pulled apart by PC2, where bill length does most of the work.
        """
    )
    st.dataframe(group_summary(scores, [GROUP_COLUMN], ["PC1", "PC2"]), width="stretch")

    if "PC3" in scores.columns:
        st.markdown("### PC2 vs PC3")
        st.plotly_chart(
            plot_biplot(scores, wide, "PC2", "PC3", axis_titles=titles),
            config=PLOTLY_CONFIG,
            width="stretch",
        )
        st.markdown(
            """
            The third component carries little variance, yet it still spreads specimens within each species; bill
            depth and body mass dominate it.
            """
        )


def render_summaries(filtered: pd.DataFrame) -> None:
    st.subheader("Summary Statistics by Group")
    st.markdown("Means per species support the story told by the biplots.")
    st.dataframe(
        group_summary(filtered, [GROUP_COLUMN], ["flipper_length_mm", "body_mass_g"]),
        width="stretch",
    )
    if "sex" in filtered.columns:
        st.markdown("Bill shape differs by sex within each species as well.")
        st.dataframe(
            group_summary(filtered, [GROUP_COLUMN, "sex"], ["bill_depth_mm", "bill_length_mm"]),
            width="stretch",
        )


def main() -> None:
    configure_logging()
    if not DATA_PATH.exists():
        st.error(f"Dataset not found at {DATA_PATH}.")
        return

    df = load_dataset(str(DATA_PATH))
    filtered, _ = group_filter(df)
    impute_strategy = impute_strategy_selector()

    if filtered[GROUP_COLUMN].nunique() == 0 or len(filtered) < len(MEASUREMENT_COLUMNS):
        st.info("Not enough specimens match the current selection to run the analysis.")
        return

    try:
        scores, pipeline = prepare_pca(filtered, MEASUREMENT_COLUMNS, ID_COLUMNS, impute_strategy)
    except ValueError as exc:
        st.error(f"PCA cannot run on this selection: {exc}")
        return
    loadings = pca_loadings(pipeline, MEASUREMENT_COLUMNS)
    variance = pca_variance(pipeline)

    st.title("Principal Component Analysis with Penguins")
    render_data(df, filtered)
    render_correlation(filtered)
    render_pca(scores, variance, loadings, impute_strategy)
    render_biplots(scores, loadings_wide(loadings), component_titles(variance))
    render_summaries(filtered)


if __name__ == "__main__":
    main()
