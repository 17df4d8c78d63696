"""CLI for the penguin PCA article

Renders every figure of the article to standalone HTML and writes the derived tables as CSV, without starting the
Streamlit app.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from penguin_pca_core import (
    DATA_PATH,
    GROUP_COLUMN,
    IMPUTE_STRATEGIES,
    MEASUREMENT_COLUMNS,
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
)

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


def export_article(
    output_dir: Path,
    data_path: Path = DATA_PATH,
    impute_strategy: str = "drop",
    n_components: Optional[int] = None,
) -> list[Path]:
    """Run the whole article and write its artifacts under ``output_dir``.

    Args:
        output_dir: Directory that receives the files; created if needed
        data_path: Dataset to analyse
        impute_strategy: One of "drop", "mean" or "median"
        n_components: Number of components to keep (all when None)

    Returns:
        Paths of the written files, in writing order
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    df = load_dataset(str(data_path))

    corr = correlation_table(df, MEASUREMENT_COLUMNS)
    scores, pipeline = prepare_pca(
        df, MEASUREMENT_COLUMNS, impute_strategy=impute_strategy, n_components=n_components
    )
    loadings = pca_loadings(pipeline, MEASUREMENT_COLUMNS)
    wide = loadings_wide(loadings)
    variance = pca_variance(pipeline)
    titles = component_titles(variance)

    tables = {
        "correlation.csv": corr.rename_axis("terms").reset_index(),
        "loadings_long.csv": loadings,
        "loadings_wide.csv": wide,
        "variance.csv": variance,
        "scores.csv": scores,
        "species_summary.csv": group_summary(df, [GROUP_COLUMN], MEASUREMENT_COLUMNS),
    }
    figures = {
        "correlation_heatmap.html": plot_correlation_heatmap(corr),
        "pair_matrix.html": plot_pair_matrix(df, MEASUREMENT_COLUMNS),
        "variance.html": plot_variance(variance),
        "loadings.html": plot_loadings(loadings),
    }
    # Biplots need at least two components on each axis pair.
    pc_columns = [column for column in scores.columns if column.startswith("PC")]
    for x, y in (("PC1", "PC2"), ("PC2", "PC3")):
        if x in pc_columns and y in pc_columns:
            figures[f"biplot_{x}_{y}.html".lower()] = plot_biplot(scores, wide, x, y, axis_titles=titles)

    written: list[Path] = []
    for name, table in tables.items():
        path = output_dir / name
        table.to_csv(path, index=False)
        written.append(path)
    for name, fig in figures.items():
        path = output_dir / name
        fig.write_html(path, include_plotlyjs="cdn")
        written.append(path)

    logger.info("Wrote %d files to %s", len(written), output_dir)
    return written


@app.command()
def main(
    output_dir: Path = typer.Argument(..., help="Directory for the exported figures and tables"),
    data: Path = typer.Option(DATA_PATH, "--data", help="Dataset file (.csv or .xlsx)"),
    impute: str = typer.Option("drop", "--impute", help=f"Missing value strategy: {'|'.join(IMPUTE_STRATEGIES)}"),
    components: Optional[int] = typer.Option(None, "--components", min=1, help="Number of components to keep"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default: PENGUIN_PCA_LOG_LEVEL)"),
):
    """Export the penguin PCA article's figures (HTML) and tables (CSV)."""
    configure_logging(log_level)
    try:
        written = export_article(output_dir, data, impute, components)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Export failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    for path in written:
        typer.echo(str(path))


if __name__ == "__main__":
    app()
