from pathlib import Path
from typing import List, Optional

import typer

from src.assoc import StageConfig, TotalsError, load_global_totals, run_stage_files
from src.assoc.io import default_counters_path

app = typer.Typer()


@app.command("associate")
def associate(
    inputs: List[Path] = typer.Option(
        ...,
        "--input",
        help="Input file or directory of part-r* files (repeatable).",
    ),
    counters: Optional[Path] = typer.Option(
        None,
        "--counters",
        help="Side file holding the L and F totals (defaults to <input dir>/counters).",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        file_okay=False,
        dir_okay=True,
        help="Directory to write part-r-00000 into; prints to stdout when omitted.",
    ),
    workers: int = typer.Option(1, "--workers", help="Worker processes used for aggregation."),
    substrate: str = typer.Option(
        "memory",
        "--substrate",
        help="Grouping substrate (memory, partitioned, dataframe).",
        show_default=True,
    ),
    partitions: int = typer.Option(4, "--partitions", help="Partition count for the partitioned substrate."),
    sort_keys: bool = typer.Option(True, help="Emit keys in sorted (left, right) order."),
    progress: bool = typer.Option(True, help="Print progress messages and bars."),
) -> None:
    """
    Join partial pair counts by key and write association statistics.
    """
    config = StageConfig(
        workers=workers,
        substrate=substrate,  # type: ignore[arg-type]
        num_partitions=partitions,
        sort_keys=sort_keys,
        # Records go to stdout when no output directory is given; keep it clean.
        show_progress=progress and output_dir is not None,
    )
    try:
        config.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        result = run_stage_files(inputs, counters=counters, output_dir=output_dir, config=config)
    except (TotalsError, FileNotFoundError) as exc:
        typer.echo(f"[assoc] {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_dir is None:
        for line in result.lines():
            typer.echo(line)
    if progress:
        typer.echo(f"[assoc] Done: {result.summary.describe()}", err=True)


@app.command("totals")
def totals(
    counters: Optional[Path] = typer.Option(None, "--counters", help="Side file holding the L and F totals."),
    input_dir: Optional[Path] = typer.Option(None, "--input", help="Directory whose counters file should be read."),
) -> None:
    """
    Print the L and F totals the stage would use.
    """
    if counters is None:
        if input_dir is None:
            raise typer.BadParameter("Pass --counters or --input.")
        counters = default_counters_path([input_dir])
    try:
        loaded = load_global_totals(counters)
    except (TotalsError, FileNotFoundError) as exc:
        typer.echo(f"[assoc] {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"L {loaded.L}")
    typer.echo(f"F {loaded.F}")


if __name__ == "__main__":
    app()
